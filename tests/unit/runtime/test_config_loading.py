import pytest

from src.storefront.runtime.config.config_data import (
    ConfigData,
    DatabaseConfig,
    RedisConfig,
    StoreConfig,
)
from src.storefront.runtime.config.config_template import (
    load_templated_yaml,
    substitute_env_vars,
)
from src.storefront.runtime.context import get_config, with_context


class TestEnvSubstitution:
    """``${VAR}`` placeholders in config.yaml."""

    def test_default_values(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_UNSET", raising=False)
        assert substitute_env_vars("port: ${STOREFRONT_UNSET:-8000}") == "port: 8000"

    def test_present_values_win(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_PORT", "9000")
        assert substitute_env_vars("${STOREFRONT_PORT:-8000}") == "9000"

    def test_required_values(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_UNSET", raising=False)
        with pytest.raises(ValueError, match="STOREFRONT_UNSET not set"):
            substitute_env_vars("${STOREFRONT_UNSET}")
        with pytest.raises(ValueError, match="needed for emails"):
            substitute_env_vars("${STOREFRONT_UNSET:?needed for emails}")


class TestLoadTemplatedYaml:
    def test_loads_config_section(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORE_TAX", "0.17")
        path = tmp_path / "config.yaml"
        path.write_text(
            "config:\n"
            "  store:\n"
            "    tax_rate: ${STORE_TAX:-0.1}\n"
            "    categories: [\"Smart Watches\"]\n"
            "  database:\n"
            "    url: sqlite:///./shop.db\n"
        )
        config = load_templated_yaml(path, env_mode="test")
        assert config.store.tax_rate == 0.17
        assert config.store.categories == ["Smart Watches"]
        assert config.store.shipping_fee == 200
        assert config.database.url == "sqlite:///./shop.db"

    def test_environment_prefixed_overrides(self, tmp_path, monkeypatch):
        """Should let ``<ENV>_FOO`` stand in for ``FOO``."""
        monkeypatch.setenv("STAGING_SHOP_NAME", "Staging Store")
        monkeypatch.setenv("SHOP_NAME", "Default")
        path = tmp_path / "config.yaml"
        path.write_text("config:\n  store:\n    name: ${SHOP_NAME:-Default}\n")
        config = load_templated_yaml(path, env_mode="staging")
        assert config.store.name == "Staging Store"

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_templated_yaml(tmp_path / "absent.yaml", env_mode="test")
        assert config == ConfigData()

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("config:\n  app:\n    environment: moon\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_templated_yaml(path, env_mode="test")

    def test_production_requires_secret(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "config:\n  app:\n    environment: production\n"
            "    session_signing_secret: dev-secret-key-change-me\n"
        )
        with pytest.raises(ValueError, match="session_signing_secret"):
            load_templated_yaml(path, env_mode="production")


class TestConfigModels:
    def test_redis_password_injection(self):
        config = RedisConfig(url="redis://cache:6379/0", password="pw")
        assert config.connection_string == "redis://:pw@cache:6379/0"
        assert RedisConfig(url="redis://u:p@cache:6379").connection_string == "redis://u:p@cache:6379"

    def test_database_password_file(self, tmp_path):
        secret = tmp_path / "db_password"
        secret.write_text("s3cret\n")
        config = DatabaseConfig(
            url="postgresql://shop@db:5432/shop", password_file=str(secret)
        )
        assert config.connection_string == "postgresql://shop:s3cret@db:5432/shop"

    def test_database_password_file_missing(self, tmp_path):
        config = DatabaseConfig(
            url="postgresql://shop@db:5432/shop", password_file=str(tmp_path / "nope")
        )
        with pytest.raises(ValueError, match="Failed to read database password"):
            _ = config.connection_string


class TestContextOverrides:
    """``with_context`` merges only explicitly set fields."""

    def test_partial_override_keeps_siblings(self):
        base = get_config()
        with with_context(ConfigData(store=StoreConfig(tax_rate=0.0))):
            current = get_config()
            assert current.store.tax_rate == 0.0
            assert current.store.shipping_fee == base.store.shipping_fee
            assert current.app.session_signing_secret == base.app.session_signing_secret
        assert get_config().store.tax_rate == base.store.tax_rate

    def test_nested_overrides_stack(self):
        with with_context(ConfigData(store=StoreConfig(tax_rate=0.05))):
            with with_context(ConfigData(store=StoreConfig(shipping_fee=99))):
                assert get_config().store.tax_rate == 0.05
                assert get_config().store.shipping_fee == 99
            assert get_config().store.shipping_fee == 200

    def test_none_override_is_a_no_op(self):
        before = get_config()
        with with_context(None):
            assert get_config() is before

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            with with_context({"store": {}}):
                pass

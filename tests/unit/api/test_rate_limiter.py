import pytest
from fastapi import HTTPException

from src.storefront.api.http.middleware.limiter import (
    DefaultLocalRateLimiter,
    configure_rate_limiter,
    get_rate_limiter,
    local_rate_limiter_factory,
    rate_limit,
    rate_limit_preset,
)
from src.storefront.runtime.config.config_data import (
    ConfigData,
    RateLimiterConfig,
    RateLimitPreset,
)
from src.storefront.runtime.context import with_context


class TestLocalRateLimiter:
    """In-memory sliding window used without Redis."""

    async def test_blocks_after_quota(self, request_factory, response_factory):
        """Should answer 429 with Retry-After once the quota is used up."""
        limiter = DefaultLocalRateLimiter(2, 60_000, per_endpoint=True, per_method=True)
        request = request_factory({}, path="/api/contact")

        await limiter(request, response_factory())
        await limiter(request, response_factory())
        with pytest.raises(HTTPException) as exc_info:
            await limiter(request, response_factory())

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == "Too many requests, please try again later."
        assert int(exc_info.value.headers["Retry-After"]) >= 1

    async def test_clients_are_counted_separately(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(1, 60_000, per_endpoint=True, per_method=True)
        await limiter(request_factory({"X-Forwarded-For": "10.0.0.1"}), response_factory())
        await limiter(request_factory({"X-Forwarded-For": "10.0.0.2, 172.16.0.1"}), response_factory())

        with pytest.raises(HTTPException):
            await limiter(request_factory({"X-Forwarded-For": "10.0.0.1"}), response_factory())

    async def test_endpoints_are_counted_separately(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(1, 60_000, per_endpoint=True, per_method=False)
        await limiter(request_factory({}, path="/api/cart"), response_factory())
        await limiter(request_factory({}, path="/api/orders"), response_factory())

        shared = DefaultLocalRateLimiter(1, 60_000, per_endpoint=False, per_method=False)
        await shared(request_factory({}, path="/api/cart"), response_factory())
        with pytest.raises(HTTPException):
            await shared(request_factory({}, path="/api/orders"), response_factory())

    async def test_cleanup_forgets_hits(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(1, 60_000, per_endpoint=True, per_method=True)
        request = request_factory({})
        await limiter(request, response_factory())
        await limiter.cleanup()
        await limiter(request, response_factory())


class TestPresets:
    """Named quotas resolved from configuration per request."""

    @pytest.fixture(autouse=True)
    def local_limiter(self):
        configure_rate_limiter(local_rate_limiter_factory)
        yield
        configure_rate_limiter(local_rate_limiter_factory)

    def _config(self, enabled: bool = True) -> ConfigData:
        return ConfigData(
            rate_limiter=RateLimiterConfig(
                enabled=enabled,
                presets={"contact": RateLimitPreset(requests=1, window_ms=60_000)},
            )
        )

    async def test_preset_quota_is_enforced(self, request_factory, response_factory):
        dependency = rate_limit_preset("contact")
        request = request_factory({"X-Forwarded-For": "10.1.1.1"}, path="/api/contact")
        with with_context(self._config()):
            await dependency(request, response_factory())
            with pytest.raises(HTTPException) as exc_info:
                await dependency(request, response_factory())
        assert exc_info.value.status_code == 429

    async def test_explicit_quota(self, request_factory, response_factory):
        """Should enforce the quota passed to rate_limit directly."""
        dependency = rate_limit(requests=2, window_ms=60_000)
        request = request_factory({"X-Forwarded-For": "10.1.1.3"}, path="/api/log-error")
        with with_context(self._config()):
            await dependency(request, response_factory())
            await dependency(request, response_factory())
            with pytest.raises(HTTPException) as exc_info:
                await dependency(request, response_factory())
        assert exc_info.value.status_code == 429

    async def test_explicit_quota_falls_back_to_defaults(
        self, request_factory, response_factory
    ):
        config = ConfigData(
            rate_limiter=RateLimiterConfig(enabled=True, requests=1, window_ms=60_000)
        )
        dependency = rate_limit()
        request = request_factory({"X-Forwarded-For": "10.1.1.4"}, path="/api/cart")
        with with_context(config):
            await dependency(request, response_factory())
            with pytest.raises(HTTPException):
                await dependency(request, response_factory())
        with with_context(self._config(enabled=False)):
            assert await dependency(request, response_factory()) is None

    async def test_disabled_limiter_lets_everything_through(
        self, request_factory, response_factory
    ):
        dependency = rate_limit_preset("contact")
        request = request_factory({"X-Forwarded-For": "10.1.1.2"}, path="/api/contact")
        with with_context(self._config(enabled=False)):
            for _ in range(5):
                assert await dependency(request, response_factory()) is None

    def test_limiters_are_cached_per_quota(self):
        with with_context(self._config()):
            assert get_rate_limiter(5, 1000) is get_rate_limiter(5, 1000)
            assert get_rate_limiter(5, 1000) is not get_rate_limiter(6, 1000)

    def test_reconfiguring_invalidates_cache(self):
        with with_context(self._config()):
            before = get_rate_limiter(5, 1000)
            configure_rate_limiter(local_rate_limiter_factory)
            assert get_rate_limiter(5, 1000) is not before

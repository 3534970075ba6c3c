"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, create_engine

from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config


def build_engine(main_config: ConfigData | None = None) -> Engine:
    """Create an engine tuned for the configured database."""
    main_config = main_config or get_config()
    db_config = main_config.database
    is_sqlite = db_config.url.startswith("sqlite")

    logger.info(
        "Configuring database engine for environment: {}", main_config.app.environment
    )
    engine_kwargs = {
        "pool_pre_ping": True,  # Validate connections before use
        "echo": False,
        "connect_args": _get_connect_args(main_config),
    }
    if not is_sqlite:
        engine_kwargs.update(
            {
                "pool_size": db_config.pool_size,
                "max_overflow": db_config.max_overflow,
                "pool_timeout": db_config.pool_timeout,
                "pool_recycle": db_config.pool_recycle,
            }
        )

    engine = create_engine(db_config.connection_string, **engine_kwargs)

    if main_config.app.environment == "production":
        logger.bind(
            pool_size=db_config.pool_size,
            max_overflow=db_config.max_overflow,
            pool_timeout=db_config.pool_timeout,
            pool_recycle=db_config.pool_recycle,
        ).info("Database engine initialized")
    return engine


def _get_connect_args(config: ConfigData) -> dict:
    """Get database-specific connection arguments."""
    connect_args = {}

    if config.database.url.startswith("postgresql"):
        connect_args.update(
            {
                # Application name for connection tracking
                "application_name": f"storefront_{config.app.environment}",
                "connect_timeout": 30,
            }
        )

    elif config.database.url.startswith("sqlite"):
        connect_args.update(
            {
                "check_same_thread": False,  # Sessions cross threadpool workers
                "timeout": 20,  # Lock timeout
            }
        )

        if config.app.environment == "production":
            logger.warning(
                "SQLite is not recommended for production use. "
                "Consider PostgreSQL for better performance and reliability."
            )

    return connect_args


class DbSessionService:
    def __init__(self, engine: Engine | None = None):
        """Initialize the shared database engine and session factory."""
        logger.info("Setting up database engine and session factory")
        self._engine = engine or build_engine()

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(
            self._engine,
            expire_on_commit=False,  # Prevent lazy loading issues
            autoflush=True,
        )

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Commit on success, roll back on error, always close."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.bind(
                error_type=type(e).__name__,
                error_message=str(e),
            ).error("Database transaction failed")
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.bind(
                error_type=type(e).__name__,
                error_message=str(e),
            ).error("Database health check failed")
            return False

    def get_pool_status(self) -> dict:
        """Get current connection pool status for monitoring."""
        pool = self._engine.pool

        def _stat(name: str) -> int:
            # SingletonThreadPool exposes ``size`` as a plain int
            value = getattr(pool, name, 0)
            return value() if callable(value) else int(value)

        return {
            "size": _stat("size"),
            "checked_in": _stat("checkedin"),
            "checked_out": _stat("checkedout"),
            "overflow": _stat("overflow"),
        }

    def dispose(self) -> None:
        self._engine.dispose()

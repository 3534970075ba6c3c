"""Schema management."""

from loguru import logger
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from src.storefront.core.services.database.db_session import build_engine


class DbManageService:
    def __init__(self, engine: Engine | None = None):
        self._engine = engine or build_engine()

    def create_all(self) -> None:
        """Create all database tables."""
        from src.storefront.entities import (  # noqa: F401
            CartItemTable,
            ContactMessageTable,
            OrderItemTable,
            OrderTable,
            ProductTable,
            ProfileTable,
        )

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def drop_all(self) -> None:
        from src.storefront.entities import ProfileTable  # noqa: F401

        SQLModel.metadata.drop_all(self._engine)
        logger.warning("All database tables dropped.")

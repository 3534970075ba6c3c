"""Create the database schema for the configured database."""

from src.storefront.core.services.database import DbManageService


def init_db() -> None:
    DbManageService().create_all()


if __name__ == "__main__":
    init_db()

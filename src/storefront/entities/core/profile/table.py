"""Profile database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class ProfileTable(EntityTable, table=True):
    """Database persistence model for profiles."""

    __tablename__ = "profiles"

    email: str = Field(index=True, unique=True)
    password_hash: str
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None
    role: str = Field(default="customer", index=True)

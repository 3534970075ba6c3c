"""Profile domain entity."""

from enum import StrEnum
from typing import Any

from pydantic import Field

from src.storefront.entities.core._base import Entity


class Role(StrEnum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class Profile(Entity):
    """A registered customer or administrator.

    The password hash never leaves the service layer; use ``public_dict`` when
    rendering a profile in a response.
    """

    email: str = Field(description="Login email, stored lowercased")
    password_hash: str = Field(description="bcrypt hash of the password")
    full_name: str | None = Field(default=None, description="Display name")
    phone: str | None = Field(default=None, description="Contact phone number")
    address: str | None = Field(default=None, description="Street address")
    city: str | None = Field(default=None)
    postal_code: str | None = Field(default=None)
    country: str | None = Field(default=None)
    role: str = Field(default=Role.CUSTOMER.value, description="customer or admin")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def public_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"password_hash"})

    def __eq__(self, other: Any) -> bool:
        """Compare profiles by business attributes, ignoring timestamps."""
        if not isinstance(other, Profile):
            return False

        return (
            self.id == other.id
            and self.email == other.email
            and self.full_name == other.full_name
            and self.role == other.role
        )

    def __hash__(self) -> int:
        return hash((self.id, self.email, self.full_name, self.role))

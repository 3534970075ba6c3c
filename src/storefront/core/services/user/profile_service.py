from typing import Any

from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.core.errors import NotFound, ValidationFailed
from src.storefront.core.validation import is_valid_phone, is_valid_postal_code
from src.storefront.entities.core.profile import Profile, ProfileRepository
from src.storefront.entities.service.order import OrderRepository


class ProfileUpdate(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None


class ProfileService:
    """Self-service profile reads and edits."""

    def __init__(self, db_session: Session):
        self._session = db_session
        self._profiles = ProfileRepository(db_session)
        self._orders = OrderRepository(db_session)

    def get_profile(self, user_id: str) -> Profile:
        profile = self._profiles.get(user_id)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    def update_profile(self, user_id: str, data: ProfileUpdate) -> Profile:
        """Trim the sent fields, store blanks as null and validate the rest."""
        profile = self.get_profile(user_id)
        changes: dict[str, str | None] = {}
        for field in data.model_fields_set:
            value = getattr(data, field)
            changes[field] = value.strip() or None if isinstance(value, str) else None

        # An explicitly sent name is checked even when it trims to nothing
        raw_name = data.full_name if "full_name" in data.model_fields_set else None
        if raw_name and len(raw_name.strip()) < 2:
            raise ValidationFailed("Full name must be at least 2 characters")
        if changes.get("phone") and not is_valid_phone(changes["phone"]):
            raise ValidationFailed("Invalid phone number")
        if changes.get("postal_code") and not is_valid_postal_code(changes["postal_code"]):
            raise ValidationFailed("Invalid postal code")

        if not changes:
            return profile
        updated = self._profiles.update(profile.model_copy(update=changes))
        self._session.commit()
        logger.bind(user_id=user_id, fields=sorted(changes)).info("Profile updated")
        return updated

    def stats(self, profile: Profile) -> dict[str, Any]:
        total_orders, total_spent = self._orders.user_totals(profile.id)
        return {
            "total_orders": total_orders,
            "total_spent": total_spent,
            "member_since": profile.created_at.isoformat(),
            "recent_orders": [
                order.model_dump(mode="json")
                for order in self._orders.list_for_user(profile.id, limit=5)
            ],
        }

"""Self-service profile endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from src.storefront.api.http.deps import get_current_user, get_profile_service
from src.storefront.api.http.middleware.limiter import rate_limit_preset
from src.storefront.core.services.user import ProfileService, ProfileUpdate
from src.storefront.entities.core.profile import Profile

router = APIRouter(
    prefix="/profile",
    tags=["profile"],
    dependencies=[Depends(rate_limit_preset("standard"))],
)


@router.get("")
def get_profile(user: Profile = Depends(get_current_user)) -> dict[str, Any]:
    return {"profile": user.public_dict()}


@router.put("")
def update_profile(
    body: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
) -> dict[str, Any]:
    updated = profiles.update_profile(user.id, body)
    return {"success": True, "profile": updated.public_dict()}


@router.get("/stats")
def profile_stats(
    user: Profile = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
) -> dict[str, Any]:
    return {"stats": profiles.stats(user)}

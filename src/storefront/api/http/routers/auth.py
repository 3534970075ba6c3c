"""Email and password authentication issuing bearer tokens."""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

from src.storefront.api.http.deps import (
    get_current_user,
    get_email_service,
    get_jwt_generation_service,
    get_password_reset_service,
    get_user_management_service,
)
from src.storefront.api.http.middleware.limiter import rate_limit_preset
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.jwt import JwtGeneratorService
from src.storefront.core.services.user import PasswordResetService, UserManagementService
from src.storefront.entities.core.profile import Profile

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    email: str
    password: str
    full_name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


def _token_response(profile: Profile, jwt_gen: JwtGeneratorService) -> dict[str, Any]:
    return {
        "user": profile.public_dict(),
        "access_token": jwt_gen.generate_access_token(profile),
        "token_type": "bearer",
    }


@router.post(
    "/signup",
    status_code=201,
    dependencies=[Depends(rate_limit_preset("auth"))],
)
async def signup(
    body: SignupRequest,
    users: UserManagementService = Depends(get_user_management_service),
    jwt_gen: JwtGeneratorService = Depends(get_jwt_generation_service),
) -> dict[str, Any]:
    profile = users.register(body.email, body.password, body.full_name)
    return _token_response(profile, jwt_gen)


@router.post("/login", dependencies=[Depends(rate_limit_preset("auth"))])
async def login(
    body: LoginRequest,
    users: UserManagementService = Depends(get_user_management_service),
    jwt_gen: JwtGeneratorService = Depends(get_jwt_generation_service),
) -> dict[str, Any]:
    profile = users.authenticate(body.email, body.password)
    return _token_response(profile, jwt_gen)


@router.get("/me")
async def me(user: Profile = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": user.public_dict()}


@router.post("/change-password", dependencies=[Depends(rate_limit_preset("auth"))])
async def change_password(
    body: ChangePasswordRequest,
    user: Profile = Depends(get_current_user),
    users: UserManagementService = Depends(get_user_management_service),
) -> dict[str, Any]:
    users.change_password(user, body.current_password, body.new_password)
    return {"success": True, "message": "Password updated successfully"}


@router.post("/forgot-password", dependencies=[Depends(rate_limit_preset("auth"))])
async def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    resets: PasswordResetService = Depends(get_password_reset_service),
    email: EmailService = Depends(get_email_service),
) -> dict[str, Any]:
    # Same answer whether or not the account exists
    issued = resets.issue_token(body.email)
    if issued is not None:
        profile, token = issued
        background_tasks.add_task(email.send_password_reset, profile.email, token)
    return {
        "success": True,
        "message": "If an account exists for this email, a password reset link has been sent.",
    }


@router.post("/reset-password", dependencies=[Depends(rate_limit_preset("auth"))])
async def reset_password(
    body: ResetPasswordRequest,
    resets: PasswordResetService = Depends(get_password_reset_service),
) -> dict[str, Any]:
    await resets.reset_password(body.token, body.new_password)
    return {"success": True, "message": "Password has been reset successfully"}

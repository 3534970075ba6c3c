"""Forgotten-password recovery with short-lived, single-use reset tokens."""

import hashlib

from fastapi import HTTPException
from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import ValidationFailed
from src.storefront.core.security import hash_password
from src.storefront.core.services.jwt import JwtGeneratorService, JwtVerificationService
from src.storefront.core.services.user.user_management import check_password_policy
from src.storefront.entities.core.profile import Profile, ProfileRepository
from src.storefront.runtime.context import get_config

RESET_PURPOSE = "password_reset"
INVALID_RESET_TOKEN = "Reset link is invalid or has expired"


def password_fingerprint(password_hash: str | None) -> str:
    """Digest of the stored hash; it changes whenever the password does."""
    return hashlib.sha256((password_hash or "").encode("utf-8")).hexdigest()[:32]


class PasswordResetService:
    """Issue and redeem password reset tokens.

    Reset tokens are JWTs for their own audience, so they are never accepted as
    access tokens and access tokens can't reset a password. Each token carries a
    fingerprint of the password hash it was issued against; once any reset or
    password change goes through the fingerprint no longer matches and the
    token is spent.
    """

    def __init__(
        self,
        db_session: Session,
        jwt_generator: JwtGeneratorService,
        jwt_verifier: JwtVerificationService,
    ):
        self._db_session = db_session
        self._profiles = ProfileRepository(db_session)
        self._jwt_generator = jwt_generator
        self._jwt_verifier = jwt_verifier

    def issue_token(self, email: str) -> tuple[Profile, str] | None:
        """Return the profile and a fresh token, or None for an unknown email."""
        email = (email or "").strip().lower()
        profile = self._profiles.get_by_email(email)
        if profile is None:
            logger.bind(email=email).info("Password reset requested for unknown email")
            return None

        cfg = get_config().jwt
        token = self._jwt_generator.generate_jwt(
            subject=profile.id,
            claims={
                "purpose": RESET_PURPOSE,
                "pwd": password_fingerprint(profile.password_hash),
            },
            expires_in_seconds=cfg.password_reset_ttl_seconds,
            audience=cfg.password_reset_audience,
        )
        logger.bind(user_id=profile.id).info("Password reset token issued")
        return profile, token

    async def reset_password(self, token: str, new_password: str) -> Profile:
        cfg = get_config().jwt
        try:
            claims = await self._jwt_verifier.verify_jwt(
                token, expected_audience=cfg.password_reset_audience
            )
        except HTTPException as e:
            logger.bind(reason=e.detail).info("Password reset token rejected")
            raise ValidationFailed(INVALID_RESET_TOKEN) from e

        if claims.custom_claims.get("purpose") != RESET_PURPOSE:
            raise ValidationFailed(INVALID_RESET_TOKEN)

        profile = self._profiles.get(claims.subject)
        if profile is None or claims.custom_claims.get("pwd") != password_fingerprint(
            profile.password_hash
        ):
            logger.bind(user_id=claims.subject).info("Spent password reset token presented")
            raise ValidationFailed(INVALID_RESET_TOKEN)

        check_password_policy(new_password)
        updated = self._profiles.update(
            profile.model_copy(update={"password_hash": hash_password(new_password)})
        )
        self._db_session.commit()
        logger.bind(user_id=profile.id).info("Password reset")
        return updated

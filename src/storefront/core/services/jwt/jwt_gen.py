import time
from typing import Any

from authlib.common.security import generate_token
from authlib.jose import JoseError, jwt
from fastapi import HTTPException
from loguru import logger

from src.storefront.entities.core.profile import Profile
from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config


class JwtGeneratorService:
    """Service for generating JWT tokens for API authentication."""

    def generate_jwt(
        self,
        subject: str,
        claims: dict[str, Any] | None = None,
        expires_in_seconds: int | None = None,
        valid_after_seconds: int = 0,
        issuer: str | None = None,
        audience: str | list[str] | None = None,
        algorithm: str = "HS256",
        include_jti: bool = True,
        secret: str | None = None,
    ) -> str:
        """Generate a signed JWT token using authlib.

        Args:
            subject: Subject (sub) claim, the profile ID
            claims: Additional claims to include in the token
            expires_in_seconds: Token lifetime (defaults to jwt.access_token_ttl_seconds)
            valid_after_seconds: Time in seconds before the token is valid (default: 0)
            issuer: Issuer (iss) claim (defaults to config issuer)
            audience: Audience (aud) claim (defaults to config audiences)
            algorithm: Signing algorithm (default: HS256)
            include_jti: Whether to include a unique JWT ID claim (default: True)
            secret: Optional secret key for signing. If None, will use config secret.

        Returns:
            Signed JWT token string

        Raises:
            HTTPException: If configuration is missing or invalid
        """
        config: ConfigData = get_config()

        issuer = issuer or config.jwt.gen_issuer
        secret = secret or config.app.session_signing_secret
        if not secret:
            raise HTTPException(
                status_code=500, detail="JWT signing secret not configured"
            )

        if algorithm not in config.jwt.allowed_algorithms:
            logger.debug(
                f"Attempted to use disallowed algorithm: {algorithm}, only {config.jwt.allowed_algorithms} are allowed"
            )
            raise HTTPException(
                status_code=500, detail=f"Algorithm {algorithm} not allowed"
            )

        if expires_in_seconds is None:
            expires_in_seconds = config.jwt.access_token_ttl_seconds

        now = int(time.time())
        aud = audience or config.jwt.audiences or ["storefront"]

        payload: dict[str, Any] = {
            "iss": issuer,
            "sub": subject,
            "aud": aud,
            "exp": now + expires_in_seconds,
            "iat": now,
            "nbf": now + valid_after_seconds,
        }

        if include_jti:
            payload["jti"] = generate_token(16)

        # Registered claims always win over caller-supplied ones
        if claims:
            payload.update(
                {
                    k: v
                    for k, v in claims.items()
                    if k not in {"iss", "sub", "aud", "exp", "iat", "nbf", "jti"}
                }
            )

        try:
            header = {"alg": algorithm, "typ": "JWT"}
            token = jwt.encode(header, payload, secret)
            return token.decode() if isinstance(token, bytes) else token
        except JoseError as e:
            raise HTTPException(
                status_code=500, detail=f"JWT encoding failed: {str(e)}"
            ) from e

    def generate_access_token(
        self,
        profile: Profile,
        expires_in_seconds: int | None = None,
        secret: str | None = None,
    ) -> str:
        """Generate the bearer token handed out at signup and login.

        Example:
            token = generate_access_token(profile)
            # {"sub": profile.id, "email": ..., "roles": ["customer"], ...}
        """
        return self.generate_jwt(
            subject=profile.id,
            claims={"email": profile.email, "roles": [profile.role]},
            expires_in_seconds=expires_in_seconds,
            secret=secret,
        )

"""JWT verification service."""

import time

from authlib.jose import JoseError, jwt
from fastapi import HTTPException
from loguru import logger

from src.storefront.core.models import TokenClaims
from src.storefront.core.services.jwt.jwt_utils import JwtPreview, as_list, preview_jwt
from src.storefront.runtime.context import get_config


class JwtVerificationService:
    async def verify_jwt(
        self,
        token: str,
        *,
        key: str | None = None,
        expected_audience: list[str] | str | None = None,
        expected_issuer: str | None = None,
        preview: JwtPreview | None = None,
    ) -> TokenClaims:
        cfg = get_config()
        pv = preview or preview_jwt(token)

        # alg allowlist
        if pv.alg not in cfg.jwt.allowed_algorithms:
            raise HTTPException(status_code=401, detail="Disallowed JWT algorithm")

        if not pv.iss:
            raise HTTPException(status_code=401, detail="Missing iss claim")

        issuer = (expected_issuer or cfg.jwt.gen_issuer).rstrip("/")
        if pv.iss != issuer:
            raise HTTPException(status_code=401, detail="Invalid issuer")

        verification_key = key or cfg.app.session_signing_secret
        if not verification_key:
            raise HTTPException(status_code=500, detail="JWT signing secret not configured")

        aud_values = as_list(expected_audience or cfg.jwt.audiences)
        if not aud_values:
            raise HTTPException(status_code=401, detail="No expected audience configured")

        claims_options = {
            "iss": {"essential": True, "values": [issuer]},
            "aud": {"essential": True, "values": aud_values},
            "sub": {"essential": True},
            "exp": {"essential": True},
        }

        # verify signature + registered claims
        try:
            logger.debug(
                "Verifying JWT from issuer {} with expected audience {}", issuer, aud_values
            )
            claims = jwt.decode(token, verification_key, claims_options=claims_options)
            claims.validate(leeway=cfg.jwt.clock_skew)
        except (JoseError, ValueError) as exc:
            raise HTTPException(status_code=401, detail=f"JWT error: {exc}") from exc

        # extra temporal sanity
        now = int(time.time())
        for k, check in (
            ("exp", lambda v: now > int(v) + cfg.jwt.clock_skew),
            ("nbf", lambda v: now < int(v) - cfg.jwt.clock_skew),
            ("iat", lambda v: int(v) > now + cfg.jwt.clock_skew),
        ):
            v = claims.get(k)
            if v is not None and check(v):
                raise HTTPException(status_code=401, detail=f"Invalid {k} with skew")

        if not claims.get("sub"):
            raise HTTPException(status_code=401, detail="Missing sub claim")

        return TokenClaims.from_jwt_payload(dict(claims), raw_token=token)

    async def verify_generated_jwt(self, token: str) -> TokenClaims:
        """Verify a JWT generated by this service with the configured secret."""
        secret = get_config().app.session_signing_secret
        if not secret:
            raise HTTPException(status_code=500, detail="JWT signing secret not configured")
        return await self.verify_jwt(token, key=secret)

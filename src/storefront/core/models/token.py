"""Structured JWT claims."""

from typing import Any

from pydantic import BaseModel, Field


class TokenClaims(BaseModel):
    """Structured representation of verified access-token claims."""

    raw_token: str = Field(default="", description="Original JWT token")
    token_type: str = Field(default="access_token", description="Token type")

    issuer: str = Field(description="Issuer")
    subject: str = Field(description="Subject (profile ID)")
    audience: str | list[str] = Field(description="Audience")
    expires_at: int = Field(description="Expiration time")
    issued_at: int = Field(description="Issued at")
    not_before: int | None = Field(default=None, description="Not before")
    jti: str | None = Field(default=None, description="JWT ID (unique token identifier)")

    email: str | None = Field(default=None, description="Email address")
    roles: list[str] = Field(default_factory=list, description="User roles")

    custom_claims: dict[str, Any] = Field(
        default_factory=dict, description="Custom or additional claims"
    )

    @classmethod
    def from_jwt_payload(
        cls, payload: dict[str, Any], raw_token: str = "", token_type: str = "access_token"
    ) -> "TokenClaims":
        """Create TokenClaims from a JWT payload dictionary."""
        claim_mapping = {
            "iss": "issuer",
            "sub": "subject",
            "aud": "audience",
            "exp": "expires_at",
            "iat": "issued_at",
            "nbf": "not_before",
            "jti": "jti",
            "email": "email",
            "roles": "roles",
        }
        data: dict[str, Any] = {"raw_token": raw_token, "token_type": token_type}
        custom: dict[str, Any] = {}
        for key, value in payload.items():
            if key in claim_mapping:
                data[claim_mapping[key]] = value
            else:
                custom[key] = value
        if isinstance(data.get("roles"), str):
            data["roles"] = data["roles"].split()
        data["custom_claims"] = custom
        return cls(**data)

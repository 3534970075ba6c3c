"""Password hashing and role helpers."""

import base64
import secrets

import bcrypt

from src.storefront.entities.core.profile import Profile, Role

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate (default 32)

    Returns:
        URL-safe base64 encoded token
    """
    return (
        base64.urlsafe_b64encode(secrets.token_bytes(length))
        .decode("utf-8")
        .rstrip("=")
    )


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def get_user_role(profile: Profile | None) -> str:
    if profile is None or not profile.role:
        return Role.CUSTOMER.value
    return profile.role


def is_admin(role: str | None) -> bool:
    return role == Role.ADMIN.value

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.storefront.core.errors import (
    AuthenticationFailed,
    Conflict,
    NotFound,
    ValidationFailed,
)
from src.storefront.core.security import hash_password, verify_password
from src.storefront.core.validation import is_valid_email, validate_password
from src.storefront.entities.core.profile import Profile, ProfileRepository, Role


def check_password_policy(password: str) -> None:
    result = validate_password(password)
    if not result.is_valid:
        raise ValidationFailed("; ".join(result.errors))


class UserManagementService:
    """Account lifecycle: signup, credential checks, password and role changes.

    Each mutating method commits its own unit of work.
    """

    def __init__(self, db_session: Session):
        self._db_session = db_session
        self._profile_repo = ProfileRepository(db_session)

    def register(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
        role: str = Role.CUSTOMER.value,
    ) -> Profile:
        email = (email or "").strip().lower()
        if not is_valid_email(email):
            raise ValidationFailed("Invalid email address")
        check_password_policy(password)

        if self._profile_repo.get_by_email(email) is not None:
            raise Conflict("An account with this email already exists")

        profile = Profile(
            email=email,
            password_hash=hash_password(password),
            full_name=(full_name or "").strip() or None,
            role=role,
        )
        try:
            created = self._profile_repo.create(profile)
            self._db_session.commit()
        except IntegrityError as e:
            self._db_session.rollback()
            raise Conflict("An account with this email already exists") from e

        logger.bind(user_id=created.id, role=created.role).info("Profile registered")
        return created

    def authenticate(self, email: str, password: str) -> Profile:
        profile = self._profile_repo.get_by_email(email or "")
        if profile is None or not verify_password(password, profile.password_hash):
            logger.bind(email=(email or "").strip().lower()).info("Login failed")
            raise AuthenticationFailed("Invalid email or password")
        return profile

    def change_password(self, profile: Profile, current_password: str, new_password: str) -> Profile:
        if not verify_password(current_password, profile.password_hash):
            raise AuthenticationFailed("Current password is incorrect")
        check_password_policy(new_password)
        if verify_password(new_password, profile.password_hash):
            raise ValidationFailed("New password must be different from the current password")

        updated = self._profile_repo.update(
            profile.model_copy(update={"password_hash": hash_password(new_password)})
        )
        self._db_session.commit()
        logger.bind(user_id=profile.id).info("Password changed")
        return updated

    def set_role(self, email: str, role: str) -> Profile:
        if role not in {r.value for r in Role}:
            raise ValidationFailed(f"Invalid role: {role}")
        profile = self._profile_repo.get_by_email(email)
        if profile is None:
            raise NotFound(f"No profile with email {email}")
        updated = self._profile_repo.update(profile.model_copy(update={"role": role}))
        self._db_session.commit()
        logger.bind(user_id=profile.id, role=role).warning("Role changed")
        return updated

    def list_profiles(self, role: str | None = None) -> list[Profile]:
        return self._profile_repo.list_all(role)

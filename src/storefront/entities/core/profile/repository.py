from sqlmodel import Session, func, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.core.profile.entity import Profile
from src.storefront.entities.core.profile.table import ProfileTable


class ProfileRepository:
    """Data-access layer for profiles."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, profile_id: str) -> Profile | None:
        row = self._session.get(ProfileTable, profile_id)
        if row is None:
            return None
        return Profile.model_validate(row, from_attributes=True)

    def get_by_email(self, email: str) -> Profile | None:
        statement = select(ProfileTable).where(
            ProfileTable.email == email.strip().lower()
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Profile.model_validate(row, from_attributes=True)

    def list_all(self, role: str | None = None) -> list[Profile]:
        statement = select(ProfileTable).order_by(ProfileTable.created_at)
        if role:
            statement = statement.where(ProfileTable.role == role)
        return [
            Profile.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        ]

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(ProfileTable)).one()

    def create(self, profile: Profile) -> Profile:
        data = profile.model_dump()
        data["email"] = data["email"].strip().lower()
        row = ProfileTable(**data)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Profile.model_validate(row, from_attributes=True)

    def update(self, profile: Profile) -> Profile:
        row = self._session.get(ProfileTable, profile.id)
        if row is None:
            raise ValueError(f"Profile {profile.id} does not exist")
        for field, value in profile.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Profile.model_validate(row, from_attributes=True)

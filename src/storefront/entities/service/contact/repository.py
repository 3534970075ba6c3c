from sqlmodel import Session

from src.storefront.entities.service.contact.entity import ContactMessage
from src.storefront.entities.service.contact.table import ContactMessageTable


class ContactMessageRepository:
    """Data-access layer for contact messages."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, message: ContactMessage) -> ContactMessage:
        row = ContactMessageTable(**message.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return ContactMessage.model_validate(row, from_attributes=True)


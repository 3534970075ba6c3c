"""ContactMessage database table model."""

from src.storefront.entities.core._base import EntityTable


class ContactMessageTable(EntityTable, table=True):
    __tablename__ = "contact_messages"

    name: str
    email: str
    subject: str
    message: str

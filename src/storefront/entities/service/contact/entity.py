"""Entity: ContactMessage."""

from src.storefront.entities.core._base import Entity


class ContactMessage(Entity):
    """A message left through the contact form."""

    name: str
    email: str
    subject: str
    message: str

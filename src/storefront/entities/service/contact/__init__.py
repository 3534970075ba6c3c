"""Entity package: ContactMessage."""

from .entity import ContactMessage
from .repository import ContactMessageRepository
from .table import ContactMessageTable

__all__ = ["ContactMessage", "ContactMessageRepository", "ContactMessageTable"]

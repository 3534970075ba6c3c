"""Entity package: Profile."""

from .entity import Profile, Role
from .repository import ProfileRepository
from .table import ProfileTable

__all__ = ["Profile", "ProfileRepository", "ProfileTable", "Role"]

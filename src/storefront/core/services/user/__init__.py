from .password_reset import PasswordResetService
from .profile_service import ProfileService, ProfileUpdate
from .user_management import UserManagementService

__all__ = [
    "PasswordResetService",
    "ProfileService",
    "ProfileUpdate",
    "UserManagementService",
]

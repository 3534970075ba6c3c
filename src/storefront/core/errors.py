"""Domain exceptions raised by services and mapped to HTTP responses."""


class StorefrontError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(StorefrontError):
    status_code = 400


class AuthenticationFailed(StorefrontError):
    status_code = 401


class PermissionDenied(StorefrontError):
    status_code = 403


class NotFound(StorefrontError):
    status_code = 404


class Conflict(StorefrontError):
    status_code = 409


class StorageError(StorefrontError):
    status_code = 500

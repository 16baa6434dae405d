"""
Domain error taxonomy.

Services raise these; `app.main` maps each one to a single HTTP response.
"""
from fastapi import status


class InvitelyError(Exception):
    """Base class for errors that map to one HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationError(InvitelyError):
    """Missing or invalid bearer credential."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class AuthorizationError(InvitelyError):
    """Valid credential, but not the owner or uploader."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFoundError(InvitelyError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ValidationError(InvitelyError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class DependentStoreError(InvitelyError):
    """Blob, key-value or lock backend failure."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Storage backend failure"

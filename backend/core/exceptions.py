"""Structured error kinds raised by the service layer.

Every error is an ``HTTPException`` so FastAPI renders it directly, and carries
a ``kind`` so clients can branch on something sturdier than message text.
"""

from fastapi import HTTPException, status


class SocialError(HTTPException):
    """Base class for business errors."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, headers: dict = None):
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)


class NotFoundError(SocialError):
    """Referenced row is missing or inactive.

    Inactive rows are reported exactly like missing ones so callers cannot
    tell a soft-deleted entity from one that never existed.
    """

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SocialError):
    """A uniqueness rule would be violated (duplicate like, share, follow...)."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidOperationError(SocialError):
    """Business rule violation: self-follow, insufficient balance, inactive package."""

    kind = "invalid_operation"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(SocialError):
    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})


class PermissionDeniedError(SocialError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


__all__ = [
    "SocialError",
    "NotFoundError",
    "ConflictError",
    "InvalidOperationError",
    "AuthenticationError",
    "PermissionDeniedError",
]

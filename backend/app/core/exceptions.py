"""Typed failures raised by the auth core.

Services raise these; ``backend.app.api.errors`` turns them into the
``{success: false, message}`` envelope with the matching status code.
"""

from __future__ import annotations

from fastapi import status


class AuthError(Exception):
    """Base class for domain errors mapped to HTTP responses."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailedError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST


class BadRequestError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AuthError):
    status_code = status.HTTP_409_CONFLICT


class InvalidCredentialsError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class AccountLockedError(AuthError):
    status_code = status.HTTP_423_LOCKED

    def __init__(
        self,
        message: str = "Account is temporarily locked due to too many failed login attempts",
    ) -> None:
        super().__init__(message)


class AccountInactiveError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Account is deactivated") -> None:
        super().__init__(message)


class TokenInvalidError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class TokenKindMismatchError(TokenInvalidError):
    """Token verified, but was issued for a different purpose."""


class TokenExpiredError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Token expired") -> None:
        super().__init__(message)


class NotFoundError(AuthError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message)

"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between the token
stores, the adapters, and the application services.

The translation to HTTP responses (RFC 7807) is handled by
``gzclp_api/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from adapters or domain logic.
    - The API layer translates them to ``APIError`` through
      :meth:`BaseService.translate_exceptions`.
    """

    pass


class InvalidTokenError(ServiceError):
    """
    Raised when a presented token cannot be honored.

    Unknown, already consumed, used and replayed tokens all share this error so
    callers cannot tell which case applied.
    """

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class ExpiredTokenError(ServiceError):
    """Raised when a refresh token exists but its lifetime has passed."""

    def __init__(self, message: str = "Refresh token expired") -> None:
        super().__init__(message)


class InvalidCredentialsError(ServiceError):
    """Raised on failed sign-in; never says whether the email exists."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


@dataclass(slots=True)
class StoreUnavailableError(ServiceError):
    """
    Raised when the token store cannot be reached or timed out.

    :param store: Logical store name (e.g. ``"refresh_tokens"``).
    :type store: str
    :param detail: Short operator-facing explanation.
    :type detail: str
    """

    store: str
    detail: str = "unavailable"

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.store} store {self.detail}"

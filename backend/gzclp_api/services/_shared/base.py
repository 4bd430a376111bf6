from __future__ import annotations

from datetime import UTC, datetime

from gzclp_api.core import errors as api_errors
from gzclp_api.services._shared.errors import (
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidTokenError,
    ServiceError,
    StoreUnavailableError,
)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Centralize error translation.
    * Offer a single overridable clock.

    Notes
    -----
    - Services never touch the database session; persistence goes through
      the ports, whose SQL adapters open one Unit of Work per call.
    - Services raise :class:`ServiceError` subclasses only; the HTTP layer
      calls :meth:`translate_exceptions` at its boundary.
    """

    # ------------------------------ Clock -----------------------------------

    def now_utc(self) -> datetime:
        """Current aware UTC instant. Tests override or freeze it."""
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, ExpiredTokenError):
            # -> 401, client must sign in again
            return api_errors.Unauthorized(str(exc), code="auth_refresh_expired")

        if isinstance(exc, InvalidTokenError):
            # -> 401, never says which failure applied
            return api_errors.Unauthorized(str(exc), code="auth_invalid_token")

        if isinstance(exc, InvalidCredentialsError):
            return api_errors.Unauthorized(str(exc), code="invalid_credentials")

        if isinstance(exc, StoreUnavailableError):
            # -> 503, fail closed
            return api_errors.ServiceUnavailable()

        # Any other ServiceError subclass -> 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc

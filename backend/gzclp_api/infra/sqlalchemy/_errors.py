"""Map database connectivity failures onto the service-layer error."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from gzclp_api.services._shared.errors import StoreUnavailableError


@contextmanager
def store_errors(store: str) -> Iterator[None]:
    """
    Re-raise connectivity problems as :class:`StoreUnavailableError`.

    Callers must never confuse an unreachable database with an unknown token.
    Integrity and programming errors propagate untouched.

    :param store: Logical store name reported in the error.
    """
    try:
        yield
    except (OperationalError, PoolTimeoutError) as exc:
        raise StoreUnavailableError(store, "unreachable") from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise StoreUnavailableError(store, "connection lost") from exc
        raise

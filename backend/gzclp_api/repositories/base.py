"""Generic repository base for SQLAlchemy 2.x.

Repositories stay thin and persistence-focused:

* they never implement use cases or domain policies;
* they never call commit/rollback, the Unit of Work owns transactions;
* bulk writes return the affected row count so callers can detect races.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Delete, Update
from sqlalchemy.engine import CursorResult
from sqlalchemy.orm import Session

from gzclp_api.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model``, the SQLAlchemy mapped class.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``gzclp_api.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, else the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity for persistence and flush to materialize the PK.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key."""
        return self.session.get(self.model, entity_id)

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.session.flush()

    # ------------------------------ Bulk writes ------------------------------

    def _execute_bulk(self, stmt: Delete | Update) -> int:
        """Run a bulk ``DELETE``/``UPDATE`` and return the affected row count.

        Session synchronization is disabled: rows touched here are never held
        as live objects by the callers.

        :param stmt: Core statement targeting ``model``.
        :returns: Number of rows matched by the database.
        :rtype: int
        """
        result = cast(
            CursorResult[Any],
            self.session.execute(stmt, execution_options={"synchronize_session": False}),
        )
        return int(result.rowcount or 0)

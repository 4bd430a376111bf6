from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Stored view of a refresh token.

    :ivar id: Store-assigned identifier.
    :ivar user_id: Owner user id.
    :ivar token_hash: SHA-256 hex of the raw token (the raw value is never stored).
    :ivar previous_hash: Hash of the token this one replaced, if any.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar created_at: Issuance instant (UTC).
    """

    id: int
    user_id: int
    token_hash: str
    previous_hash: str | None
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class RefreshTokenStore(Protocol):
    """
    Persistence for hashed refresh tokens.

    ``delete_by_hash`` and ``rotate`` MUST be atomic. ``rotate`` consumes the
    presented hash and inserts its successor in one step, and only one of
    several concurrent callers gets a successor back.
    """

    def create(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        previous_hash: str | None = None,
    ) -> RefreshTokenRecord:
        """Persist a new token record."""

    def find_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        """Return the record whose hash matches, if any."""

    def find_by_previous_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        """Return the record that replaced ``token_hash`` during a rotation."""

    def delete_by_hash(self, token_hash: str) -> int:
        """Delete one record. :returns: Number of rows removed (0 or 1)."""

    def rotate(
        self,
        *,
        token_hash: str,
        user_id: int,
        new_hash: str,
        expires_at: datetime,
    ) -> RefreshTokenRecord | None:
        """
        Replace ``token_hash`` by its successor in one atomic step.

        The delete and the insert either both happen or neither does, so a
        failed rotation leaves the presented token usable.

        :returns: The successor (its ``previous_hash`` is ``token_hash``), or
            ``None`` when ``token_hash`` was already gone and nothing was written.
        """

    def delete_all_for_user(self, user_id: int) -> int:
        """Delete every record of a user. :returns: Number of rows removed."""

    def delete_expired(self, now: datetime) -> int:
        """Delete records with ``expires_at <= now``. :returns: Number of rows removed."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store.

    .. note::
       Uses a threading lock so concurrent rotations in unit tests observe the
       same single-winner semantics as ``DELETE ... WHERE token_hash = :h``.
    """

    def __init__(self) -> None:
        self._by_hash: dict[str, RefreshTokenRecord] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def create(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        previous_hash: str | None = None,
    ) -> RefreshTokenRecord:
        with self._lock:
            record = self._new_record(user_id, token_hash, expires_at, previous_hash)
            self._by_hash[token_hash] = record
            return record

    def _new_record(
        self,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        previous_hash: str | None,
    ) -> RefreshTokenRecord:
        # Caller holds the lock
        if token_hash in self._by_hash:
            raise ValueError("duplicate token hash")
        self._seq += 1
        return RefreshTokenRecord(
            id=self._seq,
            user_id=user_id,
            token_hash=token_hash,
            previous_hash=previous_hash,
            expires_at=expires_at,
            created_at=datetime.now(expires_at.tzinfo),
        )

    def find_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._by_hash.get(token_hash)

    def find_by_previous_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        with self._lock:
            for record in self._by_hash.values():
                if record.previous_hash == token_hash:
                    return record
            return None

    def delete_by_hash(self, token_hash: str) -> int:
        with self._lock:
            return 1 if self._by_hash.pop(token_hash, None) is not None else 0

    def rotate(
        self,
        *,
        token_hash: str,
        user_id: int,
        new_hash: str,
        expires_at: datetime,
    ) -> RefreshTokenRecord | None:
        with self._lock:
            if token_hash not in self._by_hash:
                return None
            # Build the successor first: a failure here leaves the old token in place
            record = self._new_record(user_id, new_hash, expires_at, token_hash)
            del self._by_hash[token_hash]
            self._by_hash[new_hash] = record
            return record

    def delete_all_for_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [h for h, r in self._by_hash.items() if r.user_id == user_id]
            for h in doomed:
                del self._by_hash[h]
            return len(doomed)

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            doomed = [h for h, r in self._by_hash.items() if r.is_expired(now)]
            for h in doomed:
                del self._by_hash[h]
            return len(doomed)

    # ---- test helpers ----

    def expire(self, token_hash: str, at: datetime) -> None:
        """Force a record's expiry (tests only)."""
        with self._lock:
            self._by_hash[token_hash] = replace(self._by_hash[token_hash], expires_at=at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_hash)

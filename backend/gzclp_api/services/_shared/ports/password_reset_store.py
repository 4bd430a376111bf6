from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class PasswordResetTokenRecord:
    """
    Stored view of a password reset token.

    :ivar id: Store-assigned identifier.
    :ivar user_id: Account the token may reset.
    :ivar token_hash: SHA-256 hex of the raw token.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar used_at: Instant the token was redeemed; set at most once.
    :ivar created_at: Issuance instant (UTC).
    """

    id: int
    user_id: int
    token_hash: str
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime

    def is_redeemable(self, now: datetime) -> bool:
        return self.used_at is None and self.expires_at > now


class PasswordResetStore(Protocol):
    """Persistence for hashed, single-use password reset tokens."""

    def create(self, *, user_id: int, token_hash: str, expires_at: datetime) -> PasswordResetTokenRecord:
        """Persist a new reset token."""

    def find_by_hash(self, token_hash: str) -> PasswordResetTokenRecord | None:
        """Return the record whose hash matches, if any."""

    def mark_used(self, token_hash: str, used_at: datetime) -> bool:
        """
        Claim a token that is unused and not yet expired at ``used_at``.

        :returns: ``True`` only for the caller that flipped ``used_at`` from null.
        """

    def delete_for_user(self, user_id: int) -> int:
        """Drop every reset token of a user. :returns: Number of rows removed."""

    def delete_expired(self, now: datetime) -> int:
        """Drop expired or already used tokens. :returns: Number of rows removed."""


class InMemoryPasswordResetStore(PasswordResetStore):
    """Lock-guarded in-memory reset store used by unit tests."""

    def __init__(self) -> None:
        self._by_hash: dict[str, PasswordResetTokenRecord] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def create(self, *, user_id: int, token_hash: str, expires_at: datetime) -> PasswordResetTokenRecord:
        with self._lock:
            self._seq += 1
            record = PasswordResetTokenRecord(
                id=self._seq,
                user_id=user_id,
                token_hash=token_hash,
                expires_at=expires_at,
                used_at=None,
                created_at=datetime.now(expires_at.tzinfo),
            )
            self._by_hash[token_hash] = record
            return record

    def find_by_hash(self, token_hash: str) -> PasswordResetTokenRecord | None:
        with self._lock:
            return self._by_hash.get(token_hash)

    def mark_used(self, token_hash: str, used_at: datetime) -> bool:
        with self._lock:
            record = self._by_hash.get(token_hash)
            if record is None or not record.is_redeemable(used_at):
                return False
            self._by_hash[token_hash] = replace(record, used_at=used_at)
            return True

    def delete_for_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [h for h, r in self._by_hash.items() if r.user_id == user_id]
            for h in doomed:
                del self._by_hash[h]
            return len(doomed)

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            doomed = [
                h for h, r in self._by_hash.items() if r.used_at is not None or r.expires_at <= now
            ]
            for h in doomed:
                del self._by_hash[h]
            return len(doomed)

    def records_for(self, user_id: int) -> list[PasswordResetTokenRecord]:
        with self._lock:
            return [r for r in self._by_hash.values() if r.user_id == user_id]

from __future__ import annotations

import threading
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash


class CredentialStore(Protocol):
    """Port over user accounts for sign-in and password changes."""

    def authenticate(self, email: str, password: str) -> int | None:
        """Return the user id when the credentials match, else ``None``."""

    def find_user_id_by_email(self, email: str) -> int | None:
        """Look up a user id by (case-insensitive) email."""

    def set_password(self, user_id: int, new_password: str) -> None:
        """Replace the user's password hash."""


class InMemoryCredentialStore(CredentialStore):
    """Dictionary-backed credential store for unit tests."""

    def __init__(self) -> None:
        self._users: dict[int, tuple[str, str]] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def add_user(self, email: str, password: str) -> int:
        with self._lock:
            self._seq += 1
            self._users[self._seq] = (email.strip().lower(), generate_password_hash(password))
            return self._seq

    def authenticate(self, email: str, password: str) -> int | None:
        user_id = self.find_user_id_by_email(email)
        if user_id is None:
            return None
        with self._lock:
            _, pw_hash = self._users[user_id]
        return user_id if check_password_hash(pw_hash, password) else None

    def find_user_id_by_email(self, email: str) -> int | None:
        needle = email.strip().lower()
        with self._lock:
            for user_id, (stored, _) in self._users.items():
                if stored == needle:
                    return user_id
        return None

    def set_password(self, user_id: int, new_password: str) -> None:
        with self._lock:
            email, _ = self._users[user_id]
            self._users[user_id] = (email, generate_password_hash(new_password))

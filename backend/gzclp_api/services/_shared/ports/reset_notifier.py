from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Protocol

log = logging.getLogger(__name__)

# Oldest messages are dropped past this many
OUTBOX_MAXLEN = 100


class ResetNotifier(Protocol):
    """Delivers a password reset link to the account owner."""

    def send(self, address: str, reset_link: str) -> None: ...


@dataclass(frozen=True, slots=True)
class OutboxMessage:
    address: str
    reset_link: str


class OutboxResetNotifier(ResetNotifier):
    """
    Keeps the latest reset messages in memory instead of delivering them.

    Used in development and tests. The log line carries neither the address
    nor the link; the link embeds a live credential and stays in the outbox.

    :param maxlen: Number of messages retained.
    """

    def __init__(self, maxlen: int = OUTBOX_MAXLEN) -> None:
        self._messages: deque[OutboxMessage] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def send(self, address: str, reset_link: str) -> None:
        with self._lock:
            self._messages.append(OutboxMessage(address=address, reset_link=reset_link))
        log.info("Password reset message queued", extra={"event": "auth.reset_queued"})

    @property
    def messages(self) -> list[OutboxMessage]:
        with self._lock:
            return list(self._messages)

    def last_for(self, address: str) -> OutboxMessage | None:
        with self._lock:
            for message in reversed(self._messages):
                if message.address == address:
                    return message
        return None


class UndeliveredResetNotifier(ResetNotifier):
    """
    Production default while no delivery channel is configured.

    Drops the link and logs a warning, so a reset request neither fails nor
    leaves a credential in process memory.
    """

    def send(self, address: str, reset_link: str) -> None:
        log.warning(
            "Password reset link dropped: no delivery channel configured",
            extra={"event": "auth.reset_undelivered"},
        )

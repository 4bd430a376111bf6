# gzclp_api/services/password_reset/dto.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ResetRequestIn:
    """
    :param email: Address the reset was requested for (may be unknown).
    :type email: str
    """

    email: str


@dataclass(frozen=True, slots=True)
class ResetRequestOut:
    """Identical for known and unknown addresses."""

    message: str


@dataclass(frozen=True, slots=True)
class ResetCompleteIn:
    """
    :param token: Raw reset token taken from the link.
    :type token: str
    :param new_password: Replacement password (validated by the API schema).
    :type new_password: str
    """

    token: str
    new_password: str

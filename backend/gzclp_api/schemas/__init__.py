"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ForgotPasswordSchema,
    LoginSchema,
    MessageSchema,
    ResetPasswordSchema,
    TokenResponseSchema,
)

__all__ = [
    "ForgotPasswordSchema",
    "LoginSchema",
    "MessageSchema",
    "ResetPasswordSchema",
    "TokenResponseSchema",
]

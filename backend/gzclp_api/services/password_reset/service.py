# gzclp_api/services/password_reset/service.py
from __future__ import annotations

import logging
from datetime import timedelta
from urllib.parse import urlencode

from gzclp_api.services._shared.base import BaseService
from gzclp_api.services._shared.errors import InvalidTokenError
from gzclp_api.services._shared.ports import (
    CredentialStore,
    PasswordResetStore,
    RefreshTokenStore,
    ResetNotifier,
)
from gzclp_api.services._shared.security import generate_opaque_token, hash_token
from gzclp_api.services.password_reset.dto import (
    ResetCompleteIn,
    ResetRequestIn,
    ResetRequestOut,
)

log = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = "If an account exists for that email, a reset link has been sent."


class PasswordResetService(BaseService):
    """
    Single-use, short-lived password reset tokens.

    Requesting a reset never reveals whether the address is registered.
    Completing one claims the token atomically, changes the password and
    signs the user out everywhere.
    """

    def __init__(
        self,
        *,
        reset_store: PasswordResetStore,
        refresh_store: RefreshTokenStore,
        credential_store: CredentialStore,
        notifier: ResetNotifier,
        reset_url_base: str,
        reset_ttl: timedelta = timedelta(hours=1),
    ) -> None:
        self.reset_store = reset_store
        self.refresh_store = refresh_store
        self.credentials = credential_store
        self.notifier = notifier
        self.reset_url_base = reset_url_base
        self.reset_ttl = reset_ttl

    def _reset_link(self, raw: str) -> str:
        sep = "&" if "?" in self.reset_url_base else "?"
        return f"{self.reset_url_base}{sep}{urlencode({'token': raw})}"

    def request_reset(self, dto: ResetRequestIn) -> ResetRequestOut:
        """
        Issue a reset token for a registered address and hand it to the notifier.

        Earlier outstanding tokens of the user are discarded so only the newest
        link works. Unknown addresses get the same answer and create nothing.
        """
        user_id = self.credentials.find_user_id_by_email(dto.email)
        if user_id is None:
            log.info("Password reset requested for unknown address", extra={"event": "auth.reset_requested"})
            return ResetRequestOut(message=GENERIC_RESET_MESSAGE)

        self.reset_store.delete_for_user(user_id)
        raw = generate_opaque_token()
        self.reset_store.create(
            user_id=user_id,
            token_hash=hash_token(raw),
            expires_at=self.now_utc() + self.reset_ttl,
        )
        log.info(
            "Password reset token issued",
            extra={"event": "auth.reset_requested", "user_id": user_id},
        )

        # Fire-and-forget: delivery problems must not change the response
        try:
            self.notifier.send(dto.email, self._reset_link(raw))
        except Exception as exc:
            log.warning(
                "Reset notification failed: %s",
                exc.__class__.__name__,
                extra={"event": "auth.reset_notify_failed", "user_id": user_id},
            )
        return ResetRequestOut(message=GENERIC_RESET_MESSAGE)

    def complete_reset(self, dto: ResetCompleteIn) -> None:
        """
        Redeem a reset token.

        :raises InvalidTokenError: Unknown, expired or already used token.
        :raises StoreUnavailableError: The store could not be reached.
        """
        token_hash = hash_token(dto.token)
        now = self.now_utc()
        record = self.reset_store.find_by_hash(token_hash)
        if record is None or not record.is_redeemable(now):
            log.info("Reset token rejected", extra={"event": "auth.reset_invalid"})
            raise InvalidTokenError()

        # Claim first; a concurrent redemption of the same token loses here
        if not self.reset_store.mark_used(token_hash, now):
            log.info(
                "Reset token already claimed",
                extra={"event": "auth.reset_invalid", "user_id": record.user_id},
            )
            raise InvalidTokenError()

        self.credentials.set_password(record.user_id, dto.new_password)
        revoked = self.refresh_store.delete_all_for_user(record.user_id)
        log.info(
            "Password reset completed; revoked %d refresh token(s)",
            revoked,
            extra={"event": "auth.reset_completed", "user_id": record.user_id},
        )

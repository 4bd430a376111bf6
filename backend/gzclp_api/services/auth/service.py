# gzclp_api/services/auth/service.py
from __future__ import annotations

import logging

from gzclp_api.services._shared.base import BaseService
from gzclp_api.services._shared.errors import (
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from gzclp_api.services._shared.ports import (
    CredentialStore,
    PasswordResetStore,
    RefreshTokenStore,
    TokenProvider,
)
from gzclp_api.services._shared.security import generate_opaque_token, hash_token
from gzclp_api.services.auth.dto import (
    AuthTokenConfig,
    RefreshIn,
    SignInIn,
    SweepResultOut,
    TokenPairOut,
)

log = logging.getLogger(__name__)


class SessionTokenService(BaseService):
    """
    Refresh token lifecycle: issue, rotate, revoke, sweep.

    Refresh tokens are opaque random strings; only their SHA-256 hash reaches
    the :class:`RefreshTokenStore`. Every rotation consumes the presented token
    and records its hash as ``previous_hash`` on the successor. Presenting a
    consumed token again while its successor is alive means the token was
    copied, so the whole session family of that user is revoked.

    Failures are :class:`InvalidTokenError` or :class:`ExpiredTokenError`;
    store outages surface as :class:`StoreUnavailableError` and never as an
    invalid token.
    """

    def __init__(
        self,
        *,
        refresh_store: RefreshTokenStore,
        token_provider: TokenProvider,
        credential_store: CredentialStore | None = None,
        reset_store: PasswordResetStore | None = None,
        token_cfg: AuthTokenConfig | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param refresh_store: Persistence for hashed refresh tokens.
        :param token_provider: Mints access tokens.
        :param credential_store: Verifies email/password on sign-in.
        :param reset_store: Included in :meth:`sweep` when given.
        :param token_cfg: Access/refresh lifetimes.
        """
        self.refresh_store = refresh_store
        self.tokens = token_provider
        self.credentials = credential_store
        self.reset_store = reset_store
        self.cfg = token_cfg or AuthTokenConfig()

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def issue(self, user_id: int, previous_hash: str | None = None) -> str:
        """
        Create and persist a refresh token for ``user_id``.

        :param user_id: Token owner.
        :param previous_hash: Hash of the token this one replaces (rotation only).
        :returns: The raw token. It is not recoverable afterwards.
        """
        raw = generate_opaque_token()
        self.refresh_store.create(
            user_id=user_id,
            token_hash=hash_token(raw),
            expires_at=self.now_utc() + self.cfg.refresh_expires,
            previous_hash=previous_hash,
        )
        return raw

    def _mint_pair(self, user_id: int) -> TokenPairOut:
        refresh = self.issue(user_id)
        access = self.tokens.create_access_token(
            identity=user_id,
            expires_delta=self.cfg.access_expires,
        )
        return TokenPairOut(access_token=access, refresh_token=refresh, user_id=user_id)

    def sign_in(self, dto: SignInIn) -> TokenPairOut:
        """
        Verify credentials and start a new session family.

        :raises InvalidCredentialsError: Unknown email or wrong password.
        """
        if self.credentials is None:
            raise RuntimeError("SessionTokenService.sign_in requires a credential store")
        user_id = self.credentials.authenticate(dto.email, dto.password)
        if user_id is None:
            log.info("Sign-in rejected", extra={"event": "auth.sign_in_failed"})
            raise InvalidCredentialsError()
        log.info("Signed in", extra={"event": "auth.sign_in", "user_id": user_id})
        return self._mint_pair(user_id)

    # ------------------------------------------------------------------ #
    # Rotation
    # ------------------------------------------------------------------ #

    def rotate(self, dto: RefreshIn) -> TokenPairOut:
        """
        Exchange a refresh token for a new token pair.

        :raises ExpiredTokenError: The token exists but has expired; it is deleted.
        :raises InvalidTokenError: Unknown, already consumed, or replayed token.
        :raises StoreUnavailableError: The store could not confirm the token state.
        """
        token_hash = hash_token(dto.refresh_token)
        record = self.refresh_store.find_by_hash(token_hash)

        if record is not None:
            if record.is_expired(self.now_utc()):
                self.refresh_store.delete_by_hash(token_hash)
                log.info(
                    "Refresh token expired",
                    extra={"event": "auth.refresh_expired", "user_id": record.user_id},
                )
                raise ExpiredTokenError()

            # Single winner; a store failure here leaves the presented token intact
            raw = generate_opaque_token()
            successor = self.refresh_store.rotate(
                token_hash=token_hash,
                user_id=record.user_id,
                new_hash=hash_token(raw),
                expires_at=self.now_utc() + self.cfg.refresh_expires,
            )
            if successor is None:
                log.info(
                    "Refresh token consumed by a concurrent request",
                    extra={"event": "auth.refresh_race_lost", "user_id": record.user_id},
                )
                raise InvalidTokenError()

            access = self.tokens.create_access_token(
                identity=record.user_id,
                expires_delta=self.cfg.access_expires,
            )
            log.info("Refresh token rotated", extra={"event": "auth.refresh", "user_id": record.user_id})
            return TokenPairOut(access_token=access, refresh_token=raw, user_id=record.user_id)

        successor = self.refresh_store.find_by_previous_hash(token_hash)
        if successor is not None:
            revoked = self.revoke_all(successor.user_id)
            log.warning(
                "Refresh token reuse detected; revoked %d token(s)",
                revoked,
                extra={"event": "auth.token_reuse_detected", "user_id": successor.user_id},
            )
            raise InvalidTokenError()

        log.info("Unknown refresh token presented", extra={"event": "auth.refresh_invalid"})
        raise InvalidTokenError()

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def revoke(self, raw_token: str) -> bool:
        """Sign out one session. Unknown tokens are a no-op."""
        return self.revoke_hash(hash_token(raw_token))

    def revoke_hash(self, token_hash: str) -> bool:
        removed = self.refresh_store.delete_by_hash(token_hash) > 0
        if removed:
            log.info("Refresh token revoked", extra={"event": "auth.sign_out"})
        return removed

    def revoke_all(self, user_id: int) -> int:
        """
        Delete every refresh token of ``user_id``.

        :returns: Number of tokens removed.
        """
        removed = self.refresh_store.delete_all_for_user(user_id)
        log.info(
            "Revoked all refresh tokens (%d)",
            removed,
            extra={"event": "auth.sign_out_all", "user_id": user_id},
        )
        return removed

    # ------------------------------------------------------------------ #
    # Hygiene
    # ------------------------------------------------------------------ #

    def sweep(self) -> SweepResultOut:
        """Delete expired refresh tokens and expired or used reset tokens."""
        now = self.now_utc()
        refresh = self.refresh_store.delete_expired(now)
        resets = self.reset_store.delete_expired(now) if self.reset_store is not None else 0
        result = SweepResultOut(refresh_tokens=refresh, password_reset_tokens=resets)
        log.info(
            "Token sweep removed %d refresh and %d reset token(s)",
            refresh,
            resets,
            extra={"event": "auth.token_sweep"},
        )
        return result

"""Flask CLI commands for refresh and password-reset token maintenance."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from gzclp_api.infra.wiring import session_token_service
from gzclp_api.services._shared.errors import ServiceError

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Token housekeeping commands."""


@tokens_cli.command("sweep")
@with_appcontext
def sweep_command() -> None:
    """Delete expired refresh tokens and expired or used reset tokens."""
    try:
        result = session_token_service().sweep()
    except ServiceError as exc:
        raise click.ClickException(f"Sweep failed: {exc}") from exc
    click.echo("Token sweep:")
    click.echo(f"  refresh_tokens         removed={result.refresh_tokens:>4}")
    click.echo(f"  password_reset_tokens  removed={result.password_reset_tokens:>4}")


@tokens_cli.command("revoke-user")
@click.argument("user_id", type=click.IntRange(min=1))
@with_appcontext
def revoke_user_command(user_id: int) -> None:
    """Sign USER_ID out of every session."""
    try:
        removed = session_token_service().revoke_all(user_id)
    except ServiceError as exc:
        raise click.ClickException(f"Revocation failed: {exc}") from exc
    LOGGER.info("Revoked sessions from CLI", extra={"event": "auth.cli_revoke", "user_id": user_id})
    click.echo(f"Revoked {removed} refresh token(s) for user {user_id}.")

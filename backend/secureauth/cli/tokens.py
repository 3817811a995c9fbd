"""Flask CLI commands for refresh token maintenance."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh token maintenance commands."""


@tokens_cli.command("purge-expired")
@with_appcontext
def purge_expired_command() -> None:
    """Physically delete refresh tokens whose expiry has passed."""
    service = current_app.extensions["auth_service"]
    removed = service.refresh_tokens.purge_expired()
    click.echo(f"Purged {removed} expired refresh token(s).")

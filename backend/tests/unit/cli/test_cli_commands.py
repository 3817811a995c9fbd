# tests/unit/cli/test_cli_commands.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from secureauth.models import RefreshToken, User
from tests.factories.user import RefreshTokenFactory


def test_seed_run_provisions_admin_idempotently(app, session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["seed", "run"])
    assert first.exit_code == 0, first.output
    assert "created= 1" in first.output

    second = runner.invoke(args=["seed", "run"])
    assert second.exit_code == 0, second.output
    assert "existing= 1" in second.output

    admins = session.query(User).filter_by(username="admin").all()
    assert len(admins) == 1
    assert admins[0].email == "admin@test.com"
    assert admins[0].roles == ["ADMIN"]


def test_seeded_admin_can_log_in(app, client, session):
    app.test_cli_runner().invoke(args=["seed", "run"])
    resp = client.post(
        "/api/v1/auth/login", json={"username": "admin", "password": "Admin@123"}
    )
    assert resp.status_code == 200


def test_seed_fresh_requires_confirmation(app, session):
    result = app.test_cli_runner().invoke(args=["seed", "fresh"], input="n\n")
    assert result.exit_code != 0


def test_purge_expired_command(app, session):
    now = datetime.now(UTC)
    RefreshTokenFactory(expires_at=now - timedelta(minutes=1))
    RefreshTokenFactory(expires_at=now + timedelta(days=1))

    result = app.test_cli_runner().invoke(args=["tokens", "purge-expired"])

    assert result.exit_code == 0, result.output
    assert "Purged 1 expired refresh token(s)." in result.output
    assert session.query(RefreshToken).count() == 1

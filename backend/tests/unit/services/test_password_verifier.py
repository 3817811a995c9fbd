# tests/unit/services/test_password_verifier.py
from __future__ import annotations

import pytest
from werkzeug.security import generate_password_hash

from secureauth.services.auth.passwords import PasswordVerifier

FAST = "pbkdf2:sha256:1000"


@pytest.fixture()
def verifier() -> PasswordVerifier:
    return PasswordVerifier(method=FAST)


def test_hash_then_verify_roundtrip(verifier):
    stored = verifier.hash("Admin@123")
    assert stored != "Admin@123"
    assert verifier.verify("Admin@123", stored) is True


def test_wrong_password_is_rejected(verifier):
    stored = verifier.hash("Admin@123")
    assert verifier.verify("admin@123", stored) is False
    assert verifier.verify("", stored) is False


def test_hash_is_salted(verifier):
    assert verifier.hash("same-password") != verifier.hash("same-password")


def test_cost_parameters_travel_with_the_hash(verifier):
    """A hash produced with another method still verifies."""
    legacy = generate_password_hash("Admin@123", method="pbkdf2:sha256:2000")
    assert verifier.verify("Admin@123", legacy) is True


def test_missing_hash_runs_dummy_check_and_fails(verifier):
    assert verifier.verify("anything", None) is False
    # The dummy hash is computed once and reused.
    first = verifier._dummy_hash
    verifier.verify("again", None)
    assert first is not None and verifier._dummy_hash == first


def test_unreadable_hash_fails_closed(verifier, caplog):
    caplog.set_level("WARNING")
    assert verifier.verify("Admin@123", "nosuchmethod$salt$digest") is False
    assert "password.hash_unreadable" in caplog.text


def test_empty_password_cannot_be_hashed(verifier):
    with pytest.raises(ValueError):
        verifier.hash("")

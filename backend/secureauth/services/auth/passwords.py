"""Adaptive password hashing and verification."""

from __future__ import annotations

import logging

from werkzeug.security import check_password_hash, generate_password_hash

log = logging.getLogger(__name__)

DEFAULT_METHOD = "scrypt"


class PasswordVerifier:
    """
    Wrap Werkzeug's salted, adaptive password hashing.

    ``check_password_hash`` recomputes the hash with the stored parameters and
    compares with :func:`hmac.compare_digest`, so no early-mismatch timing
    signal leaks beyond the hash itself.

    :param method: Werkzeug method string, e.g. ``"scrypt"`` or
        ``"pbkdf2:sha256:600000"``. Cost parameters travel with each hash.
    """

    def __init__(self, *, method: str = DEFAULT_METHOD) -> None:
        self.method = method
        self._dummy_hash: str | None = None

    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password for storage.

        :raises ValueError: If the password is empty.
        """
        if not isinstance(plaintext, str) or not plaintext:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(plaintext, method=self.method)

    def verify(self, plaintext: str, stored_hash: str | None) -> bool:
        """
        Check ``plaintext`` against ``stored_hash``.

        When ``stored_hash`` is ``None`` (unknown user) a dummy hash is checked
        instead, so the call costs the same as a real mismatch, then ``False``
        is returned.
        """
        if stored_hash is None:
            check_password_hash(self._dummy(), plaintext or "")
            return False
        try:
            return bool(check_password_hash(stored_hash, plaintext or ""))
        except ValueError:
            # Unknown method prefix in the stored value.
            log.warning("password.hash_unreadable")
            return False

    def _dummy(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = generate_password_hash("dummy-password", method=self.method)
        return self._dummy_hash

"""User model: the persisted form of an authentication identity."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import JSON, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from secureauth.core.extensions import db
from secureauth.services._shared.dto import normalize_roles

from .base import CreatedAtMixin, PKMixin, ReprMixin

if TYPE_CHECKING:
    from .refresh_token import RefreshToken


class User(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Authentication identity.

    Users are provisioned out of band (seed command or admin tooling); the
    auth flows only read them.

    Fields
    ------
    username : str
        Login name. Unique, compared exactly.
    email : str
        Contact email. Stored normalized (lowercase, trimmed). Unique.
    password_hash : str
        Adaptive password hash in werkzeug's self-describing format.
    roles : list[str]
        Non-empty list of role names (``USER``, ``ADMIN``).
    created_at : datetime
        Creation timestamp (from mixin).
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=lambda: ["USER"])

    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
        Index("ix_users_username", "username"),
    )

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("username")
    def _validate_username(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        return value

    @validates("roles")
    def _validate_roles(self, key: str, value: list[str]) -> list[str]:
        return sorted(normalize_roles(value))

"""Refresh token model: server-side record backing an opaque token string."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from secureauth.core.extensions import db

from .base import PKMixin, ReprMixin
from .user import User


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    Persisted refresh token.

    Fields
    ------
    token : str
        Opaque random string handed to the client. Unique.
    user_id : int
        Owning user.
    expires_at : datetime
        Absolute expiry (UTC). Never extended.
    revoked : bool
        Sticky revocation flag; only ever goes ``False -> True``.
    """

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped[User] = relationship(back_populates="refresh_tokens", lazy="joined")

    __table_args__ = (
        UniqueConstraint("token", name="uq_refresh_tokens_token"),
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

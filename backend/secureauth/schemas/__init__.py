"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import ClaimsSchema, LoginSchema, LogoutSchema, RefreshSchema, TokenResponseSchema

__all__ = [
    "ClaimsSchema",
    "LoginSchema",
    "LogoutSchema",
    "RefreshSchema",
    "TokenResponseSchema",
]

"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload carrying an opaque refresh token."""

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1, max=255)
    )


class LogoutSchema(RefreshSchema):
    """Input payload for logout (any refresh token of the identity)."""


class TokenResponseSchema(Schema):
    """Response payload containing the token pair."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    token_type = fields.String(required=True, data_key="tokenType")


class ClaimsSchema(Schema):
    """Response payload exposing the verified access token claims."""

    subject = fields.String(required=True, data_key="username")
    roles = fields.List(fields.String(), required=True)
    issuer = fields.String(required=True)
    issued_at = fields.Integer(required=True, data_key="issuedAt")
    expires_at = fields.Integer(required=True, data_key="expiresAt")

"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request

from secureauth.api.deps import (
    current_claims,
    get_auth_service,
    json_response,
    require_auth,
    timing,
)
from secureauth.core.extensions import limiter
from secureauth.schemas import (
    ClaimsSchema,
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    TokenResponseSchema,
)
from secureauth.services.auth import LoginIn, LogoutIn, RefreshIn

bp = Blueprint("auth", __name__, url_prefix="/auth")

login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
token_schema = TokenResponseSchema()
claims_schema = ClaimsSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue an access/refresh token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().login(LoginIn(username=data["username"], password=data["password"]))
    return json_response(token_schema.dump(pair))


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new access token (same refresh token)."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response(token_schema.dump(pair))


@bp.post("/logout")
@timing
def logout():
    """Revoke every refresh token of the identity owning the presented one."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    get_auth_service().logout(LogoutIn(refresh_token=data["refresh_token"]))
    return Response(status=204)


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the verified claims of the bearer access token."""

    return json_response(claims_schema.dump(current_claims()))

"""HTTP surface of the credential service."""

from __future__ import annotations

from flask import Flask


def _join(*segments: str) -> str:
    return "/" + "/".join(s.strip("/") for s in segments if s.strip("/"))


def init_app(app: Flask) -> None:
    """Mount every v1 blueprint under ``API_BASE_PREFIX``/v1."""

    from secureauth.api.v1 import API_VERSION, REGISTRY

    base = app.config.get("API_BASE_PREFIX", "/api")
    for bp, rel_prefix in REGISTRY:
        app.register_blueprint(bp, url_prefix=_join(base, API_VERSION, rel_prefix))


__all__ = ["init_app"]

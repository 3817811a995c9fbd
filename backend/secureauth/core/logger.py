"""JSON logging for the credential service.

Every record leaving the process passes through :class:`CredentialRedactionFilter`:
passwords, password hashes, token strings and ``Authorization`` values never
reach a handler, whatever a caller puts in ``extra=`` or the message.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# ``extra=`` keys emitted by the service layer and the API helpers.
EXTRA_KEYS = ("endpoint", "elapsed_ms", "identity_id", "reason", "count")

SENSITIVE_ATTRS = frozenset(
    {
        "password",
        "password_hash",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
        "secret",
    }
)
REDACTED = "[REDACTED]"

_BEARER_RE = re.compile(r"(?i)\b(bearer\s+)\S+")
_AUTH_HEADER_RE = re.compile(r"(?i)(authorization['\"]?\s*[:=]\s*['\"]?)[^'\",}\s]+")
_JWT_RE = re.compile(r"\beyJ[\w-]*\.[\w-]+\.[\w-]+")


def redact(text: str) -> str:
    """Mask bearer credentials, ``Authorization`` values and JWTs in ``text``."""
    text = _BEARER_RE.sub(rf"\g<1>{REDACTED}", text)
    text = _AUTH_HEADER_RE.sub(rf"\g<1>{REDACTED}", text)
    return _JWT_RE.sub(REDACTED, text)


class CredentialRedactionFilter(logging.Filter):
    """Strip credential attributes and scrub credential text from records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for attr in [a for a in SENSITIVE_ATTRS if a in record.__dict__]:
            delattr(record, attr)
        message = record.getMessage()
        scrubbed = redact(message)
        if scrubbed != message:
            record.msg, record.args = scrubbed, ()
        return True


class RequestIdFilter(logging.Filter):
    """Ensure a ``request_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record; only whitelisted ``extra=`` keys are emitted."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary."""

    if not has_request_context():
        return str(uuid4())
    if not hasattr(g, "request_id"):
        incoming = next(
            (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)),
            None,
        )
        g.request_id = incoming or str(uuid4())
    return g.request_id  # type: ignore[no-any-return]


def configure_logging(level: str | int = "INFO") -> None:
    """Send JSON records to stdout through the redaction and request-id filters."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(CredentialRedactionFilter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def init_app(app: Flask) -> None:
    """Tag every request with an id and echo it in ``X-Request-ID``."""

    app.logger.addFilter(CredentialRedactionFilter())
    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "CredentialRedactionFilter",
    "JSONFormatter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "redact",
]

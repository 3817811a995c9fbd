"""Application factory wiring Flask extensions, stores and blueprints."""

from __future__ import annotations

from flask import Flask

from secureauth.core.config import BaseConfig, get_config
from secureauth.core.logger import configure_logging, init_app as init_logging
from secureauth.services._shared.ports import CredentialStore, RefreshTokenStore
from secureauth.services.auth import AuthTokenConfig, build_auth_service


def _build_stores(app: Flask) -> tuple[CredentialStore, RefreshTokenStore]:
    """Select the credential store and the refresh token store from config."""

    from secureauth.core import extensions
    from secureauth.infra.sqlalchemy import SQLAlchemyCredentialStore

    identities = SQLAlchemyCredentialStore()
    if extensions.redis_client is None:
        return identities, identities

    from secureauth.infra.redis import RedisRefreshTokenStore

    return identities, RedisRefreshTokenStore(extensions.redis_client, identities)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    credential_store: CredentialStore | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object or import path; defaults to ``APP_ENV``.
    :param credential_store: Optional store used for both identities and
        refresh tokens instead of the configured SQL/Redis adapters.
    :raises ConfigurationError: When the token configuration is unsafe
        (e.g. a signing secret shorter than 32 bytes).
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Validate token settings before anything else is bound.
    token_cfg = AuthTokenConfig.from_mapping(app.config)

    from secureauth.core import extensions

    extensions.init_app(app)

    init_logging(app)

    if credential_store is not None:
        identities: CredentialStore = credential_store
        refresh_store: RefreshTokenStore = credential_store
    else:
        identities, refresh_store = _build_stores(app)

    app.extensions["credential_store"] = identities
    app.extensions["auth_service"] = build_auth_service(
        token_cfg,
        identities=identities,
        refresh_store=refresh_store,
        password_method=app.config.get("PASSWORD_HASH_METHOD", "scrypt"),
    )

    from secureauth.api import init_app as init_api

    init_api(app)

    from secureauth.core import errors

    errors.init_app(app)

    from secureauth import cli as app_cli

    app_cli.init_app(app)

    return app

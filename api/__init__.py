import logging

import click
from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from services import CredentialStore, RefreshTokenStore, SessionAuthority, SessionSettings
from services.stores import utcnow

logger = logging.getLogger(__name__)

DEV_SECRET = "dev-secret-change-me"

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "API PS-Sports",
        "version": "1.0.0",
        "description": "Sessions and credentials for the PS-Sports management system.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def check_secret(app: Flask):
    """Refuse to start without a signing secret where one is required."""
    secret = app.config.get("JWT_SECRET")
    if not secret:
        if app.config.get("REQUIRE_JWT_SECRET", True):
            raise RuntimeError("JWT_SECRET must be set when APP_ENV is production")
        app.config["JWT_SECRET"] = DEV_SECRET
        secret = DEV_SECRET
    if secret == DEV_SECRET:
        logger.warning("Using the insecure development JWT secret; set JWT_SECRET")


def build_session_authority(config) -> SessionAuthority:
    return SessionAuthority(
        SessionSettings.from_config(config),
        CredentialStore(storage),
        RefreshTokenStore(storage),
    )


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (tests use it).
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    check_secret(app)

    # Point the storage singleton at this app's database and create tables
    storage.configure(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    app.extensions["session_authority"] = build_session_authority(app.config)

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "API PS-Sports está funcionando!",
            "docs": "/apidocs/",
            "health": "/health",
        }, 200

    @app.cli.command("purge-refresh-tokens")
    def purge_refresh_tokens():
        """Delete every expired refresh token."""
        deleted = app.extensions["session_authority"].refresh_tokens.purge_expired(utcnow())
        click.echo(f"Deleted {deleted} expired refresh token(s)")

    return app

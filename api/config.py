"""
Environment-aware configuration.
Secrets, token lifetimes, database location, CORS and server flags.
The JWT secret is only read here and handed to the session authority in create_app().
"""
import os
from datetime import timedelta

from dotenv import load_dotenv
from sqlalchemy.engine import URL

load_dotenv()  # Read .env if present


def database_url_from_env() -> str:
    """
    DATABASE_URL wins. Otherwise build a MySQL URL from the DB_* parameters
    when DB_HOST is set, else fall back to a local SQLite file.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if os.getenv("DB_HOST"):
        return URL.create(
            "mysql+pymysql",
            username=os.getenv("DB_USER", "ps_sport"),
            password=os.getenv("DB_PASSWORD", "ps_sport"),
            host=os.getenv("DB_HOST"),
            port=int(os.getenv("DB_PORT", "3306")),
            database=os.getenv("DB_SCHEMA", "ps_sport"),
        ).render_as_string(hide_password=False)
    return "sqlite:///ps-sports.db"


class BaseConfig:
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = database_url_from_env()
    SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

    # No default here; each environment decides what an unset secret means
    JWT_SECRET = os.getenv("JWT_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "ps-sports-api")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv("REFRESH_TOKEN_EXPIRES_DAYS", "30")))

    # Production refuses to boot without a real secret
    REQUIRE_JWT_SECRET = True


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    JWT_SECRET = os.getenv("JWT_SECRET") or "dev-secret-change-me"
    REQUIRE_JWT_SECRET = False


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    JWT_SECRET = "test-secret-key-for-testing-only"
    REQUIRE_JWT_SECRET = False


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig

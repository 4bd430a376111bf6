"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Placeholder secrets that must never reach production
INSECURE_JWT_SECRETS: Final[frozenset[str]] = frozenset({"", "CHANGE_ME_JWT"})
MIN_JWT_SECRET_LENGTH: Final[int] = 32


# Loads .env in development (no-op when the file does not exist)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back on garbage."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    """Parse a float from an environment variable, falling back on garbage."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return float(val.strip())
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Key used by ``flask-jwt-extended`` for signing access tokens.
    JWT_ACCESS_TOKEN_EXPIRES: timedelta
        Lifetime of the short-lived access credential.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REDIS_URL: str | None
        Shared store for the distributed rate limiter. ``None`` selects the
        in-process limiter.
    REDIS_SOCKET_TIMEOUT: float
        Upper bound (seconds) for every Redis round-trip.
    RATE_LIMIT_WINDOW_MS: int
        Default sliding window length for rate-limited endpoints.
    RATE_LIMIT_MAX_REQUESTS: int
        Default admitted requests per window and caller.
    TRUST_PROXY: bool
        Honor ``X-Forwarded-*`` headers. Only enable behind a trusted reverse
        proxy; otherwise callers could spoof their rate-limit identity.
    PROXY_HOPS: int
        Number of trusted proxies in front of the app.
    REFRESH_TOKEN_DAYS: int
        Refresh token lifetime.
    REFRESH_COOKIE_NAME: str
        Cookie carrying the opaque refresh token.
    REFRESH_COOKIE_SECURE: bool
        Adds the ``Secure`` attribute to the refresh cookie.
    PASSWORD_RESET_TTL_MINUTES: int
        Lifetime of a password reset token.
    PASSWORD_RESET_URL: str
        Front-end page receiving ``?token=...`` for password resets.
    TOKEN_SWEEP_ENABLED: bool
        Start the background sweeper with the application.
    TOKEN_SWEEP_INTERVAL_HOURS: float
        Interval between sweeps of expired tokens.
    RESET_OUTBOX_ENABLED: bool
        Keep reset links in a bounded in-memory outbox (development and tests).
        Otherwise links are dropped with a warning until a channel is wired.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    ACCESS_TOKEN_MINUTES = env_int("ACCESS_TOKEN_MINUTES", 15)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=ACCESS_TOKEN_MINUTES)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Redis / rate limiting
    REDIS_URL = os.getenv("REDIS_URL") or None
    REDIS_SOCKET_TIMEOUT = env_float("REDIS_SOCKET_TIMEOUT", 0.5)
    RATE_LIMIT_WINDOW_MS = env_int("RATE_LIMIT_WINDOW_MS", 60_000)
    RATE_LIMIT_MAX_REQUESTS = env_int("RATE_LIMIT_MAX_REQUESTS", 20)

    # Reverse proxy
    TRUST_PROXY = env_bool("TRUST_PROXY", False)
    PROXY_HOPS = env_int("PROXY_HOPS", 1)

    # Session tokens
    REFRESH_TOKEN_DAYS = env_int("REFRESH_TOKEN_DAYS", 7)
    REFRESH_COOKIE_NAME = "refresh_token"
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", True)
    PASSWORD_RESET_TTL_MINUTES = env_int("PASSWORD_RESET_TTL_MINUTES", 60)
    PASSWORD_RESET_URL = os.getenv(
        "PASSWORD_RESET_URL", "http://localhost:5173/reset-password"
    )
    TOKEN_SWEEP_ENABLED = env_bool("TOKEN_SWEEP_ENABLED", True)
    TOKEN_SWEEP_INTERVAL_HOURS = env_float("TOKEN_SWEEP_INTERVAL_HOURS", 6.0)
    RESET_OUTBOX_ENABLED = env_bool("RESET_OUTBOX_ENABLED", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and drops the ``Secure`` cookie attribute so
    the refresh cookie works over plain ``http://localhost``.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)
    # Parallel browser tabs and e2e workers refresh often in dev
    RATE_LIMIT_MAX_REQUESTS = env_int("RATE_LIMIT_MAX_REQUESTS", 500)
    RESET_OUTBOX_ENABLED = True
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never touches Redis and never starts the background sweeper.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    REDIS_URL = None
    TOKEN_SWEEP_ENABLED = False
    REFRESH_COOKIE_SECURE = False
    RESET_OUTBOX_ENABLED = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and bounds how long a request may wait
    on the database pool, so a stalled database surfaces as an error instead of
    a hung worker.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_timeout": env_int("DB_POOL_TIMEOUT", 5),
    }


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_secrets(config: Mapping[str, object]) -> None:
    """Refuse to boot a production app with a placeholder JWT secret.

    :param config: Loaded Flask configuration.
    :raises RuntimeError: When ``JWT_SECRET_KEY`` is unset, a placeholder or too short.
    """
    if config.get("DEBUG") or config.get("TESTING"):
        return
    secret = str(config.get("JWT_SECRET_KEY") or "")
    if secret in INSECURE_JWT_SECRETS:
        raise RuntimeError("JWT_SECRET_KEY must be set to a secure value in production")
    if len(secret) < MIN_JWT_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET_KEY must be at least {MIN_JWT_SECRET_LENGTH} characters in production"
        )

"""
Centralized configuration for the contest entry service.

Every tunable is read from the environment once, at process start, into a
frozen Settings object that is passed to the components that need it.
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from .errors import ConfigurationError

# Three days before the draw
DEFAULT_REMINDER_OFFSET_MINUTES = 3 * 24 * 60

# Values shipped in sample env files; refuse to hash identities with them
PLACEHOLDER_SALTS = {"", "replace-me", "replace-me-with-long-secret", "changeme"}


def is_dev_mode() -> bool:
    """Check if running in development mode (DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def is_production() -> bool:
    """Check if running on Railway (production environment)."""
    return bool(os.environ.get("RAILWAY_ENVIRONMENT"))


@dataclass(frozen=True)
class Settings:
    database_url: str
    dedupe_salt: str
    from_email: str = "contest@example.com"
    from_name: str = "Contest Team"
    sendgrid_api_key: str | None = None
    landing_page_url: str = "http://localhost:3000"
    reminder_offset: timedelta = timedelta(minutes=DEFAULT_REMINDER_OFFSET_MINUTES)
    store_timeout_seconds: float = 10.0
    email_timeout_seconds: float = 10.0
    scheduler_timeout_seconds: float = 10.0
    contest_rules_path: Path | None = None
    admin_api_token: str | None = None


def _read_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> Settings:
    """
    Build and validate Settings from environment variables.

    Raises:
        ConfigurationError: If a required variable is missing or a value is invalid
    """
    database_url = os.environ.get("DATABASE_URL", "")
    if not database_url:
        raise ConfigurationError("DATABASE_URL must be set")

    dedupe_salt = os.environ.get("DEDUPE_SALT", "")
    if dedupe_salt.strip().lower() in PLACEHOLDER_SALTS:
        raise ConfigurationError("DEDUPE_SALT must be set to a long random secret")

    reminder_minutes = _read_float(
        "REMINDER_OFFSET_MINUTES", DEFAULT_REMINDER_OFFSET_MINUTES
    )
    rules_path = os.environ.get("CONTEST_RULES_PATH")

    return Settings(
        database_url=database_url,
        dedupe_salt=dedupe_salt,
        from_email=os.environ.get("FROM_EMAIL", "contest@example.com"),
        from_name=os.environ.get("FROM_NAME", "Contest Team"),
        sendgrid_api_key=os.environ.get("SENDGRID_API_KEY") or None,
        landing_page_url=os.environ.get(
            "LANDING_PAGE_URL", "http://localhost:3000"
        ).rstrip("/"),
        reminder_offset=timedelta(minutes=reminder_minutes),
        store_timeout_seconds=_read_float("STORE_TIMEOUT_SECONDS", 10.0),
        email_timeout_seconds=_read_float("EMAIL_TIMEOUT_SECONDS", 10.0),
        scheduler_timeout_seconds=_read_float("SCHEDULER_TIMEOUT_SECONDS", 10.0),
        contest_rules_path=Path(rules_path) if rules_path else None,
        admin_api_token=os.environ.get("ADMIN_API_TOKEN") or None,
    )


def get_allowed_origins() -> list[str]:
    """
    Get list of allowed CORS origins.

    Includes localhost variants for dev and the production frontend URL.
    Read from the environment directly: CORS middleware is installed before
    the lifespan loads Settings.
    """
    hosts = ["localhost", "127.0.0.1"]
    origins = [f"http://{host}:{port}" for host in hosts for port in (3000, 8000)]

    for name in ("FRONTEND_URL", "LANDING_PAGE_URL"):
        url = (os.environ.get(name) or "").rstrip("/")
        if url and url not in origins:
            origins.append(url)

    return origins


# Required environment variables for production
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("DEDUPE_SALT", "Secret salt for identity hashes", True),
    ("SENDGRID_API_KEY", "SendGrid API key for outgoing email", False),
    ("FROM_EMAIL", "Sender address for contest emails", False),
    ("ADMIN_API_TOKEN", "Token for the schedule repair endpoint", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if is_production():
                errors.append(f"{name}: Not set ({description})")
            elif required_in_dev or not in_dev:
                warnings.append(f"{name}: Not set ({description})")

    if errors:
        return False, errors + warnings

    return True, warnings

"""
Runtime configuration for the contact API.

Values come from environment variables, with a local .env file loaded first.
Required variables are checked on every request rather than at import time so
that a misconfigured deployment answers with an explicit 500 listing what is
missing instead of failing to boot.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from app.errors import ConfigurationMissing

load_dotenv()

REQUIRED_ENV_VARS = [
    "SMTP_USER",
    "SMTP_PASS",
    "FROM_EMAIL",
    "TO_EMAIL",
    "ANTHROPIC_API_KEY",
]

DEFAULT_FROM_NAME = "Website"
DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587
DEFAULT_SMTP_TIMEOUT_SECONDS = 30.0
DEFAULT_AI_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class ContactSettings:
    smtp_user: str
    smtp_pass: str
    from_email: str
    to_email: str
    anthropic_api_key: str
    from_name: str = DEFAULT_FROM_NAME
    smtp_host: str = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_timeout: float = DEFAULT_SMTP_TIMEOUT_SECONDS
    ai_timeout: float = DEFAULT_AI_TIMEOUT_SECONDS
    spam_filter_fail_open: bool = False


def missing_env_vars() -> list[str]:
    """Return the required variable names that are unset or empty, in declaration order."""
    return [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_settings() -> ContactSettings:
    """
    Build ContactSettings from the environment.

    Raises:
        ConfigurationMissing: if any REQUIRED_ENV_VARS entry is unset, listing all of them.
    """
    missing = missing_env_vars()
    if missing:
        raise ConfigurationMissing(missing)

    return ContactSettings(
        smtp_user=os.environ["SMTP_USER"],
        smtp_pass=os.environ["SMTP_PASS"],
        from_email=os.environ["FROM_EMAIL"],
        to_email=os.environ["TO_EMAIL"],
        anthropic_api_key=os.environ["ANTHROPIC_API_KEY"],
        from_name=os.getenv("FROM_NAME") or DEFAULT_FROM_NAME,
        smtp_host=os.getenv("SMTP_HOST") or DEFAULT_SMTP_HOST,
        smtp_port=int(_env_float("SMTP_PORT", DEFAULT_SMTP_PORT)),
        smtp_timeout=_env_float("SMTP_TIMEOUT_SECONDS", DEFAULT_SMTP_TIMEOUT_SECONDS),
        ai_timeout=_env_float("AI_TIMEOUT_SECONDS", DEFAULT_AI_TIMEOUT_SECONDS),
        spam_filter_fail_open=_env_bool("SPAM_FILTER_FAIL_OPEN"),
    )

# =============================================================================
# core/config.py  -  Settings loaded from the environment
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the process environment ONCE at startup and turns it into an
#   immutable Settings object.  Everything else receives Settings (or the
#   pieces of it it needs) as constructor arguments; nothing else reads
#   os.environ.
#
# .env FILES:
#   main.py calls dotenv.load_dotenv() before load_settings(), so a local
#   .env file feeds the very same variables.  This module itself does not
#   touch the filesystem, which keeps it trivial to test.
#
# FAIL FAST:
#   Missing credentials are a configuration error, not a runtime error.
#   load_settings() raises ConfigurationError naming EVERY missing variable,
#   so the operator can fix them all in one go.
# =============================================================================

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ConfigurationError
from core.models import Credentials

DEFAULT_CHAT_URL = "https://dev-buschgpt.az-x1n3.com/ext/api/chat/invoke"

# Required variables, in the order they are reported when missing.
_REQUIRED = ("STATWORX_AUTH_SERVER", "STATWORX_CLIENT_ID", "STATWORX_CLIENT_SECRET")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the BuschGPT MCP server."""

    credentials: Credentials
    chat_url: str = DEFAULT_CHAT_URL
    token_refresh_margin: float = 0.0  # Seconds; 0 = refresh exactly at expiry
    http_timeout: Optional[float] = None  # None = transport default
    log_level: str = "INFO"


def _parse_float(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Args:
        environ: Mapping to read from.  Defaults to os.environ.

    Raises:
        ConfigurationError: if a required variable is missing or blank, or an
            optional variable cannot be parsed.
    """
    if environ is None:
        environ = os.environ

    values = {name: environ.get(name, "").strip() for name in _REQUIRED}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: " + ", ".join(missing)
        )

    credentials = Credentials(
        issuer_url=values["STATWORX_AUTH_SERVER"],
        client_id=values["STATWORX_CLIENT_ID"],
        client_secret=values["STATWORX_CLIENT_SECRET"],
    )

    margin = _parse_float(environ, "BUSCHGPT_TOKEN_REFRESH_MARGIN")

    log_level = environ.get("BUSCHGPT_LOG_LEVEL", "").strip().upper() or "INFO"
    # getLevelName() maps known names to their int level and echoes unknown ones.
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"BUSCHGPT_LOG_LEVEL is not a logging level, got {log_level!r}")

    return Settings(
        credentials=credentials,
        chat_url=environ.get("BUSCHGPT_CHAT_URL", "").strip() or DEFAULT_CHAT_URL,
        token_refresh_margin=margin if margin is not None else 0.0,
        http_timeout=_parse_float(environ, "BUSCHGPT_HTTP_TIMEOUT"),
        log_level=log_level,
    )

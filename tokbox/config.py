"""Configuration constants, expiry presets, and .env loading.

WHY: Centralizes the values a caller may want to override (API base URL,
HTTP timeout, service-token lifetime) and the credential lookup, so the
client, the CLI, and the tests all read the same defaults.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values read from the environment with sensible defaults.
load_credentials() returns an immutable Credentials pair or raises a
ConfigurationError naming the missing variable.

RULES:
- Credentials are loaded from .env / environment, never hardcoded
- The API secret never appears in an error message or a repr
- The JWT lifetime is clamped to 1..300 (platform maximum is 5 minutes)
- Numeric overrides are parsed on use, not on import; bad values raise
  ConfigurationError
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from tokbox.errors import ConfigurationError

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Token expiry presets (seconds)
# ---------------------------------------------------------------------------

HOURS_1 = 60 * 60
HOURS_2 = 2 * HOURS_1
HOURS_24 = 24 * HOURS_1
WEEKS_1 = 7 * HOURS_24
DAYS_30 = 30 * HOURS_24

# ---------------------------------------------------------------------------
# API configuration defaults
# ---------------------------------------------------------------------------

MAX_JWT_TTL_SECONDS = 300
"""Longest service-token lifetime the platform accepts."""

DEFAULT_TIMEOUT_S = 30.0

TOKBOX_BASE_URL = os.getenv("TOKBOX_BASE_URL", "https://api.opentok.com")


def _clamp_ttl(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"TOKBOX_JWT_TTL_SECONDS must be an integer, got {raw!r}"
        ) from None
    return max(1, min(value, MAX_JWT_TTL_SECONDS))


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(
            f"TOKBOX_TIMEOUT_S must be a number of seconds, got {raw!r}"
        ) from None
    if value <= 0:
        raise ConfigurationError(f"TOKBOX_TIMEOUT_S must be positive, got {raw!r}")
    return value


def load_jwt_ttl() -> int:
    """Service-token lifetime from TOKBOX_JWT_TTL_SECONDS, clamped to 1..300.

    Read when a TokenSigner is built, so a bad value fails there with a
    ConfigurationError instead of breaking `import tokbox`.
    """
    return _clamp_ttl(os.getenv("TOKBOX_JWT_TTL_SECONDS", str(MAX_JWT_TTL_SECONDS)))


def load_timeout() -> float:
    """HTTP timeout from TOKBOX_TIMEOUT_S, defaulting to DEFAULT_TIMEOUT_S."""
    return _parse_timeout(os.getenv("TOKBOX_TIMEOUT_S", str(DEFAULT_TIMEOUT_S)))


@dataclass(frozen=True)
class Credentials:
    """API key and secret identifying one project.

    WHY: Several independently configured clients may live in one process,
    so credentials travel as an explicit value instead of module state.

    HOW: Frozen dataclass. The secret is excluded from repr so that logging
    or printing a client never leaks it.

    RULES:
    - Immutable after construction
    - Format is not validated; a bad key/secret fails at the remote service
    """

    api_key: str
    api_secret: str = field(repr=False)


def load_credentials() -> Credentials:
    """Load the API key and secret from the environment.

    RULES:
    - Reads TOKBOX_API_KEY and TOKBOX_API_SECRET (populated by python-dotenv)
    - Raises ConfigurationError if either is missing or empty
    """
    key = os.getenv("TOKBOX_API_KEY", "").strip()
    secret = os.getenv("TOKBOX_API_SECRET", "").strip()
    missing = [
        name
        for name, value in (("TOKBOX_API_KEY", key), ("TOKBOX_API_SECRET", secret))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            "TokBox credentials not configured. "
            "Add {} to the .env file or the environment.".format(" and ".join(missing))
        )
    return Credentials(api_key=key, api_secret=secret)

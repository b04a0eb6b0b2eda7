"""Application configuration — environment variables and derived constants.

Loads ``BOT_TOKEN``, the API endpoint and the polling defaults from the
environment via ``python-dotenv``.  All values are resolved at import time
so other modules can ``from config import …`` without repeated lookups.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import BotLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()

# ── Logger (used for startup diagnostics at the bottom of this module) ───────
logger = BotLogger.get_logger()


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_int(name: str, default: int, minimum: int = 0) -> int:
    """Read an integer environment variable.

    Missing, non-numeric and below-*minimum* values fall back to *default*
    with a warning.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Ignoring non-numeric setting", extra={"setting": name, "value": raw})
        return default
    if value < minimum:
        logger.warning("Ignoring out-of-range setting", extra={"setting": name, "value": value, "minimum": minimum})
        return default
    return value


# ── Public constants ─────────────────────────────────────────────────────────

BOT_TOKEN: str | None = os.environ.get("BOT_TOKEN") or None
TELEGRAM_API_HOST: str = os.environ.get("TELEGRAM_API_HOST") or "api.telegram.org"
TELEGRAM_API_PORT: int = _parse_int("TELEGRAM_API_PORT", 443, minimum=1)
UPDATES_LIMIT: int = _parse_int("UPDATES_LIMIT", 30, minimum=1)
UPDATES_TIMEOUT: int = _parse_int("UPDATES_TIMEOUT", 10)
NET_CONNECTION_TIMEOUT: int = _parse_int("NET_CONNECTION_TIMEOUT", 0)


# ── Startup diagnostics ─────────────────────────────────────────────────────

if BOT_TOKEN:
    logger.info("Config loaded — BOT_TOKEN is set")
else:
    logger.warning("Config loaded — BOT_TOKEN is NOT set")

logger.info(
    "Bot API endpoint resolved",
    extra={"api_host": TELEGRAM_API_HOST, "api_port": TELEGRAM_API_PORT},
)

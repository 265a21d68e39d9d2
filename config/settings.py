"""
Runtime settings -- browser, session storage, output and logging.

Every value can be overridden through the environment.
"""

import logging
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


HEADLESS = _env_bool("SCRAPER_HEADLESS", True)
CHROMIUM_EXECUTABLE = os.environ.get("CHROMIUM_PATH") or None   # None = Playwright's bundled build

SESSIONS_DIR = os.environ.get("SCRAPER_SESSIONS_DIR", ".sessions")
SESSION_EXPIRY_DAYS = int(os.environ.get("SCRAPER_SESSION_EXPIRY_DAYS", "7"))

OUTPUT_DIR = os.environ.get("SCRAPER_OUTPUT_DIR", "data")

LOG_LEVEL = os.environ.get("SCRAPER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"


def configure_logging(level: str | None = None):
    """Set up root logging for the CLI and Streamlit entry points."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
    # Suppress Playwright debug logging
    logging.getLogger("playwright").setLevel(logging.ERROR)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

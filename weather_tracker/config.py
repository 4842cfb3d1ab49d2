# ABOUTME: Application settings read from environment variables (with .env support).
# ABOUTME: Also holds timing constants and the logging setup used by entry points.

import logging
import os

from dotenv import load_dotenv

load_dotenv()

OPENWEATHER_API_KEY: str = os.environ.get("OPENWEATHER_API_KEY", "")
DEFAULT_UNITS: str = os.environ.get("WEATHER_DEFAULT_UNITS", "imperial")
DEFAULT_LANGUAGE: str = os.environ.get("WEATHER_DEFAULT_LANGUAGE", "en")
DEFAULT_CITIES: list[str] = [
    c.strip() for c in os.environ.get("WEATHER_DEFAULT_CITIES", "Irvine,London,Tokyo").split(",") if c.strip()
]
HTTP_TIMEOUT: float = float(os.environ.get("WEATHER_HTTP_TIMEOUT", "10"))
LOG_LEVEL: str = os.environ.get("WEATHER_LOG_LEVEL", "INFO")

SEARCH_DEBOUNCE_SECONDS = 0.3
SCROLL_TO_END_DELAY_SECONDS = 0.5
MIN_QUERY_LENGTH = 3
SUGGESTION_LIMIT = 5


class ApiKeyFilter(logging.Filter):
    """Redact the appid query parameter from httpx request logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        if OPENWEATHER_API_KEY and OPENWEATHER_API_KEY in record.getMessage():
            record.msg = record.getMessage().replace(OPENWEATHER_API_KEY, "***")
            record.args = ()
        return True


def configure_logging(level: str | None = None) -> None:
    """Set the root log level and install the API key redaction filter on httpx."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper())
    httpx_logger = logging.getLogger("httpx")
    if not any(isinstance(f, ApiKeyFilter) for f in httpx_logger.filters):
        httpx_logger.addFilter(ApiKeyFilter())

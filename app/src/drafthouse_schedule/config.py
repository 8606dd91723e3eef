from dataclasses import dataclass
from dotenv import load_dotenv
import logging
import os

load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
)

@dataclass(frozen=True)
class Config:
    base_url: str
    market: str
    schedule_url: str
    referer: str
    user_agent: str
    accept_language: str
    request_timeout_seconds: float | None

    timezone: str
    excluded_theater: str
    recent_window_hours: int
    open_caption_window_days: int

    log_level: str

def load_config() -> Config:
    def _int(name: str, default: int) -> int:
        raw = os.getenv(name, "")
        if raw.strip() == "":
            return default
        try:
            value = int(raw.strip())
        except ValueError:
            value = 0
        if value <= 0:
            logging.getLogger(__name__).warning(
                "invalid %s=%s, using default=%s",
                name,
                raw,
                default,
            )
            return default
        return value

    def _timeout(name: str) -> float | None:
        raw = os.getenv(name, "").strip()
        if not raw:
            return None
        try:
            value = float(raw)
        except ValueError:
            value = 0.0
        if value <= 0:
            logging.getLogger(__name__).warning(
                "invalid %s=%s, using client default",
                name,
                raw,
            )
            return None
        return value

    base_url = os.getenv("BASE_URL", "https://drafthouse.com").rstrip("/")
    market = os.getenv("MARKET", "nyc").strip() or "nyc"

    return Config(
        base_url=base_url,
        market=market,
        schedule_url=os.getenv("SCHEDULE_URL", "").strip()
        or f"{base_url}/s/mother/v2/schedule/market/{market}",
        referer=os.getenv("REFERER", "").strip() or f"{base_url}/{market}",
        user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
        accept_language=os.getenv("ACCEPT_LANGUAGE", "en-US,en;q=0.9"),
        request_timeout_seconds=_timeout("REQUEST_TIMEOUT_SECONDS"),

        timezone=os.getenv("SCHEDULE_TIMEZONE", "America/New_York"),
        excluded_theater=os.getenv("EXCLUDED_THEATER", "Staten Island"),
        recent_window_hours=_int("RECENT_WINDOW_HOURS", 12),
        open_caption_window_days=_int("OPEN_CAPTION_WINDOW_DAYS", 14),

        log_level=os.getenv("LOG_LEVEL", "WARNING"),
    )

import json
import logging
from pathlib import Path
from time import perf_counter
from typing import Any, Optional

import requests

from .config import Config
from .models import Cinema, Market, Presentation, Schedule, Session, Show


class ScheduleError(RuntimeError):
    """Fatal problem obtaining or decoding the schedule feed."""


class ScheduleReadError(ScheduleError):
    pass


class ScheduleFetchError(ScheduleError):
    pass


class ScheduleParseError(ScheduleError, ValueError):
    pass


def request_headers(cfg: Config) -> dict[str, str]:
    return {
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": cfg.accept_language,
        "Referer": cfg.referer,
        "User-Agent": cfg.user_agent,
    }


def read_schedule_file(path: Path) -> str:
    logger = logging.getLogger(__name__)
    try:
        body = Path(path).read_text("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ScheduleReadError(f"Failed to read file: {path} ({exc})") from exc
    logger.info("schedule_read path=%s bytes=%s", path, len(body))
    return body


def fetch_schedule(cfg: Config) -> str:
    logger = logging.getLogger(__name__)
    url = cfg.schedule_url
    logger.info("schedule_fetch_start url=%s", url)
    start_ts = perf_counter()
    try:
        response = requests.get(
            url,
            headers=request_headers(cfg),
            timeout=cfg.request_timeout_seconds,
        )
    except requests.RequestException as exc:
        raise ScheduleFetchError(f"Failed to make HTTP request to {url}: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise ScheduleFetchError(f"HTTP error: {response.status_code} {response.reason or ''}".rstrip())

    body = response.text
    logger.info(
        "schedule_fetch_done url=%s status=%s bytes=%s duration_ms=%s",
        url,
        response.status_code,
        len(body),
        int((perf_counter() - start_ts) * 1000),
    )
    return body


def _field(obj: dict, key: str, where: str) -> str:
    if key not in obj:
        raise ScheduleParseError(f"missing field '{key}' at {where}")
    value = obj[key]
    if not isinstance(value, str):
        raise ScheduleParseError(f"field '{key}' at {where} must be a string, got {type(value).__name__}")
    return value


def _optional_field(obj: dict, key: str, where: str) -> Optional[str]:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ScheduleParseError(f"field '{key}' at {where} must be a string, got {type(value).__name__}")
    return value


def _object(value: Any, where: str) -> dict:
    if not isinstance(value, dict):
        raise ScheduleParseError(f"expected an object at {where}, got {type(value).__name__}")
    return value


def _array(obj: dict, key: str, where: str) -> list:
    if key not in obj:
        raise ScheduleParseError(f"missing field '{key}' at {where}")
    value = obj[key]
    if not isinstance(value, list):
        raise ScheduleParseError(f"field '{key}' at {where} must be an array, got {type(value).__name__}")
    return value


def _cinema(raw: Any, where: str) -> Cinema:
    obj = _object(raw, where)
    return Cinema(
        id=_field(obj, "id", where),
        loyalty_cinema_id=_field(obj, "loyaltyCinemaId", where),
        slug=_field(obj, "slug", where),
        name=_field(obj, "name", where),
    )


def _market(raw: Any, where: str) -> Market:
    obj = _object(raw, where)
    return Market(
        id=_field(obj, "id", where),
        slug=_field(obj, "slug", where),
        name=_field(obj, "name", where),
        status=_field(obj, "status", where),
        cinemas=tuple(
            _cinema(c, f"{where}.cinemas[{i}]")
            for i, c in enumerate(_array(obj, "cinemas", where))
        ),
    )


def _presentation(raw: Any, where: str) -> Presentation:
    obj = _object(raw, where)
    show_where = f"{where}.show"
    if "show" not in obj:
        raise ScheduleParseError(f"missing field 'show' at {where}")
    show = _object(obj["show"], show_where)
    return Presentation(
        slug=_field(obj, "slug", where),
        legacy_slug=_optional_field(obj, "legacySlug", where),
        show=Show(
            slug=_field(show, "slug", show_where),
            legacy_slug=_optional_field(show, "legacySlug", show_where),
            title=_field(show, "title", show_where),
        ),
    )


def _session(raw: Any, where: str) -> Session:
    obj = _object(raw, where)
    return Session(
        cinema_id=_field(obj, "cinemaId", where),
        session_id=_field(obj, "sessionId", where),
        presentation_slug=_field(obj, "presentationSlug", where),
        legacy_slug=_optional_field(obj, "legacySlug", where),
        show_time_clt=_field(obj, "showTimeClt", where),
        format_slug=_optional_field(obj, "formatSlug", where),
    )


def parse_schedule(text: str) -> Schedule:
    """Decode the schedule feed.

    The feed wraps everything in a ``data`` envelope and names the market
    list ``market``. Unknown keys are ignored.
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ScheduleParseError(
            f"Failed to parse schedule JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
        ) from exc

    root = _object(doc, "$")
    if "data" not in root:
        raise ScheduleParseError("missing field 'data' at $")
    data = _object(root["data"], "data")

    schedule = Schedule(
        markets=tuple(
            _market(m, f"data.market[{i}]")
            for i, m in enumerate(_array(data, "market", "data"))
        ),
        presentations=tuple(
            _presentation(p, f"data.presentations[{i}]")
            for i, p in enumerate(_array(data, "presentations", "data"))
        ),
        sessions=tuple(
            _session(s, f"data.sessions[{i}]")
            for i, s in enumerate(_array(data, "sessions", "data"))
        ),
    )
    logging.getLogger(__name__).info(
        "schedule_parsed markets=%s presentations=%s sessions=%s",
        len(schedule.markets),
        len(schedule.presentations),
        len(schedule.sessions),
    )
    return schedule


def load_schedule(path: Optional[Path], cfg: Config) -> Schedule:
    body = read_schedule_file(path) if path is not None else fetch_schedule(cfg)
    return parse_schedule(body)

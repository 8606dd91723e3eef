import json
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from .models import Showtime
from .showtimes import Mode, Selection, format_show_time

SEPARATOR = "-" * 94


def _row(show_time: str, movie: str, theater: str) -> str:
    return f"{show_time:^25} | {movie:<40} | {theater:<25}"


def header_lines() -> List[str]:
    return [_row("Show Time", "Movie", "Theater"), SEPARATOR]


def showtime_rows(showtimes: List[Showtime]) -> List[str]:
    return [_row(format_show_time(s.show_time), s.movie, s.theater) for s in showtimes]


def render_text(selection: Selection) -> str:
    window = selection.window
    lines: List[str] = [""]
    if selection.strategy.banner:
        lines.append(selection.strategy.banner)
    lines.extend(header_lines())
    # The open-caption banner already names its range.
    bounded = window.start is not None and window.end is not None
    if bounded and selection.strategy.mode is not Mode.OPEN_CAPTION:
        lines.append("")
        lines.append(
            f"Showings between {window.start.strftime('%m/%d %H:%M')} "
            f"and {window.end.strftime('%m/%d %H:%M')}"
        )
    lines.extend(showtime_rows(selection.showtimes))
    return "\n".join(lines)


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def to_payload(selection: Selection) -> dict:
    return {
        "time_range": {
            "start": _timestamp(selection.window.start),
            "end": _timestamp(selection.window.end),
        },
        "showtimes": [asdict(s) for s in selection.showtimes],
    }


def render_json(selection: Selection) -> str:
    return json.dumps(to_payload(selection), ensure_ascii=False, indent=2)

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo

from .config import Config
from .models import Schedule, Session, Showtime

SHOW_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
UNKNOWN_MOVIE = "Unknown Movie"
UNKNOWN_THEATER = "Unknown Theater"


class Mode(str, Enum):
    RECENT = "recent"
    OPEN_CAPTION = "open-caption"
    RAW = "raw"


@dataclass(frozen=True)
class Lookups:
    cinema_names: Mapping[str, str]
    movie_titles: Mapping[str, str]

    def theater_for(self, session: Session) -> str:
        return self.cinema_names.get(session.cinema_id, UNKNOWN_THEATER)

    def movie_for(self, session: Session) -> str:
        return self.movie_titles.get(session.presentation_slug, UNKNOWN_MOVIE)


def build_lookups(schedule: Schedule) -> Lookups:
    # Later entries win on duplicate keys.
    cinema_names = {
        cinema.id: cinema.name
        for market in schedule.markets
        for cinema in market.cinemas
    }
    movie_titles = {p.slug: p.show.title for p in schedule.presentations}
    return Lookups(
        cinema_names=MappingProxyType(cinema_names),
        movie_titles=MappingProxyType(movie_titles),
    )


@dataclass(frozen=True)
class TimeWindow:
    # An unset bound is open.
    start: Optional[datetime]
    end: Optional[datetime]

    def contains(self, instant: datetime) -> bool:
        # Compare in UTC so that wall-clock ambiguities in a shared zone
        # do not leak into the result.
        utc = instant.astimezone(timezone.utc)
        if self.start is not None and not self.start.astimezone(timezone.utc) < utc:
            return False
        if self.end is not None and not utc <= self.end.astimezone(timezone.utc):
            return False
        return True


UNBOUNDED = TimeWindow(start=None, end=None)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def window_after(now: datetime, length: timedelta) -> TimeWindow:
    if now.tzinfo is None:
        raise ValueError("reference time must be timezone-aware")
    end = (now.astimezone(timezone.utc) + length).astimezone(now.tzinfo)
    return TimeWindow(start=now, end=end)


def parse_show_time(value: str, tz: tzinfo) -> Optional[datetime]:
    try:
        naive = datetime.strptime(value, SHOW_TIME_FORMAT)
    except (TypeError, ValueError):
        return None
    return naive.replace(tzinfo=tz)


def format_show_time(show_time_clt: str) -> str:
    """``2099-01-05T19:30:00`` -> ``01/05 19:30``."""
    date_part, time_part = show_time_clt.split("T", 1)
    _, month, day = date_part.split("-")
    hours, minutes = time_part.split(":")[:2]
    return f"{month}/{day} {hours}:{minutes}"


Predicate = Callable[[Session, Lookups], bool]


@dataclass(frozen=True)
class Strategy:
    mode: Mode
    # None means no time window at all.
    length: Optional[timedelta]
    # None means the process's local zone.
    reference_zone: Optional[tzinfo]
    predicate: Predicate
    banner: str = ""

    def reference_now(self, now: Optional[datetime] = None) -> datetime:
        if now is None:
            if self.reference_zone is None:
                return datetime.now().astimezone()
            return datetime.now(self.reference_zone)
        if now.tzinfo is None:
            raise ValueError("reference time must be timezone-aware")
        if self.reference_zone is None:
            return now.astimezone()
        return now.astimezone(self.reference_zone)

    def window(self, now: Optional[datetime] = None) -> TimeWindow:
        if self.length is None:
            return UNBOUNDED
        return window_after(self.reference_now(now), self.length)


def strategy_for(mode: Mode, cfg: Config) -> Strategy:
    if mode is Mode.OPEN_CAPTION:
        days = cfg.open_caption_window_days
        return Strategy(
            mode=mode,
            length=timedelta(days=days),
            reference_zone=ZoneInfo(cfg.timezone),
            predicate=lambda session, lookups: session.is_open_caption,
            banner=f"🎬 Open Caption Showings (next {days} days)",
        )
    if mode is Mode.RAW:
        return Strategy(
            mode=mode,
            length=None,
            reference_zone=None,
            predicate=lambda session, lookups: True,
        )
    excluded = cfg.excluded_theater
    return Strategy(
        mode=Mode.RECENT,
        length=timedelta(hours=cfg.recent_window_hours),
        reference_zone=None,
        predicate=lambda session, lookups: lookups.theater_for(session) != excluded,
    )


def next_hour_only(strategy: Strategy) -> Strategy:
    """Narrow any strategy to showings starting within the next hour."""
    banner = strategy.banner
    if strategy.mode is Mode.OPEN_CAPTION:
        banner = "🎬 Open Caption Showings (next hour)"
    return replace(strategy, length=timedelta(hours=1), banner=banner)


def select_sessions(
    sessions: Iterable[Session],
    lookups: Lookups,
    strategy: Strategy,
    window: TimeWindow,
    schedule_tz: tzinfo,
) -> List[Session]:
    selected: List[Session] = []
    skipped_unparsable = 0
    for session in sessions:
        if not strategy.predicate(session, lookups):
            continue
        show_time = parse_show_time(session.show_time_clt, schedule_tz)
        if show_time is None:
            skipped_unparsable += 1
            continue
        if window.contains(show_time):
            selected.append(session)
    # Stable string sort on the raw timestamp.
    selected.sort(key=lambda s: s.show_time_clt)
    if skipped_unparsable:
        logging.getLogger(__name__).debug("sessions_unparsable count=%s", skipped_unparsable)
    return selected


def resolve(session: Session, lookups: Lookups) -> Showtime:
    return Showtime(
        show_time=session.show_time_clt,
        movie=lookups.movie_for(session),
        theater=lookups.theater_for(session),
        cinema_id=session.cinema_id,
        session_id=session.session_id,
        presentation_slug=session.presentation_slug,
    )


@dataclass(frozen=True)
class Selection:
    strategy: Strategy
    window: TimeWindow
    showtimes: List[Showtime]


def find_showtimes(
    schedule: Schedule,
    strategy: Strategy,
    schedule_tz: tzinfo,
    now: Optional[datetime] = None,
    search: Optional[str] = None,
) -> Selection:
    logger = logging.getLogger(__name__)
    lookups = build_lookups(schedule)
    window = strategy.window(now)
    sessions = select_sessions(schedule.sessions, lookups, strategy, window, schedule_tz)
    showtimes = [resolve(s, lookups) for s in sessions]
    if search:
        needle = search.lower()
        showtimes = [s for s in showtimes if needle in s.movie.lower()]
    logger.info(
        "showtimes_selected mode=%s start=%s end=%s sessions_total=%s matched=%s search=%s",
        strategy.mode.value,
        _isoformat(window.start),
        _isoformat(window.end),
        len(schedule.sessions),
        len(showtimes),
        search or "",
    )
    return Selection(strategy=strategy, window=window, showtimes=showtimes)

from dataclasses import dataclass, field
from typing import Optional

OPEN_CAPTION_FORMAT = "open-caption"

@dataclass(frozen=True)
class Cinema:
    id: str
    loyalty_cinema_id: str
    slug: str
    name: str

@dataclass(frozen=True)
class Market:
    id: str
    slug: str
    name: str
    status: str
    cinemas: tuple[Cinema, ...] = field(default_factory=tuple)

@dataclass(frozen=True)
class Show:
    slug: str
    title: str
    legacy_slug: Optional[str] = None

@dataclass(frozen=True)
class Presentation:
    slug: str
    show: Show
    legacy_slug: Optional[str] = None

@dataclass(frozen=True)
class Session:
    cinema_id: str
    session_id: str
    presentation_slug: str
    show_time_clt: str   # naive local time, YYYY-MM-DDTHH:MM:SS
    legacy_slug: Optional[str] = None
    format_slug: Optional[str] = None

    @property
    def is_open_caption(self) -> bool:
        return self.format_slug == OPEN_CAPTION_FORMAT

@dataclass(frozen=True)
class Schedule:
    markets: tuple[Market, ...] = field(default_factory=tuple)
    presentations: tuple[Presentation, ...] = field(default_factory=tuple)
    sessions: tuple[Session, ...] = field(default_factory=tuple)

@dataclass(frozen=True)
class Showtime:
    """A session resolved for display."""
    show_time: str
    movie: str
    theater: str
    cinema_id: str
    session_id: str
    presentation_slug: str

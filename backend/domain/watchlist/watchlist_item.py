from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

WATCHLIST_STORAGE_KEY = "picks_watchlist"
WATCHLIST_MAX_ITEMS = 50
# Adds still succeed past this size but carry a warning.
WATCHLIST_WARNING_THRESHOLD = 45


class WatchStatus(str, Enum):
    PLAN_TO_WATCH = "plan_to_watch"
    CURRENTLY_WATCHING = "currently_watching"
    WATCHED = "watched"


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"


def utc_now_iso() -> str:
    """Current UTC time in the persisted form (`2024-05-01T12:00:00.000Z`)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class WatchlistItem:
    """A tracked movie or TV show.

    Attributes are snake_case; the persisted form (`to_dict`) keeps the camelCase
    keys of the stored JSON array so existing data stays readable.
    """

    id: str
    display_title: str
    poster_path: Optional[str]
    average: float
    media_type: MediaType
    watch_status: WatchStatus
    date_added: str
    date_watched: Optional[str] = None

    @classmethod
    def from_media(
        cls,
        media: Any,
        watch_status: WatchStatus = WatchStatus.PLAN_TO_WATCH,
        *,
        now: Optional[str] = None,
    ) -> "WatchlistItem":
        """Build a new entry from a `MovieItem` / `TvShowItem`."""
        timestamp = now or utc_now_iso()
        status = WatchStatus(watch_status)
        return cls(
            id=str(media.id),
            display_title=media.display_title.strip(),
            poster_path=media.poster_path or None,
            average=float(media.vote_average),
            media_type=MediaType(media.kind),
            watch_status=status,
            date_added=timestamp,
            date_watched=timestamp if status == WatchStatus.WATCHED else None,
        )

    def with_status(self, status: WatchStatus, *, now: Optional[str] = None) -> "WatchlistItem":
        status = WatchStatus(status)
        date_watched = (now or utc_now_iso()) if status == WatchStatus.WATCHED else None
        return replace(self, watch_status=status, date_watched=date_watched)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "displayTitle": self.display_title,
            "posterPath": self.poster_path,
            "average": self.average,
            "mediaType": self.media_type.value,
            "watchStatus": self.watch_status.value,
            "dateAdded": self.date_added,
        }
        if self.date_watched:
            payload["dateWatched"] = self.date_watched
        return payload

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "WatchlistItem":
        """Trusting constructor; run untrusted data through `sanitize_watchlist` instead."""
        return cls(
            id=str(raw["id"]),
            display_title=str(raw["displayTitle"]),
            poster_path=raw.get("posterPath"),
            average=float(raw["average"]),
            media_type=MediaType(raw["mediaType"]),
            watch_status=WatchStatus(raw["watchStatus"]),
            date_added=str(raw["dateAdded"]),
            date_watched=raw.get("dateWatched") or None,
        )

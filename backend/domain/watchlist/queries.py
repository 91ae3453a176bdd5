from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from domain.watchlist.watchlist_item import MediaType, WatchlistItem, WatchStatus


@dataclass(frozen=True)
class WatchlistStats:
    total: int
    watched: int
    plan_to_watch: int
    currently_watching: int
    average_rating: float

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "watched": self.watched,
            "planToWatch": self.plan_to_watch,
            "currentlyWatching": self.currently_watching,
            "averageRating": self.average_rating,
        }


def get_watchlist_stats(items: Sequence[WatchlistItem]) -> WatchlistStats:
    total = len(items)
    return WatchlistStats(
        total=total,
        watched=sum(1 for i in items if i.watch_status == WatchStatus.WATCHED),
        plan_to_watch=sum(1 for i in items if i.watch_status == WatchStatus.PLAN_TO_WATCH),
        currently_watching=sum(1 for i in items if i.watch_status == WatchStatus.CURRENTLY_WATCHING),
        average_rating=(sum(i.average for i in items) / total) if total else 0,
    )


def is_in_watchlist(items: Sequence[WatchlistItem], item_id: str) -> bool:
    return any(item.id == item_id for item in items)


def get_movies(items: Sequence[WatchlistItem]) -> List[WatchlistItem]:
    return [item for item in items if item.media_type == MediaType.MOVIE]


def get_tv_shows(items: Sequence[WatchlistItem]) -> List[WatchlistItem]:
    return [item for item in items if item.media_type == MediaType.TV]


def get_items_by_status(items: Sequence[WatchlistItem], status: WatchStatus) -> List[WatchlistItem]:
    status = WatchStatus(status)
    return [item for item in items if item.watch_status == status]


__all__ = [
    "WatchlistStats",
    "get_watchlist_stats",
    "is_in_watchlist",
    "get_movies",
    "get_tv_shows",
    "get_items_by_status",
]

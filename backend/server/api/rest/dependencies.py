from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from application.recommendation import MoodRecommendationService
from application.watchlist import WatchlistService
from config.settings import WATCHLIST_ERROR_DISMISS_S

if TYPE_CHECKING:
    from picks_agent.agents import RecommendationGraph, RecommendationRunner
    from picks_agent.usage import UsageTracker


@lru_cache(maxsize=1)
def _build_usage_tracker() -> "UsageTracker":
    from picks_agent.usage import UsageTracker

    return UsageTracker()


def get_usage_tracker() -> "UsageTracker":
    return _build_usage_tracker()


@lru_cache(maxsize=1)
def _build_recommendation_graph() -> "RecommendationGraph":
    from picks_agent.agents import RecommendationGraph

    return RecommendationGraph()


@lru_cache(maxsize=1)
def _build_runner() -> "RecommendationRunner":
    from picks_agent.agents import RecommendationRunner

    return RecommendationRunner(_build_recommendation_graph(), _build_usage_tracker())


def get_recommendation_runner() -> "RecommendationRunner":
    return _build_runner()


@lru_cache(maxsize=1)
def _build_mood_service() -> MoodRecommendationService:
    return MoodRecommendationService(_build_runner())


def get_mood_service() -> MoodRecommendationService:
    return _build_mood_service()


@lru_cache(maxsize=1)
def _build_watchlist_storage():
    from infrastructure.persistence.factory import create_watchlist_storage

    return create_watchlist_storage()


@lru_cache(maxsize=1)
def _build_watchlist_service() -> WatchlistService:
    return WatchlistService(_build_watchlist_storage(), error_dismiss_s=WATCHLIST_ERROR_DISMISS_S)


def get_watchlist_service() -> WatchlistService:
    return _build_watchlist_service()


async def shutdown_dependencies() -> None:
    """Detach long-lived services from their storage listeners."""
    if _build_watchlist_service.cache_info().currsize:
        _build_watchlist_service().close()

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from application.ports.recommendation_stream_port import RecommendationStreamPort
from domain.recommendation import (
    MoodOption,
    RankedRecommendation,
    get_mood,
    parse_ranked_recommendations,
)
from picks_agent.agents.events import FinalStateEvent, StepEvent, content_to_text

logger = logging.getLogger(__name__)

GENERATE_NODE = "generate"
RATE_LIMITER_NODE = "rate_limiter"
# Fallback answers shorter than this are treated as chatter, not recommendations.
MIN_ANSWER_CHARS = 50
_TOOL_MARKUP = ("functionCall", "tool_call", '{"')

NO_RESULT_MESSAGE = "Unable to get recommendations at this time. Please try again."
EMPTY_RESULT_MESSAGE = "No recommendations were generated. Please try again with a different mood."
FAILURE_MESSAGE = "Failed to get recommendations. Please check your connection and try again."


class UnknownMoodError(LookupError):
    pass


@dataclass(frozen=True)
class MoodRecommendationResult:
    query: str
    mood_id: Optional[str] = None
    content: Optional[str] = None
    recommendations: Tuple[RankedRecommendation, ...] = field(default_factory=tuple)
    error: Optional[str] = None
    throttled: bool = False
    nodes: Tuple[str, ...] = field(default_factory=tuple)
    elapsed_s: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None and bool(self.content)

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "mood_id": self.mood_id,
            "success": self.success,
            "content": self.content,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "error": self.error,
            "throttled": self.throttled,
            "nodes": list(self.nodes),
            "elapsed_s": round(self.elapsed_s, 3),
        }


def _looks_like_answer(message: Any) -> bool:
    if getattr(message, "type", "") != "ai":
        return False
    content = getattr(message, "content", None)
    if not isinstance(content, str) or len(content) <= MIN_ANSWER_CHARS:
        return False
    return not any(marker in content for marker in _TOOL_MARKUP)


def extract_final_answer(events: Sequence[Union[StepEvent, FinalStateEvent]]) -> Optional[str]:
    """Prefer the `generate` step; otherwise the last substantial AI message of the final state."""
    final = next((e for e in events if isinstance(e, FinalStateEvent)), None)
    if final is None:
        return None

    for event in events:
        if isinstance(event, StepEvent) and event.node == GENERATE_NODE and event.content:
            return event.content

    for message in reversed(final.messages):
        if _looks_like_answer(message):
            return content_to_text(message.content)
    return None


class MoodRecommendationService:
    """Turn a mood (or free-text query) into a parsed, ranked recommendation list."""

    def __init__(
        self,
        runner: RecommendationStreamPort,
        *,
        mood_lookup: Callable[[str], Optional[MoodOption]] = get_mood,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._runner = runner
        self._mood_lookup = mood_lookup
        self._clock = clock

    async def recommend_for_mood(self, mood_id: str) -> MoodRecommendationResult:
        mood = self._mood_lookup(mood_id)
        if mood is None:
            raise UnknownMoodError(f"unknown mood: {mood_id!r}")
        return await self.recommend(mood.prompt, mood_id=mood.id)

    async def recommend(self, query: str, *, mood_id: Optional[str] = None) -> MoodRecommendationResult:
        started = self._clock()
        events: List[Union[StepEvent, FinalStateEvent]] = []
        try:
            async for event in self._runner.stream(query):
                events.append(event)
        except Exception:
            logger.exception("mood recommendation failed mood_id=%s", mood_id)
            return MoodRecommendationResult(
                query=query,
                mood_id=mood_id,
                error=FAILURE_MESSAGE,
                nodes=_nodes(events),
                elapsed_s=self._clock() - started,
            )

        elapsed = self._clock() - started
        nodes = _nodes(events)
        throttle = next(
            (e for e in events if isinstance(e, StepEvent) and e.node == RATE_LIMITER_NODE and e.is_error),
            None,
        )
        if throttle is not None:
            return MoodRecommendationResult(
                query=query, mood_id=mood_id, error=throttle.content, throttled=True, nodes=nodes, elapsed_s=elapsed
            )

        if not any(isinstance(e, FinalStateEvent) for e in events):
            return MoodRecommendationResult(
                query=query, mood_id=mood_id, error=NO_RESULT_MESSAGE, nodes=nodes, elapsed_s=elapsed
            )

        content = extract_final_answer(events)
        if not content:
            return MoodRecommendationResult(
                query=query, mood_id=mood_id, error=EMPTY_RESULT_MESSAGE, nodes=nodes, elapsed_s=elapsed
            )

        ranked = tuple(parse_ranked_recommendations(content))
        logger.info(
            "mood recommendation done mood_id=%s nodes=%s recommendations=%s elapsed_s=%.2f",
            mood_id,
            ",".join(nodes),
            len(ranked),
            elapsed,
        )
        return MoodRecommendationResult(
            query=query,
            mood_id=mood_id,
            content=content,
            recommendations=ranked,
            nodes=nodes,
            elapsed_s=elapsed,
        )


def _nodes(events: Sequence[Union[StepEvent, FinalStateEvent]]) -> Tuple[str, ...]:
    return tuple(e.node for e in events if isinstance(e, StepEvent))


__all__ = [
    "MoodRecommendationService",
    "MoodRecommendationResult",
    "UnknownMoodError",
    "extract_final_answer",
]

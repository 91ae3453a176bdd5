from __future__ import annotations

import logging
import time
from typing import Any, AsyncIterator, List, Optional, Union

from langchain_core.messages import BaseMessage, HumanMessage

from picks_agent.agents.events import FinalStateEvent, StepEvent, content_to_text
from picks_agent.agents.recommendation_graph import REWRITE, SYNTHETIC_MESSAGE_KEY, RecommendationGraph
from picks_agent.usage.token_tracker import UsageTracker, estimate_tokens, get_usage_warning

logger = logging.getLogger(__name__)

RATE_LIMITER_NODE = "rate_limiter"
_DEFAULT_THROTTLE_MESSAGE = "Usage limit reached. Please wait a moment before asking again."

RecommendationEvent = Union[StepEvent, FinalStateEvent]


def _is_model_message(message: Any) -> bool:
    if getattr(message, "type", "") != "ai":
        return False
    extra = getattr(message, "additional_kwargs", None) or {}
    return not extra.get(SYNTHETIC_MESSAGE_KEY)


def _step_event(node: str, message: Any) -> StepEvent:
    tool_calls = getattr(message, "tool_calls", None) or None
    return StepEvent(
        node=node,
        type=str(getattr(message, "type", "unknown")),
        content=content_to_text(getattr(message, "content", "")),
        tool_calls=[dict(call) for call in tool_calls] if tool_calls else None,
    )


class RecommendationRunner:
    """Run the recommendation graph for one query and stream its progress.

    Usage is consulted before any model work: a throttled run yields a single
    `rate_limiter` error event and stops. Otherwise the query tokens plus every
    model-produced message, the rewritten question included, are recorded
    against the tracker.
    """

    def __init__(
        self,
        graph: RecommendationGraph,
        usage_tracker: UsageTracker,
        *,
        model_name: Optional[str] = None,
    ) -> None:
        self.graph = graph
        self.usage_tracker = usage_tracker
        self.model_name = model_name or usage_tracker.default_model

    async def stream(self, query: str) -> AsyncIterator[RecommendationEvent]:
        started = time.monotonic()
        if self.usage_tracker.should_throttle(self.model_name):
            stats = self.usage_tracker.get_usage_stats(self.model_name)
            warning = get_usage_warning(stats) or _DEFAULT_THROTTLE_MESSAGE
            logger.warning("recommendation run throttled model=%s reason=%s", self.model_name, warning)
            yield StepEvent(node=RATE_LIMITER_NODE, type="error", content=warning)
            return

        self.usage_tracker.add_usage(estimate_tokens(query), self.model_name)

        messages: List[BaseMessage] = [HumanMessage(content=query)]
        skip_web_search = False
        steps = 0
        async for node, update in self.graph.astream_updates(messages):
            if "skip_web_search" in update:
                skip_web_search = bool(update["skip_web_search"])
            new_messages = list(update.get("messages") or [])
            if not new_messages:
                continue
            messages.extend(new_messages)
            for message in new_messages:
                if node == REWRITE or _is_model_message(message):
                    self.usage_tracker.add_usage(
                        estimate_tokens(content_to_text(message.content)), self.model_name
                    )
            steps += 1
            yield _step_event(node, new_messages[-1])

        logger.info(
            "recommendation run finished steps=%s skip_web_search=%s elapsed_ms=%s",
            steps,
            skip_web_search,
            int((time.monotonic() - started) * 1000),
        )
        yield FinalStateEvent(messages=tuple(messages), skip_web_search=skip_web_search)

    async def collect(self, query: str) -> List[RecommendationEvent]:
        return [event async for event in self.stream(query)]


__all__ = ["RecommendationRunner", "RecommendationEvent", "RATE_LIMITER_NODE"]

from __future__ import annotations

from typing import AsyncIterator, Protocol, Union

from picks_agent.agents.events import FinalStateEvent, StepEvent


class RecommendationStreamPort(Protocol):
    def stream(self, query: str) -> AsyncIterator[Union[StepEvent, FinalStateEvent]]:
        """Run one recommendation query, yielding step events then one final event."""
        ...

import asyncio
import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from langchain_core.messages import AIMessage

from picks_agent.agents import FinalStateEvent, StepEvent
from picks_agent.agents.recommendation_graph import RecommendationGraph
from picks_agent.agents.runner import RATE_LIMITER_NODE, RecommendationRunner
from picks_agent.search.tool.web_search_tool import WebSearchTool
from picks_agent.usage import UsageTracker, estimate_tokens
from recommendation_stubs import (
    RECOMMENDATIONS_TEXT,
    ScriptedLLM,
    StubRetrieverTool,
    StubSearchProvider,
)

LIMITS = {"test-model": {"tokens_per_minute": 100_000, "requests_per_minute": 10, "requests_per_day": 100}}


def _tracker(limits=LIMITS) -> UsageTracker:
    return UsageTracker(limits=limits, default_model="test-model", near_limit_ratio=0.8, clock=lambda: 1000.0)


def _runner(llm: ScriptedLLM, tracker: UsageTracker, **settings) -> RecommendationRunner:
    graph = RecommendationGraph(
        llm=llm,
        retriever_tool=StubRetrieverTool(),
        web_search=WebSearchTool(StubSearchProvider()),
        settings=settings,
    )
    return RecommendationRunner(graph, tracker)


class TestRecommendationRunner(unittest.TestCase):
    def test_streams_steps_then_single_final_state(self) -> None:
        tracker = _tracker()
        events = asyncio.run(_runner(ScriptedLLM(), tracker).collect("Something cozy"))

        steps = [e for e in events if isinstance(e, StepEvent)]
        finals = [e for e in events if isinstance(e, FinalStateEvent)]
        self.assertEqual(len(finals), 1)
        self.assertIs(events[-1], finals[0])
        self.assertEqual([s.node for s in steps], ["agent", "retrieve", "gradeDocuments", "generate"])
        self.assertEqual(steps[0].tool_calls[0]["args"], {"query": "feel good comedies"})
        self.assertEqual(steps[1].type, "tool")
        self.assertEqual(steps[-1].content, RECOMMENDATIONS_TEXT)

        final = finals[0]
        self.assertTrue(final.skip_web_search)
        self.assertEqual(final.messages[0].content, "Something cozy")
        self.assertEqual(final.messages[-1].content, RECOMMENDATIONS_TEXT)
        payload = final.to_dict()["final_state"]
        self.assertEqual(payload["messages"][0]["type"], "human")
        self.assertTrue(payload["skip_web_search"])

    def test_usage_counts_query_and_model_messages_only(self) -> None:
        tracker = _tracker()
        asyncio.run(_runner(ScriptedLLM(), tracker).collect("Something cozy"))
        stats = tracker.get_usage_stats()
        # Query + agent decision + generated answer; the heuristic grade is not a model call.
        self.assertEqual(stats.requests_last_minute, 3)
        self.assertEqual(
            stats.tokens_last_minute,
            estimate_tokens("Something cozy") + 0 + estimate_tokens(RECOMMENDATIONS_TEXT),
        )

    def test_usage_counts_rewritten_question(self) -> None:
        tracker = _tracker()
        rewritten = "uplifting comedy films"
        events = asyncio.run(
            _runner(ScriptedLLM(text=rewritten), tracker, enable_query_rewrite=True).collect("Something cozy")
        )
        self.assertEqual(events[0].node, "rewrite")
        stats = tracker.get_usage_stats()
        # Query + rewrite + agent decision + generated answer.
        self.assertEqual(stats.requests_last_minute, 4)
        self.assertEqual(
            stats.tokens_last_minute,
            estimate_tokens("Something cozy") + estimate_tokens(rewritten) + 0 + estimate_tokens(rewritten),
        )

    def test_throttled_run_yields_single_error_without_model_calls(self) -> None:
        tracker = _tracker()
        for _ in range(9):
            tracker.add_usage(10)
        llm = ScriptedLLM()
        events = asyncio.run(_runner(llm, tracker).collect("Something cozy"))

        self.assertEqual(len(events), 1)
        event = events[0]
        self.assertIsInstance(event, StepEvent)
        self.assertEqual(event.node, RATE_LIMITER_NODE)
        self.assertTrue(event.is_error)
        self.assertEqual(event.content, "Approaching per-minute request limit: 9/10")
        self.assertEqual(llm.calls, [])
        self.assertEqual(tracker.get_usage_stats().requests_last_minute, 9)

    def test_run_ending_at_agent_still_emits_final_state(self) -> None:
        tracker = _tracker()
        llm = ScriptedLLM(agent=AIMessage(content="Could you tell me more?"))
        events = asyncio.run(_runner(llm, tracker).collect("hm"))
        self.assertEqual([type(e).__name__ for e in events], ["StepEvent", "FinalStateEvent"])
        self.assertFalse(events[-1].skip_web_search)


if __name__ == "__main__":
    unittest.main()

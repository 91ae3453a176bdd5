import asyncio
import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from langchain_core.messages import AIMessage, HumanMessage

from application.recommendation import (
    MoodRecommendationService,
    UnknownMoodError,
    extract_final_answer,
)
from application.recommendation.mood_recommendation_service import (
    EMPTY_RESULT_MESSAGE,
    FAILURE_MESSAGE,
    NO_RESULT_MESSAGE,
)
from domain.recommendation import MoodOption
from picks_agent.agents.events import FinalStateEvent, StepEvent

ANSWER = "1. Paddington 2 - A warm family adventure.\n2. Chef - Road trip with great food."

MOOD = MoodOption(
    id="cozy",
    emoji="x",
    label="Cozy",
    description="Comfort viewing",
    color="orange",
    prompt="Recommend cozy comfort movies.",
)


class _FakeRunner:
    def __init__(self, events=None, error=None) -> None:
        self.events = list(events or [])
        self.error = error
        self.queries = []

    async def stream(self, query):
        self.queries.append(query)
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


def _service(runner) -> MoodRecommendationService:
    return MoodRecommendationService(runner, mood_lookup=lambda mood_id: MOOD if mood_id == "cozy" else None)


def _final(*messages) -> FinalStateEvent:
    return FinalStateEvent(messages=tuple(messages), skip_web_search=True)


class TestExtractFinalAnswer(unittest.TestCase):
    def test_prefers_generate_step(self) -> None:
        events = [
            StepEvent(node="agent", type="ai", content=""),
            StepEvent(node="generate", type="ai", content=ANSWER),
            _final(HumanMessage(content="q"), AIMessage(content="something else entirely, long enough to count")),
        ]
        self.assertEqual(extract_final_answer(events), ANSWER)

    def test_falls_back_to_substantial_ai_message(self) -> None:
        events = [
            StepEvent(node="agent", type="ai", content="short"),
            _final(
                HumanMessage(content="q"),
                AIMessage(content=ANSWER),
                AIMessage(content='{"functionCall": {"name": "recommend"}} padding padding padding'),
                AIMessage(content="too short"),
            ),
        ]
        self.assertEqual(extract_final_answer(events), ANSWER)

    def test_requires_final_state(self) -> None:
        self.assertIsNone(extract_final_answer([StepEvent(node="generate", type="ai", content=ANSWER)]))


class TestMoodRecommendationService(unittest.TestCase):
    def test_recommend_for_mood_uses_prompt_and_parses_list(self) -> None:
        runner = _FakeRunner(
            [
                StepEvent(node="agent", type="ai", content=""),
                StepEvent(node="generate", type="ai", content=ANSWER),
                _final(HumanMessage(content=MOOD.prompt), AIMessage(content=ANSWER)),
            ]
        )
        result = asyncio.run(_service(runner).recommend_for_mood("cozy"))

        self.assertEqual(runner.queries, [MOOD.prompt])
        self.assertTrue(result.success)
        self.assertEqual(result.mood_id, "cozy")
        self.assertEqual([r.title for r in result.recommendations], ["Paddington 2", "Chef"])
        self.assertEqual(result.nodes, ("agent", "generate"))
        payload = result.to_dict()
        self.assertEqual(payload["recommendations"][1], {"rank": 2, "title": "Chef", "reason": "Road trip with great food."})

    def test_unknown_mood(self) -> None:
        with self.assertRaises(UnknownMoodError):
            asyncio.run(_service(_FakeRunner()).recommend_for_mood("grumpy"))

    def test_throttled_run(self) -> None:
        runner = _FakeRunner([StepEvent(node="rate_limiter", type="error", content="Approaching daily request limit: 170/200")])
        result = asyncio.run(_service(runner).recommend("anything"))
        self.assertFalse(result.success)
        self.assertTrue(result.throttled)
        self.assertEqual(result.error, "Approaching daily request limit: 170/200")

    def test_no_final_state(self) -> None:
        runner = _FakeRunner([StepEvent(node="agent", type="ai", content="")])
        result = asyncio.run(_service(runner).recommend("anything"))
        self.assertEqual(result.error, NO_RESULT_MESSAGE)

    def test_empty_answer(self) -> None:
        runner = _FakeRunner([StepEvent(node="agent", type="ai", content="Hmm?"), _final(HumanMessage(content="q"))])
        result = asyncio.run(_service(runner).recommend("anything"))
        self.assertEqual(result.error, EMPTY_RESULT_MESSAGE)

    def test_runner_failure_becomes_failure_result(self) -> None:
        runner = _FakeRunner([StepEvent(node="agent", type="ai", content="")], error=RuntimeError("boom"))
        with self.assertLogs("application.recommendation.mood_recommendation_service", level="ERROR"):
            result = asyncio.run(_service(runner).recommend("anything", mood_id="cozy"))
        self.assertFalse(result.success)
        self.assertEqual(result.error, FAILURE_MESSAGE)
        self.assertEqual(result.nodes, ("agent",))


if __name__ == "__main__":
    unittest.main()

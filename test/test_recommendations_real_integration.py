import os
import sys
import json
import unittest
from pathlib import Path


_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))


def _parse_sse_events(raw_text: str) -> list[dict]:
    events: list[dict] = []
    for line in raw_text.splitlines():
        line = line.strip()
        if not line.startswith("data:"):
            continue
        payload = line[len("data:") :].strip()
        events.append(json.loads(payload))
    return events


@unittest.skipUnless(
    os.getenv("RUN_REAL_RAG_TESTS", "").strip() == "1",
    "Set RUN_REAL_RAG_TESTS=1 (and provide Neo4j/LLM/Tavily env) to run real recommendation tests.",
)
class TestRecommendationsRealIntegration(unittest.TestCase):
    def _require_env(self) -> None:
        from infrastructure.config.settings import (
            GEMINI_API_KEY,
            MODEL_TYPE,
            NEO4J_PASSWORD,
            NEO4J_URI,
            NEO4J_USERNAME,
            OPENAI_API_KEY,
            OPENAI_LLM_MODEL,
            TAVILY_API_KEY,
        )

        if not (NEO4J_URI and NEO4J_USERNAME and NEO4J_PASSWORD):
            self.skipTest("Neo4j env not configured (NEO4J_URI/USERNAME/PASSWORD).")
        if MODEL_TYPE == "gemini":
            if not GEMINI_API_KEY:
                self.skipTest("LLM env not configured (GEMINI_API_KEY).")
        elif not (OPENAI_API_KEY and OPENAI_LLM_MODEL):
            self.skipTest("LLM env not configured (OPENAI_API_KEY/OPENAI_LLM_MODEL).")
        if not TAVILY_API_KEY:
            self.skipTest("Web search env not configured (TAVILY_API_KEY).")

    def test_stream_emits_steps_and_final_state(self) -> None:
        self._require_env()
        # Import here so the skip guard is evaluated before heavy imports.
        from fastapi.testclient import TestClient

        from server.main import app

        client = TestClient(app)
        resp = client.post(
            "/api/v1/recommendations/stream",
            json={"query": "Recommend three uplifting feel-good movies for a rainy evening."},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers.get("content-type"), "text/event-stream; charset=utf-8")

        events = _parse_sse_events(resp.text)
        self.assertTrue(events)
        self.assertEqual(events[0]["status"], "start")
        self.assertEqual(events[-1]["status"], "done")

        steps = [e for e in events if e.get("status") == "step"]
        self.assertTrue(steps)
        self.assertEqual(steps[0]["node"], "agent")
        for e in steps:
            for k in ("node", "type", "content"):
                self.assertIn(k, e)

        finals = [e for e in events if e.get("status") == "final"]
        self.assertEqual(len(finals), 1)
        self.assertTrue(finals[0]["final_state"]["messages"])

    def test_mood_recommendation_returns_ranked_list(self) -> None:
        self._require_env()
        from fastapi.testclient import TestClient

        from server.main import app

        client = TestClient(app)
        resp = client.post("/api/v1/moods/happy/recommendations")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        if body["throttled"]:
            self.skipTest("usage limits reached")
        self.assertTrue(body["success"], body.get("error"))
        self.assertTrue(body["recommendations"])

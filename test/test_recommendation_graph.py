import asyncio
import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage
from langgraph.graph import END

from picks_agent.agents.recommendation_graph import (
    AGENT,
    GENERATE,
    GRADE_DOCUMENTS,
    RETRIEVE,
    REWRITE,
    WEB_SEARCH,
    MissingToolMessageError,
    RecommendationGraph,
    entry_node,
    next_node,
    relevance_tool_schema,
)
from picks_agent.config import settings as core_settings
from picks_agent.search.tool.web_search_tool import WebSearchTool
from recommendation_stubs import (
    ScriptedLLM,
    StubRetrieverTool,
    StubSearchProvider,
    grade_reply,
)

QUESTION = "Something uplifting and funny"


def _run(graph: RecommendationGraph, question: str = QUESTION):
    async def collect():
        return [item async for item in graph.astream_updates([HumanMessage(content=question)])]

    return asyncio.run(collect())


def _graph(llm, retriever=None, search=None, **settings) -> RecommendationGraph:
    return RecommendationGraph(
        llm=llm,
        retriever_tool=retriever or StubRetrieverTool(),
        web_search=WebSearchTool(search or StubSearchProvider()),
        settings=settings,
    )


class TestTransitions(unittest.TestCase):
    def test_agent_routes_on_tool_calls(self) -> None:
        with_call = {"messages": [AIMessage(content="", tool_calls=[{"name": "x", "args": {}, "id": "1"}])]}
        without_call = {"messages": [AIMessage(content="Just chatting")]}
        self.assertEqual(next_node(AGENT, with_call), RETRIEVE)
        self.assertEqual(next_node(AGENT, without_call), END)

    def test_grading_routes_on_flag(self) -> None:
        self.assertEqual(next_node(GRADE_DOCUMENTS, {"messages": [], "skip_web_search": True}), GENERATE)
        self.assertEqual(next_node(GRADE_DOCUMENTS, {"messages": [], "skip_web_search": False}), WEB_SEARCH)

    def test_fixed_edges(self) -> None:
        state = {"messages": []}
        self.assertEqual(next_node(REWRITE, state), AGENT)
        self.assertEqual(next_node(RETRIEVE, state), GRADE_DOCUMENTS)
        self.assertEqual(next_node(WEB_SEARCH, state), GENERATE)
        self.assertEqual(next_node(GENERATE, state), END)

    def test_unknown_node(self) -> None:
        with self.assertRaises(ValueError):
            next_node("critic", {"messages": []})

    def test_entry_node(self) -> None:
        self.assertEqual(entry_node(enable_query_rewrite=False), AGENT)
        self.assertEqual(entry_node(enable_query_rewrite=True), REWRITE)

    def test_relevance_schema(self) -> None:
        schema = relevance_tool_schema()
        self.assertEqual(schema["function"]["name"], core_settings.RELEVANCE_TOOL_NAME)
        score = schema["function"]["parameters"]["properties"]["binary_score"]
        self.assertEqual(score["enum"], ["yes", "no"])


class TestRecommendationGraphRuns(unittest.TestCase):
    def test_long_retrieval_skips_grading_call_and_web_search(self) -> None:
        llm = ScriptedLLM()
        search = StubSearchProvider()
        updates = _run(_graph(llm, search=search))

        self.assertEqual([node for node, _ in updates], [AGENT, RETRIEVE, GRADE_DOCUMENTS, GENERATE])
        self.assertEqual(llm.kinds(), ["agent", "text"])
        self.assertEqual(search.queries, [])

        grade_update = updates[2][1]
        self.assertTrue(grade_update["skip_web_search"])
        grade_message = grade_update["messages"][0]
        self.assertTrue(grade_message.additional_kwargs["synthetic"])
        self.assertEqual(grade_message.tool_calls[0]["args"], {"binary_score": "yes"})

        generated = updates[-1][1]["messages"][0]
        self.assertTrue(generated.content.startswith("1. Paddington 2"))

    def test_short_retrieval_is_graded_then_searched(self) -> None:
        llm = ScriptedLLM(grade=grade_reply("no"))
        retriever = StubRetrieverTool(result="Nothing useful")
        search = StubSearchProvider()
        updates = _run(_graph(llm, retriever=retriever, search=search))

        self.assertEqual(
            [node for node, _ in updates],
            [AGENT, RETRIEVE, GRADE_DOCUMENTS, WEB_SEARCH, GENERATE],
        )
        self.assertEqual(llm.kinds(), ["agent", "grade", "text"])
        self.assertEqual(retriever.calls, [{"query": "feel good comedies"}])
        self.assertEqual(search.queries, [QUESTION])

        # The generation prompt is built from the web result, not the retrieval output.
        generate_prompt = llm.calls[-1][1][0].content
        self.assertIn("Paddington 2", generate_prompt)
        self.assertNotIn("Nothing useful", generate_prompt)
        self.assertIn(QUESTION, generate_prompt)

    def test_short_retrieval_graded_relevant_goes_to_generate(self) -> None:
        llm = ScriptedLLM(grade=grade_reply("yes"))
        updates = _run(_graph(llm, retriever=StubRetrieverTool(result="Paddington 2")))
        self.assertEqual([node for node, _ in updates], [AGENT, RETRIEVE, GRADE_DOCUMENTS, GENERATE])
        self.assertEqual(llm.kinds(), ["agent", "grade", "text"])

    def test_grader_is_forced_to_use_score_tool(self) -> None:
        llm = ScriptedLLM(grade=grade_reply("yes"))
        seen = {}
        original = llm.bind_tools

        def spy(tools, **kwargs):
            bound = original(tools, **kwargs)
            if any(isinstance(t, dict) for t in tools):
                seen.update(kwargs)
            return bound

        llm.bind_tools = spy
        _run(_graph(llm, retriever=StubRetrieverTool(result="short")))
        self.assertEqual(seen, {"tool_choice": core_settings.RELEVANCE_TOOL_NAME})

    def test_retrieval_failure_is_graded_no_without_model_call(self) -> None:
        llm = ScriptedLLM()
        retriever = StubRetrieverTool(error=RuntimeError("index offline"))
        updates = _run(_graph(llm, retriever=retriever))

        self.assertEqual([node for node, _ in updates], [AGENT, RETRIEVE, GRADE_DOCUMENTS, WEB_SEARCH, GENERATE])
        tool_message = updates[1][1]["messages"][0]
        self.assertEqual(tool_message.status, "error")
        self.assertIn("index offline", tool_message.content)
        self.assertEqual(llm.kinds(), ["agent", "text"])

    def test_web_search_failure_still_generates(self) -> None:
        llm = ScriptedLLM(grade=grade_reply("no"))
        search = StubSearchProvider(error=ConnectionError("search down"))
        updates = _run(_graph(llm, retriever=StubRetrieverTool(result="tiny"), search=search))

        self.assertEqual(updates[-1][0], GENERATE)
        web_message = updates[3][1]["messages"][0]
        self.assertIsInstance(web_message, ToolMessage)
        self.assertEqual(web_message.status, "error")
        self.assertIn("search down", llm.calls[-1][1][0].content)

    def test_no_tool_call_ends_after_agent(self) -> None:
        llm = ScriptedLLM(agent=AIMessage(content="Tell me more about your mood?"))
        updates = _run(_graph(llm))
        self.assertEqual([node for node, _ in updates], [AGENT])
        self.assertEqual(llm.kinds(), ["agent"])

    def test_generation_context_is_truncated(self) -> None:
        llm = ScriptedLLM()
        docs = "x" * 500
        _run(_graph(llm, retriever=StubRetrieverTool(result=docs), generate_context_max_chars=100))
        prompt = llm.calls[-1][1][0].content
        self.assertIn("x" * 99 + "…", prompt)
        self.assertNotIn("x" * 100, prompt)

    def test_rewrite_runs_first_when_enabled(self) -> None:
        llm = ScriptedLLM(text="uplifting comedy films")
        updates = _run(_graph(llm, enable_query_rewrite=True))
        self.assertEqual(updates[0][0], REWRITE)
        rewritten = updates[0][1]["messages"][0]
        self.assertIsInstance(rewritten, HumanMessage)
        self.assertEqual(rewritten.name, "rewrite")
        self.assertEqual(rewritten.content, "uplifting comedy films")

    def test_generate_without_tool_message_raises(self) -> None:
        graph = _graph(ScriptedLLM())
        state = {"messages": [HumanMessage(content=QUESTION)], "skip_web_search": True}
        with self.assertRaises(MissingToolMessageError):
            asyncio.run(graph._generate_node(state))


if __name__ == "__main__":
    unittest.main()

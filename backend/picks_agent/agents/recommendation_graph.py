from __future__ import annotations

import logging
import time
from typing import Annotated, Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Tuple

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from langchain_core.prompts import ChatPromptTemplate
from langgraph.graph import END, START, StateGraph
from langgraph.graph.message import add_messages
from typing_extensions import TypedDict

from picks_agent.agents.events import content_to_text
from picks_agent.config import settings as core_settings
from picks_agent.config.prompts import GENERATE_PROMPT, GRADE_PROMPT, REWRITE_PROMPT
from picks_agent.ports.models import get_llm_model
from picks_agent.search.tool.web_search_tool import WebSearchTool

logger = logging.getLogger(__name__)

# Node names double as the `node` field of streamed step events.
REWRITE = "rewrite"
AGENT = "agent"
RETRIEVE = "retrieve"
GRADE_DOCUMENTS = "gradeDocuments"
WEB_SEARCH = "webSearch"
GENERATE = "generate"

NODES = (REWRITE, AGENT, RETRIEVE, GRADE_DOCUMENTS, WEB_SEARCH, GENERATE)

# Unconditional edges. `agent` and `gradeDocuments` branch on state.
_FIXED_TRANSITIONS: Dict[str, str] = {
    REWRITE: AGENT,
    RETRIEVE: GRADE_DOCUMENTS,
    WEB_SEARCH: GENERATE,
    GENERATE: END,
}

_POSSIBLE_TARGETS: Dict[str, List[str]] = {
    REWRITE: [AGENT],
    AGENT: [RETRIEVE, END],
    RETRIEVE: [GRADE_DOCUMENTS],
    GRADE_DOCUMENTS: [GENERATE, WEB_SEARCH],
    WEB_SEARCH: [GENERATE],
    GENERATE: [END],
}

# Marks grading messages built locally (no model call was made).
SYNTHETIC_MESSAGE_KEY = "synthetic"


class MissingToolMessageError(RuntimeError):
    """`generate` ran without any tool output: the graph was traversed along an invalid path."""


class RecommendationState(TypedDict):
    messages: Annotated[List[BaseMessage], add_messages]
    # True once grading decided the retrieved documents are good enough.
    skip_web_search: bool


def _truncate_text(value: str, limit: int) -> str:
    if limit <= 0:
        return ""
    if len(value) <= limit:
        return value
    return value[: max(limit - 1, 0)] + "…"


def _last_message(state: Mapping[str, Any]) -> Optional[BaseMessage]:
    messages = state.get("messages") or []
    return messages[-1] if messages else None


def _original_question(messages: Sequence[BaseMessage]) -> str:
    for message in messages:
        if getattr(message, "type", "") == "human":
            return content_to_text(message.content)
    return ""


def _is_grading_message(message: BaseMessage) -> bool:
    tool_calls = getattr(message, "tool_calls", None) or []
    return bool(tool_calls) and tool_calls[0].get("name") == core_settings.RELEVANCE_TOOL_NAME


def find_last_tool_message(messages: Sequence[BaseMessage]) -> Optional[BaseMessage]:
    for message in reversed(list(messages)):
        if getattr(message, "type", "") == "tool":
            return message
    return None


# ==================== Transitions ====================


def route_after_agent(state: Mapping[str, Any]) -> str:
    last = _last_message(state)
    tool_calls = getattr(last, "tool_calls", None) if last is not None else None
    if isinstance(tool_calls, list) and tool_calls:
        return RETRIEVE
    return END


def route_after_grading(state: Mapping[str, Any]) -> str:
    return GENERATE if bool(state.get("skip_web_search")) else WEB_SEARCH


def next_node(node: str, state: Mapping[str, Any]) -> str:
    """Pure transition function: which node runs after `node` given the current state."""
    if node == AGENT:
        return route_after_agent(state)
    if node == GRADE_DOCUMENTS:
        return route_after_grading(state)
    try:
        return _FIXED_TRANSITIONS[node]
    except KeyError:
        raise ValueError(f"unknown recommendation graph node: {node!r}") from None


def entry_node(*, enable_query_rewrite: bool) -> str:
    return REWRITE if enable_query_rewrite else AGENT


def relevance_tool_schema() -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": core_settings.RELEVANCE_TOOL_NAME,
            "description": core_settings.RELEVANCE_TOOL_DESCRIPTION,
            "parameters": {
                "type": "object",
                "properties": {
                    "binary_score": {
                        "type": "string",
                        "enum": ["yes", "no"],
                        "description": "Relevance score 'yes' or 'no'",
                    }
                },
                "required": ["binary_score"],
            },
        },
    }


def _read_binary_score(response: Any) -> str:
    tool_calls = getattr(response, "tool_calls", None) or []
    for call in tool_calls:
        if call.get("name") != core_settings.RELEVANCE_TOOL_NAME:
            continue
        args = call.get("args") or {}
        score = str(args.get("binary_score") or args.get("binaryScore") or "").strip().lower()
        if score in {"yes", "no"}:
            return score
    text = content_to_text(getattr(response, "content", "")).strip().lower()
    return "yes" if text.startswith("yes") else "no"


def _synthetic_grade(score: str, source: str) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[
            {
                "name": core_settings.RELEVANCE_TOOL_NAME,
                "args": {"binary_score": score},
                "id": f"{source}_grade_{int(time.time() * 1000)}",
            }
        ],
        additional_kwargs={SYNTHETIC_MESSAGE_KEY: True, "grade_source": source},
    )


class RecommendationGraph:
    """
    Agentic RAG workflow for mood/query driven recommendations.

    agent -> (retrieve -> gradeDocuments -> [generate | webSearch -> generate]) | END

    Nodes run strictly one after another; the conversation state is threaded through
    them by LangGraph using `next_node` for every edge.
    """

    def __init__(
        self,
        *,
        llm: Any | None = None,
        retriever_tool: Any | None = None,
        web_search: WebSearchTool | None = None,
        settings: Mapping[str, Any] | None = None,
    ) -> None:
        self._llm = llm
        self._retriever_tool = retriever_tool
        self.web_search = web_search or WebSearchTool()

        merged = dict(core_settings.RECOMMENDATION_SETTINGS)
        merged.update(dict(settings or {}))
        self.grade_min_chars = int(merged["grade_min_chars"])
        self.generate_context_max_chars = int(merged["generate_context_max_chars"])
        self.max_recommendations = int(merged["max_recommendations"])
        self.enable_query_rewrite = bool(merged["enable_query_rewrite"])
        self.recursion_limit = int(merged["recursion_limit"])

        self._grade_prompt = ChatPromptTemplate.from_template(GRADE_PROMPT)
        self._rewrite_prompt = ChatPromptTemplate.from_template(REWRITE_PROMPT)
        self._generate_prompt = ChatPromptTemplate.from_template(GENERATE_PROMPT)

        self._graph = self._build_graph()

    @property
    def llm(self) -> Any:
        if self._llm is None:
            self._llm = get_llm_model()
        return self._llm

    @property
    def retriever_tool(self) -> Any:
        if self._retriever_tool is None:
            from picks_agent.search.tool.retriever_tool import build_retriever_tool

            self._retriever_tool = build_retriever_tool()
        return self._retriever_tool

    def _build_graph(self):
        g = StateGraph(RecommendationState)
        g.add_node(REWRITE, self._rewrite_node)
        g.add_node(AGENT, self._agent_node)
        g.add_node(RETRIEVE, self._retrieve_node)
        g.add_node(GRADE_DOCUMENTS, self._grade_documents_node)
        g.add_node(WEB_SEARCH, self._web_search_node)
        g.add_node(GENERATE, self._generate_node)

        g.add_edge(START, entry_node(enable_query_rewrite=self.enable_query_rewrite))
        for node in NODES:
            g.add_conditional_edges(
                node,
                lambda state, _node=node: next_node(_node, state),
                _POSSIBLE_TARGETS[node],
            )
        return g.compile()

    async def astream_updates(
        self, messages: Sequence[BaseMessage]
    ) -> AsyncIterator[Tuple[str, Dict[str, Any]]]:
        """Yield `(node, update)` once per node execution."""
        inputs: Dict[str, Any] = {"messages": list(messages), "skip_web_search": False}
        config = {"recursion_limit": self.recursion_limit}
        async for chunk in self._graph.astream(inputs, config=config, stream_mode="updates"):
            if not isinstance(chunk, dict):
                continue
            for node, update in chunk.items():
                yield node, (update if isinstance(update, dict) else {})

    # ==================== Nodes ====================

    async def _rewrite_node(self, state: RecommendationState) -> Dict[str, Any]:
        logger.info("node=%s event=start", REWRITE)
        question = _original_question(state["messages"])
        prompt_messages = self._rewrite_prompt.format_messages(question=question)
        response = await self.llm.ainvoke(prompt_messages)
        improved = content_to_text(getattr(response, "content", "")).strip() or question
        return {"messages": [HumanMessage(content=improved, name=REWRITE)]}

    async def _agent_node(self, state: RecommendationState) -> Dict[str, Any]:
        logger.info("node=%s event=start", AGENT)
        messages = [m for m in state["messages"] if not _is_grading_message(m)]
        model = self.llm.bind_tools([self.retriever_tool])
        response = await model.ainvoke(messages)
        decision = RETRIEVE if getattr(response, "tool_calls", None) else "end"
        logger.info("node=%s event=decision next=%s", AGENT, decision)
        return {"messages": [response]}

    async def _retrieve_node(self, state: RecommendationState) -> Dict[str, Any]:
        logger.info("node=%s event=start", RETRIEVE)
        last = _last_message(state)
        tool_calls = list(getattr(last, "tool_calls", None) or [])
        tool = self.retriever_tool
        outputs: List[ToolMessage] = []
        for call in tool_calls:
            call_id = str(call.get("id") or f"retrieve_{int(time.time() * 1000)}")
            name = str(call.get("name") or "")
            if name != tool.name:
                outputs.append(
                    ToolMessage(
                        content=f"Unknown tool: {name}",
                        name=name or RETRIEVE,
                        tool_call_id=call_id,
                        status="error",
                    )
                )
                continue
            try:
                result = await tool.ainvoke(call.get("args") or {})
            except Exception as exc:
                logger.warning("node=%s event=tool_failed tool=%s", RETRIEVE, name, exc_info=True)
                outputs.append(
                    ToolMessage(
                        content=f"Retrieval failed: {exc}",
                        name=name,
                        tool_call_id=call_id,
                        status="error",
                    )
                )
                continue
            outputs.append(ToolMessage(content=content_to_text(result), name=name, tool_call_id=call_id))
        return {"messages": outputs}

    async def _grade_documents_node(self, state: RecommendationState) -> Dict[str, Any]:
        logger.info("node=%s event=start", GRADE_DOCUMENTS)
        messages = state["messages"]
        last_tool = find_last_tool_message(messages)
        context = content_to_text(getattr(last_tool, "content", "")) if last_tool is not None else ""

        if last_tool is None or getattr(last_tool, "status", "success") == "error":
            score, message = "no", _synthetic_grade("no", "tool_error")
        elif len(context.strip()) > self.grade_min_chars:
            score, message = "yes", _synthetic_grade("yes", "heuristic")
        else:
            prompt_messages = self._grade_prompt.format_messages(
                question=_original_question(messages),
                context=context,
            )
            model = self.llm.bind_tools(
                [relevance_tool_schema()],
                tool_choice=core_settings.RELEVANCE_TOOL_NAME,
            )
            message = await model.ainvoke(prompt_messages)
            score = _read_binary_score(message)

        relevant = score == "yes"
        logger.info(
            "node=%s event=decision relevant=%s next=%s",
            GRADE_DOCUMENTS,
            relevant,
            GENERATE if relevant else WEB_SEARCH,
        )
        return {"messages": [message], "skip_web_search": relevant}

    async def _web_search_node(self, state: RecommendationState) -> Dict[str, Any]:
        logger.info("node=%s event=start", WEB_SEARCH)
        question = _original_question(state["messages"])
        return {"messages": [await self.web_search.asearch(question)]}

    async def _generate_node(self, state: RecommendationState) -> Dict[str, Any]:
        logger.info("node=%s event=start", GENERATE)
        messages = state["messages"]
        last_tool = find_last_tool_message(messages)
        if last_tool is None:
            raise MissingToolMessageError("No tool message found in the conversation history")

        docs = _truncate_text(content_to_text(last_tool.content), self.generate_context_max_chars)
        prompt_messages = self._generate_prompt.format_messages(
            context=docs,
            question=_original_question(messages),
            max_recommendations=self.max_recommendations,
        )
        response = await self.llm.ainvoke(prompt_messages)
        return {"messages": [response]}


__all__ = [
    "RecommendationGraph",
    "RecommendationState",
    "MissingToolMessageError",
    "SYNTHETIC_MESSAGE_KEY",
    "NODES",
    "REWRITE",
    "AGENT",
    "RETRIEVE",
    "GRADE_DOCUMENTS",
    "WEB_SEARCH",
    "GENERATE",
    "entry_node",
    "find_last_tool_message",
    "next_node",
    "relevance_tool_schema",
    "route_after_agent",
    "route_after_grading",
]

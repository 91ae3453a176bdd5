from __future__ import annotations

from langchain_core.retrievers import BaseRetriever
from langchain_core.tools import BaseTool, create_retriever_tool

from picks_agent.config import settings as core_settings
from picks_agent.ports.models import get_embeddings_model
from picks_agent.ports.vector_store import get_media_retriever


def build_default_retriever(top_k: int | None = None) -> BaseRetriever:
    """Vector retriever over the movie/TV metadata index (top-k by similarity)."""
    return get_media_retriever(
        get_embeddings_model(),
        index_name=core_settings.VECTOR_INDEX_NAME,
        top_k=int(top_k or core_settings.RETRIEVER_TOP_K),
    )


def build_retriever_tool(retriever: BaseRetriever | None = None) -> BaseTool:
    """
    Wrap a retriever as the tool the agent node may request.

    The tool returns the retrieved documents' page contents joined by blank lines.
    """
    return create_retriever_tool(
        retriever if retriever is not None else build_default_retriever(),
        name=core_settings.RETRIEVER_TOOL_NAME,
        description=core_settings.RETRIEVER_TOOL_DESCRIPTION,
    )


__all__ = ["build_default_retriever", "build_retriever_tool"]

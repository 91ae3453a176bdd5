from __future__ import annotations

"""Media index provider for picks_agent ports.

Movie/TV metadata lives in a Neo4j vector index. Injected via `backend/infrastructure/bootstrap.py`.
"""

from typing import Any

from langchain_community.vectorstores import Neo4jVector

from infrastructure.config.settings import NEO4J_CONFIG, VECTOR_TEXT_NODE_PROPERTIES


def get_media_retriever(embeddings: Any, *, index_name: str, top_k: int) -> Any:
    kwargs: dict[str, Any] = {}
    if VECTOR_TEXT_NODE_PROPERTIES:
        kwargs["text_node_properties"] = list(VECTOR_TEXT_NODE_PROPERTIES)
    store = Neo4jVector.from_existing_index(
        embeddings,
        index_name=index_name,
        url=NEO4J_CONFIG["uri"],
        username=NEO4J_CONFIG["username"],
        password=NEO4J_CONFIG["password"],
        **kwargs,
    )
    return store.as_retriever(search_kwargs={"k": top_k})


__all__ = ["get_media_retriever"]

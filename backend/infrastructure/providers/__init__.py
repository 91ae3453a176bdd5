"""Infrastructure providers for picks_agent ports (models / vector store / web search)."""

__all__ = [
    "models",
    "vector_store",
    "web_search",
]

from __future__ import annotations

from typing import Any, Protocol


class MediaIndexProvider(Protocol):
    def get_media_retriever(self, embeddings: Any, *, index_name: str, top_k: int) -> Any:
        """Return a retriever over the movie/TV metadata index yielding the `top_k` closest documents."""
        ...


_media_index_provider: MediaIndexProvider | None = None


def set_vector_store_provider(provider: MediaIndexProvider) -> None:
    global _media_index_provider
    _media_index_provider = provider


def get_media_retriever(embeddings: Any, *, index_name: str, top_k: int) -> Any:
    if top_k <= 0:
        raise ValueError(f"top_k must be positive, got {top_k}")
    if _media_index_provider is None:
        raise RuntimeError(
            "Media index provider not configured. "
            "Call picks_agent.ports.set_vector_store_provider(...) before building the retriever tool."
        )
    return _media_index_provider.get_media_retriever(embeddings, index_name=index_name, top_k=top_k)


__all__ = [
    "MediaIndexProvider",
    "set_vector_store_provider",
    "get_media_retriever",
]

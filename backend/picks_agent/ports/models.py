from __future__ import annotations

from typing import Any, Protocol


class ModelProvider(Protocol):
    def get_llm_model(self) -> Any:
        """Chat model supporting `bind_tools(...)` and `ainvoke(messages)`."""
        ...

    def get_embeddings_model(self) -> Any:
        ...


_model_provider: ModelProvider | None = None


def set_model_provider(provider: ModelProvider) -> None:
    global _model_provider
    _model_provider = provider


def _resolve_model_provider() -> ModelProvider:
    if _model_provider is None:
        raise RuntimeError(
            "Model provider not configured. "
            "Call picks_agent.ports.set_model_provider(...) before using models."
        )
    return _model_provider


def get_llm_model() -> Any:
    return _resolve_model_provider().get_llm_model()


def get_embeddings_model() -> Any:
    return _resolve_model_provider().get_embeddings_model()



__all__ = [
    "ModelProvider",
    "set_model_provider",
    "get_llm_model",
    "get_embeddings_model",
]

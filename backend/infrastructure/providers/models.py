from __future__ import annotations

"""Models provider for picks_agent ports.

Injected via `backend/infrastructure/bootstrap.py`; a thin facade over
`backend/infrastructure/models/*`.
"""

from infrastructure.models.get_models import (  # noqa: F401
    get_embeddings_model,
    get_llm_model,
)

__all__ = [
    "get_llm_model",
    "get_embeddings_model",
]

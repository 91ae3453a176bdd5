from __future__ import annotations

"""
Infrastructure layer (no recommendation semantics).

Technical building blocks shared by the service layer: env config, model
factories, port providers, key-value storage backends, SSE and log helpers.
"""

__all__ = [
    "bootstrap",
    "config",
    "models",
    "persistence",
    "providers",
    "streaming",
    "utils",
]

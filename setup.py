from __future__ import annotations

from setuptools import find_packages, setup

_LANGCHAIN = [
    "langchain==0.3.21",
    "langchain_core==0.3.46",
    "langchain_community==0.3.20",
    "langgraph==0.3.18",
    "langsmith==0.3.18",
    "langchain_openai==0.3.9",
]
_GEMINI = ["langchain-google-genai"]
_NEO4J = ["neo4j"]
_SERVER = ["fastapi", "uvicorn", "python-dotenv"]

setup(
    # Core package name (library-first). The repository also hosts the service
    # layers under `backend/`, but the distributable here is the core only.
    name="picks-agent",
    version="0.1.0",
    # Repo convention: backend code lives under `backend/`.
    package_dir={"": "backend"},
    packages=find_packages(where="backend", include=["picks_agent", "picks_agent.*"]),
    python_requires=">=3.10",
    install_requires=[
        # Keep core deps minimal; optional capabilities are installed via extras.
        "pydantic==2.10.6",
        "pyyaml>=6.0",
        "typing_extensions",
    ],
    extras_require={
        # Optional: langchain stack (used by the recommendation graph and tools).
        "langchain": _LANGCHAIN,
        # Optional: Gemini chat/embeddings provider.
        "gemini": _GEMINI,
        # Optional: Neo4j vector index behind the retriever tool.
        "neo4j": _NEO4J,
        # Optional: FastAPI service layers (server/, config/, infrastructure/).
        "server": _SERVER,
        "test": ["pytest", "httpx"],
        # Convenience: all optional runtime deps.
        "full": _LANGCHAIN + _GEMINI + _NEO4J + _SERVER,
    },
)

from __future__ import annotations

import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

_DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "moods.yaml"
_CATALOG_CACHE: Tuple["MoodOption", ...] | None = None
MOOD_CATALOG_PATH_ENV = "MOOD_CATALOG_PATH"
MOOD_CATALOG_RELOAD_ENV = "MOOD_CATALOG_RELOAD"

_REQUIRED_FIELDS = ("id", "emoji", "label", "description", "prompt", "color")


@dataclass(frozen=True)
class MoodOption:
    id: str
    emoji: str
    label: str
    description: str
    prompt: str
    color: str

    def to_dict(self) -> Dict[str, str]:
        return {field: getattr(self, field) for field in _REQUIRED_FIELDS}


def _load_catalog(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return data if isinstance(data, dict) else {}


def _normalize_catalog(data: Dict[str, Any]) -> Tuple[MoodOption, ...]:
    raw_moods = data.get("moods", [])
    if not isinstance(raw_moods, list):
        return ()

    moods: List[MoodOption] = []
    seen: set[str] = set()
    for raw in raw_moods:
        if not isinstance(raw, dict):
            continue
        values = {field: raw.get(field) for field in _REQUIRED_FIELDS}
        if not all(isinstance(v, str) and v.strip() for v in values.values()):
            continue
        mood_id = values["id"].strip()
        if mood_id in seen:
            continue
        seen.add(mood_id)
        moods.append(MoodOption(**{k: v.strip() for k, v in values.items()}))
    return tuple(moods)


def _resolve_catalog_path(path: Path | None) -> Path:
    if path is not None:
        return path
    env_path = os.getenv(MOOD_CATALOG_PATH_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return _DEFAULT_CATALOG_PATH


def _should_reload(reload: bool | None) -> bool:
    if reload is not None:
        return reload
    env_value = os.getenv(MOOD_CATALOG_RELOAD_ENV, "").strip().lower()
    return env_value in {"1", "true", "yes", "on"}


def load_mood_catalog(path: Path | None = None) -> Tuple[MoodOption, ...]:
    return _normalize_catalog(_load_catalog(_resolve_catalog_path(path)))


def get_mood_options(
    reload: bool | None = None,
    path: Path | None = None,
) -> Tuple[MoodOption, ...]:
    global _CATALOG_CACHE
    if _CATALOG_CACHE is None or _should_reload(reload) or path is not None:
        _CATALOG_CACHE = load_mood_catalog(path)
    return _CATALOG_CACHE


def get_mood(mood_id: str) -> Optional[MoodOption]:
    for mood in get_mood_options():
        if mood.id == mood_id:
            return mood
    return None


def random_mood(rng: random.Random | None = None) -> MoodOption:
    """Pick a mood for "surprise me"."""
    moods = get_mood_options()
    if not moods:
        raise LookupError("mood catalog is empty")
    return (rng or random).choice(moods)


__all__ = [
    "MoodOption",
    "load_mood_catalog",
    "get_mood_options",
    "get_mood",
    "random_mood",
    "MOOD_CATALOG_PATH_ENV",
    "MOOD_CATALOG_RELOAD_ENV",
]

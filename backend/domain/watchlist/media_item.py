from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _MediaBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    poster_path: Optional[str] = None
    vote_average: float = 0.0

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Catalog APIs hand out numeric ids; the watchlist keys on strings.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class MovieItem(_MediaBase):
    kind: Literal["movie"] = "movie"
    title: str

    @property
    def display_title(self) -> str:
        return self.title


class TvShowItem(_MediaBase):
    kind: Literal["tv"] = "tv"
    name: str

    @property
    def display_title(self) -> str:
        return self.name


MediaItem = Annotated[Union[MovieItem, TvShowItem], Field(discriminator="kind")]

_MEDIA_ITEM_ADAPTER: TypeAdapter[Any] = TypeAdapter(MediaItem)


def _resolve_kind(data: Mapping[str, Any], kind: Optional[str]) -> str:
    for candidate in (kind, data.get("kind"), data.get("media_type")):
        if candidate in ("movie", "tv"):
            return str(candidate)
    if data.get("title"):
        return "movie"
    if data.get("name"):
        return "tv"
    raise ValueError("cannot determine media kind: expected a 'title' (movie) or 'name' (tv)")


def media_item_from_payload(raw: Mapping[str, Any], kind: Optional[str] = None) -> Union[MovieItem, TvShowItem]:
    """Tag an external movie/TV/trending payload with its kind.

    The kind comes from the explicit argument, then `kind`/`media_type` on the
    payload, and only then from which title field is present.
    """
    if not isinstance(raw, Mapping):
        raise ValueError("media payload must be an object")
    data = dict(raw)
    resolved = _resolve_kind(data, kind)
    data["kind"] = resolved
    if resolved == "movie" and not data.get("title"):
        data["title"] = data.get("name") or ""
    if resolved == "tv" and not data.get("name"):
        data["name"] = data.get("title") or ""
    return _MEDIA_ITEM_ADAPTER.validate_python(data)


__all__ = ["MovieItem", "TvShowItem", "MediaItem", "media_item_from_payload"]

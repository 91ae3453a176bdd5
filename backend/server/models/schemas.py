from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class RecommendationRequest(BaseModel):
    """自由文本推荐请求"""
    query: str = Field(..., min_length=1, description="Free-text description of what to watch")


class RecommendationResponse(BaseModel):
    """推荐结果（情绪或自由文本）"""
    query: str
    mood_id: Optional[str] = None
    success: bool
    content: Optional[str] = None
    recommendations: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
    throttled: bool = False
    nodes: List[str] = Field(default_factory=list)
    elapsed_s: float = 0.0


class MoodResponse(BaseModel):
    id: str
    emoji: str
    label: str
    description: str
    color: str
    prompt: str


class WatchlistAddRequest(BaseModel):
    """加入待看清单：media 为电影或剧集原始载荷"""
    media: Dict[str, Any] = Field(..., description="Movie or TV show payload (id, title/name, poster_path, vote_average)")
    media_type: Optional[Literal["movie", "tv"]] = Field(default=None, description="Overrides kind inference")
    watch_status: str = Field(default="plan_to_watch", description="plan_to_watch / currently_watching / watched")


class WatchlistStatusUpdateRequest(BaseModel):
    watch_status: str = Field(..., description="plan_to_watch / currently_watching / watched")


class WatchlistErrorResponse(BaseModel):
    type: str
    message: str
    user_message: str
    recoverable: bool


class WatchlistResponse(BaseModel):
    success: bool
    items: List[Dict[str, Any]] = Field(default_factory=list)
    warning: Optional[str] = None
    capacity: Optional[Dict[str, Any]] = None


class RecoveryResponse(BaseModel):
    success: bool
    message: str

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from application.recommendation import MoodRecommendationService, UnknownMoodError
from domain.recommendation import get_mood_options
from server.api.rest.dependencies import get_mood_service
from server.models.schemas import MoodResponse, RecommendationResponse

router = APIRouter(prefix="/api/v1", tags=["moods-v1"])


@router.get("/moods", response_model=List[MoodResponse])
async def list_moods() -> List[Dict[str, str]]:
    return [mood.to_dict() for mood in get_mood_options()]


@router.post("/moods/{mood_id}/recommendations", response_model=RecommendationResponse)
async def recommend_for_mood(
    mood_id: str,
    service: MoodRecommendationService = Depends(get_mood_service),
) -> Dict[str, Any]:
    """Run the recommendation graph with the mood's canned prompt."""
    try:
        result = await service.recommend_for_mood(mood_id)
    except UnknownMoodError:
        raise HTTPException(status_code=404, detail=f"unknown mood: {mood_id}")
    return result.to_dict()

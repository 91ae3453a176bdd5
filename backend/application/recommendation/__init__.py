from application.recommendation.mood_recommendation_service import (
    MoodRecommendationResult,
    MoodRecommendationService,
    UnknownMoodError,
    extract_final_answer,
)

__all__ = [
    "MoodRecommendationResult",
    "MoodRecommendationService",
    "UnknownMoodError",
    "extract_final_answer",
]

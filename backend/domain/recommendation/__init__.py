from domain.recommendation.moods import MoodOption, get_mood, get_mood_options, random_mood
from domain.recommendation.ranked import RankedRecommendation, parse_ranked_recommendations

__all__ = [
    "MoodOption",
    "get_mood",
    "get_mood_options",
    "random_mood",
    "RankedRecommendation",
    "parse_ranked_recommendations",
]

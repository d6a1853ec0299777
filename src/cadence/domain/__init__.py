# Domain Package
from .errors import CardNotFound, InvalidRating
from .models import CardStats, ReviewCard, ReviewEvent, ReviewOverview, StudyRecommendation
from .ports import CardRepository, ReviewLog

__all__ = [
    "ReviewCard",
    "ReviewEvent",
    "StudyRecommendation",
    "CardStats",
    "ReviewOverview",
    "InvalidRating",
    "CardNotFound",
    "CardRepository",
    "ReviewLog",
]

# Application Stats Package
from .metrics_calculator import MetricsCalculator
from .service import BatchReview, ReviewService

__all__ = ["MetricsCalculator", "ReviewService", "BatchReview"]

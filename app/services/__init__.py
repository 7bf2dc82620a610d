"""Business logic services."""

from app.services.adaptation_service import AdaptationService

__all__ = [
    "AdaptationService",
]

"""Database repositories."""

from app.db.repositories.key_value import KeyValueRepository
from app.db.repositories.adaptation_state import AdaptationStateRepository

__all__ = [
    "KeyValueRepository",
    "AdaptationStateRepository",
]

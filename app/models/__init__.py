"""SQLModel database models."""

from app.models.key_value import KeyValue

__all__ = [
    "KeyValue",
]

"""
Key-value database model.

Backs the small carried state of the engine (weights, health, race weeks,
last-run week key).  Values are stored as JSON.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class KeyValue(SQLModel, table=True):
    """One persisted key and its JSON value."""
    __tablename__ = "key_values"

    key: str = Field(primary_key=True, max_length=255)
    value: Any = Field(default=None, sa_column=Column(JSON, nullable=True))

    updated_at: datetime = Field(default_factory=datetime.utcnow)

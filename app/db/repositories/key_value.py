"""
Key-value repository.

Handles database operations for the KeyValue model.
"""

from datetime import datetime
from typing import Any, Optional

from sqlmodel import Session, select

from app.models.key_value import KeyValue


class KeyValueRepository:
    """Repository for JSON key-value storage."""

    def __init__(self, session: Session):
        """
        Initialize repository with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    def load(self, key: str, default: Any = None) -> Any:
        """
        Load the value stored under a key.

        Args:
            key: Storage key
            default: Returned when the key is absent

        Returns:
            Stored JSON value, or ``default``
        """
        entry = self.session.get(KeyValue, key)
        if entry is None:
            return default
        return entry.value

    def save(self, key: str, value: Any, commit: bool = True) -> KeyValue:
        """
        Insert or replace the value stored under a key.

        Args:
            key: Storage key
            value: JSON-serialisable value
            commit: Commit immediately (False to batch several saves)

        Returns:
            The persisted entry
        """
        entry = self.session.get(KeyValue, key)
        if entry is None:
            entry = KeyValue(key=key, value=value)
        else:
            entry.value = value
            entry.updated_at = datetime.utcnow()
        self.session.add(entry)
        if commit:
            self.session.commit()
            self.session.refresh(entry)
        return entry

    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if deleted, False if not found
        """
        entry = self.session.get(KeyValue, key)
        if entry:
            self.session.delete(entry)
            self.session.commit()
            return True
        return False

    def keys_with_prefix(self, prefix: str) -> list[str]:
        statement = select(KeyValue.key).where(KeyValue.key.startswith(prefix)).order_by(KeyValue.key)
        return list(self.session.exec(statement).all())

    def get_entry(self, key: str) -> Optional[KeyValue]:
        return self.session.get(KeyValue, key)

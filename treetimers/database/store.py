"""String-keyed durable storage on top of the ``store_entries`` table.

Every call opens its own session, so atomicity is per key only.  Callers
must treat any key as possibly absent.
"""

from __future__ import annotations

from sqlalchemy import select

from .db import get_session
from .models import StoreEntry


class KeyValueStore:
    """get / set / delete over string keys and string values."""

    def get(self, key: str) -> str | None:
        with get_session() as db:
            entry = db.get(StoreEntry, key)
            return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> None:
        with get_session() as db:
            entry = db.get(StoreEntry, key)
            if entry is None:
                db.add(StoreEntry(key=key, value=value))
            else:
                entry.value = value

    def delete(self, key: str) -> None:
        """Remove *key*.  Missing keys are ignored."""
        with get_session() as db:
            entry = db.get(StoreEntry, key)
            if entry is not None:
                db.delete(entry)

    def keys(self, prefix: str = "") -> list[str]:
        with get_session() as db:
            stmt = select(StoreEntry.key).order_by(StoreEntry.key)
            if prefix:
                stmt = stmt.where(StoreEntry.key.startswith(prefix, autoescape=True))
            return list(db.scalars(stmt))

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

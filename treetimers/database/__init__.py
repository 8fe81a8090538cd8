"""Database package."""

from .db import configure_engine, get_session, init_db
from .models import StoreEntry
from .store import KeyValueStore

__all__ = ["configure_engine", "get_session", "init_db", "StoreEntry", "KeyValueStore"]

"""SQLAlchemy ORM models for Tree Timers."""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class StoreEntry(Base):
    """One string-keyed value of the timer key-value store."""

    __tablename__ = "store_entries"

    key = Column(String(128), primary_key=True)  # e.g. "<uuid>-totalTime"
    value = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<StoreEntry key={self.key} value={self.value!r}>"

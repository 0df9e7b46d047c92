"""
SQLAlchemy ORM models for persistent storage.

The only persisted state is the name -> card cache, so a restart does not
have to re-resolve every card it has already seen.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CachedCardDB(Base):
    """
    A resolved card keyed by the canonical input name that produced it.

    Rows are append-only: a key is written once and never updated.
    """

    __tablename__ = "cached_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    canonical_name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    card_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255))

    # Scryfall-shaped card payload
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<CachedCardDB(key={self.canonical_name}, name={self.name})>"

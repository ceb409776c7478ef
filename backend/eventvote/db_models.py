from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from eventvote.db import Base


def utcnow() -> datetime:
    # Stored naive in UTC; SQLite drops tzinfo on the way back anyway.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(dt: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as ISO 8601 with a trailing ``Z``."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat() + "Z"


def new_public_id() -> str:
    return secrets.token_hex(16)


class Company(Base):
    __tablename__ = "companies"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, index=True, default=new_public_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "createdAt": isoformat_utc(self.created_at)}


class VotingSession(Base):
    __tablename__ = "voting_sessions"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, index=True, default=new_public_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # Ordered list of section dicts, see eventvote.models.Section
    sections: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "sections": self.sections,
            "isActive": self.is_active,
            "createdAt": isoformat_utc(self.created_at),
        }


class Vote(Base):
    __tablename__ = "votes"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voting_session_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    company_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # section id -> str | list[str]
    answers: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    ip_address: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    device_id: Mapped[str] = mapped_column(String(200), nullable=False)

    __table_args__ = (
        Index("idx_votes_device_session_ts", "device_id", "voting_session_id", "timestamp"),
    )

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from eventvote.db_models import Vote, utcnow


@dataclass
class ThrottleDecision:
    eligible: bool
    retry_after_minutes: int
    can_vote_again_at: datetime


class RevoteThrottle:
    """Allow one vote per device per voting session inside a cooldown window."""

    def __init__(self, window_seconds: int) -> None:
        self.window = timedelta(seconds=window_seconds)

    def _now(self) -> datetime:
        return utcnow()

    def decide(self, last_vote_at: Optional[datetime], now: datetime) -> ThrottleDecision:
        if last_vote_at is None or last_vote_at < now - self.window:
            return ThrottleDecision(eligible=True, retry_after_minutes=0, can_vote_again_at=now)
        unlock_at = last_vote_at + self.window
        minutes = math.ceil((unlock_at - now).total_seconds() / 60)
        return ThrottleDecision(eligible=False, retry_after_minutes=max(minutes, 1), can_vote_again_at=unlock_at)

    def last_vote_at(self, db: Session, device_id: str, session_id: str, now: datetime) -> Optional[datetime]:
        stmt = (
            select(Vote.timestamp)
            .where(
                Vote.device_id == device_id,
                Vote.voting_session_id == session_id,
                Vote.timestamp >= now - self.window,
            )
            .order_by(Vote.timestamp.desc())
            .limit(1)
        )
        return db.execute(stmt).scalars().first()

    def check_eligible(
        self, db: Session, device_id: str, session_id: str, now: Optional[datetime] = None
    ) -> ThrottleDecision:
        now = now or self._now()
        return self.decide(self.last_vote_at(db, device_id, session_id, now), now)

    def next_vote_at(self, voted_at: datetime) -> datetime:
        return voted_at + self.window


__all__ = ["ThrottleDecision", "RevoteThrottle"]

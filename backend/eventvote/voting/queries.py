from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from eventvote.core.errors import NotFound
from eventvote.db_models import Company, Vote, VotingSession
from eventvote.models import Section


def get_company(db: Session, company_id: str) -> Company:
    company = db.execute(select(Company).where(Company.id == company_id)).scalars().first()
    if company is None:
        raise NotFound("Company not found")
    return company


def get_voting_session(db: Session, session_id: str) -> VotingSession:
    session = db.execute(select(VotingSession).where(VotingSession.id == session_id)).scalars().first()
    if session is None:
        raise NotFound("Voting session not found")
    return session


def current_voting_session(db: Session) -> Optional[VotingSession]:
    # Newest first in case an older deployment left more than one active.
    stmt = (
        select(VotingSession)
        .where(VotingSession.is_active.is_(True))
        .order_by(VotingSession.created_at.desc(), VotingSession.pk.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def load_sections(session: VotingSession) -> List[Section]:
    return [Section.model_validate(s) for s in session.sections or []]


def count_votes(db: Session, session_id: Optional[str] = None, company_id: Optional[str] = None) -> int:
    stmt = select(func.count()).select_from(Vote)
    if session_id is not None:
        stmt = stmt.where(Vote.voting_session_id == session_id)
    if company_id is not None:
        stmt = stmt.where(Vote.company_id == company_id)
    return int(db.execute(stmt).scalar_one())


def list_votes(db: Session, session_id: str, company_id: Optional[str] = None) -> List[Vote]:
    stmt = select(Vote).where(Vote.voting_session_id == session_id)
    if company_id is not None:
        stmt = stmt.where(Vote.company_id == company_id)
    stmt = stmt.order_by(Vote.timestamp.asc(), Vote.pk.asc())
    return list(db.execute(stmt).scalars().all())


def activate_only(db: Session, session_id: str) -> None:
    """
    Mark ``session_id`` active and every other session inactive.

    One UPDATE statement, so no reader can see zero or two active sessions.
    The caller commits.
    """
    db.execute(
        update(VotingSession)
        .values(is_active=(VotingSession.id == session_id))
        .execution_options(synchronize_session=False)
    )


__all__ = [
    "get_company",
    "get_voting_session",
    "current_voting_session",
    "load_sections",
    "count_votes",
    "list_votes",
    "activate_only",
]

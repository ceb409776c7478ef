from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from eventvote.core.errors import Throttled, ValidationFailed
from eventvote.core.limits import limiter, vote_limit
from eventvote.core.logger import vote_logger as logger
from eventvote.db import get_db
from eventvote.db_models import Vote, VotingSession, isoformat_utc, utcnow
from eventvote.models import CompanyOut, VotePayload, VoteResponse
from eventvote.security import get_pii_cipher
from eventvote.security.pii import PiiCipher
from eventvote.voting import RevoteThrottle, tally, validate_answers
from eventvote.voting.queries import (
    count_votes,
    current_voting_session,
    get_company,
    get_voting_session,
    list_votes,
    load_sections,
)

router = APIRouter(prefix="/api", tags=["public"])


def get_throttle(request: Request) -> RevoteThrottle:
    return request.app.state.throttle


def _client_ip(request: Request) -> str:
    client = request.client
    return client.host if client and client.host else "0.0.0.0"


@router.get("/company/{company_id}", response_model=CompanyOut)
def get_company_info(company_id: str, db: Session = Depends(get_db)):
    company = get_company(db, company_id)
    return CompanyOut(id=company.id, name=company.name)


@router.get("/voting/{company_id}")
def get_current_voting(
    company_id: str,
    device_id: Optional[str] = Query(default=None, alias="deviceId"),
    db: Session = Depends(get_db),
    throttle: RevoteThrottle = Depends(get_throttle),
) -> Dict[str, Any]:
    company = get_company(db, company_id)
    session = current_voting_session(db)
    if session is None:
        return {"active": False}

    out: Dict[str, Any] = {
        "active": True,
        "id": session.id,
        "title": session.title,
        "date": session.date,
        "sections": session.sections,
        "totalVotes": count_votes(db, session_id=session.id),
        "companyVotes": count_votes(db, session_id=session.id, company_id=company.id),
        "companyName": company.name,
    }
    if device_id:
        decision = throttle.check_eligible(db, device_id, session.id)
        out["canVote"] = decision.eligible
        out["timeLeft"] = decision.retry_after_minutes
        out["canVoteAgainAt"] = isoformat_utc(decision.can_vote_again_at)
    return out


@router.post("/vote", response_model=VoteResponse)
@limiter.limit(vote_limit)
def submit_vote(
    request: Request,
    payload: VotePayload,
    db: Session = Depends(get_db),
    throttle: RevoteThrottle = Depends(get_throttle),
    cipher: PiiCipher = Depends(get_pii_cipher),
) -> VoteResponse:
    company = get_company(db, payload.companyId)

    stmt = select(VotingSession).where(
        VotingSession.id == payload.votingSessionId, VotingSession.is_active.is_(True)
    )
    session = db.execute(stmt).scalars().first()
    if session is None:
        raise ValidationFailed("Invalid or expired voting session")

    device_id = (payload.deviceId or "").strip()
    if not device_id:
        raise ValidationFailed("Device ID is required")

    answers = validate_answers(load_sections(session), payload.votes)

    now = utcnow()
    decision = throttle.check_eligible(db, device_id, session.id, now)
    if not decision.eligible:
        logger.info(
            f"Throttled vote session={session.id} company={company.id} device={device_id} "
            f"retry_after={decision.retry_after_minutes}m"
        )
        raise Throttled(decision.retry_after_minutes)

    vote = Vote(
        voting_session_id=session.id,
        company_id=company.id,
        answers=answers,
        timestamp=now,
        ip_address=cipher.protect(_client_ip(request)),
        device_id=device_id,
    )
    db.add(vote)
    db.commit()
    logger.info(f"Vote accepted session={session.id} company={company.id} device={device_id}")

    return VoteResponse(
        success=True,
        message="Vote submitted successfully",
        canVoteAgainAt=isoformat_utc(throttle.next_vote_at(now)),
    )


def _results(db: Session, session: VotingSession, company_id: Optional[str] = None) -> Dict[str, Any]:
    company = get_company(db, company_id) if company_id is not None else None
    votes = list_votes(db, session.id, company_id=company_id)
    result = tally(load_sections(session), votes)
    out: Dict[str, Any] = {
        "active": session.is_active,
        "title": session.title,
        "date": session.date,
        "results": result.to_dict(),
        "totalVotes": result.total_votes,
    }
    if company is not None:
        out["company"] = company.name
    return out


@router.get("/results/{voting_session_id}")
def get_results(voting_session_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return _results(db, get_voting_session(db, voting_session_id))


@router.get("/results/{voting_session_id}/company/{company_id}")
def get_company_results(voting_session_id: str, company_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return _results(db, get_voting_session(db, voting_session_id), company_id=company_id)

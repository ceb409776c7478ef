from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from eventvote.core.errors import Unauthorized
from eventvote.core.limits import limiter, login_limit
from eventvote.core.logger import auth_logger
from eventvote.db import get_db
from eventvote.db_models import Company, Vote, VotingSession, isoformat_utc
from eventvote.models import CreateCompanyPayload, CreateVotingPayload, LoginPayload, LoginResponse
from eventvote.security import get_admin_secret, get_pii_cipher, get_token_store, require_admin
from eventvote.security.passwords import AdminSecret
from eventvote.security.pii import PiiCipher
from eventvote.security.tokens import TokenStore
from eventvote.voting.queries import (
    activate_only,
    count_votes,
    current_voting_session,
    get_company,
    get_voting_session,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _client_ip(request: Request) -> str:
    client = request.client
    return client.host if client and client.host else "0.0.0.0"


# ---------------- Session ----------------
@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_limit)
def login(
    request: Request,
    payload: LoginPayload,
    secret: AdminSecret = Depends(get_admin_secret),
    store: TokenStore = Depends(get_token_store),
) -> LoginResponse:
    ip = _client_ip(request)
    if not secret.matches(payload.password):
        auth_logger.warning(f"Failed admin login from IP {ip} Password:[REDACTED]")
        raise Unauthorized("Invalid password")
    token = store.issue()
    auth_logger.info(f"Successful admin login from IP {ip}")
    return LoginResponse(token=token)


@router.get("/verify")
def verify(_: str = Depends(require_admin)):
    return {"valid": True}


@router.post("/logout")
def logout(token: str = Depends(require_admin), store: TokenStore = Depends(get_token_store)):
    store.revoke(token)
    auth_logger.info("Admin token revoked")
    return {"success": True}


# ---------------- Companies ----------------
@router.post("/create-company")
def create_company(
    payload: CreateCompanyPayload, db: Session = Depends(get_db), _: str = Depends(require_admin)
):
    company = Company(name=payload.name)
    db.add(company)
    db.commit()
    auth_logger.info(f"Company created id={company.id} name={company.name!r}")
    return {"success": True, "message": "Company created successfully", "company": company.to_dict()}


@router.get("/companies")
def list_companies(db: Session = Depends(get_db), _: str = Depends(require_admin)) -> List[Dict[str, Any]]:
    stmt = select(Company).order_by(Company.created_at.desc(), Company.pk.desc())
    return [c.to_dict() for c in db.execute(stmt).scalars().all()]


@router.delete("/companies/{company_id}")
def delete_company(company_id: str, db: Session = Depends(get_db), _: str = Depends(require_admin)):
    company = get_company(db, company_id)
    result = db.execute(delete(Vote).where(Vote.company_id == company.id))
    db.delete(company)
    db.commit()
    auth_logger.info(f"Company deleted id={company_id} votes_removed={result.rowcount}")
    return {
        "success": True,
        "message": "Company and all related data deleted successfully",
        "deletedVotes": result.rowcount,
    }


# ---------------- Voting sessions ----------------
@router.post("/create-voting")
def create_voting(
    payload: CreateVotingPayload, db: Session = Depends(get_db), _: str = Depends(require_admin)
):
    session = VotingSession(
        title=payload.title,
        date=payload.date,
        sections=[s.model_dump() for s in payload.sections],
        is_active=False,
    )
    db.add(session)
    db.flush()
    if payload.activate:
        activate_only(db, session.id)
    db.commit()
    db.refresh(session)
    auth_logger.info(f"Voting session created id={session.id} active={session.is_active}")
    return {"success": True, "message": "Voting session created successfully", "voting": session.to_dict()}


@router.get("/voting-sessions")
def list_voting_sessions(db: Session = Depends(get_db), _: str = Depends(require_admin)) -> List[Dict[str, Any]]:
    stmt = select(VotingSession).order_by(VotingSession.created_at.desc(), VotingSession.pk.desc())
    out = []
    for s in db.execute(stmt).scalars().all():
        data = s.to_dict()
        data["totalVotes"] = count_votes(db, session_id=s.id)
        out.append(data)
    return out


@router.patch("/voting/{voting_session_id}/toggle")
def toggle_voting(voting_session_id: str, db: Session = Depends(get_db), _: str = Depends(require_admin)):
    session = get_voting_session(db, voting_session_id)
    if session.is_active:
        session.is_active = False
    else:
        activate_only(db, session.id)
    db.commit()
    db.refresh(session)
    state = "activated" if session.is_active else "deactivated"
    auth_logger.info(f"Voting session {state} id={session.id}")
    return {"success": True, "message": f"Voting session {state}", "session": session.to_dict()}


@router.post("/reset-voting/{voting_session_id}")
def reset_voting(voting_session_id: str, db: Session = Depends(get_db), _: str = Depends(require_admin)):
    session = get_voting_session(db, voting_session_id)
    result = db.execute(delete(Vote).where(Vote.voting_session_id == session.id))
    db.commit()
    auth_logger.info(f"Voting session reset id={session.id} votes_removed={result.rowcount}")
    return {"success": True, "message": "Voting session reset successfully", "deletedVotes": result.rowcount}


# ---------------- Stats ----------------
@router.get("/stats")
def stats(db: Session = Depends(get_db), _: str = Depends(require_admin)) -> Dict[str, Any]:
    current = current_voting_session(db)
    per_company = dict(
        db.execute(select(Vote.company_id, func.count()).group_by(Vote.company_id)).all()
    )
    in_session: Dict[str, int] = {}
    if current is not None:
        in_session = dict(
            db.execute(
                select(Vote.company_id, func.count())
                .where(Vote.voting_session_id == current.id)
                .group_by(Vote.company_id)
            ).all()
        )

    companies = db.execute(select(Company).order_by(Company.created_at.desc(), Company.pk.desc())).scalars().all()
    return {
        "activeSession": (
            {"id": current.id, "title": current.title, "totalVotes": count_votes(db, session_id=current.id)}
            if current is not None
            else None
        ),
        "totalSessions": int(db.execute(select(func.count()).select_from(VotingSession)).scalar_one()),
        "companies": [
            {
                "company": c.to_dict(),
                "totalVotes": int(per_company.get(c.id, 0)),
                "activeSessionVotes": int(in_session.get(c.id, 0)),
            }
            for c in companies
        ],
    }


@router.get("/stats/{company_id}")
def company_stats(
    company_id: str,
    db: Session = Depends(get_db),
    cipher: PiiCipher = Depends(get_pii_cipher),
    _: str = Depends(require_admin),
) -> Dict[str, Any]:
    company = get_company(db, company_id)
    current = current_voting_session(db)
    if current is None:
        return {"active": False, "company": company.name}

    recent = (
        db.execute(
            select(Vote)
            .where(Vote.voting_session_id == current.id, Vote.company_id == company.id)
            .order_by(Vote.timestamp.desc(), Vote.pk.desc())
            .limit(10)
        )
        .scalars()
        .all()
    )
    return {
        "active": True,
        "company": company.name,
        "session": current.to_dict(),
        "totalVotes": count_votes(db, session_id=current.id, company_id=company.id),
        "recentVotes": [
            {
                "answers": v.answers,
                "timestamp": isoformat_utc(v.timestamp),
                "deviceId": v.device_id,
                "ipAddress": cipher.reveal(v.ip_address),
            }
            for v in recent
        ],
    }

from typing import Optional

from fastapi import Depends, Request

from eventvote.core.errors import Unauthorized
from eventvote.security.passwords import AdminSecret
from eventvote.security.pii import PiiCipher
from eventvote.security.tokens import TokenStore


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_admin_secret(request: Request) -> AdminSecret:
    return request.app.state.admin_secret


def get_pii_cipher(request: Request) -> PiiCipher:
    return request.app.state.pii_cipher


def bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization", "")
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def require_admin(request: Request, store: TokenStore = Depends(get_token_store)) -> str:
    """Return the presented admin token, or reject with 401."""
    token = bearer_token(request)
    if not token or not store.verify(token):
        raise Unauthorized()
    return token


__all__ = [
    "get_token_store",
    "get_admin_secret",
    "get_pii_cipher",
    "bearer_token",
    "require_admin",
]

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from typing import Optional, Set


class TokenStore(ABC):
    """Interface for admin bearer token storage."""

    @abstractmethod
    def issue(self) -> str:
        ...

    @abstractmethod
    def verify(self, token: Optional[str]) -> bool:
        ...

    @abstractmethod
    def revoke(self, token: str) -> None:
        ...


class InMemoryTokenStore(TokenStore):
    """Tokens live for the lifetime of the process; nothing expires."""

    TOKEN_BYTES = 32

    def __init__(self) -> None:
        self._tokens: Set[str] = set()

    def issue(self) -> str:
        token = secrets.token_hex(self.TOKEN_BYTES)
        self._tokens.add(token)
        return token

    def verify(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return token in self._tokens

    def revoke(self, token: str) -> None:
        self._tokens.discard(token)

    def clear(self) -> None:
        self._tokens.clear()


__all__ = ["TokenStore", "InMemoryTokenStore"]

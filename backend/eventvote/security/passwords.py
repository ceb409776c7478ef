from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from passlib.hash import argon2


# Explicit Argon2id configuration
_argon = argon2.using(type="ID", time_cost=3, memory_cost=65536, parallelism=2)


def _pepperize(password: str, pepper: str) -> str:
    if not pepper:
        return password
    # Use HMAC-SHA256 to combine the password with the pepper
    return hmac.new(pepper.encode("utf-8"), password.encode("utf-8"), hashlib.sha256).hexdigest()


def hash_password(password: str, pepper: str = "") -> str:
    return _argon.hash(_pepperize(password, pepper))


def verify_password(password: str, password_hash: str, pepper: str = "") -> bool:
    try:
        return _argon.verify(_pepperize(password, pepper), password_hash)
    except (ValueError, TypeError):
        return False


class AdminSecret:
    """
    The shared admin password, held only as an Argon2id hash.

    ``None`` means no password was configured and every login is refused.
    """

    def __init__(self, password: Optional[str], pepper: str = "") -> None:
        self._pepper = pepper
        self._hash = hash_password(password, pepper) if password else None

    @property
    def configured(self) -> bool:
        return self._hash is not None

    def matches(self, candidate: str) -> bool:
        if self._hash is None or not candidate:
            return False
        return verify_password(candidate, self._hash, self._pepper)


__all__ = ["hash_password", "verify_password", "AdminSecret"]

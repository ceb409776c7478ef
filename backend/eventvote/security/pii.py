"""
At-rest protection for voter IP addresses.

With ``PII_KEY`` set (a Fernet key, see ``generate_new_key``) addresses are
stored as Fernet ciphertext; without it they are stored as-is.
"""

from __future__ import annotations

from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from eventvote.core.logger import app_logger as logger


def generate_new_key() -> str:
    """Utility function to generate a new Fernet key string."""
    return Fernet.generate_key().decode()


class PiiCipher:
    def __init__(self, key: Optional[Union[str, bytes]]) -> None:
        if isinstance(key, str):
            key = key.encode()
        self._fernet = Fernet(key) if key else None

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    def protect(self, plaintext: Optional[str]) -> Optional[str]:
        if plaintext is None or self._fernet is None:
            return plaintext
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def reveal(self, stored: Optional[str]) -> Optional[str]:
        if stored is None or self._fernet is None:
            return stored
        try:
            return self._fernet.decrypt(stored.encode("ascii")).decode("utf-8")
        except InvalidToken:
            # Written before a key was configured, or with a different key.
            logger.warning("Could not decrypt stored IP address; key may have changed")
            return None


__all__ = ["PiiCipher", "generate_new_key"]

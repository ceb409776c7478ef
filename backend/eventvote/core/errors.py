"""
Domain errors raised by routers and services.

Each error carries the HTTP status it maps to; ``eventvote.main`` registers a
single handler that renders them as ``{"message": ...}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VotingError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> Dict[str, Any]:
        return {"message": self.message}

    def headers(self) -> Optional[Dict[str, str]]:
        return None


class NotFound(VotingError):
    status_code = 404


class ValidationFailed(VotingError):
    status_code = 400


class Unauthorized(VotingError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Throttled(VotingError):
    """Device voted too recently; ``retry_after_minutes`` is rounded up."""

    status_code = 429

    def __init__(self, retry_after_minutes: int, message: Optional[str] = None) -> None:
        if message is None:
            message = f"You have already voted. Please wait {retry_after_minutes} minutes before voting again."
        super().__init__(message)
        self.retry_after_minutes = retry_after_minutes

    def payload(self) -> Dict[str, Any]:
        return {"message": self.message, "timeLeft": self.retry_after_minutes}

    def headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after_minutes * 60)}


__all__ = ["VotingError", "NotFound", "ValidationFailed", "Unauthorized", "Throttled"]

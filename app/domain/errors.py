# app/domain/errors.py
from __future__ import annotations
from typing import Any, Dict, List, Optional


class VeritasError(Exception):
    """Base error. `status_code` is the HTTP status the API layer maps it to."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def error(self) -> str:
        return type(self).__name__

    def detail(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, **self.detail()}


class ValidationError(VeritasError):
    status_code = 400


class PointerTooLarge(VeritasError):
    status_code = 400

    def __init__(self, length: int, limit: int):
        super().__init__(
            f"Encoded pointer is {length} bytes, ledger limit is {limit} bytes; "
            "shorten the tag id or use a shorter content address"
        )
        self.length = length
        self.limit = limit

    def detail(self):
        return {"length": self.length, "limit": self.limit}


class SessionRequired(VeritasError):
    status_code = 401


class NotFound(VeritasError):
    status_code = 404


class LedgerRejected(VeritasError):
    status_code = 422

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status

    def detail(self):
        return {"status": self.status}


class LedgerUnavailable(VeritasError):
    status_code = 503


class ContentStoreUnreachable(VeritasError):
    status_code = 502

    def __init__(self, content_address: str, attempts: List[Dict[str, Any]] | None = None, cause: str | None = None):
        attempts = attempts or []
        endpoints = [a.get("endpoint") for a in attempts]
        super().__init__(
            cause or f"Content {content_address} unreachable on {len(endpoints)} endpoint(s): {', '.join(endpoints) or '-'}"
        )
        self.content_address = content_address
        self.attempts = attempts

    def detail(self):
        return {"contentAddress": self.content_address, "attempts": self.attempts}


class PinningFailed(VeritasError):
    status_code = 502

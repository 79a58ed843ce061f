# services/errors.py
"""
Error taxonomy shared by the stores and the portfolio service.

Each error knows the HTTP status and the short "error" label the API
returns; main.py turns them into the JSON error envelope.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional


class PortfolioError(Exception):
    status_code = 500
    error = "Internal Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error, "message": self.message}


class ValidationError(PortfolioError):
    """Input failed one or more field constraints. Carries every violation."""

    status_code = 400
    error = "Validation Error"

    def __init__(self, details: Iterable[Dict[str, str]], message: str = "Invalid input"):
        super().__init__(message)
        self.details: List[Dict[str, str]] = list(details)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message=message)

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["details"] = self.details
        return payload


class NotFoundError(PortfolioError):
    status_code = 404
    error = "Not Found"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.identifier = identifier


class InsufficientBalanceError(PortfolioError):
    status_code = 400
    error = "Insufficient balance"

    def __init__(self, requested: float, balance: float):
        super().__init__(f"Cannot withdraw ${requested:,.2f}. Current balance: ${balance:,.2f}")
        self.requested = requested
        self.balance = balance


class InternalFailure(PortfolioError):
    """A compensating step failed; holdings and ledger may disagree."""

    status_code = 500
    error = "Internal Failure"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

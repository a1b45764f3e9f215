"""
Business logic services.
"""
from app.services.credit_service import CreditService
from app.services.errors import (
    LedgerError,
    InvalidOwnerError,
    InvalidAmountError,
    UnknownPlanTokenError,
    InsufficientCreditsError,
    ConcurrentLedgerUpdateError,
)

__all__ = [
    "CreditService",
    "LedgerError",
    "InvalidOwnerError",
    "InvalidAmountError",
    "UnknownPlanTokenError",
    "InsufficientCreditsError",
    "ConcurrentLedgerUpdateError",
]

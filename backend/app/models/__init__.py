"""
Database models package.
"""
from app.models.base import Base
from app.models.user import User
from app.models.credit_batch import CreditBatch, CreditTier
from app.models.credit_usage import CreditUsage
from app.models.payment import Payment

__all__ = [
    "Base",
    "User",
    "CreditBatch",
    "CreditTier",
    "CreditUsage",
    "Payment",
]

"""
Repository layer for database operations.
Provides higher-level abstractions for ledger queries.
"""
from app.repositories.credit_repository import CreditRepository

__all__ = ["CreditRepository"]

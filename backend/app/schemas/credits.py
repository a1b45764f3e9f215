"""
Pydantic schemas for credit ledger endpoints.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class BalanceResponse(BaseModel):
    """Remaining credits across unexpired batches."""
    user_id: str
    credits: int


class CreditBatchResponse(BaseModel):
    """Schema for a credit batch."""
    id: str
    credits: int
    used_credits: int
    available: int
    subscription_type: str
    expires_at: datetime
    created_at: datetime
    active: bool

    class Config:
        from_attributes = True


class CreditBatchListResponse(BaseModel):
    batches: List[CreditBatchResponse]


class CreditUsageResponse(BaseModel):
    """Schema for a single usage record."""
    id: str
    batch_id: str
    credits_used: int
    assignment_name: str
    assignment_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CreditUsageListResponse(BaseModel):
    usage: List[CreditUsageResponse]


class CreditCheckResponse(BaseModel):
    """Response for a pre-flight credit check."""
    has_enough_credits: bool
    current_balance: int
    required_credits: int
    deficit: Optional[int] = None  # If not enough, how many more needed


class CreditCostsResponse(BaseModel):
    costs: Dict[str, int]
    default_cost: int


class GrantCreditsRequest(BaseModel):
    """Request schema for the test-credits action."""
    credits: int = Field(..., ge=0, description="Batch size")
    subscription_type: str = Field("free", description="Credit tier (free, student, pro, ...)")
    expiry_days: int = Field(30, description="Lifetime in days, used only for free credits")


class GrantCreditsResponse(BaseModel):
    batch_id: str
    credits: int
    balance: int

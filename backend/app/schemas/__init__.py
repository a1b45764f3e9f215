"""
Pydantic schemas for API request/response validation.
"""
from app.schemas.credits import (
    BalanceResponse,
    CreditBatchResponse,
    CreditBatchListResponse,
    CreditUsageResponse,
    CreditUsageListResponse,
    CreditCheckResponse,
    CreditCostsResponse,
    GrantCreditsRequest,
    GrantCreditsResponse,
)
from app.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
)

__all__ = [
    "BalanceResponse",
    "CreditBatchResponse",
    "CreditBatchListResponse",
    "CreditUsageResponse",
    "CreditUsageListResponse",
    "CreditCheckResponse",
    "CreditCostsResponse",
    "GrantCreditsRequest",
    "GrantCreditsResponse",
    "AnalysisRequest",
    "AnalysisResponse",
]

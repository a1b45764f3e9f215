"""
Credit ledger endpoints.
Balance, batch and usage history for the authenticated user.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config import settings
from app.database import get_db
from app.models.base import utcnow
from app.models.user import User
from app.auth.dependencies import get_current_user
from app.services.credit_service import CreditService
from app.services.errors import InvalidAmountError, InvalidOwnerError
from app.services.plans import CREDIT_COSTS, DEFAULT_OPERATION_COST
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

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=BalanceResponse)
async def get_credits(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get remaining credits for authenticated user.
    Requires valid Firebase JWT token.
    """
    balance = await CreditService.get_balance(db, current_user.id)
    return BalanceResponse(credits=balance, user_id=current_user.id)


@router.get("/batches", response_model=CreditBatchListResponse)
async def list_batches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List all credit batches, soonest-expiring first."""
    batches = await CreditService.list_batches(db, current_user.id)
    now = utcnow()
    return CreditBatchListResponse(
        batches=[
            CreditBatchResponse(
                id=b.id,
                credits=b.credits,
                used_credits=b.used_credits,
                available=b.available,
                subscription_type=b.subscription_type,
                expires_at=b.expires_at,
                created_at=b.created_at,
                active=b.is_active(now),
            )
            for b in batches
        ]
    )


@router.get("/usage", response_model=CreditUsageListResponse)
async def list_usage(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Most recent credit usage first."""
    records = await CreditService.list_usage(db, current_user.id, limit)
    return CreditUsageListResponse(
        usage=[CreditUsageResponse.model_validate(r) for r in records]
    )


@router.get("/check", response_model=CreditCheckResponse)
async def check_credits(
    required: int = Query(..., ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Check whether the user can afford an operation costing `required` credits."""
    balance = await CreditService.get_balance(db, current_user.id)
    has_enough = balance >= required
    return CreditCheckResponse(
        has_enough_credits=has_enough,
        current_balance=balance,
        required_credits=required,
        deficit=None if has_enough else required - balance,
    )


@router.get("/costs", response_model=CreditCostsResponse)
async def get_costs():
    """Credit cost of each operation kind. Public information."""
    return CreditCostsResponse(costs=dict(CREDIT_COSTS), default_cost=DEFAULT_OPERATION_COST)


@router.post("/grant", response_model=GrantCreditsResponse, status_code=status.HTTP_201_CREATED)
async def grant_credits(
    request: GrantCreditsRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Add a credit batch to the current user.

    Test action for development environments; disabled in production where
    credits only come from the payment webhook.
    """
    if settings.environment == "production":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Granting credits is disabled in production"
        )

    try:
        batch_id = await CreditService.allocate(
            db,
            user_id=current_user.id,
            amount=request.credits,
            tier=request.subscription_type,
            expiry_days=request.expiry_days,
        )
    except InvalidOwnerError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidAmountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    balance = await CreditService.get_balance(db, current_user.id)
    logger.info(f"Granted {request.credits} test credits to user {current_user.id}")
    return GrantCreditsResponse(batch_id=batch_id, credits=request.credits, balance=balance)

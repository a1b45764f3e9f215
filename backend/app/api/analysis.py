"""
Grading analysis endpoint.
Charges credits for each analysis: pre-flight balance check, grade, then deduct.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.ai.base import GradingProvider
from app.ai.factory import get_grading_provider
from app.database import get_db
from app.models.user import User
from app.auth.dependencies import get_current_user
from app.services.credit_service import CreditService
from app.services.errors import ConcurrentLedgerUpdateError
from app.schemas.analysis import AnalysisRequest, AnalysisResponse
from app.utils.logging import log_deduction_shortfall
from app.utils.metrics import analysis_requests_total, credit_deduction_shortfall_total

router = APIRouter()
logger = logging.getLogger(__name__)


def grading_provider() -> GradingProvider:
    """Dependency resolving the grading provider, 503 when it is not configured."""
    try:
        return get_grading_provider()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )


@router.post("", response_model=AnalysisResponse)
async def analyze_submission(
    request: AnalysisRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: GradingProvider = Depends(grading_provider),
):
    """
    Grade a submission and charge the user for it.

    Flow:
    1. Look up the cost of the requested operation
    2. Reject with 402 if the balance cannot cover it
    3. Run the analysis
    4. Deduct the credits

    If the deduction fails after the analysis already ran, the result is
    still returned with credits_charged=false and the shortfall is logged.
    """
    # deduct() may roll back the session, which expires current_user
    user_id = current_user.id
    required = CreditService.get_credit_cost(request.operation)

    balance = await CreditService.get_balance(db, user_id)
    if balance < required:
        analysis_requests_total.labels(operation=request.operation, status="insufficient_credits").inc()
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=f"Insufficient credits. This analysis requires {required} credits."
        )

    try:
        result = await run_in_threadpool(provider.analyze, request.content, request.assignment_name)
    except Exception as e:
        analysis_requests_total.labels(operation=request.operation, status="failed").inc()
        logger.error(f"Analysis failed for user {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Analysis failed: {str(e)}"
        )

    shortfall_error = None
    try:
        charged = await CreditService.deduct(
            db,
            user_id=user_id,
            amount=required,
            label=request.assignment_name,
            operation_ref=request.assignment_id,
        )
    except (ConcurrentLedgerUpdateError, SQLAlchemyError) as e:
        # The analysis already ran; deliver it and record the unpaid charge
        charged = False
        shortfall_error = str(e)

    if not charged:
        credit_deduction_shortfall_total.inc()
        log_deduction_shortfall(
            logger,
            user_id=user_id,
            amount=required,
            label=request.assignment_name,
            error=shortfall_error,
        )

    analysis_requests_total.labels(operation=request.operation, status="success").inc()
    remaining = await CreditService.get_balance(db, user_id)
    return AnalysisResponse(
        result=result,
        credits_required=required,
        credits_charged=charged,
        remaining_credits=remaining,
    )

"""
Credit service for managing prepaid grading credits.

Credits live in batches, each with its own size and expiry. Allocation
creates a batch; deduction drains the soonest-expiring active batches first
and writes one usage record per batch it touched. A deduction is
all-or-nothing: it either covers the full amount or changes nothing.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import logging
import time

from app.config import settings
from app.models.base import utcnow
from app.models.credit_batch import CreditBatch, CreditTier
from app.models.credit_usage import CreditUsage
from app.repositories.credit_repository import CreditRepository
from app.services.allocation import plan_deduction
from app.services.errors import (
    ConcurrentLedgerUpdateError,
    InsufficientCreditsError,
    InvalidAmountError,
    InvalidOwnerError,
)
from app.services.plans import (
    DEFAULT_EXPIRY_DAYS,
    compute_expiry,
    get_credit_cost,
    resolve_plan,
    resolve_tier,
)
from app.utils.logging import (
    log_credits_allocated,
    log_credits_deducted,
    log_deduction_rejected,
)
from app.utils.metrics import (
    credits_allocated_total,
    credits_deducted_total,
    credit_deductions_rejected_total,
    ledger_retries_total,
)

logger = logging.getLogger(__name__)


class _StaleBatch(Exception):
    """A planned batch changed between planning and applying."""


class CreditService:
    """Service for credit batch allocation, deduction and balance queries."""

    @staticmethod
    async def allocate(
        db: AsyncSession,
        user_id: str,
        amount: int,
        tier: str = CreditTier.FREE.value,
        expiry_days: Optional[int] = DEFAULT_EXPIRY_DAYS,
        commit: bool = True,
    ) -> str:
        """
        Create a new credit batch for a user.

        Args:
            db: Database session
            user_id: Owner of the batch
            amount: Batch size (zero allowed)
            tier: Tier value or alias; unknown tiers fall back to free
            expiry_days: Lifetime in days, used only by the free tier
            commit: Commit the batch; pass False to let the caller own the transaction
                (the caller then calls record_allocation after its commit)

        Returns:
            ID of the new batch

        Raises:
            InvalidAmountError: If amount is negative
            InvalidOwnerError: If the user does not exist
        """
        if amount < 0:
            raise InvalidAmountError("Credit amount cannot be negative")

        user = await CreditRepository.get_user(db, user_id)
        if user is None:
            raise InvalidOwnerError(user_id)

        resolved = resolve_tier(tier)
        if resolved is None:
            logger.warning(f"Unknown credit tier '{tier}', allocating as free credits")
            resolved = CreditTier.FREE

        if expiry_days is None:
            expiry_days = DEFAULT_EXPIRY_DAYS

        expires_at = compute_expiry(resolved, utcnow(), expiry_days)
        batch = await CreditRepository.insert_batch(
            db,
            user_id=user_id,
            credits=amount,
            subscription_type=resolved.value,
            expires_at=expires_at,
        )
        batch_id = batch.id

        # Without commit the caller reports the batch via record_allocation once it commits
        if commit:
            await db.commit()
            CreditService.record_allocation(batch)

        return batch_id

    @staticmethod
    def record_allocation(batch: CreditBatch) -> None:
        """Emit the allocation metric and log event for a committed batch."""
        credits_allocated_total.labels(tier=batch.subscription_type).inc(batch.credits)
        log_credits_allocated(
            logger,
            user_id=batch.user_id,
            batch_id=batch.id,
            amount=batch.credits,
            tier=batch.subscription_type,
            expires_at=batch.expires_at.isoformat(),
        )

    @staticmethod
    async def allocate_for_plan(
        db: AsyncSession,
        user_id: str,
        plan_token: str,
        commit: bool = True,
    ) -> str:
        """
        Create the batch a purchased plan grants.

        Raises:
            UnknownPlanTokenError: If plan_token is not a known plan (nothing is created)
            InvalidOwnerError: If the user does not exist
        """
        plan = resolve_plan(plan_token)
        return await CreditService.allocate(
            db,
            user_id=user_id,
            amount=plan.credits,
            tier=plan.tier.value,
            commit=commit,
        )

    @staticmethod
    async def deduct(
        db: AsyncSession,
        user_id: str,
        amount: int,
        label: str,
        operation_ref: Optional[str] = None,
    ) -> bool:
        """
        Consume credits from the user's active batches, soonest-expiring first.

        Runs in its own transaction: the owner row and the candidate batches
        are locked, the whole deduction is planned, and only a plan that
        covers the full amount is applied. Each batch update is conditional
        on the value read while planning; if another writer changed a batch
        in between, the transaction is rolled back and the deduction retried.

        Args:
            db: Database session
            user_id: Owner
            amount: Credits to consume (must be positive)
            label: Free-text description stored on each usage record
            operation_ref: Optional ID of the record the charge belongs to

        Returns:
            True if the full amount was deducted, False if the active
            batches could not cover it (nothing is consumed in that case)

        Raises:
            InvalidAmountError: If amount is zero or negative
            InvalidOwnerError: If the user does not exist
            ConcurrentLedgerUpdateError: If every retry lost a race
        """
        if amount <= 0:
            raise InvalidAmountError("Deduction amount must be positive")

        start_time = time.time()
        attempts = max(settings.ledger_max_retries, 0) + 1

        for attempt in range(attempts):
            try:
                user = await CreditRepository.lock_user(db, user_id)
                if user is None:
                    await db.commit()
                    raise InvalidOwnerError(user_id)

                now = utcnow()
                batches = await CreditRepository.active_batches(db, user_id, now, for_update=True)
                plan = plan_deduction(batches, amount, now)

                if not plan.satisfied:
                    # Release the locks; nothing was written
                    await db.commit()
                    credit_deductions_rejected_total.inc()
                    log_deduction_rejected(
                        logger,
                        user_id=user_id,
                        amount=amount,
                        available=plan.covered,
                        label=label,
                    )
                    return False

                for step in plan.steps:
                    expected_used = step.batch.used_credits
                    applied = await CreditRepository.apply_consumption(
                        db,
                        batch_id=step.batch.id,
                        expected_used=expected_used,
                        amount=step.amount,
                    )
                    if not applied:
                        raise _StaleBatch(step.batch.id)
                    await CreditRepository.insert_usage(
                        db,
                        user_id=user_id,
                        batch_id=step.batch.id,
                        credits_used=step.amount,
                        assignment_name=label,
                        assignment_id=operation_ref,
                    )

                batch_ids = [step.batch.id for step in plan.steps]
                await db.commit()

            except _StaleBatch as e:
                await db.rollback()
                ledger_retries_total.inc()
                logger.warning(
                    f"Batch {e} changed during deduction for user {user_id}, "
                    f"retrying (attempt {attempt + 1}/{attempts})"
                )
                continue
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Database error deducting credits for user {user_id}: {e}")
                raise

            credits_deducted_total.inc(amount)
            log_credits_deducted(
                logger,
                user_id=user_id,
                amount=amount,
                batch_ids=batch_ids,
                label=label,
                duration_ms=(time.time() - start_time) * 1000,
            )
            return True

        raise ConcurrentLedgerUpdateError(
            f"Could not deduct {amount} credits for user {user_id} after {attempts} attempts"
        )

    @staticmethod
    async def require_credits(
        db: AsyncSession,
        user_id: str,
        amount: int,
        label: str,
        operation_ref: Optional[str] = None,
    ) -> None:
        """
        Deduct credits or raise.

        Raises:
            InsufficientCreditsError: If the active batches cannot cover amount
        """
        deducted = await CreditService.deduct(db, user_id, amount, label, operation_ref)
        if not deducted:
            available = await CreditService.get_balance(db, user_id)
            raise InsufficientCreditsError(required=amount, available=available)

    @staticmethod
    async def get_balance(db: AsyncSession, user_id: str) -> int:
        """
        Get remaining credits across all unexpired batches.

        Returns:
            Remaining credits (0 if user not found)
        """
        return await CreditRepository.sum_available(db, user_id, utcnow())

    @staticmethod
    async def has_credits(db: AsyncSession, user_id: str, amount: int) -> bool:
        """Check if the user's balance covers amount."""
        balance = await CreditService.get_balance(db, user_id)
        return balance >= amount

    @staticmethod
    async def list_batches(db: AsyncSession, user_id: str) -> List[CreditBatch]:
        """All of a user's batches, soonest-expiring first (expired ones included)."""
        return await CreditRepository.list_batches(db, user_id)

    @staticmethod
    async def list_usage(db: AsyncSession, user_id: str, limit: int = 10) -> List[CreditUsage]:
        """Most recent usage records first."""
        return await CreditRepository.list_usage(db, user_id, limit)

    @staticmethod
    async def grant_signup_credits(db: AsyncSession, user_id: str) -> Optional[str]:
        """
        Give a new account its starting free credits.

        Returns:
            Batch ID, or None if the user already had any batch
        """
        if await CreditRepository.count_batches(db, user_id) > 0:
            logger.info(f"User {user_id} already has credits, skipping sign-up grant")
            return None

        return await CreditService.allocate(
            db,
            user_id=user_id,
            amount=settings.signup_credits,
            tier=CreditTier.FREE.value,
            expiry_days=settings.signup_credit_days,
        )

    @staticmethod
    def get_credit_cost(operation: str) -> int:
        """Credits required for one operation of the given kind."""
        return get_credit_cost(operation)

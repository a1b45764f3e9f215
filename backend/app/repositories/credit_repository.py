"""
Repository for credit ledger rows.
Every read and write the ledger makes against credit_batches and credit_usage goes through here.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from datetime import datetime
from typing import List, Optional

from app.models.user import User
from app.models.credit_batch import CreditBatch
from app.models.credit_usage import CreditUsage
from app.models.base import utcnow


class CreditRepository:
    """Repository for credit batch and usage database operations."""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def lock_user(db: AsyncSession, user_id: str) -> Optional[User]:
        """
        Load the owner row with a row lock.

        Serializes ledger writers for one account on PostgreSQL; the lock is
        held until the surrounding transaction commits or rolls back.
        """
        result = await db.execute(
            select(User).where(User.id == user_id).with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def insert_batch(
        db: AsyncSession,
        user_id: str,
        credits: int,
        subscription_type: str,
        expires_at: datetime,
    ) -> CreditBatch:
        batch = CreditBatch(
            user_id=user_id,
            credits=credits,
            used_credits=0,
            subscription_type=subscription_type,
            expires_at=expires_at,
        )
        db.add(batch)
        await db.flush()  # Flush to get ID without committing
        return batch

    @staticmethod
    async def active_batches(
        db: AsyncSession,
        user_id: str,
        now: datetime,
        for_update: bool = False,
    ) -> List[CreditBatch]:
        """
        Unexpired batches with credits left, soonest-expiring first.

        Rows are always reloaded from the database so planning never works
        from stale in-session state.
        """
        query = (
            select(CreditBatch)
            .where(
                CreditBatch.user_id == user_id,
                CreditBatch.expires_at > now,
                (CreditBatch.credits - CreditBatch.used_credits) > 0,
            )
            .order_by(CreditBatch.expires_at.asc(), CreditBatch.created_at.asc(), CreditBatch.id.asc())
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def apply_consumption(
        db: AsyncSession,
        batch_id: str,
        expected_used: int,
        amount: int,
    ) -> bool:
        """
        Add `amount` to a batch's used_credits.

        The update only matches while used_credits still equals the value
        the caller planned against and the batch cannot overflow its size.

        Returns:
            True if the row was updated, False if another writer got there first
        """
        result = await db.execute(
            update(CreditBatch)
            .where(CreditBatch.id == batch_id)
            .where(CreditBatch.used_credits == expected_used)
            .where(CreditBatch.used_credits + amount <= CreditBatch.credits)
            .values(
                used_credits=CreditBatch.used_credits + amount,
                updated_at=utcnow(),
            )
        )
        return result.rowcount > 0

    @staticmethod
    async def insert_usage(
        db: AsyncSession,
        user_id: str,
        batch_id: str,
        credits_used: int,
        assignment_name: str,
        assignment_id: Optional[str] = None,
    ) -> CreditUsage:
        usage = CreditUsage(
            user_id=user_id,
            batch_id=batch_id,
            credits_used=credits_used,
            assignment_name=assignment_name,
            assignment_id=assignment_id,
        )
        db.add(usage)
        await db.flush()
        return usage

    @staticmethod
    async def sum_available(db: AsyncSession, user_id: str, now: datetime) -> int:
        """Sum of (credits - used_credits) over the owner's unexpired batches."""
        result = await db.execute(
            select(func.coalesce(func.sum(CreditBatch.credits - CreditBatch.used_credits), 0))
            .where(
                CreditBatch.user_id == user_id,
                CreditBatch.expires_at > now,
            )
        )
        return int(result.scalar_one())

    @staticmethod
    async def list_batches(db: AsyncSession, user_id: str) -> List[CreditBatch]:
        result = await db.execute(
            select(CreditBatch)
            .where(CreditBatch.user_id == user_id)
            .order_by(CreditBatch.expires_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_usage(db: AsyncSession, user_id: str, limit: int = 10) -> List[CreditUsage]:
        result = await db.execute(
            select(CreditUsage)
            .where(CreditUsage.user_id == user_id)
            .order_by(CreditUsage.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_batches(db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            select(func.count(CreditBatch.id)).where(CreditBatch.user_id == user_id)
        )
        return int(result.scalar_one())

    @staticmethod
    async def usage_total_for_batch(db: AsyncSession, batch_id: str) -> int:
        """Credits recorded against one batch in the usage log."""
        result = await db.execute(
            select(func.coalesce(func.sum(CreditUsage.credits_used), 0))
            .where(CreditUsage.batch_id == batch_id)
        )
        return int(result.scalar_one())

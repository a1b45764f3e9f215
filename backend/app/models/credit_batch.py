"""
CreditBatch model: a pool of prepaid credits granted at one time.

Each batch has its own size and expiration. The size and tier are fixed at
creation; only used_credits moves, and only forward, when credits are
deducted. A batch is active while it is unexpired and not fully consumed.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Optional
import enum

from app.models.base import Base, generate_uuid, utcnow


class CreditTier(str, enum.Enum):
    """Subscription/purchase category that sized and dated a batch."""
    FREE = "free"
    STUDENT = "student"                  # student monthly
    STUDENT_YEARLY = "student_yearly"
    PRO = "pro"                          # pro monthly
    PRO_YEARLY = "pro_yearly"


class CreditBatch(Base):
    """Credit pool with a size, a consumption counter and an expiry."""

    __tablename__ = "credit_batches"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    credits = Column(Integer, nullable=False, default=0)  # size
    used_credits = Column(Integer, nullable=False, default=0)  # consumed
    subscription_type = Column(String(32), nullable=False, default=CreditTier.FREE.value)

    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="credit_batches")
    usage_records = relationship(
        "CreditUsage",
        back_populates="batch",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_credit_batches_credits_non_negative"),
        CheckConstraint(
            "used_credits >= 0 AND used_credits <= credits",
            name="ck_credit_batches_used_within_size",
        ),
        CheckConstraint(
            "subscription_type IN ('free', 'student', 'pro', 'student_yearly', 'pro_yearly')",
            name="ck_credit_batches_subscription_type",
        ),
        Index("idx_credit_batches_user_id", "user_id"),
        Index("idx_credit_batches_expires_at", "expires_at"),
    )

    @property
    def available(self) -> int:
        """Credits left in this batch."""
        return self.credits - self.used_credits

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """True while the batch is unexpired and still has credits."""
        now = now or utcnow()
        return self.expires_at > now and self.available > 0

    def __repr__(self):
        return (
            f"<CreditBatch(id={self.id}, user_id={self.user_id}, "
            f"used={self.used_credits}/{self.credits}, expires_at={self.expires_at})>"
        )

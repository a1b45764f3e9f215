"""
CreditUsage model: append-only log of individual deductions.
Every row is tied to the batch it drew from, so the usage of a batch always
sums to its used_credits.
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base, generate_uuid, utcnow


class CreditUsage(Base):
    """One deduction event against one batch."""

    __tablename__ = "credit_usage"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    batch_id = Column(
        String(36),
        ForeignKey("credit_batches.id", ondelete="CASCADE"),
        nullable=False,
    )

    credits_used = Column(Integer, nullable=False, default=1)
    assignment_name = Column(Text, nullable=False)  # operation label, stored verbatim
    assignment_id = Column(String(36), nullable=True)  # external operation reference

    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="credit_usage")
    batch = relationship("CreditBatch", back_populates="usage_records")

    __table_args__ = (
        CheckConstraint("credits_used > 0", name="ck_credit_usage_positive"),
        Index("idx_credit_usage_user_id", "user_id"),
        Index("idx_credit_usage_batch_id", "batch_id"),
        Index("idx_credit_usage_created_at", "created_at"),
    )

    def __repr__(self):
        return (
            f"<CreditUsage(id={self.id}, batch_id={self.batch_id}, "
            f"credits_used={self.credits_used}, assignment_name={self.assignment_name!r})>"
        )

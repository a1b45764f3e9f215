"""
Payment model for tracking Stripe checkout sessions.
Ensures the payment webhook grants plan credits at most once per session.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index

from app.models.base import Base, generate_uuid, utcnow


class Payment(Base):
    """
    Completed plan purchase via Stripe.

    A row is written in the same transaction as the credit batch it grants,
    so its existence means the checkout session has been processed.

    Used for:
    - Idempotency: a checkout session grants its plan credits once
    - Audit trail: which batch each payment created
    """

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Stripe identifiers - used for idempotency
    stripe_checkout_session_id = Column(String(255), unique=True, nullable=False)
    stripe_payment_intent_id = Column(String(255), nullable=True)

    # Payment details
    plan_type = Column(String(50), nullable=False)  # e.g., "student_monthly", "pro_yearly"
    amount_cents = Column(Integer, nullable=True)  # Amount in cents (e.g., 999 = $9.99)
    currency = Column(String(3), nullable=False, default="usd")
    batch_id = Column(String(36), ForeignKey("credit_batches.id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_payment_user_id", "user_id"),
        Index("idx_payment_stripe_session", "stripe_checkout_session_id"),
    )

    def __repr__(self):
        return (
            f"<Payment(id={self.id}, user_id={self.user_id}, "
            f"plan={self.plan_type}, session={self.stripe_checkout_session_id})>"
        )

"""
User model: the account that owns credit batches and usage records.
Authenticated via Firebase (firebase_uid).
The credit balance is not stored here; it is derived from credit_batches.
"""
from sqlalchemy import Column, String, Index, DateTime
from sqlalchemy.orm import relationship
from app.models.base import Base, generate_uuid, utcnow


class User(Base):
    """Account owning a credit ledger."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firebase_uid = Column(String(128), nullable=False, unique=True)  # Firebase user ID
    email = Column(String(255), nullable=True)  # Email from Firebase token
    stripe_customer_id = Column(String(255), nullable=True)  # Stripe customer ID

    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Account deletion is the only way batches and usage records are removed
    credit_batches = relationship(
        "CreditBatch",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    credit_usage = relationship(
        "CreditUsage",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_user_firebase_uid", "firebase_uid"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, firebase_uid={self.firebase_uid})>"

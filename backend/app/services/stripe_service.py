"""
Stripe service for payment processing.
Verifies webhook events and turns completed plan checkouts into credit batches.
"""
import stripe
import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.models.base import utcnow
from app.models.credit_batch import CreditBatch
from app.models.payment import Payment
from app.services.credit_service import CreditService

logger = logging.getLogger(__name__)


class StripeService:
    """Service for Stripe payment operations."""

    def __init__(self):
        """Initialize Stripe with API key."""
        if settings.stripe_secret_key:
            stripe.api_key = settings.stripe_secret_key
            logger.info("Stripe initialized with secret key")
        else:
            logger.warning("Stripe secret key not configured")

    @staticmethod
    def construct_event(payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a webhook payload against its Stripe-Signature header.

        Raises:
            ValueError: If the payload is not valid JSON
            stripe.SignatureVerificationError: If the signature does not match
        """
        return stripe.Webhook.construct_event(
            payload,
            signature,
            settings.stripe_webhook_secret
        )

    @staticmethod
    async def get_payment_by_session(
        db: AsyncSession,
        stripe_checkout_session_id: str,
    ) -> Optional[Payment]:
        result = await db.execute(
            select(Payment).where(
                Payment.stripe_checkout_session_id == stripe_checkout_session_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def grant_plan_credits(
        db: AsyncSession,
        user_id: str,
        plan_type: str,
        stripe_checkout_session_id: str,
        stripe_payment_intent_id: Optional[str] = None,
        amount_cents: Optional[int] = None,
        currency: str = "usd",
    ) -> Optional[Payment]:
        """
        Record a paid checkout session and allocate its plan credits.

        The payment row and the credit batch are committed together.
        Returns None if this session was already processed.

        Raises:
            UnknownPlanTokenError: If plan_type is not a known plan (nothing is written)
            InvalidOwnerError: If the user does not exist
        """
        # Idempotency check - a payment row only exists once its credits were granted
        existing = await StripeService.get_payment_by_session(db, stripe_checkout_session_id)
        if existing is not None:
            logger.info(f"Payment {existing.id} already processed, skipping")
            return None

        try:
            batch_id = await CreditService.allocate_for_plan(
                db,
                user_id=user_id,
                plan_token=plan_type,
                commit=False,
            )
        except ValueError:
            await db.rollback()
            raise

        payment = Payment(
            user_id=user_id,
            stripe_checkout_session_id=stripe_checkout_session_id,
            stripe_payment_intent_id=stripe_payment_intent_id,
            plan_type=plan_type,
            amount_cents=amount_cents,
            currency=currency,
            batch_id=batch_id,
            completed_at=utcnow(),
        )
        db.add(payment)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to record payment for session {stripe_checkout_session_id}: {e}")
            raise

        batch = await db.get(CreditBatch, batch_id)
        CreditService.record_allocation(batch)

        logger.info(
            f"Granted plan {plan_type} to user {user_id} "
            f"(payment_id: {payment.id}, batch_id: {batch_id})"
        )
        return payment

    @staticmethod
    async def ensure_stripe_customer(
        email: str,
        name: Optional[str] = None,
    ) -> Optional[str]:
        """
        Ensure a Stripe customer exists for the given email.

        Returns:
            Stripe customer ID or None if Stripe is not configured

        Raises:
            ValueError: If email is not provided
        """
        if not email:
            raise ValueError("Email is required to create Stripe customer")

        if not settings.stripe_secret_key:
            logger.debug("Stripe not configured, skipping customer creation")
            return None

        try:
            customers = stripe.Customer.list(email=email, limit=1)
            if customers.data:
                return customers.data[0].id

            customer_data = {"email": email}
            if name:
                customer_data["name"] = name

            customer = stripe.Customer.create(**customer_data)
            logger.info(f"Created new Stripe customer {customer.id} for email {email}")
            return customer.id

        except stripe.StripeError as e:
            logger.error(f"Stripe error ensuring customer for {email}: {e}")
            return None


# Singleton instance
stripe_service = StripeService()

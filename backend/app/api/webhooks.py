"""
Webhook endpoints for external services.
Handles Stripe payment webhooks for plan purchases.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request, Header
from sqlalchemy.ext.asyncio import AsyncSession
import stripe
import logging

from app.database import get_db
from app.config import settings
from app.services.credit_service import CreditService
from app.services.errors import InvalidOwnerError, UnknownPlanTokenError
from app.services.stripe_service import stripe_service
from app.repositories.credit_repository import CreditRepository

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    stripe_signature: str = Header(None, alias="stripe-signature")
):
    """
    Stripe webhook endpoint for processing payment events.

    Handles:
    - checkout.session.completed: Allocates the purchased plan's credit batch

    Other event types are acknowledged and ignored.

    Security:
    - Validates Stripe signature
    - Idempotent handling via Payment record (prevents duplicate credit grants)

    Expected metadata format:
    {
        "user_id": "<user_uuid>",
        "plan_type": "student_monthly | student_yearly | pro_monthly | pro_yearly"
    }
    """
    if not settings.stripe_webhook_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Stripe webhook secret not configured"
        )

    if not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe signature"
        )

    body = await request.body()

    try:
        event = stripe_service.construct_event(body, stripe_signature)
    except ValueError as e:
        logger.error(f"Invalid payload: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid payload: {str(e)}"
        )
    except stripe.SignatureVerificationError as e:
        logger.error(f"Invalid signature: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid signature: {str(e)}"
        )

    if event["type"] == "checkout.session.completed":
        session = event["data"]["object"]
        checkout_session_id = session.get("id")

        if session.get("payment_status") != "paid":
            logger.info(f"Checkout session {checkout_session_id} not paid yet")
            return {"status": "ignored", "reason": "not_paid"}

        metadata = session.get("metadata") or {}
        user_id = metadata.get("user_id")
        plan_type = metadata.get("plan_type")

        if not user_id or not plan_type:
            logger.warning(
                f"Missing metadata in checkout session {checkout_session_id}: "
                f"user_id={user_id}, plan_type={plan_type}"
            )
            return {"status": "ignored", "reason": "missing_metadata"}

        user = await CreditRepository.get_user(db, user_id)
        if not user:
            logger.warning(f"User {user_id} not found for Stripe webhook")
            return {"status": "ignored", "reason": "user_not_found"}

        try:
            payment = await stripe_service.grant_plan_credits(
                db,
                user_id=user_id,
                plan_type=plan_type,
                stripe_checkout_session_id=checkout_session_id,
                stripe_payment_intent_id=session.get("payment_intent"),
                amount_cents=session.get("amount_total"),
                currency=session.get("currency") or "usd",
            )
        except UnknownPlanTokenError as e:
            logger.error(f"Unknown plan in checkout session {checkout_session_id}: {e}")
            return {"status": "error", "reason": "unknown_plan"}
        except InvalidOwnerError as e:
            logger.warning(str(e))
            return {"status": "ignored", "reason": "user_not_found"}

        if payment is None:
            logger.info(f"Payment for session {checkout_session_id} already processed")
            return {
                "status": "already_processed",
                "session_id": checkout_session_id
            }

        return {
            "status": "success",
            "user_id": user_id,
            "plan_type": plan_type,
            "batch_id": payment.batch_id,
            "payment_id": str(payment.id),
            "balance": await CreditService.get_balance(db, user_id),
        }

    logger.info(f"Unhandled event type: {event['type']}")
    return {"status": "ignored", "event_type": event["type"]}

"""
FastAPI dependencies for authentication.
Provides get_current_user dependency that verifies Firebase JWT tokens.
"""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.models.user import User
from app.auth.firebase import verify_firebase_token
from app.services.credit_service import CreditService
from app.services.stripe_service import stripe_service

logger = logging.getLogger(__name__)

# HTTPBearer scheme for extracting Authorization header
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency that verifies Firebase JWT token and returns User.

    Flow:
    1. Extract Bearer token from Authorization header
    2. Verify token with Firebase Admin SDK
    3. Lookup user in database by firebase_uid
    4. Create user if doesn't exist and grant the sign-up credits
    5. Return User object

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    token = credentials.credentials

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        decoded_token = verify_firebase_token(token)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    firebase_uid = decoded_token.get("uid")
    email = decoded_token.get("email")

    if not firebase_uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing uid"
        )

    result = await db.execute(
        select(User).where(User.firebase_uid == firebase_uid)
    )
    user = result.scalar_one_or_none()

    if not user:
        user = User(firebase_uid=firebase_uid, email=email)
        db.add(user)
        await db.commit()
        await db.refresh(user)

        # Starting free credits for new accounts
        await CreditService.grant_signup_credits(db, user.id)

        if email:
            stripe_customer_id = await stripe_service.ensure_stripe_customer(
                email=email,
                name=decoded_token.get("name"),
            )
            if stripe_customer_id:
                user.stripe_customer_id = stripe_customer_id
                await db.commit()

    return user

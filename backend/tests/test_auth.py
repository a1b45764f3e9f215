"""
Tests for the authentication dependency.
Firebase verification is stubbed; user provisioning runs against the test database.
"""
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import dependencies
from app.auth.dependencies import get_current_user
from app.config import settings
from app.models.user import User
from app.services.credit_service import CreditService


def _bearer(token="valid-token"):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetCurrentUser:

    @pytest.mark.asyncio
    async def test_first_sign_in_creates_user_with_signup_credits(
        self, db_session: AsyncSession, monkeypatch
    ):
        monkeypatch.setattr(
            dependencies, "verify_firebase_token",
            lambda token: {"uid": "new-uid", "email": "student@example.com"}
        )

        user = await get_current_user(_bearer(), db_session)

        assert user.firebase_uid == "new-uid"
        assert user.email == "student@example.com"
        assert await CreditService.get_balance(db_session, user.id) == settings.signup_credits

    @pytest.mark.asyncio
    async def test_returning_user_not_granted_again(
        self, db_session: AsyncSession, test_user: User, monkeypatch
    ):
        monkeypatch.setattr(
            dependencies, "verify_firebase_token",
            lambda token: {"uid": test_user.firebase_uid, "email": test_user.email}
        )

        user = await get_current_user(_bearer(), db_session)

        assert user.id == test_user.id
        assert await CreditService.list_batches(db_session, user.id) == []
        count = len((await db_session.execute(select(User))).scalars().all())
        assert count == 1

    @pytest.mark.asyncio
    async def test_invalid_token(self, db_session: AsyncSession, monkeypatch):
        def reject(token):
            raise ValueError("Token expired")

        monkeypatch.setattr(dependencies, "verify_firebase_token", reject)

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(_bearer(), db_session)

        assert exc_info.value.status_code == 401
        assert "Token expired" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_token_without_uid(self, db_session: AsyncSession, monkeypatch):
        monkeypatch.setattr(dependencies, "verify_firebase_token", lambda token: {"email": "x@example.com"})

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(_bearer(), db_session)

        assert exc_info.value.status_code == 401

"""
Firebase Admin SDK initialization and token verification.
Firebase is the identity provider; the ledger trusts the user it resolves.
"""
import json
import os
import logging
from typing import Optional
import firebase_admin
from firebase_admin import credentials, auth
from app.config import settings

logger = logging.getLogger(__name__)


# Global Firebase app instance
_firebase_app: Optional[firebase_admin.App] = None


def _load_credentials():
    """
    Build Firebase credentials from FIREBASE_CREDENTIALS_JSON.

    The setting may be a path to a service-account file or the JSON itself.
    Without it, application default credentials are used (local gcloud).
    """
    raw = settings.firebase_credentials_json
    if not raw:
        return credentials.ApplicationDefault()

    if os.path.exists(raw):
        logger.info(f"Loaded Firebase credentials from file: {raw}")
        return credentials.Certificate(raw)

    try:
        cred_dict = json.loads(raw)
    except json.JSONDecodeError:
        raise ValueError(
            "FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string"
        )
    logger.info("Loaded Firebase credentials from JSON string")
    return credentials.Certificate(cred_dict)


def initialize_firebase() -> None:
    """Initialize Firebase Admin SDK once per process."""
    global _firebase_app

    if _firebase_app is not None:
        return

    if not settings.firebase_project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")

    _firebase_app = firebase_admin.initialize_app(
        _load_credentials(),
        {"projectId": settings.firebase_project_id}
    )


def verify_firebase_token(token: str) -> dict:
    """
    Verify Firebase ID token and return decoded token claims.

    Args:
        token: Firebase JWT ID token string

    Returns:
        Decoded token claims dict with uid, email, etc.

    Raises:
        ValueError: If token is invalid, expired, or revoked
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase Admin SDK not initialized. Call initialize_firebase() first.")

    try:
        return auth.verify_id_token(token)
    except ValueError:
        raise
    except Exception as e:
        # Firebase raises its own exception types for expired/revoked tokens
        raise ValueError(f"Token verification failed: {str(e)}")

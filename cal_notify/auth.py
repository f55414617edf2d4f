import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .config import Settings, get_settings
from .security_utils import create_jwt_token, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class SessionData(BaseModel):
    """Claims carried by a verified session token"""

    user_id: Optional[int] = None
    email: Optional[str] = None


def create_session_token(
    user_id: int, secret_key: str, email: Optional[str] = None, expires_delta: Optional[timedelta] = None
) -> str:
    """Issue a signed session token for a user"""
    claims = {"sub": str(user_id)}
    if email:
        claims["email"] = email
    return create_jwt_token(claims, secret_key, expires_delta)


def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> Optional[SessionData]:
    """
    Resolve the bearer session, or None when the caller is not authenticated.

    Routes decide how to answer an anonymous caller.
    """
    if not credentials or not credentials.credentials:
        return None

    if not settings.secret_key:
        logger.error("❌ SECRET_KEY not configured - cannot verify sessions")
        return None

    claims = verify_jwt_token(credentials.credentials, settings.secret_key)
    if claims is None:
        return None

    user_id: Optional[int] = None
    subject = claims.get("sub")
    if subject is not None:
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Session subject is not a user id: {subject!r}")

    return SessionData(user_id=user_id, email=claims.get("email"))

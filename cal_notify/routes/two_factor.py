import base64
import io
import json
import logging
import secrets
from typing import Optional

import pyotp
import qrcode
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import SessionData, get_session
from ..config import Settings, get_settings
from ..crypto import symmetric_encrypt
from ..database import get_db
from ..models import IdentityProvider, User
from ..rate_limiter import RateLimiter, get_rate_limiter
from ..security_utils import verify_password_bcrypt
from ..shared.error_codes import ErrorCode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth/two-factor/totp", tags=["Two Factor"])

TOTP_ISSUER = "Cal"
BACKUP_CODE_COUNT = 10
BACKUP_CODE_BYTES = 5  # 10 hex characters


# ==================== Schemas ====================


class TOTPSetupRequest(BaseModel):
    password: str = ""


class TOTPSetupResponse(BaseModel):
    secret: str
    keyUri: str
    dataUri: str
    backupCodes: list[str]


# ==================== Helper Functions ====================


def generate_backup_codes(count: int = BACKUP_CODE_COUNT) -> list[str]:
    """Generate cryptographically secure backup codes"""
    return [secrets.token_hex(BACKUP_CODE_BYTES) for _ in range(count)]


def render_qr_data_uri(content: str) -> str:
    """Render content as a PNG QR code data URI"""
    qr = qrcode.QRCode(version=1, box_size=10, border=5)
    qr.add_data(content)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return f"data:image/png;base64,{base64.b64encode(buffer.getvalue()).decode()}"


def _error(status_code: int, code: ErrorCode) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code.value})


def _not_authenticated() -> JSONResponse:
    return JSONResponse(status_code=401, content={"message": "Not authenticated"})


# ==================== Endpoints ====================


@router.post("/setup", response_model=TOTPSetupResponse)
async def setup_totp(
    data: TOTPSetupRequest,
    session: Optional[SessionData] = Depends(get_session),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Initialize TOTP setup - generate secret, backup codes and QR code.

    The secret is stored encrypted and two_factor_enabled stays False until
    the user confirms a code from their authenticator.
    """
    if not session:
        return _not_authenticated()

    if not session.user_id:
        logger.error("❌ Session is missing a user id")
        return _error(500, ErrorCode.InternalServerError)

    rate_limiter.check(
        f"api:totp-setup:{session.user_id}",
        limit=settings.totp_setup_rate_limit,
        window_seconds=settings.totp_setup_rate_window_seconds,
    )

    user = db.query(User).filter(User.id == session.user_id).first()
    if not user:
        logger.error(f"❌ Session references user {session.user_id} that no longer exists")
        return _not_authenticated()

    if user.identity_provider != IdentityProvider.CAL and not user.password_hash:
        return _error(400, ErrorCode.ThirdPartyIdentityProviderEnabled)

    if not user.password_hash:
        return _error(400, ErrorCode.UserMissingPassword)

    if user.two_factor_enabled:
        return _error(400, ErrorCode.TwoFactorAlreadyEnabled)

    encryption_key = settings.encryption_key
    if not encryption_key:
        logger.error("❌ Missing encryption key; cannot proceed with two factor setup")
        return _error(500, ErrorCode.InternalServerError)

    if not verify_password_bcrypt(data.password, user.password_hash):
        return _error(400, ErrorCode.IncorrectPassword)

    # 32 base32 characters (160 bits)
    secret = pyotp.random_base32()
    backup_codes = generate_backup_codes()

    try:
        user.backup_codes = symmetric_encrypt(json.dumps(backup_codes), encryption_key)
        user.two_factor_secret = symmetric_encrypt(secret, encryption_key)
        user.two_factor_enabled = False
        db.commit()
    except (ValueError, SQLAlchemyError) as e:
        db.rollback()
        logger.error(f"❌ Encryption or DB update failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail=ErrorCode.InternalServerError.value) from e

    name = user.email or user.username or str(user.id)
    key_uri = pyotp.TOTP(secret).provisioning_uri(name=name, issuer_name=TOTP_ISSUER)
    data_uri = render_qr_data_uri(key_uri)

    logger.info(f"✅ TOTP setup initialized for user {user.id}")
    return TOTPSetupResponse(
        secret=secret, keyUri=key_uri, dataUri=data_uri, backupCodes=backup_codes
    )

"""
Webhook Security Module

Signature verification for inbound Cal.com webhooks:
- HMAC-SHA256 over the exact raw request bytes
- Constant-time signature comparison
- Raw body read before any JSON parsing
"""

import hashlib
import hmac
import logging

from fastapi import Request

from .security_utils import mask_sensitive_data

logger = logging.getLogger(__name__)

CAL_SIGNATURE_HEADER = "X-Cal-Signature-256"


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails"""

    pass


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(secret: str, raw_body: bytes, received_signature: str) -> None:
    """
    Verify a hex HMAC-SHA256 signature over ``raw_body``.

    Raises:
        WebhookSignatureError: If the signature is missing or does not match
    """
    if not received_signature:
        raise WebhookSignatureError("Missing webhook signature")

    expected_signature = compute_hmac_sha256(secret, raw_body)
    if not constant_time_compare(expected_signature, received_signature):
        raise WebhookSignatureError("Invalid webhook signature")


async def verify_cal_webhook(request: Request, secret: str) -> bytes:
    """
    Verify Cal.com webhook signature.

    Cal.com uses:
    - Header: 'X-Cal-Signature-256' (hex digest, no prefix)

    Args:
        request: FastAPI request object
        secret: Webhook secret configured in Cal.com

    Returns:
        The raw request body

    Raises:
        WebhookSignatureError: If verification fails
    """
    # Get raw body BEFORE any parsing - this is critical
    raw_body = await request.body()
    received_signature = request.headers.get(CAL_SIGNATURE_HEADER, "")

    logger.debug(f"📥 Cal.com webhook received: {len(raw_body)} bytes")

    try:
        verify_signature(secret, raw_body, received_signature)
    except WebhookSignatureError:
        logger.warning(
            f"🚫 Cal.com webhook signature rejected (received={mask_sensitive_data(received_signature)})"
        )
        raise

    logger.debug("✅ Cal.com webhook signature verified")
    return raw_body


def create_webhook_signature(secret: str, payload: bytes) -> str:
    """Create a Cal.com style signature for testing or outgoing webhooks"""
    return compute_hmac_sha256(secret, payload)

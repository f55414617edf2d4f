"""
Cal.com Webhook Routes
Receives booking lifecycle webhooks and emails the attendee a calendar invite
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...config import Settings, get_settings
from ...services.postmark_service import EmailConfigurationError, PostmarkClient
from ...webhook_security import WebhookSignatureError, verify_cal_webhook
from .schemas import (
    MissingBookingField,
    Trigger,
    booking_payload,
    extract_booking_snapshot,
    normalize_trigger,
    raw_trigger,
)
from .service import BookingNotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["cal-webhooks"])


def get_mailer(settings: Settings = Depends(get_settings)) -> PostmarkClient:
    """Dependency injection for the Postmark client"""
    return PostmarkClient.from_settings(settings)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/cal-webhook")
async def handle_cal_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    mailer: PostmarkClient = Depends(get_mailer),
):
    """
    Handle Cal.com booking webhooks
    Supported triggers: BOOKING_CREATED, BOOKING_RESCHEDULED, BOOKING_CANCELLED

    Failures before the sender is authenticated are rejected (401/400); gaps in
    an authenticated payload are acknowledged with 200 so Cal.com does not redeliver.
    """
    secret = settings.cal_webhook_secret
    if not secret:
        logger.error("❌ CAL_WEBHOOK_SECRET not configured")
        return _error(500, "Server configuration error")

    try:
        raw_body = await verify_cal_webhook(request, secret)
    except WebhookSignatureError as e:
        logger.error(f"❌ Invalid webhook signature: {e}")
        return _error(401, "Invalid signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        return _error(400, "Invalid JSON")
    if not isinstance(event, dict):
        return _error(400, "Invalid JSON")

    received_trigger = raw_trigger(event)
    trigger = normalize_trigger(received_trigger)

    if trigger == Trigger.UNKNOWN:
        logger.info(f"Ignoring Cal.com webhook with trigger: {received_trigger}")
        return {"ok": True, "ignored": received_trigger}

    try:
        booking = extract_booking_snapshot(booking_payload(event))
    except MissingBookingField as e:
        logger.warning(f"⚠️ Skipping {trigger.value} webhook: {e.reason}")
        return {"ok": True, "skipped": e.reason}

    from_address = settings.postmark_from_email
    if not from_address:
        logger.error("❌ POSTMARK_FROM_EMAIL not configured")
        return _error(500, "Server configuration error")

    service = BookingNotificationService(mailer=mailer, from_address=from_address)

    try:
        await service.dispatch(trigger, booking)
    except EmailConfigurationError as e:
        logger.error(f"❌ Email provider not configured: {e}")
        return _error(500, "Server configuration error")
    except Exception as e:
        logger.error(f"❌ Error processing webhook: {e}")
        logger.exception("Full webhook error traceback:")
        return _error(500, "Failed to process webhook")

    return {"ok": True, "trigger": trigger.value}


@router.api_route("/cal-webhook", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def cal_webhook_method_not_allowed():
    return JSONResponse(
        status_code=405, content={"error": "Method Not Allowed"}, headers={"Allow": "POST"}
    )

"""Booking notification service - turns booking lifecycle events into emails"""

import logging
from typing import Any

from ...email_service import send_email
from ...email_templates import (
    booking_cancelled_template,
    booking_confirmed_template,
    booking_rescheduled_template,
)
from ...services.ics_builder import CalendarInvite, Identity, build_ics_string
from ...services.postmark_service import PostmarkClient
from .schemas import BookingSnapshot, Trigger

logger = logging.getLogger(__name__)


class BookingNotificationService:
    """Service layer for booking notification emails"""

    def __init__(self, mailer: PostmarkClient, from_address: str):
        self.mailer = mailer
        self.from_address = from_address

    async def dispatch(self, trigger: Trigger, booking: BookingSnapshot) -> dict[str, Any]:
        """Route a classified trigger to its handler"""
        if trigger == Trigger.BOOKING_CREATED:
            return await self.handle_booking_created(booking)
        if trigger == Trigger.BOOKING_RESCHEDULED:
            return await self.handle_booking_rescheduled(booking)
        if trigger == Trigger.BOOKING_CANCELLED:
            return await self.handle_booking_cancelled(booking)
        raise ValueError(f"No handler for trigger {trigger}")

    def _invite(
        self, booking: BookingSnapshot, sequence: int, cancelled: bool
    ) -> CalendarInvite:
        return CalendarInvite(
            uid=booking.uid,
            title=booking.title,
            description=booking.description,
            start=booking.start,
            end=booking.end,
            organizer=Identity(email=booking.organizer.email, name=booking.organizer.name),
            attendee=Identity(email=booking.attendee.email, name=booking.attendee.name),
            location=booking.location or None,
            sequence=sequence,
            status="CANCELLED" if cancelled else "CONFIRMED",
            method="CANCEL" if cancelled else "REQUEST",
        )

    async def handle_booking_created(self, booking: BookingSnapshot) -> dict[str, Any]:
        """Send a confirmation; the snapshot's sequence is the baseline and is not bumped"""
        ics_content = build_ics_string(self._invite(booking, booking.sequence, cancelled=False))

        mjml_content = booking_confirmed_template(
            title=booking.title,
            start=booking.start,
            host_display=booking.host_display,
            location=booking.location,
            cancel_url=booking.cancel_url,
        )

        response = await send_email(
            self.mailer,
            from_address=self.from_address,
            to=booking.attendee.email,
            subject=f"Confirmed: {booking.title}",
            mjml_content=mjml_content,
            ics_content=ics_content,
            ics_method="REQUEST",
        )
        logger.info(f"✅ Sent booking confirmation to {booking.attendee.email} for {booking.uid}")
        return response

    async def handle_booking_rescheduled(self, booking: BookingSnapshot) -> dict[str, Any]:
        """Send an updated invite at the new time with sequence + 1"""
        ics_content = build_ics_string(
            self._invite(booking, booking.sequence + 1, cancelled=False)
        )

        mjml_content = booking_rescheduled_template(
            title=booking.title,
            start=booking.start,
            host_display=booking.host_display,
            location=booking.location,
            cancel_url=booking.cancel_url,
        )

        response = await send_email(
            self.mailer,
            from_address=self.from_address,
            to=booking.attendee.email,
            subject=f"Rescheduled: {booking.title}",
            mjml_content=mjml_content,
            ics_content=ics_content,
            ics_method="REQUEST",
        )
        logger.info(f"✅ Sent reschedule notification to {booking.attendee.email} for {booking.uid}")
        return response

    async def handle_booking_cancelled(self, booking: BookingSnapshot) -> dict[str, Any]:
        """Send a CANCEL invite with sequence + 1 and an optional rebooking link"""
        ics_content = build_ics_string(self._invite(booking, booking.sequence + 1, cancelled=True))

        mjml_content = booking_cancelled_template(
            title=booking.title,
            start=booking.start,
            host_display=booking.host_display,
            reschedule_url=booking.reschedule_url,
        )

        response = await send_email(
            self.mailer,
            from_address=self.from_address,
            to=booking.attendee.email,
            subject=f"Cancelled: {booking.title}",
            mjml_content=mjml_content,
            ics_content=ics_content,
            ics_method="CANCEL",
        )
        logger.info(
            f"✅ Sent cancellation notification to {booking.attendee.email} for {booking.uid}"
        )
        return response

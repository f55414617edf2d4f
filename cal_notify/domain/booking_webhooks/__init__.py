"""Booking webhooks domain - Cal.com lifecycle events to attendee emails"""

from .router import router

__all__ = ["router"]

"""Booking webhook schemas - trigger classification and payload extraction"""

import enum
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel

DEFAULT_TITLE = "Meeting"

# Ordered candidate lookups per logical field; the first present value wins.
TRIGGER_KEYS = ("triggerEvent", "event", "type")
HOST_EMAIL_PATHS = (("hostEmail",), ("organizer", "email"))
HOST_NAME_PATHS = (("organizerName",), ("hostName",), ("organizer", "name"))
LOCATION_PATHS = (("location",), ("meetingUrl",), ("videoCallUrl",), ("conferenceUrl",))
UID_PATHS = (("iCalUID",), ("bookingUid",), ("uid",), ("bookingId",))
ATTENDEE_LIST_KEYS = ("attendees", "attendeesList")


class Trigger(str, enum.Enum):
    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_RESCHEDULED = "BOOKING_RESCHEDULED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    UNKNOWN = "unknown"


class MissingBookingField(Exception):
    """Raised when a trusted payload lacks a field needed to send a notification"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class Participant(BaseModel):
    email: str
    name: Optional[str] = None


class BookingSnapshot(BaseModel):
    """Fields of a booking needed to build and send one notification"""

    uid: str
    title: str = DEFAULT_TITLE
    description: Optional[str] = None
    start: datetime
    end: datetime
    attendee: Participant
    organizer: Participant
    location: str = ""
    sequence: int = 0
    cancel_url: Optional[str] = None
    reschedule_url: Optional[str] = None

    @property
    def host_display(self) -> str:
        return self.organizer.name or self.organizer.email


def normalize_trigger(trigger: Optional[str]) -> Trigger:
    """
    Classify a trigger value, case-insensitively and tolerant of separators.

    'BOOKING_CREATED', 'Booking Created' and 'created' all map to created.
    """
    if not trigger or not isinstance(trigger, str):
        return Trigger.UNKNOWN

    t = re.sub(r"\s+", "_", trigger.upper())
    if "CREATED" in t:
        return Trigger.BOOKING_CREATED
    if "RESCHEDULED" in t:
        return Trigger.BOOKING_RESCHEDULED
    if "CANCEL" in t:
        return Trigger.BOOKING_CANCELLED
    return Trigger.UNKNOWN


def raw_trigger(event: dict[str, Any]) -> Optional[str]:
    """Return the trigger value as sent, checking the aliased keys in order"""
    for key in TRIGGER_KEYS:
        value = event.get(key)
        if value:
            return value
    return None


def booking_payload(event: dict[str, Any]) -> dict[str, Any]:
    """Booking fields are nested under 'payload' or flattened at the top level"""
    payload = event.get("payload")
    if isinstance(payload, dict) and payload:
        return payload
    return event


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def first_present(payload: dict[str, Any], paths: tuple[tuple[str, ...], ...]) -> Any:
    """Walk candidate key paths in order and return the first present value"""
    for path in paths:
        value: Any = payload
        for key in path:
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(key)
        if _is_present(value):
            return value
    return None


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 instant; naive values are taken as UTC"""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first_attendee(payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    for key in ATTENDEE_LIST_KEYS:
        attendees = payload.get(key)
        if isinstance(attendees, list) and attendees:
            first = attendees[0]
            return first if isinstance(first, dict) else None
    return None


def _sequence(payload: dict[str, Any]) -> int:
    value = payload.get("iCalSequence")
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if _is_present(value) else None


def extract_booking_snapshot(payload: dict[str, Any]) -> BookingSnapshot:
    """
    Build a BookingSnapshot from a loosely typed booking payload.

    Raises:
        MissingBookingField: If start/end time, attendee email or host email is absent
    """
    start = parse_instant(payload.get("startTime"))
    end = parse_instant(payload.get("endTime"))
    if not start or not end:
        raise MissingBookingField("missing start/end time")

    attendee = _first_attendee(payload)
    if not attendee or not _is_present(attendee.get("email")):
        raise MissingBookingField("no attendee email")

    host_email = first_present(payload, HOST_EMAIL_PATHS)
    if not host_email:
        raise MissingBookingField("no host email")

    uid = first_present(payload, UID_PATHS)

    return BookingSnapshot(
        uid=str(uid) if uid is not None else str(uuid.uuid4()),
        title=_optional_str(payload.get("title")) or DEFAULT_TITLE,
        description=_optional_str(payload.get("description")),
        start=start,
        end=end,
        attendee=Participant(
            email=str(attendee["email"]), name=_optional_str(attendee.get("name"))
        ),
        organizer=Participant(
            email=str(host_email), name=_optional_str(first_present(payload, HOST_NAME_PATHS))
        ),
        location=_optional_str(first_present(payload, LOCATION_PATHS)) or "",
        sequence=_sequence(payload),
        cancel_url=_optional_str(payload.get("cancelUrl")),
        reschedule_url=_optional_str(payload.get("rescheduleUrl")),
    )

"""
ICS Builder
Builds iCalendar invites for booking create/update/cancel notifications
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional

from icalendar import Calendar, Event, vCalAddress, vText

from ..shared.validators import is_valid_email

logger = logging.getLogger(__name__)

PRODUCT_ID = "calcom/webhook-ics"

EventStatus = Literal["CONFIRMED", "TENTATIVE", "CANCELLED"]
IcsMethod = Literal["REQUEST", "CANCEL"]


class IcsBuildError(Exception):
    """Raised when an invite cannot be encoded"""

    pass


@dataclass(frozen=True)
class Identity:
    email: str
    name: Optional[str] = None


@dataclass(frozen=True)
class CalendarInvite:
    """Parameters for a single-event calendar document"""

    uid: str
    title: str
    start: datetime
    end: datetime
    organizer: Identity
    attendee: Identity
    status: EventStatus
    method: IcsMethod
    description: Optional[str] = None
    location: Optional[str] = None
    sequence: int = 0


def to_utc_minute(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC wall-clock fields, truncated to the minute"""
    if value.tzinfo is None or value.utcoffset() is None:
        raise IcsBuildError(f"Naive datetime not allowed in invite: {value.isoformat()}")
    utc = value.astimezone(timezone.utc)
    return datetime(utc.year, utc.month, utc.day, utc.hour, utc.minute, tzinfo=timezone.utc)


def _calendar_address(identity: Identity, role: str, default_name: str) -> vCalAddress:
    if not is_valid_email(identity.email):
        raise IcsBuildError(f"Invalid {role} email: {identity.email!r}")

    address = vCalAddress(f"mailto:{identity.email.strip()}")
    address.params["CN"] = vText(identity.name or default_name)
    return address


def _validate(invite: CalendarInvite) -> None:
    if not invite.uid:
        raise IcsBuildError("Invite uid is required")
    if invite.sequence < 0:
        raise IcsBuildError(f"Invite sequence must be non-negative, got {invite.sequence}")
    if invite.method == "CANCEL" and invite.status != "CANCELLED":
        raise IcsBuildError("CANCEL method requires CANCELLED status")


def build_ics_string(invite: CalendarInvite, stamp: Optional[datetime] = None) -> str:
    """
    Encode a CalendarInvite as an iCalendar document.

    Attendee PARTSTAT and busy status follow the event status: a cancelled
    event is DECLINED and FREE, anything else ACCEPTED and BUSY.

    Raises:
        IcsBuildError: If the invite is structurally invalid
    """
    _validate(invite)

    start = to_utc_minute(invite.start)
    end = to_utc_minute(invite.end)
    if end < start:
        raise IcsBuildError(f"Invite ends before it starts: {start.isoformat()} > {end.isoformat()}")

    cancelled = invite.status == "CANCELLED"
    partstat = "DECLINED" if cancelled else "ACCEPTED"
    busy_status = "FREE" if cancelled else "BUSY"

    organizer = _calendar_address(invite.organizer, "organizer", "Organizer")
    attendee = _calendar_address(invite.attendee, "attendee", "Attendee")
    attendee.params["ROLE"] = vText("REQ-PARTICIPANT")
    attendee.params["PARTSTAT"] = vText(partstat)
    attendee.params["RSVP"] = vText("TRUE")

    calendar = Calendar()
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("prodid", PRODUCT_ID)
    calendar.add("method", invite.method)

    event = Event()
    event.add("uid", invite.uid)
    event.add("summary", invite.title)
    event.add("sequence", invite.sequence)
    event.add("dtstamp", (stamp or datetime.now(timezone.utc)).astimezone(timezone.utc))
    event.add("dtstart", start)
    event.add("dtend", end)
    if invite.description:
        event.add("description", invite.description)
    if invite.location:
        event.add("location", invite.location)
    event.add("status", invite.status)
    event.add("transp", "TRANSPARENT" if cancelled else "OPAQUE")
    event.add("x-microsoft-cdo-busystatus", busy_status)
    event.add("organizer", organizer, encode=False)
    event.add("attendee", attendee, encode=False)
    calendar.add_component(event)

    try:
        content = calendar.to_ical().decode("utf-8")
    except (ValueError, TypeError) as e:
        raise IcsBuildError(f"Failed to encode invite {invite.uid}: {e}") from e

    if "BEGIN:VEVENT" not in content:
        raise IcsBuildError(f"Encoded invite {invite.uid} has no event")

    logger.debug(f"📅 Built ICS invite uid={invite.uid} seq={invite.sequence} method={invite.method}")
    return content

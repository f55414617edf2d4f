"""
MJML Email Templates
Booking notification emails (confirmation, reschedule, cancellation)
"""

from datetime import datetime, timezone
from typing import Optional

from .utils.sanitization import sanitize_string

THEME = {
    "background": "#ffffff",
    "text_primary": "#111827",
    "text_secondary": "#4b5563",
    "text_muted": "#6b7280",
    "link": "#2563eb",
    "danger": "#dc2626",
    "confirmed_bg": "#f3f4f6",
    "rescheduled_bg": "#fef3c7",
    "cancelled_bg": "#fee2e2",
}

FONT_FAMILY = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif"


def format_datetime(value: datetime) -> str:
    """Render an instant as e.g. 'Monday, January 1, 2024 at 3:00 PM UTC'"""
    utc = value.astimezone(timezone.utc)
    hour = utc.hour % 12 or 12
    meridiem = "AM" if utc.hour < 12 else "PM"
    return (
        f"{utc.strftime('%A')}, {utc.strftime('%B')} {utc.day}, {utc.year} "
        f"at {hour}:{utc.minute:02d} {meridiem} UTC"
    )


def location_html(location: Optional[str]) -> str:
    if not location:
        return ""
    safe = sanitize_string(location)
    return (
        f'<p style="margin: 8px 0; color: {THEME["text_secondary"]};"><strong>Where:</strong> '
        f'<a href="{safe}" style="color: {THEME["link"]};">{safe}</a></p>'
    )


def cancel_link_html(cancel_url: Optional[str]) -> str:
    if not cancel_url:
        return ""
    return (
        f'<a href="{sanitize_string(cancel_url)}" style="color: {THEME["danger"]}; '
        f'font-size: 14px;">Need to cancel?</a>'
    )


def reschedule_link_html(reschedule_url: Optional[str]) -> str:
    if not reschedule_url:
        return ""
    return (
        f'<a href="{sanitize_string(reschedule_url)}" style="color: {THEME["link"]};">'
        f"Book a new time</a>"
    )


def get_base_template(
    heading: str,
    preview_text: str,
    card_html: str,
    card_background: str,
    footer_note: str,
    link_html: str = "",
    heading_color: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for booking emails"""

    link_section = ""
    if link_html:
        link_section = f"""
        <mj-section padding="0 20px 24px 20px">
          <mj-column>
            <mj-text padding="0">{link_html}</mj-text>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{heading}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="{FONT_FAMILY}" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}" width="600px">
        <mj-section padding="20px 20px 0 20px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{heading_color or THEME['text_primary']}" padding="0">
              {heading}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="{card_background}" border-radius="8px" padding="20px">
          <mj-column>
            <mj-text padding="0">
              {card_html}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section padding="0 20px">
          <mj-column>
            <mj-text font-size="14px" color="{THEME['text_muted']}" padding="0 0 8px 0">
              {footer_note}
            </mj-text>
          </mj-column>
        </mj-section>

        {link_section}
      </mj-body>
    </mjml>
    """


def _booking_card(
    title: str,
    when_label: str,
    start: datetime,
    host_display: str,
    location: Optional[str] = None,
    strike_title: bool = False,
) -> str:
    decoration = " text-decoration: line-through;" if strike_title else ""
    return f"""
    <h3 style="margin: 0 0 16px 0; color: {THEME['text_primary']};{decoration}">{sanitize_string(title)}</h3>
    <p style="margin: 8px 0; color: {THEME['text_secondary']};">
      <strong>{when_label}:</strong> {format_datetime(start)}
    </p>
    {location_html(location)}
    <p style="margin: 8px 0; color: {THEME['text_secondary']};">
      <strong>With:</strong> {sanitize_string(host_display)}
    </p>
    """


def booking_confirmed_template(
    title: str,
    start: datetime,
    host_display: str,
    location: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> str:
    """Booking confirmation MJML template"""
    return get_base_template(
        heading="Your meeting is confirmed",
        preview_text=f"Confirmed: {sanitize_string(title)}",
        card_html=_booking_card(title, "When", start, host_display, location),
        card_background=THEME["confirmed_bg"],
        footer_note=(
            "A calendar invite is attached to this email. "
            "Add it to your calendar to receive reminders."
        ),
        link_html=cancel_link_html(cancel_url),
    )


def booking_rescheduled_template(
    title: str,
    start: datetime,
    host_display: str,
    location: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> str:
    """Booking rescheduled MJML template"""
    return get_base_template(
        heading="Your meeting has been rescheduled",
        preview_text=f"Rescheduled: {sanitize_string(title)}",
        card_html=_booking_card(title, "New time", start, host_display, location),
        card_background=THEME["rescheduled_bg"],
        footer_note="An updated calendar invite is attached. Please update your calendar.",
        link_html=cancel_link_html(cancel_url),
    )


def booking_cancelled_template(
    title: str,
    start: datetime,
    host_display: str,
    reschedule_url: Optional[str] = None,
) -> str:
    """Booking cancellation MJML template"""
    return get_base_template(
        heading="Your meeting has been cancelled",
        preview_text=f"Cancelled: {sanitize_string(title)}",
        card_html=_booking_card(
            title, "Was scheduled for", start, host_display, strike_title=True
        ),
        card_background=THEME["cancelled_bg"],
        footer_note=(
            "A cancellation notice is attached. "
            "The event should be automatically removed from your calendar."
        ),
        link_html=reschedule_link_html(reschedule_url),
        heading_color=THEME["danger"],
    )

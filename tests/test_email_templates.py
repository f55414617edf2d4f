import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from cal_notify.email_service import TemplateRenderError, compile_mjml_to_html, send_email
from cal_notify.email_templates import (
    booking_cancelled_template,
    booking_confirmed_template,
    booking_rescheduled_template,
    format_datetime,
)

START = datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc)


def test_format_datetime():
    assert format_datetime(START) == "Monday, January 1, 2024 at 3:00 PM UTC"
    assert (
        format_datetime(datetime(2024, 1, 2, 1, 5, tzinfo=timezone(timedelta(hours=2))))
        == "Monday, January 1, 2024 at 11:05 PM UTC"
    )
    assert format_datetime(datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)).endswith("12:00 AM UTC")


def test_confirmed_template():
    mjml = booking_confirmed_template(
        title="Intro Call",
        start=START,
        host_display="Host",
        location="https://meet.example.com/abc",
        cancel_url="https://cal.example.com/cancel/1",
    )

    assert "Your meeting is confirmed" in mjml
    assert "Monday, January 1, 2024 at 3:00 PM UTC" in mjml
    assert 'href="https://meet.example.com/abc"' in mjml
    assert 'href="https://cal.example.com/cancel/1"' in mjml
    assert "line-through" not in mjml


def test_confirmed_template_without_optional_links():
    mjml = booking_confirmed_template(title="Intro Call", start=START, host_display="Host")

    assert "Need to cancel?" not in mjml
    assert "Where:" not in mjml


def test_rescheduled_template():
    mjml = booking_rescheduled_template(title="Intro Call", start=START, host_display="Host")

    assert "Your meeting has been rescheduled" in mjml
    assert "New time" in mjml


def test_cancelled_template():
    mjml = booking_cancelled_template(
        title="Intro Call",
        start=START,
        host_display="Host",
        reschedule_url="https://cal.example.com/book",
    )

    assert "Your meeting has been cancelled" in mjml
    assert "text-decoration: line-through;" in mjml
    assert "Was scheduled for" in mjml
    assert "Book a new time" in mjml


def test_values_are_escaped():
    mjml = booking_confirmed_template(
        title="<script>alert(1)</script>", start=START, host_display="A & B"
    )

    assert "<script>" not in mjml
    assert "&lt;script&gt;" in mjml
    assert "A &amp; B" in mjml


def test_compile_handles_result_mapping():
    with patch("cal_notify.email_service.mjml_to_html", return_value={"html": "<html/>", "errors": []}):
        assert compile_mjml_to_html("<mjml/>") == "<html/>"


def test_compile_empty_result_raises():
    with patch("cal_notify.email_service.mjml_to_html", return_value={"html": "", "errors": []}):
        with pytest.raises(TemplateRenderError):
            compile_mjml_to_html("<mjml/>")


def test_compile_failure_raises():
    with patch("cal_notify.email_service.mjml_to_html", side_effect=RuntimeError("bad tag")):
        with pytest.raises(TemplateRenderError):
            compile_mjml_to_html("<mjml/>")


def test_send_email_hands_rendered_html_to_mailer():
    mailer = AsyncMock()
    mailer.send_email.return_value = {"MessageID": "abc"}

    with patch("cal_notify.email_service.mjml_to_html", return_value={"html": "<p>ok</p>"}):
        result = asyncio.run(
            send_email(
                mailer,
                from_address="bookings@example.com",
                to="guest@example.com",
                subject="Cancelled: Intro Call",
                mjml_content="<mjml/>",
                ics_content="BEGIN:VCALENDAR",
                ics_method="CANCEL",
            )
        )

    assert result == {"MessageID": "abc"}
    email = mailer.send_email.await_args.args[0]
    assert email.html_body == "<p>ok</p>"
    assert email.ics_method == "CANCEL"
    assert email.to == "guest@example.com"

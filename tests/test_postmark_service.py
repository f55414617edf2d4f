import asyncio
import base64
import json

import httpx
import pytest

from cal_notify.config import Settings
from cal_notify.services.postmark_service import (
    EmailConfigurationError,
    OutboundEmail,
    PostmarkClient,
    PostmarkError,
    build_ics_attachment,
)

ICS = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n"


def make_email(**overrides):
    values = dict(
        from_address="bookings@example.com",
        to="guest@example.com",
        subject="Confirmed: Intro Call",
        html_body="<p>Hi</p>",
        ics_content=ICS,
        ics_method="REQUEST",
    )
    values.update(overrides)
    return OutboundEmail(**values)


def client_returning(status_code, captured, **response_kwargs):
    def handler(request):
        captured.append(request)
        return httpx.Response(status_code, **response_kwargs)

    return PostmarkClient(server_token="pm-server-token", transport=httpx.MockTransport(handler))


def test_attachment_encoding():
    attachment = build_ics_attachment(ICS, "CANCEL")

    assert attachment["Name"] == "invite.ics"
    assert base64.b64decode(attachment["Content"]).decode("utf-8") == ICS
    assert attachment["ContentType"] == 'text/calendar; method=CANCEL; charset="utf-8"'


def test_send_posts_message():
    captured = []
    client = client_returning(200, captured, json={"MessageID": "abc-123", "ErrorCode": 0})

    data = asyncio.run(client.send_email(make_email(text_body="Hi")))

    assert data["MessageID"] == "abc-123"
    request = captured[0]
    assert str(request.url) == "https://api.postmarkapp.com/email"
    assert request.headers["X-Postmark-Server-Token"] == "pm-server-token"
    assert request.headers["Accept"] == "application/json"

    body = json.loads(request.content)
    assert body["From"] == "bookings@example.com"
    assert body["To"] == "guest@example.com"
    assert body["Subject"] == "Confirmed: Intro Call"
    assert body["HtmlBody"] == "<p>Hi</p>"
    assert body["TextBody"] == "Hi"
    assert body["MessageStream"] == "outbound"
    assert body["Attachments"] == [build_ics_attachment(ICS, "REQUEST")]


def test_message_without_attachment_or_text():
    client = PostmarkClient(server_token="pm-server-token")

    message = client.build_message(make_email(ics_content=None))

    assert "Attachments" not in message
    assert "TextBody" not in message


def test_provider_error_uses_message_field():
    captured = []
    client = client_returning(
        422, captured, json={"ErrorCode": 300, "Message": "Invalid 'To' address: 'x'."}
    )

    with pytest.raises(PostmarkError) as exc_info:
        asyncio.run(client.send_email(make_email()))

    assert exc_info.value.status_code == 422
    assert exc_info.value.message == "Invalid 'To' address: 'x'."
    assert str(exc_info.value) == "Postmark send failed: 422 - Invalid 'To' address: 'x'."


def test_provider_error_without_json_uses_text():
    client = client_returning(503, [], text="upstream unavailable")

    with pytest.raises(PostmarkError) as exc_info:
        asyncio.run(client.send_email(make_email()))

    assert exc_info.value.message == "upstream unavailable"


def test_missing_token():
    client = PostmarkClient(server_token=None)

    with pytest.raises(EmailConfigurationError):
        asyncio.run(client.send_email(make_email()))


def test_from_settings():
    settings = Settings(
        postmark_server_api_token="tok",
        postmark_api_url="https://postmark.test/email",
        postmark_message_stream="broadcast",
        postmark_timeout_seconds=5,
    )

    client = PostmarkClient.from_settings(settings)

    assert client.server_token == "tok"
    assert client.api_url == "https://postmark.test/email"
    assert client.build_message(make_email())["MessageStream"] == "broadcast"
    assert client.timeout == 5

"""
Shared fixtures: in-memory database, test settings, a recording mailer and
a TestClient with the app's dependencies overridden.
"""

import base64
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cal_notify.config import Settings, get_settings
from cal_notify.database import Base, get_db
from cal_notify.domain.booking_webhooks.router import get_mailer
from cal_notify.main import app
from cal_notify.rate_limiter import get_rate_limiter

WEBHOOK_SECRET = "whsec_test_secret"
SESSION_SECRET = "session-signing-secret"
ENCRYPTION_KEY = base64.b64encode(b"k" * 32).decode()


class RecordingMailer:
    """Stands in for PostmarkClient and keeps every message it is asked to send"""

    def __init__(self):
        self.sent = []

    async def send_email(self, email):
        self.sent.append(email)
        return {"MessageID": f"msg-{len(self.sent)}", "ErrorCode": 0}


class RecordingRateLimiter:
    def __init__(self):
        self.calls = []

    def check(self, identifier, limit, window_seconds):
        self.calls.append((identifier, limit, window_seconds))


@pytest.fixture
def settings():
    return Settings(
        cal_webhook_secret=WEBHOOK_SECRET,
        postmark_server_api_token="pm-server-token",
        postmark_from_email="bookings@example.com",
        encryption_key=ENCRYPTION_KEY,
        secret_key=SESSION_SECRET,
        database_url="sqlite://",
    )


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def rate_limiter():
    return RecordingRateLimiter()


@pytest.fixture
def plain_html(monkeypatch):
    """Skip MJML compilation so route tests only exercise the webhook flow"""
    monkeypatch.setattr(
        "cal_notify.email_service.compile_mjml_to_html", lambda mjml: f"<html>{mjml}</html>"
    )


@pytest.fixture
def client(settings, db_session, mailer, rate_limiter, plain_html):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

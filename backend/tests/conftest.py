"""Shared fixtures: in-memory database, TestClient and authenticated users."""
import os

# Settings are read at import time, so the environment must be set first
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["GROQ_API_KEY"] = ""
os.environ["EMAILJS_SERVICE_ID"] = ""
os.environ["EMAILJS_TEMPLATE_ID"] = ""
os.environ["EMAILJS_PUBLIC_KEY"] = ""
os.environ["REMINDER_SCHEDULER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from pesaflip.ai import groq_client
from pesaflip.core.rate_limiter import rate_limiter
from pesaflip.core.security import create_access_token, get_password_hash
from pesaflip.db.base import Base
from pesaflip.db.session import SessionLocal, engine
from pesaflip.jobs import invoice_reminders
from pesaflip.main import app
from pesaflip.models.user import User

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    invoice_reminders.reset_job_state()
    groq_client._groq_client = None
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # No context manager: skips the lifespan (admin seeding, scheduler)
    return TestClient(app)


def register(client, phone_number="+254712345678", name="Jane Wanjiku", password=DEFAULT_PASSWORD, **extra):
    """Register through the API and return (user, token). Drops the auth cookie."""
    payload = {"phone_number": phone_number, "name": name, "password": password, **extra}
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    client.cookies.clear()
    data = response.json()["data"]
    return data["user"], data["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_and_headers(client):
    user, token = register(
        client,
        email="jane@example.co.ke",
        business_name="Wanjiku Designs",
        business_type="creative",
    )
    return user, bearer(token)


@pytest.fixture
def auth_headers(user_and_headers):
    return user_and_headers[1]


@pytest.fixture
def admin_headers(db):
    admin = User(
        phone_number="+254700000001",
        name="Administrator",
        hashed_password=get_password_hash(DEFAULT_PASSWORD),
        role="admin",
    )
    db.add(admin)
    db.commit()
    token = create_access_token(admin.id, {"phone": admin.phone_number, "role": "admin"})
    return bearer(token)


class FakeGroq:
    """Stands in for GroqClient; replays canned responses and records prompts."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def is_available(self):
        return True

    def complete(self, messages, **kwargs):
        self.calls.append({"messages": messages, **kwargs})
        return self.responses.pop(0) if self.responses else None

"""
Test configuration for the account service.
"""
import os
import re

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MAIL_USERNAME", "mailer")
os.environ.setdefault("MAIL_PASSWORD", "mailer-password")
os.environ.setdefault("MAIL_FROM", "noreply@example.com")
os.environ.setdefault("MAIL_SERVER", "localhost")
os.environ.setdefault("MAIL_SUPPRESS_SEND", "true")
os.environ.setdefault("FRONTEND_URL", "http://localhost:3000")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database import Base, get_db
from src.main import app
from src.core.mail import Notifier
from src.accounts.dependencies import get_notifier

# Test database URL
TEST_DATABASE_URL = "sqlite:///./test.db"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingNotifier(Notifier):
    """
    Notifier that keeps every message instead of sending it.
    """
    def __init__(self):
        self.messages = []

    def notify(self, email, subject, html):
        self.messages.append({"email": email, "subject": subject, "html": html})

    def last(self, subject=None):
        matching = [m for m in self.messages if subject is None or m["subject"] == subject]
        return matching[-1] if matching else None


def extract_otp(message):
    return re.search(r'<div class="code">(\d+)</div>', message["html"]).group(1)


def extract_reset_link(message):
    match = re.search(r'reset-password\?token=([0-9a-f]+)&id=([0-9a-f-]+)', message["html"])
    return match.group(1), match.group(2)


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def outbox():
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db, outbox):
    """
    Create a test client with a test database session and a recording notifier.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    # Override the get_db and get_notifier dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: outbox

    # Create test client
    with TestClient(app) as client:
        yield client

    # Remove dependency override
    app.dependency_overrides = {}


@pytest.fixture
def register(client):
    """
    Register an account through the API and return the response body.
    """
    def _register(name="Ann", email="ann@x.com", password="Secret123"):
        response = client.post(
            "/api/v1/users/create",
            json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return response.json()["user"]
    return _register


@pytest.fixture
def signin(client):
    """
    Sign in and return the bearer token.
    """
    def _signin(email="ann@x.com", password="Secret123"):
        response = client.post("/api/v1/users/signin", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["user"]["token"]
    return _signin

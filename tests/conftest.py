"""Pytest configuration and fixtures."""

import re
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from agrirent.config import get_settings
from agrirent.database import Base, get_db
from agrirent.models.account import Account  # noqa: F401
from agrirent.services.auth import AuthService
from agrirent.services.tokens import TokenService

ACTIVATION_LINK_RE = re.compile(r"\?activate=([\w.-]+)")
RESET_LINK_RE = re.compile(r"/reset-password/([\w.-]+)")


class RecordingMailer:
    """Mailer that keeps sent messages in memory and can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def send(self, to: str, subject: str, html_body: str) -> bool:
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "html": html_body})
        return True

    def last_activation_token(self) -> str:
        return ACTIVATION_LINK_RE.search(self.sent[-1]["html"]).group(1)

    def last_reset_token(self) -> str:
        return RESET_LINK_RE.search(self.sent[-1]["html"]).group(1)


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime.utcnow()

    def __call__(self) -> datetime:
        return self.now


def signup_payload(email: str = "farmer@example.com", password: str = "abcdef", **extra) -> dict:
    payload = {
        "name": "Test Farmer",
        "email": email,
        "password": password,
        "phone": "9876543210",
        "address": "12 Field Road",
    }
    payload.update(extra)
    return payload


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mailer")
def mailer_fixture() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture(name="token_service")
def token_service_fixture() -> TokenService:
    return TokenService(get_settings())


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock()


@pytest.fixture(name="auth_service")
def auth_service_fixture(token_service: TokenService, mailer: RecordingMailer, clock: FakeClock) -> AuthService:
    return AuthService(token_service, mailer, get_settings(), clock=clock)


@pytest.fixture(name="client")
def client_fixture(db_session: Session, auth_service: AuthService, token_service: TokenService):
    """Create a test client with overridden DB dependency, a recording mailer and no rate limiting."""
    from agrirent.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    original_services = (app.state.auth_service, app.state.token_service)
    app.state.auth_service = auth_service
    app.state.token_service = token_service
    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()
    app.state.auth_service, app.state.token_service = original_services


@pytest.fixture(name="activated_user")
def activated_user_fixture(client: TestClient, mailer: RecordingMailer) -> dict:
    """Sign up and activate an end-user account; return its credentials."""
    response = client.post("/api/auth/user/signup", json=signup_payload())
    assert response.status_code == 201
    token = mailer.last_activation_token()
    response = client.get(f"/api/auth/user/activate/{token}")
    assert response.status_code == 200
    return {"email": "farmer@example.com", "password": "abcdef", "id": response.json()["id"]}


@pytest.fixture(name="session_token")
def session_token_fixture(client: TestClient, activated_user: dict) -> str:
    response = client.post(
        "/api/auth/user/signin",
        json={"email": activated_user["email"], "password": activated_user["password"]},
    )
    assert response.status_code == 200
    return response.json()["token"]

import pytest
from fastapi.testclient import TestClient

from digital_menu.config import Settings
from digital_menu.main import create_app


class RecordingEmailSender:
    """Stands in for the real mail backend; remembers every code it was asked to send."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_verification_code(self, to_email, code):
        if self.fail:
            return False
        self.sent.append((to_email, code))
        return True

    def last_code(self, email):
        return [c for e, c in self.sent if e == email][-1]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        EMAIL_BACKEND="console",
        JWT_SECRET="test-secret",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def sender():
    return RecordingEmailSender()


@pytest.fixture
def app(settings, sender):
    return create_app(settings, email_sender=sender)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sign_in(sender):
    """Register + verify through the API; the client keeps the session cookie."""

    def _sign_in(client, email="owner@menu.io", full_name="Owner", country="US"):
        r = client.post("/auth/register", json={"email": email, "fullName": full_name, "country": country})
        assert r.status_code == 200, r.text
        r = client.post("/auth/verify", json={"email": email, "code": sender.last_code(email)})
        assert r.status_code == 200, r.text
        return r.json()["userId"]

    return _sign_in

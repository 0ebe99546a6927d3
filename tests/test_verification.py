from datetime import datetime, timedelta

from sqlalchemy import select

from digital_menu import models, verification
from digital_menu.util.time import utcnow_naive
from digital_menu.verification import generate_code, is_code_fresh

REGISTER = {"email": "a@b.com", "fullName": "A Person", "country": "US"}


def _user(db, email="a@b.com"):
    db.expire_all()
    return db.execute(select(models.User).where(models.User.email == email)).scalar_one_or_none()


# ---------- code generator / expiry checker ----------

def test_generate_code_is_six_digits():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()


def test_is_code_fresh_needs_a_timestamp():
    assert is_code_fresh(None) is False


def test_is_code_fresh_window_is_strictly_under_thirty_minutes():
    sent = datetime(2025, 1, 1, 12, 0, 0)
    assert is_code_fresh(sent, now=sent) is True
    assert is_code_fresh(sent, now=sent + timedelta(minutes=29, seconds=59)) is True
    assert is_code_fresh(sent, now=sent + timedelta(minutes=30)) is False
    assert is_code_fresh(sent, now=sent + timedelta(hours=2)) is False


def test_is_code_fresh_keeps_sub_second_precision():
    sent = datetime(2025, 1, 1, 12, 0, 0, 600000)
    assert is_code_fresh(sent, now=datetime(2025, 1, 1, 12, 30, 0, 100000)) is True
    assert is_code_fresh(sent, now=datetime(2025, 1, 1, 12, 30, 0, 600000)) is False


# ---------- request code ----------

def test_register_creates_pending_user_and_sends_code(client, sender, db):
    r = client.post("/auth/register", json=REGISTER)
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Verification code sent to your email"

    user = _user(db)
    assert body["userId"] == user.id
    assert user.is_verified is False
    assert user.full_name == "A Person"
    assert user.verification_code == sender.last_code("a@b.com")
    assert user.verification_code_sent_at is not None


def test_register_rejects_malformed_input(client, sender):
    for payload in (
        {"email": "not-an-email", "fullName": "A Person", "country": "US"},
        {"email": "a@b.com", "fullName": "A", "country": "US"},
        {"email": "a@b.com", "fullName": "A Person"},
    ):
        r = client.post("/auth/register", json=payload)
        assert r.status_code == 400
        assert r.json()["error"] == "Validation failed"
        assert r.json()["details"]
    assert sender.sent == []


def test_send_failure_is_500_and_keeps_the_unsent_code(client, sender, db):
    sender.fail = True
    r = client.post("/auth/register", json=REGISTER)
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to send verification email. Please try again."}

    user = _user(db)
    assert user is not None
    assert user.verification_code is not None


def test_second_request_invalidates_first_code(client, sender, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(verification, "generate_code", lambda: next(codes))

    client.post("/auth/register", json=REGISTER)
    client.post("/auth/login", json=REGISTER)
    assert [c for _, c in sender.sent] == ["111111", "222222"]

    r = client.post("/auth/verify", json={"email": "a@b.com", "code": "111111"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid verification code"

    r = client.post("/auth/verify", json={"email": "a@b.com", "code": "222222"})
    assert r.status_code == 200


def test_register_for_verified_email_conflicts_but_login_succeeds(client, sender, sign_in, db):
    sign_in(client, email="a@b.com")

    r = client.post("/auth/register", json=REGISTER)
    assert r.status_code == 409
    assert r.json()["error"] == "User with this email already exists"

    r = client.post("/auth/login", json={**REGISTER, "fullName": "A Renamed"})
    assert r.status_code == 200
    user = _user(db)
    assert user.is_verified is True
    assert user.full_name == "A Renamed"
    assert user.verification_code == sender.last_code("a@b.com")


# ---------- confirm code ----------

def test_verify_happy_path_sets_session_cookie(client, sender, db):
    r = client.post("/auth/register", json=REGISTER)
    user_id = r.json()["userId"]

    r = client.post("/auth/verify", json={"email": "a@b.com", "code": sender.last_code("a@b.com")})
    assert r.status_code == 200
    assert r.json() == {"message": "Email verified successfully", "userId": user_id}
    assert r.cookies.get("session")

    set_cookie = r.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    assert "max-age=2592000" in set_cookie
    assert "secure" not in set_cookie

    user = _user(db)
    assert user.is_verified is True
    assert user.verification_code is None
    assert user.verification_code_sent_at is None


def test_code_is_single_use(client, sender):
    client.post("/auth/register", json=REGISTER)
    code = sender.last_code("a@b.com")

    assert client.post("/auth/verify", json={"email": "a@b.com", "code": code}).status_code == 200
    r = client.post("/auth/verify", json={"email": "a@b.com", "code": code})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid verification code"


def test_verify_unknown_email_is_404(client):
    r = client.post("/auth/verify", json={"email": "unknown@x.com", "code": "123456"})
    assert r.status_code == 404
    assert r.json() == {"error": "User not found"}


def test_verify_wrong_code_is_rejected_and_state_unchanged(client, sender, db):
    client.post("/auth/register", json=REGISTER)
    code = sender.last_code("a@b.com")
    wrong = "000000" if code != "000000" else "111111"

    r = client.post("/auth/verify", json={"email": "a@b.com", "code": wrong})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid verification code"
    assert "session" not in r.cookies

    user = _user(db)
    assert user.is_verified is False
    assert user.verification_code == code


def test_verify_code_must_be_six_characters(client, sender):
    client.post("/auth/register", json=REGISTER)
    r = client.post("/auth/verify", json={"email": "a@b.com", "code": "12345"})
    assert r.status_code == 400
    assert r.json()["error"] == "Validation failed"


def test_verify_after_thirty_minutes_is_expired(client, sender, db):
    client.post("/auth/register", json=REGISTER)
    code = sender.last_code("a@b.com")

    user = _user(db)
    user.verification_code_sent_at = utcnow_naive() - timedelta(minutes=30)
    db.commit()

    r = client.post("/auth/verify", json={"email": "a@b.com", "code": code})
    assert r.status_code == 400
    assert r.json()["error"] == "Verification code has expired"
    assert _user(db).is_verified is False


def test_verify_without_timestamp_is_expired(client, sender, db):
    client.post("/auth/register", json=REGISTER)
    code = sender.last_code("a@b.com")

    user = _user(db)
    user.verification_code_sent_at = None
    db.commit()

    r = client.post("/auth/verify", json={"email": "a@b.com", "code": code})
    assert r.status_code == 400
    assert r.json()["error"] == "Verification code has expired"


def test_code_window_is_measured_below_one_second(client, sender, monkeypatch):
    clock = {"now": datetime(2025, 1, 1, 12, 0, 0, 600000)}
    monkeypatch.setattr(verification, "utcnow_naive", lambda: clock["now"])

    client.post("/auth/register", json=REGISTER)
    code = sender.last_code("a@b.com")

    # 29m59.5s after the send
    clock["now"] = datetime(2025, 1, 1, 12, 30, 0, 100000)
    r = client.post("/auth/verify", json={"email": "a@b.com", "code": code})
    assert r.status_code == 200


def test_non_ascii_code_is_just_invalid(client, sender):
    client.post("/auth/register", json=REGISTER)
    r = client.post("/auth/verify", json={"email": "a@b.com", "code": "12345é"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid verification code"


def test_register_rejects_values_longer_than_their_columns(client, sender):
    for payload in (
        {**REGISTER, "fullName": "x" * 101},
        {**REGISTER, "country": "x" * 101},
    ):
        r = client.post("/auth/register", json=payload)
        assert r.status_code == 400
        assert r.json()["error"] == "Validation failed"
    assert sender.sent == []


def test_lost_first_insert_race_is_retried_as_update(client, sender, db, monkeypatch):
    # another request created the row after our lookup found nothing
    existing = models.User(email="a@b.com", full_name="Someone Else", country="DE")
    db.add(existing)
    db.commit()

    real_lookup = verification._locked_user
    lookups = []

    def racing_lookup(session, email):
        lookups.append(email)
        return None if len(lookups) == 1 else real_lookup(session, email)

    monkeypatch.setattr(verification, "_locked_user", racing_lookup)

    r = client.post("/auth/register", json=REGISTER)
    assert r.status_code == 200
    assert r.json()["userId"] == existing.id
    assert len(lookups) == 2

    user = _user(db)
    assert user.full_name == "A Person"
    assert user.verification_code == sender.last_code("a@b.com")
    assert db.execute(select(models.User)).scalars().all() == [user]

# digital_menu/verification.py
from __future__ import annotations

import hmac
import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Literal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .auth import SessionIssuer
from .emailer import EmailSender
from .errors import Conflict, DeliveryError, Expired, InvalidCode, NotFound
from .schemas import RegisterIn
from .util.time import utcnow_naive

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
CODE_TTL = timedelta(minutes=30)

Purpose = Literal["register", "login"]


# ---------- code helpers ----------
def generate_code(length: int = CODE_LENGTH) -> str:
    # numeric code, e.g., "048201"
    return "".join(secrets.choice(string.digits) for _ in range(length))


def is_code_fresh(sent_at: datetime | None, now: datetime | None = None, ttl: timedelta = CODE_TTL) -> bool:
    if sent_at is None:
        return False
    now = now or utcnow_naive()
    return now - sent_at < ttl


def _locked_user(db: Session, email: str) -> models.User | None:
    # row lock serializes concurrent requests for one email (ignored by sqlite)
    stmt = select(models.User).where(models.User.email == email).with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def _upsert_pending_user(db: Session, data: RegisterIn, purpose: Purpose, code: str) -> models.User:
    now = utcnow_naive()
    user = _locked_user(db, data.email)

    if user and user.is_verified and purpose == "register":
        db.rollback()
        logger.warning("Register attempt for already verified email: %s", data.email)
        raise Conflict("User with this email already exists")

    if user is None:
        user = models.User(email=data.email)
        db.add(user)

    user.full_name = data.full_name
    user.country = data.country
    user.verification_code = code
    user.verification_code_sent_at = now
    db.commit()
    return user


# =========================================================
#  REQUEST CODE  (register / login: upsert, then send)
# =========================================================
async def request_code(
    db: Session,
    sender: EmailSender,
    data: RegisterIn,
    purpose: Purpose,
) -> models.User:
    """
    Stores a fresh code for `data.email` (overwriting any outstanding one)
    and mails it.

    `register` refuses emails that are already verified; `login` is the
    returning-user path and sends verified users a new code too. The row
    is committed before the email goes out, so a failed send leaves the
    unsent code in place; the user recovers by asking again.
    """
    code = generate_code()
    try:
        user = _upsert_pending_user(db, data, purpose, code)
    except IntegrityError:
        # lost a first-insert race on the unique email; the row exists now
        db.rollback()
        user = _upsert_pending_user(db, data, purpose, code)

    if not await sender.send_verification_code(data.email, code):
        logger.error("Verification email could not be delivered to %s", data.email)
        raise DeliveryError()

    logger.info("Verification code sent to %s (%s)", data.email, purpose)
    return user


# =========================================================
#  CONFIRM CODE  (single use; issues the session token)
# =========================================================
def confirm_code(
    db: Session,
    issuer: SessionIssuer,
    email: str,
    code: str,
    ttl: timedelta = CODE_TTL,
) -> tuple[models.User, str]:
    user = db.execute(select(models.User).where(models.User.email == email)).scalar_one_or_none()
    if not user:
        raise NotFound("User not found")

    # constant-time exact match; bytes accept non-ASCII input
    if user.verification_code is None or not hmac.compare_digest(user.verification_code.encode(), code.encode()):
        logger.warning("Invalid verification code for %s", email)
        raise InvalidCode()

    if not is_code_fresh(user.verification_code_sent_at, ttl=ttl):
        logger.warning("Expired verification code for %s", email)
        raise Expired()

    user.is_verified = True
    user.verification_code = None
    user.verification_code_sent_at = None
    db.commit()

    token = issuer.issue(user.id, user.email)
    logger.info("User %s verified", email)
    return user, token

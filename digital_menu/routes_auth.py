from datetime import timedelta

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .auth import SessionIssuer, get_session_issuer
from .config import Settings, get_app_settings
from .db import get_db
from .emailer import EmailSender, get_email_sender
from .schemas import AuthOut, MessageOut, RegisterIn, VerifyCodeIn
from .verification import confirm_code, request_code

auth_router = APIRouter(prefix="/auth", tags=["auth"])

CODE_SENT = "Verification code sent to your email"


# ----------------- Public: send a code -----------------
@auth_router.post("/register", response_model=AuthOut)
async def register(
    data: RegisterIn,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    user = await request_code(db, sender, data, "register")
    return AuthOut(message=CODE_SENT, user_id=user.id)


@auth_router.post("/login", response_model=AuthOut)
async def login(
    data: RegisterIn,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    user = await request_code(db, sender, data, "login")
    return AuthOut(message=CODE_SENT, user_id=user.id)


# ----------------- Public: exchange the code for a session -----------------
@auth_router.post("/verify", response_model=AuthOut)
def verify(
    data: VerifyCodeIn,
    response: Response,
    db: Session = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
    settings: Settings = Depends(get_app_settings),
):
    ttl = timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES)
    user, token = confirm_code(db, issuer, data.email, data.code, ttl=ttl)
    issuer.attach(response, token)
    return AuthOut(message="Email verified successfully", user_id=user.id)


@auth_router.post("/logout", response_model=MessageOut)
def logout(response: Response, issuer: SessionIssuer = Depends(get_session_issuer)):
    issuer.destroy(response)
    return MessageOut(message="Logged out successfully")

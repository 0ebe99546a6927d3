# digital_menu/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from . import models
from .config import Settings
from .db import get_db
from .errors import Unauthorized
from .schemas import UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


@dataclass(frozen=True)
class SessionPayload:
    user_id: str
    email: str


class SessionIssuer:
    """Mints and checks the signed `session` cookie.

    Tokens are self-contained HS256 JWTs; nothing is stored server side, so
    logging out only removes the cookie and a copied token stays valid until
    it expires. Rotating the secret invalidates every outstanding session.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        max_age_days: int = 30,
        cookie_name: str = "session",
        secure: bool = False,
        domain: Optional[str] = None,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.max_age = timedelta(days=max_age_days)
        self.cookie_name = cookie_name
        self.secure = secure
        self.domain = domain

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionIssuer":
        return cls(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            max_age_days=settings.SESSION_MAX_AGE_DAYS,
            cookie_name=settings.SESSION_COOKIE_NAME,
            secure=settings.cookie_secure,
            domain=settings.COOKIE_DOMAIN,
        )

    def issue(self, user_id: str, email: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {"userId": user_id, "email": email, "iat": now, "exp": now + self.max_age}
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def validate(self, token: Optional[str]) -> Optional[SessionPayload]:
        # binary outcome on purpose: callers never learn why a token was refused
        if not token:
            return None
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            return None
        user_id, email = claims.get("userId"), claims.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            return None
        return SessionPayload(user_id=user_id, email=email)

    def attach(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=int(self.max_age.total_seconds()),
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )

    def destroy(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


# ------------- The dependencies you import elsewhere -------------
def get_current_session(
    request: Request,
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> SessionPayload:
    payload = issuer.validate(request.cookies.get(issuer.cookie_name))
    if payload is None:
        raise Unauthorized()
    return payload


def get_current_user(
    session: SessionPayload = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> models.User:
    user = db.get(models.User, session.user_id)
    if not user:
        raise Unauthorized()
    return user


# ------------- Who am I -------------
@router.get("/me", response_model=UserOut)
def me(current: models.User = Depends(get_current_user)):
    return current

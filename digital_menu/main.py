# digital_menu/main.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__, models  # noqa: F401  (registers the tables on Base.metadata)
from .auth import SessionIssuer, router as auth_core_router
from .categories import router as categories_router
from .config import Settings, get_settings
from .db import Base, build_engine, build_session_factory
from .dishes import router as dishes_router
from .emailer import EmailSender, build_email_sender
from .errors import register_exception_handlers
from .logging_config import setup_logging
from .public_menu import router as public_menu_router
from .restaurants import router as restaurants_router
from .routes_auth import auth_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    email_sender: Optional[EmailSender] = None,
) -> FastAPI:
    """Build the API with its process-wide collaborators.

    Engine, session factory, email sender and session issuer are created
    once here and shared read-only through ``app.state``; routes reach them
    via dependencies instead of module globals.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    if settings.APP_ENV == "production" and settings.JWT_SECRET == Settings.model_fields["JWT_SECRET"].default:
        logger.warning("JWT_SECRET is the development default; sessions are forgeable")

    app = FastAPI(
        title="Digital Menu API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )

    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.email_sender = email_sender or build_email_sender(settings)
    app.state.session_issuer = SessionIssuer.from_settings(settings)

    app.include_router(auth_router)
    app.include_router(auth_core_router)
    app.include_router(restaurants_router)
    app.include_router(categories_router)
    app.include_router(dishes_router)
    app.include_router(public_menu_router)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info("Digital Menu API ready (env=%s, email=%s)", settings.APP_ENV, settings.EMAIL_BACKEND)
    return app

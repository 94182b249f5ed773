"""
Assistify: FastAPI application entry point.
Lifespan: build engine and services, create DB tables, verify connectivity.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assistify import __version__
from assistify.config import Settings, get_settings
from assistify.database import (
    build_engine,
    build_sessionmaker,
    check_db_connectivity,
    create_tables,
)
from assistify.errors import AppError, InternalError, InvalidInput
from assistify.routers import chat, health, users
from assistify.services.auth import AuthService
from assistify.services.conversations import ConversationService
from assistify.services.generation import CompletionClient
from assistify.services.mailer import Mailer, build_mailer
from assistify.services.storage import Storage

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "Invalid request")


def create_app(
    settings: Optional[Settings] = None,
    *,
    mailer: Optional[Mailer] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application.

    settings defaults to the environment snapshot. mailer and transport let
    callers replace outgoing mail and the OpenRouter HTTP transport.
    """
    if settings is None:
        settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """
        Application lifespan handler.
        1. Build engine, session factory and services.
        2. Create all tables (idempotent).
        3. Verify DB connectivity.
        """
        logger.info("Starting Assistify (env=%s)", settings.app_env)

        engine = build_engine(settings)
        sessionmaker = build_sessionmaker(engine)
        storage = Storage(sessionmaker)
        generator = CompletionClient(settings, transport=transport)

        app.state.settings = settings
        app.state.engine = engine
        app.state.sessionmaker = sessionmaker
        app.state.storage = storage
        app.state.auth_service = AuthService(settings, storage, mailer or build_mailer(settings))
        app.state.conversation_service = ConversationService(storage, generator)

        if not generator.configured:
            logger.warning("OPENROUTER_API_KEY not set; only client-supplied answers will work")

        await create_tables(engine)
        logger.info("Database tables created/verified.")

        if await check_db_connectivity(sessionmaker):
            logger.info("Database connectivity verified.")
        else:
            logger.error("Database connectivity check FAILED at startup.")

        yield

        logger.info("Shutting down Assistify.")
        await engine.dispose()

    app = FastAPI(
        title="Assistify",
        description="Chat threads with email/OTP login and LLM-generated answers.",
        version=__version__,
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ──────────────────────────────────────────────────────────────

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(chat.router)

    # ── Exception handlers ───────────────────────────────────────────────────

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = InvalidInput(_validation_message(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return a machine-readable error for any unhandled exception."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        error = InternalError("Internal server error", diagnostic=exc.__class__.__name__)
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("assistify.main:create_app", factory=True, host="0.0.0.0", port=8000)

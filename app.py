"""
FastAPI application factory.
create_app() is the single entry point for building the app.

Configuration errors (a malformed CAPTCHA_CHARACTER_RANGE, a non-positive
CAPTCHA_LENGTH) are raised here, before the app is returned, so a bad
deployment fails at startup instead of on the first captcha request.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.auth import build_secret_verifier
from repositories.memory_store import InMemoryCaptchaStore
from repositories.mongo_store import MongoCaptchaStore
from repositories.protocol import CaptchaStore
from routes.captcha_routes import router as captcha_router
from routes.client_routes import router as client_router
from routes.health_routes import router as health_router
from services.captcha_service import CaptchaLifecycleService
from services.client_service import ClientService
from shared.generators import ChallengeTextGenerator
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    store: Optional[CaptchaStore] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    Args:
        settings: Loaded from the environment when omitted.
        store: Pre-built store backend; when omitted one is created at
            startup from ``settings.db``.
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        env=settings.env,
    )

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    generator = ChallengeTextGenerator.from_settings(settings.captcha)
    verifier = build_secret_verifier(settings.captcha.credential_scheme)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: Optional[AsyncMongoClient] = None
        active_store = store
        if active_store is None:
            if settings.db.store_backend == "memory":
                active_store = InMemoryCaptchaStore()
            else:
                mongo_client = AsyncMongoClient(settings.db.mongodb_uri, tz_aware=True)
                active_store = MongoCaptchaStore(
                    mongo_client[settings.db.db_name],
                    use_transactions=settings.db.mongodb_transactions,
                )
        await active_store.ensure_indexes()

        client_service = ClientService(active_store, verifier)
        app.state.settings = settings
        app.state.store = active_store
        app.state.client_service = client_service
        app.state.captcha_service = CaptchaLifecycleService(
            active_store, client_service, generator, verifier, settings.captcha
        )
        log.info(
            "app_started",
            store_backend=type(active_store).__name__,
            captcha_mode=settings.captcha.captcha_mode,
            captcha_timeout=settings.captcha.captcha_timeout,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        if mongo_client is not None:
            await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(client_router)
    app.include_router(captcha_router)

    return app

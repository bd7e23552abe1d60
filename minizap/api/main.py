"""FastAPI application factory with lifespan management."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from minizap.config import MinizapConfig, config, configure_logging
from minizap.version import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    # ── Startup ──
    settings: MinizapConfig = app.state.settings
    logger.info(f"minizap v{__version__} starting...")

    # 1. Database
    from minizap.db.database import init_db
    await init_db(app.state.db_engine)

    # 2. Credentials: the API and the email/sms handlers share one key
    from minizap.credentials.encryption import CredentialEncryption
    app.state.encryption = CredentialEncryption(settings.credential_encryption_key)

    # 3. Registry, stores, engine
    from minizap.core.factory import build_sql_runtime
    runtime = build_sql_runtime(
        app.state.session_factory,
        settings=settings,
        encryption=app.state.encryption,
        http_transport=app.state.http_transport,
    )
    app.state.runtime = runtime

    logger.info(f"minizap v{__version__} ready ({len(runtime.registry.list_types())} action types registered)")

    yield

    # ── Shutdown ──
    logger.info("minizap shutting down...")
    app.state.runtime = None
    app.state.encryption = None
    if app.state.owns_engine:
        await app.state.db_engine.dispose()


def create_app(
    database_url: Optional[str] = None,
    settings: Optional[MinizapConfig] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        database_url: Use a dedicated engine instead of the configured one
        settings: Config override (defaults to the module-level config)
        http_transport: httpx transport handed to the outbound HTTP handlers
    """
    settings = settings or config
    configure_logging(settings.log_level)

    app = FastAPI(
        title="minizap",
        description="Linear workflow automation: triggers in, actions out, every run recorded.",
        version=__version__,
        lifespan=lifespan,
    )

    if database_url:
        from minizap.db.database import make_session_factory
        db_engine, session_factory = make_session_factory(database_url, echo=settings.debug)
        owns_engine = True
    else:
        from minizap.db.database import engine as db_engine, async_session as session_factory
        owns_engine = False

    app.state.settings = settings
    app.state.db_engine = db_engine
    app.state.session_factory = session_factory
    app.state.owns_engine = owns_engine
    app.state.http_transport = http_transport
    app.state.runtime = None
    app.state.encryption = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    from minizap.api.routes import execute, webhooks, executions, notifications, integrations, health
    app.include_router(execute.router, prefix="/api")
    app.include_router(webhooks.router, prefix="/api")
    app.include_router(executions.router, prefix="/api")
    app.include_router(notifications.router, prefix="/api")
    app.include_router(integrations.router, prefix="/api")
    app.include_router(health.router, prefix="/api")

    return app


app = create_app()

"""FastAPI application with lifespan startup."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

# Phase 1: Singleton logging, MUST be before any stackscore imports
# (they transitively import litellm which reads LITELLM_LOG at import time)
from stackscore.logging_config import setup_logging

setup_logging()

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker  # noqa: E402
from starlette.responses import JSONResponse  # noqa: E402

from stackscore.api.middleware.auth import BearerAuthMiddleware  # noqa: E402
from stackscore.api.routes import analyses, health  # noqa: E402
from stackscore.config import Settings, create_app_engine  # noqa: E402
from stackscore.logger import RunLogger  # noqa: E402
from stackscore.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
)
from stackscore.models.base import Base  # noqa: E402
from stackscore.repositories.recovery import fail_stale_pending  # noqa: E402

# Phase 2: Now that all imports (including litellm) are done,
# clear litellm's duplicate handlers.
cleanup_third_party_handlers()

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # 1. Use module-level settings (single source of truth)
    settings = _settings

    # 2. Create async engine (WAL set via pool-connect listener on SQLite)
    engine = create_app_engine(
        settings.database_url, echo=settings.debug_mode
    )

    # 3. Create tables + fail analyses left pending by a prior crash
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        recovered = await fail_stale_pending(
            conn, settings.analysis_timeout_seconds
        )
        if recovered:
            _logger.warning(
                "event=status_recovery recovered=%d", recovered
            )

    # 4. Create session factory
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    # 5. Store in app.state
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.run_logger = RunLogger(
        log_dir=settings.log_dir, level=settings.log_level
    )

    if not settings.auth_tokens:
        _logger.warning(
            "event=no_auth_tokens action=any_bearer_token_accepted"
        )

    yield

    # Cleanup
    await engine.dispose()


app = FastAPI(
    title="StackScore",
    description=(
        "Repository analysis service: tech-stack detection and"
        " LLM-reviewed code quality scores"
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware stack (Starlette LIFO: last added = outermost = runs first)
#
# Inbound request order:
#   CORSMiddleware (outermost) -> BearerAuthMiddleware -> Router
#
# CORS must be outermost so OPTIONS preflight is answered before
# BearerAuthMiddleware rejects for a missing Authorization header.
_settings = Settings()

app.add_middleware(BearerAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "apikey", "x-client-info"],
    allow_credentials=False,
)

# Routes
app.include_router(health.router)
app.include_router(analyses.router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report body validation failures in the ``{"error": ...}`` shape."""
    errors = exc.errors()
    if not errors:
        return JSONResponse(
            status_code=422, content={"error": "Invalid request"}
        )
    first = errors[0]
    field = ".".join(
        str(part) for part in first.get("loc", ()) if part != "body"
    )
    message = first.get("msg", "Invalid request")
    _logger.info(
        "event=request_invalid path=%s field=%s", request.url.path, field
    )
    return JSONResponse(
        status_code=422,
        content={"error": f"{field}: {message}" if field else message},
    )

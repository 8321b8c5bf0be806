"""FastAPI application entry point for Natter.

Every request passes through the rate limit, authentication and the
two-phase audit trail (natter.api.middleware) before reaching a router.
"""

import logging

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from limits import parse
from slowapi import Limiter
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from natter.api.dependencies import get_session_factory
from natter.api.messages import router as messages_router
from natter.api.middleware import (
    audit_request,
    authenticate_request,
    natter_error_response,
    rate_limit_key,
    rate_limit_request,
    require_json_post,
)
from natter.api.spaces import router as spaces_router
from natter.api.users import router as users_router
from natter.config.settings import get_settings
from natter.errors import NatterError

APP_VERSION = "0.1.0"

settings = get_settings()

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --- Structured logging ---
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == "dev"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(level=_LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value])

logger: structlog.stdlib.BoundLogger = structlog.get_logger()


def create_app(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    *,
    rate_limit: str | None = None,
) -> FastAPI:
    """Build the application around a session factory.

    Defaults to the process-wide factory from natter.db.session and the
    RATE_LIMIT setting; tests pass their own. Each app gets its own limiter
    storage.
    """
    if session_factory is None:
        from natter.db.session import async_session_factory
        session_factory = async_session_factory

    app = FastAPI(
        title="Natter API",
        description="Spaces, messages, capability grants and an audit trail.",
        version=APP_VERSION,
    )
    app.state.session_factory = session_factory
    app.state.limiter = Limiter(key_func=rate_limit_key)
    app.state.rate_limit = parse(rate_limit or settings.RATE_LIMIT)

    # --- Middleware (last added runs first) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.ENVIRONMENT == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(require_json_post)
    app.middleware("http")(audit_request)
    app.middleware("http")(authenticate_request)
    app.middleware("http")(rate_limit_request)

    # --- Errors ---
    @app.exception_handler(NatterError)
    async def handle_natter_error(request: Request, exc: NatterError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, code=exc.code)
        return natter_error_response(exc)

    # --- Routers ---
    app.include_router(users_router)
    app.include_router(spaces_router)
    app.include_router(messages_router)

    @app.get("/health")
    async def health_check(request: Request) -> dict:
        """Liveness probe with a database connectivity check.

        Returns 200 always (degraded status if the database is down).
        """
        checks: dict[str, bool] = {"api": True}
        try:
            async with get_session_factory(request)() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception:
            logger.warning("health_database_unreachable")
            checks["database"] = False

        return {
            "status": "ok" if all(checks.values()) else "degraded",
            "version": APP_VERSION,
            "environment": settings.ENVIRONMENT.value,
            "checks": checks,
        }

    return app


app = create_app()

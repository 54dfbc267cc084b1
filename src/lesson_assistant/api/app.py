"""FastAPI application with lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from lesson_assistant.api.middleware import RequestLoggingMiddleware
from lesson_assistant.api.routes.chat import router as chat_router
from lesson_assistant.api.routes.courses import router as courses_router
from lesson_assistant.api.routes.lessons import router as lessons_router
from lesson_assistant.api.routes.progress import router as progress_router
from lesson_assistant.chat import ModelRouterGateway, SendGuard, load_chat_prompt
from lesson_assistant.config import settings
from lesson_assistant.llm import create_model_router
from lesson_assistant.logging_config import configure_logging
from lesson_assistant.storage.database import async_session, engine

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown.

    Startup:
        - Load the chat prompt.
        - Create ModelRouter with DB logging enabled and wrap it in the
          completion gateway.
        - Create the process-wide SendGuard.
    Shutdown:
        - Dispose database engine (close connection pool).
    """
    configure_logging(
        environment=str(settings.environment),
        log_level=settings.log_level,
    )
    prompt = load_chat_prompt(settings.chat_prompt_path)
    router = create_model_router(
        settings, async_session, prompt_version=prompt.version
    )

    app.state.chat_prompt = prompt
    app.state.gateway = ModelRouterGateway(
        router,
        settings.chat_action,
        timeout_seconds=settings.completion_timeout_seconds,
    )
    app.state.send_guard = SendGuard()

    logger.info(
        "app_started",
        environment=str(settings.environment),
        prompt_version=prompt.version,
    )
    yield

    await engine.dispose()
    logger.info("app_stopped")


app = FastAPI(
    title="Lesson Assistant",
    description="Lesson viewer backend: transcript-grounded chat and progress",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.is_dev,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)


HEALTH_CHECK_TIMEOUT = 5.0


@app.get("/health")
async def health() -> JSONResponse:
    """Health check: verifies DB connectivity."""
    checks: dict[str, str] = {}
    overall = "ok"

    try:
        async with async_session() as session:
            await asyncio.wait_for(
                session.execute(text("SELECT 1")),
                timeout=HEALTH_CHECK_TIMEOUT,
            )
        checks["db"] = "ok"
    except (TimeoutError, OperationalError, SQLAlchemyError) as e:
        logger.warning("health_check_db_error", error=type(e).__name__)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"
    except Exception as e:
        logger.error("health_check_db_unexpected", error=str(e), exc_info=True)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"

    status_code = 200 if overall == "ok" else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(timespec="seconds"),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions."""
    logger.error("unhandled_exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(courses_router, prefix="/api/v1")
app.include_router(lessons_router, prefix="/api/v1")
app.include_router(chat_router, prefix="/api/v1")
app.include_router(progress_router, prefix="/api/v1")

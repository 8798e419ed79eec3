"""FastAPI application for the Tutor Directory API."""

from contextlib import asynccontextmanager
from datetime import timedelta

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    init_db,
)
from core.logger import configure_logging, get_logger
from core.middleware import RequestContextMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from routes import health_router, tutors_router
from schemas import ErrorResponse
from services.tutors_service import TutorService

configure_logging()
logger = get_logger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions (store/connectivity failures)."""
    logger.exception(
        "unhandled.exception",
        exc_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again."},
    )


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handler for request validation errors."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    errors = exc.errors()
    logger.warning(
        "request.validation_error",
        path=request.url.path,
        method=request.method,
        error_count=len(errors),
    )
    first = errors[0] if errors else {}
    # Drop the "body"/"query"/"path" prefix; keep the offending field name
    loc = [str(part) for part in first.get("loc", ())[1:]]
    body = ErrorResponse(
        detail=first.get("msg", "Invalid request"),
        error="invalid_input",
        field=".".join(loc) or None,
    )
    return JSONResponse(status_code=422, content=body.model_dump(exclude_none=True))


def build_tutor_service(app: fastapi.FastAPI) -> TutorService:
    settings = get_settings()
    return TutorService(
        app.state.session_maker,
        recent_window=timedelta(days=settings.recent_window_days),
    )


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create DB engine and the tutor service at startup, dispose on shutdown."""
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.tutor_service = build_tutor_service(app)

    try:
        await init_db(app.state.engine)
        logger.info("init.complete")
    except Exception as e:
        logger.error("init.failed", error=str(e), exc_info=True)
        await dispose_engine(app.state.engine)
        raise

    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


_settings = get_settings()

app = fastapi.FastAPI(
    title="Tutor Directory API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if _settings.enable_docs or _settings.debug else None,
    redoc_url="/redoc" if _settings.enable_docs or _settings.debug else None,
    openapi_url=("/openapi.json" if _settings.enable_docs or _settings.debug else None),
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(RequestContextMiddleware)

app.include_router(health_router)
app.include_router(tutors_router)

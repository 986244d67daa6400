"""
Trip Planner -- FastAPI Application
Backend for the itinerary planner: trips, day-by-day places with
drag-and-drop ordering, expenses, exchange calculator and checklist.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import logging.config
import time
import uuid

from slowapi.errors import RateLimitExceeded

from tripplanner.core.config import settings
from tripplanner.core.errors import TripPlannerError
from tripplanner.core.monitoring import build_logging_config
from tripplanner.core.rate_limiting import limiter, rate_limit_handler
from tripplanner.db.database import init_db
from tripplanner.api import (
    health,
    routes_checklist,
    routes_exchange,
    routes_expenses,
    routes_places,
    routes_trips,
)

logging.config.dictConfig(build_logging_config(settings.log_level, settings.log_format))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment} | Workers: {settings.api_workers}")
    init_db()
    logger.info(
        f"Exchange rates: expenses {settings.expense_thb_to_krw_rate} KRW/THB, "
        f"calculator {settings.calculator_thb_to_krw_rate} KRW/THB"
    )
    logger.info("Application startup complete -- ready to serve")

    yield

    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Trip itinerary planner API: places, reordering, expenses and checklist.",
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

# GZip compression (min 500 bytes)
app.add_middleware(GZipMiddleware, minimum_size=500)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    """Log requests with timing and echo a request id."""
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    response = await call_next(request)

    elapsed = time.perf_counter() - start
    response.headers["X-Process-Time"] = f"{elapsed:.3f}"
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s [{request_id}]"
    )
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(TripPlannerError)
async def trip_planner_error_handler(request: Request, exc: TripPlannerError):
    """Domain errors carry their own status code."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _describe_validation_error(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc) or "request"
    if error.get("type") == "missing":
        return f"{field} is required"
    return f"{field}: {error.get('msg', 'invalid value')}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are answered with 400 and a readable message."""
    errors = exc.errors()
    message = _describe_validation_error(errors[0]) if errors else "Invalid request"
    logger.warning(f"Validation failed on {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions gracefully."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# Include routers
app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(routes_trips.router, prefix=settings.api_prefix)
app.include_router(routes_places.router, prefix=settings.api_prefix)
app.include_router(routes_expenses.router, prefix=settings.api_prefix)
app.include_router(routes_exchange.router, prefix=settings.api_prefix)
app.include_router(routes_checklist.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    """Root -- API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "health": f"{settings.api_prefix}/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tripplanner.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

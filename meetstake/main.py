"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session
from sqlalchemy import text

from meetstake.api.v1.router import api_router
from meetstake.api.deps import get_db
from meetstake.core.config import settings
from meetstake.core.errors import PreconditionError, StakingError
from meetstake.core.rate_limit import limiter
from meetstake.core.logging_config import setup_logging, get_logger
from meetstake.core.utils import isoformat
from meetstake.db import store
from meetstake.middleware import LoggingMiddleware
from meetstake.schemas import ErrorDetail, ErrorResponse

setup_logging(level=settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT == "production")
logger = get_logger(__name__)

if settings.ENVIRONMENT == "production":
    settings.validate_production_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the ledger store for the lifetime of the application."""
    store.open()
    if settings.ENVIRONMENT != "production":
        # Production schema is managed by Alembic
        store.create_schema()
    logger.info(
        "application_starting",
        app_title=settings.APP_TITLE,
        app_version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )
    try:
        yield
    finally:
        store.close()
        logger.info("application_stopped")


app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StakingError)
async def staking_error_handler(request: Request, exc: StakingError):
    """Render rejected staking operations as ``{"success": false, "error": {...}}``."""
    deadline = isoformat(exc.deadline) if isinstance(exc, PreconditionError) else None
    logger.info(
        "staking_request_rejected",
        error_code=exc.code,
        status_code=exc.status_code,
        error_message=exc.message,
    )
    body = ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message, deadline=deadline))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


app.add_middleware(LoggingMiddleware)


@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    """Add X-API-Version header to all responses for version tracking."""
    response = await call_next(request)
    response.headers["X-API-Version"] = settings.APP_VERSION
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-API-Version"],
)

app.include_router(api_router)


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns 503 if the ledger database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "database": {"status": "connected"},
    }

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["database"]["status"] = f"error: {str(e)}"
        logger.error("health_check_failed", error=str(e))
        raise HTTPException(status_code=503, detail=health_status)

    return health_status

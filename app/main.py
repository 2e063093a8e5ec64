"""BetLedger FastAPI application.

Record keeping and performance analytics for sports-betting trading:
matches, pre-analyses, operations, cash movements and dashboards.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import (
    cash,
    entities,
    health,
    matches,
    operations,
    options,
    pre_analyses,
    reports,
)
from app.config import get_settings
from app.services.errors import BetLedgerError

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("starting_betledger", version="0.1.0")
    yield
    logger.info("shutting_down_betledger")


# Create FastAPI application
app = FastAPI(
    title="BetLedger",
    description="Trading journal and performance analytics for sports betting",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router)
app.include_router(entities.router)
app.include_router(matches.router)
app.include_router(pre_analyses.router)
app.include_router(operations.router)
app.include_router(cash.router)
app.include_router(options.router)
app.include_router(reports.router)


# Error handlers
@app.exception_handler(BetLedgerError)
async def domain_error_handler(request: Request, exc: BetLedgerError):
    """Map domain errors to their HTTP status."""
    logger.info(
        "request_rejected",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    """Anything unexpected is logged and reported as an internal error."""
    logger.error("server_error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "INTERNAL", "errors": {}},
    )

"""Liveness and readiness probes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.models.domain import Match
from app.services.options import load_default_options

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class ReadyCheck(BaseModel):
    status: str
    message: str | None = None


class ReadyResponse(BaseModel):
    """Overall readiness plus one entry per probe."""

    ready: bool
    checks: dict[str, ReadyCheck]


@router.get("/health", response_model=HealthResponse)
async def health():
    """The process is up; nothing else is checked."""
    return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc))


@router.get("/ready", response_model=ReadyResponse)
async def ready(db: AsyncSession = Depends(get_db)):
    """
    Readiness for traffic.

    - db: the schema is migrated (the matches table answers a count)
    - options: built-in option lists were loaded from defaults.yaml
    """
    checks: dict[str, ReadyCheck] = {}

    try:
        matches = await db.scalar(select(func.count()).select_from(Match))
        checks["db"] = ReadyCheck(status="ok", message=f"{matches} matches")
    except SQLAlchemyError as e:
        checks["db"] = ReadyCheck(status="error", message=str(e))

    fields = load_default_options()
    if fields:
        checks["options"] = ReadyCheck(status="ok", message=f"{len(fields)} option fields")
    else:
        # Custom values still work; only the built-in lists are missing
        checks["options"] = ReadyCheck(status="warning", message="No built-in options loaded")

    return ReadyResponse(
        ready=checks["db"].status == "ok",
        checks=checks,
    )

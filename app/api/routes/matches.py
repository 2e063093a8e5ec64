"""Match endpoints: fixtures, their lifecycle and the verification queue."""

from datetime import date, datetime, time
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.services.lifecycle import MatchLifecycleManager
from app.services.matches import MatchService

router = APIRouter(prefix="/api/matches", tags=["matches"])

ODDS_MIN = Decimal("1.01")


# ============================================================================
# Request/Response Models
# ============================================================================

class MatchResponse(BaseModel):
    """Match with its current lifecycle status."""

    id: int
    match_date: date
    match_time: time
    competition_id: int
    home_team_id: int
    away_team_id: int
    home_odds: Decimal | None
    draw_odds: Decimal | None
    away_odds: Decimal | None
    status: str
    not_operated_justification: str | None
    not_operated_verified_at: datetime | None

    class Config:
        from_attributes = True


class MatchCreateRequest(BaseModel):
    match_date: date
    match_time: time
    competition_id: int
    home_team_id: int
    away_team_id: int
    home_odds: Decimal | None = Field(None, ge=ODDS_MIN)
    draw_odds: Decimal | None = Field(None, ge=ODDS_MIN)
    away_odds: Decimal | None = Field(None, ge=ODDS_MIN)


class MatchUpdateRequest(BaseModel):
    match_date: date | None = None
    match_time: time | None = None
    competition_id: int | None = None
    home_team_id: int | None = None
    away_team_id: int | None = None
    home_odds: Decimal | None = Field(None, ge=ODDS_MIN)
    draw_odds: Decimal | None = Field(None, ge=ODDS_MIN)
    away_odds: Decimal | None = Field(None, ge=ODDS_MIN)


class NotOperatedRequest(BaseModel):
    justification: str


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=list[MatchResponse])
async def list_matches(
    db: AsyncSession = Depends(get_db),
    date_from: date | None = Query(None, description="Earliest match date (inclusive)"),
    date_to: date | None = Query(None, description="Latest match date (inclusive)"),
    competition_id: int | None = Query(None),
):
    """List matches, newest first."""
    return await MatchService(db).list(
        date_from=date_from, date_to=date_to, competition_id=competition_id
    )


@router.get("/pending-verification", response_model=list[MatchResponse])
async def pending_verification(db: AsyncSession = Depends(get_db)):
    """
    Matches awaiting confirmation.

    Still in pre-analysis, never verified, no operation, and kicked off
    more than the configured number of hours ago.
    """
    return await MatchLifecycleManager(db).pending_verification()


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(match_id: int, db: AsyncSession = Depends(get_db)):
    return await MatchService(db).get(match_id)


@router.post("", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
async def create_match(body: MatchCreateRequest, db: AsyncSession = Depends(get_db)):
    return await MatchService(db).create(**body.model_dump())


@router.put("/{match_id}", response_model=MatchResponse)
async def update_match(match_id: int, body: MatchUpdateRequest, db: AsyncSession = Depends(get_db)):
    """Update only the fields present in the body. Odds may be cleared with null."""
    changes = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key.endswith("_odds")
    }
    return await MatchService(db).update(match_id, **changes)


@router.delete("/{match_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_match(match_id: int, db: AsyncSession = Depends(get_db)):
    await MatchService(db).delete(match_id)


@router.patch("/{match_id}/mark-not-operated", response_model=MatchResponse)
async def mark_not_operated(
    match_id: int, body: NotOperatedRequest, db: AsyncSession = Depends(get_db)
):
    """Archive a match that was deliberately not traded."""
    return await MatchLifecycleManager(db).mark_not_operated(match_id, body.justification)


@router.patch("/{match_id}/mark-verified", response_model=MatchResponse)
async def mark_verified(match_id: int, db: AsyncSession = Depends(get_db)):
    """Confirm a match was traded; it leaves the verification queue."""
    return await MatchLifecycleManager(db).mark_verified(match_id)

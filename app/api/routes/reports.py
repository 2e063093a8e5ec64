"""Reporting endpoints: dashboard, filtered reports and the annual summary."""

from datetime import date

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.api.routes.operations import ItemResponse, OperationResponse
from app.services.reporting import ReportFilters, ReportingService

router = APIRouter(prefix="/api", tags=["reports"])


class RawAggregateResponse(BaseModel):
    """Unaggregated operations and items for client-side cuts."""

    operations: list[OperationResponse]
    items: list[ItemResponse]


@router.get("/reports/aggregate", response_model=RawAggregateResponse)
async def raw_aggregate(db: AsyncSession = Depends(get_db)):
    return await ReportingService(db).raw_aggregate()


@router.get("/reports/dashboard")
async def dashboard(
    db: AsyncSession = Depends(get_db),
    today: date | None = Query(None, description="Reference day (defaults to today)"),
    week_start: date | None = Query(None, description="First day of the weekly view"),
):
    """
    Home dashboard.

    Totals, bankroll, trailing and year-to-date series, per-market (current
    year), per-strategy and behavioural cuts, and the weekly view.
    """
    return await ReportingService(db).dashboard(today=today, week_start=week_start)


@router.get("/reports")
async def report(
    db: AsyncSession = Depends(get_db),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    competition_id: int | None = Query(None),
    team_id: int | None = Query(None, description="Home or away side"),
    market_id: int | None = Query(None),
    strategy_id: int | None = Query(None),
):
    """Filtered totals with per-market, strategy, competition, team and month cuts."""
    filters = ReportFilters(
        date_from=date_from,
        date_to=date_to,
        competition_id=competition_id,
        team_id=team_id,
        market_id=market_id,
        strategy_id=strategy_id,
    )
    return await ReportingService(db).report(filters)


@router.get("/annual-summary/{year}")
async def annual_summary(
    year: int = Path(..., ge=1900, le=9999),
    db: AsyncSession = Depends(get_db),
):
    """Twelve monthly balance rows plus year totals."""
    return await ReportingService(db).annual(year)

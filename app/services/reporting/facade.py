"""Reporting facade.

Loads the rows the reports need in a handful of flat queries and hands
them to the pure aggregation functions. Output is plain dicts with money
rounded to cents, ready for the response models.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.domain import (
    CashTransaction,
    Competition,
    Market,
    Match,
    Operation,
    OperationItem,
    OperationStatus,
    Strategy,
    Team,
)
from app.services.reporting.aggregator import (
    ZERO,
    Groupings,
    MatchInfo,
    Metrics,
    ReportContext,
    ReportFilters,
    aggregate,
    aggregate_many,
    cumulative_profit,
    daily_series,
    filter_items,
    heatmap,
    money,
    safe_ratio_pct,
    summarize,
)
from app.services.reporting.annual import annual_summary, signed_amount

logger = structlog.get_logger(__name__)


def _ranked(groups: dict[Any, Metrics]) -> list[tuple[Any, Metrics]]:
    """Groups by profit, best first."""
    return sorted(groups.items(), key=lambda entry: entry[1].profit, reverse=True)


class ReportingService:
    """Dashboard, report and annual summary views."""

    def __init__(self, session: AsyncSession):
        self.session = session
        reporting = get_settings().load_defaults_config().get("reporting", {})
        self.trailing_days = int(reporting.get("trailing_days", 30))
        self.missing_label = reporting.get("missing_market_label", "Other")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _items(self) -> list[OperationItem]:
        """Items of completed operations; open operations stay out of every view."""
        result = await self.session.execute(
            select(OperationItem)
            .join(Operation, OperationItem.operation_id == Operation.id)
            .where(Operation.status == OperationStatus.COMPLETED.value)
            .order_by(OperationItem.id)
        )
        return list(result.scalars().all())

    async def _context(self) -> ReportContext:
        context = ReportContext(missing_label=self.missing_label)

        rows = await self.session.execute(select(Market.id, Market.name))
        context.markets = {row.id: row.name for row in rows}
        rows = await self.session.execute(select(Strategy.id, Strategy.name, Strategy.market_id))
        context.strategies = {row.id: (row.name, row.market_id) for row in rows}
        rows = await self.session.execute(select(Competition.id, Competition.name))
        context.competitions = {row.id: row.name for row in rows}
        rows = await self.session.execute(select(Team.id, Team.name))
        context.teams = {row.id: row.name for row in rows}
        rows = await self.session.execute(
            select(
                Match.id,
                Match.match_date,
                Match.competition_id,
                Match.home_team_id,
                Match.away_team_id,
            )
        )
        context.matches = {
            row.id: MatchInfo(
                id=row.id,
                match_date=row.match_date,
                competition_id=row.competition_id,
                home_team_id=row.home_team_id,
                away_team_id=row.away_team_id,
            )
            for row in rows
        }
        rows = await self.session.execute(select(Operation.id, Operation.match_id))
        context.operation_matches = {row.id: row.match_id for row in rows}
        return context

    async def _bankroll_cash(self) -> Decimal:
        result = await self.session.execute(select(CashTransaction))
        return sum((signed_amount(t) for t in result.scalars().all()), ZERO)

    # ------------------------------------------------------------------
    # Shaping
    # ------------------------------------------------------------------

    def _market_rows(self, context: ReportContext, groups: dict[Any, Metrics]) -> list[dict]:
        return [
            {"market_id": key, "market": context.market_name(key), **metrics.to_dict()}
            for key, metrics in _ranked(groups)
        ]

    def _strategy_rows(self, context: ReportContext, groups: dict[Any, Metrics]) -> list[dict]:
        return [
            {
                "strategy_id": key,
                "strategy": context.strategy_name(key),
                "market": context.strategy_market_name(key),
                **metrics.to_dict(),
            }
            for key, metrics in _ranked(groups)
        ]

    @staticmethod
    def _label_rows(label: str, groups: dict[Any, Metrics]) -> list[dict]:
        return [{label: key, **metrics.to_dict()} for key, metrics in _ranked(groups)]

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    async def raw_aggregate(self) -> dict[str, list]:
        """Completed operations and their items, unaggregated."""
        operations = await self.session.execute(
            select(Operation)
            .where(Operation.status == OperationStatus.COMPLETED.value)
            .order_by(Operation.registered_at.desc(), Operation.id.desc())
        )
        return {"operations": list(operations.scalars().all()), "items": await self._items()}

    async def dashboard(self, today: date | None = None, week_start: date | None = None) -> dict:
        """Everything the home dashboard shows."""
        today = today or date.today()
        week_start = week_start or today - timedelta(days=today.weekday())

        items = await self._items()
        context = await self._context()
        groupings = Groupings(context)

        totals = summarize(items)
        bankroll = await self._bankroll_cash() + totals.profit

        trailing = daily_series(
            items, context, today - timedelta(days=self.trailing_days - 1), today
        )
        year_to_date = cumulative_profit(daily_series(items, context, date(today.year, 1, 1), today))
        this_year = [item for item in items if groupings.by_year(item) == today.year]

        motivations, assessments, cells = heatmap(items, context)
        followed = aggregate(items, groupings.by_followed_plan)
        week = daily_series(items, context, week_start, week_start + timedelta(days=6))

        logger.debug("dashboard_built", items=len(items), today=str(today))
        return {
            "totals": totals.to_dict(),
            "bankroll": money(bankroll),
            "trailing_days": [
                {"date": day, "profit": money(m.profit), "operations": m.operation_count}
                for day, m in trailing
            ],
            "year_to_date": [
                {"date": day, "cumulative_profit": money(total)} for day, total in year_to_date
            ],
            "by_market": self._market_rows(context, aggregate(this_year, groupings.by_market)),
            "by_strategy": self._strategy_rows(context, aggregate(items, groupings.by_strategy)),
            "by_emotional_state": self._label_rows(
                "emotional_state", aggregate(items, groupings.by_emotional_state)
            ),
            "heatmap": {
                "motivations": motivations,
                "assessments": assessments,
                "cells": [
                    {"motivation": m, "assessment": a, **metrics.to_dict()}
                    for (m, a), metrics in cells.items()
                ],
            },
            "followed_plan": {
                "followed": followed.get(True, Metrics()).to_dict(),
                "not_followed": followed.get(False, Metrics()).to_dict(),
            },
            "week": [
                {
                    "date": day,
                    "profit": money(m.profit),
                    "bankroll_pct": money(safe_ratio_pct(m.profit, bankroll)),
                }
                for day, m in week
            ],
        }

    async def report(self, filters: ReportFilters | None = None) -> dict:
        """Filtered totals with per-market, strategy, competition and team cuts."""
        filters = filters or ReportFilters()
        context = await self._context()
        groupings = Groupings(context)
        items = filter_items(await self._items(), context, filters)

        return {
            "totals": summarize(items).to_dict(),
            "by_market": self._market_rows(context, aggregate(items, groupings.by_market)),
            "by_strategy": self._strategy_rows(context, aggregate(items, groupings.by_strategy)),
            "by_competition": [
                {"competition_id": key, "competition": context.competition_name(key), **m.to_dict()}
                for key, m in _ranked(aggregate(items, groupings.by_competition))
            ],
            "by_team": [
                {"team_id": key, "team": context.team_name(key), **m.to_dict()}
                for key, m in _ranked(aggregate_many(items, groupings.by_team))
            ],
            "by_month": [
                {"year": key[0], "month": key[1], **m.to_dict()}
                for key, m in sorted(aggregate(items, groupings.by_month).items())
            ],
        }

    async def annual(self, year: int) -> dict:
        """Monthly balance rows for `year` plus year totals."""
        transactions = await self.session.execute(select(CashTransaction))
        profits = await self.session.execute(
            select(Match.match_date, OperationItem.financial_result)
            .join(Operation, OperationItem.operation_id == Operation.id)
            .join(Match, Operation.match_id == Match.id)
            .where(Operation.status == OperationStatus.COMPLETED.value)
        )
        summary = annual_summary(
            year,
            transactions.scalars().all(),
            [(row.match_date, row.financial_result) for row in profits],
        )
        return summary.to_dict()

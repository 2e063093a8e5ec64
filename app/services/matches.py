"""Match and pre-analysis storage.

Status changes are not made here; they belong to MatchLifecycleManager.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.domain import Match, PreAnalysis
from app.services.catalog import CompetitionStore, TeamStore
from app.services.errors import ConflictError, NotFoundError, ReferenceInUseError, ValidationError

logger = structlog.get_logger(__name__)

MATCH_FIELDS = (
    "match_date",
    "match_time",
    "competition_id",
    "home_team_id",
    "away_team_id",
    "home_odds",
    "draw_odds",
    "away_odds",
)

PRE_ANALYSIS_FIELDS = (
    "home_rank",
    "away_rank",
    "home_form",
    "away_form",
    "home_must_win",
    "away_must_win",
    "home_next_match_importance",
    "away_next_match_importance",
    "home_absences",
    "away_absences",
    "expected_tendency",
    "home_performance_at_home",
    "away_performance_away",
    "odds_value",
    "key_highlight",
)


class MatchService:
    """CRUD over tracked fixtures."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        competition_id: int | None = None,
    ) -> list[Match]:
        """Matches, newest first, optionally filtered by date range and competition."""
        query = select(Match)
        if date_from:
            query = query.where(Match.match_date >= date_from)
        if date_to:
            query = query.where(Match.match_date <= date_to)
        if competition_id:
            query = query.where(Match.competition_id == competition_id)
        query = query.order_by(Match.match_date.desc(), Match.match_time.desc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get(self, match_id: int) -> Match:
        match = await self.session.get(Match, match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        return match

    async def _check_references(self, values: dict[str, Any]) -> None:
        if values["home_team_id"] == values["away_team_id"]:
            raise ValidationError.for_field(
                "away_team_id", "Home and away teams must be different"
            )
        await CompetitionStore(self.session).get(values["competition_id"])
        teams = TeamStore(self.session)
        await teams.get(values["home_team_id"])
        await teams.get(values["away_team_id"])

    async def create(self, **values: Any) -> Match:
        """Register a fixture in PRE_ANALYSIS."""
        data = {key: values.get(key) for key in MATCH_FIELDS}
        await self._check_references(data)

        match = Match(**data)
        self.session.add(match)
        await self.session.flush()
        await self.session.refresh(match)

        logger.info(
            "match_created",
            match_id=match.id,
            match_date=str(match.match_date),
            competition_id=match.competition_id,
        )
        return match

    async def update(self, match_id: int, **values: Any) -> Match:
        """Partial update of the fixture details."""
        match = await self.get(match_id)
        changes = {key: value for key, value in values.items() if key in MATCH_FIELDS}

        merged = {key: changes.get(key, getattr(match, key)) for key in MATCH_FIELDS}
        if {"competition_id", "home_team_id", "away_team_id"} & changes.keys():
            await self._check_references(merged)

        for key, value in changes.items():
            setattr(match, key, value)
        await self.session.flush()
        await self.session.refresh(match)

        logger.info("match_updated", match_id=match_id, fields=sorted(changes))
        return match

    async def delete(self, match_id: int) -> None:
        match = await self.get(match_id)
        await self.session.delete(match)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ReferenceInUseError("Match", match_id) from e
        logger.info("match_deleted", match_id=match_id)


class PreAnalysisService:
    """One qualitative study per match, keyed by match id."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, match_id: int) -> PreAnalysis:
        pre_analysis = await self.session.get(PreAnalysis, match_id)
        if pre_analysis is None:
            raise NotFoundError("PreAnalysis", match_id)
        return pre_analysis

    async def list_with_matches(self) -> list[tuple[PreAnalysis, Match]]:
        """Pre-analyses joined to their match, newest match first."""
        result = await self.session.execute(
            select(PreAnalysis, Match)
            .join(Match, PreAnalysis.match_id == Match.id)
            .order_by(Match.match_date.desc(), Match.match_time.desc())
        )
        return [(row.PreAnalysis, row.Match) for row in result.all()]

    async def create(self, match_id: int, **values: Any) -> PreAnalysis:
        await MatchService(self.session).get(match_id)
        if await self.session.get(PreAnalysis, match_id) is not None:
            raise ConflictError(
                "Match already has a pre-analysis",
                code="PRE_ANALYSIS_EXISTS",
                details={"match_id": match_id},
            )

        data = {key: values.get(key) for key in PRE_ANALYSIS_FIELDS}
        pre_analysis = PreAnalysis(match_id=match_id, **data)
        self.session.add(pre_analysis)
        await self.session.flush()
        await self.session.refresh(pre_analysis)

        logger.info("pre_analysis_created", match_id=match_id)
        return pre_analysis

    async def update(self, match_id: int, **values: Any) -> PreAnalysis:
        pre_analysis = await self.get(match_id)
        for key, value in values.items():
            if key in PRE_ANALYSIS_FIELDS:
                setattr(pre_analysis, key, value)
        await self.session.flush()
        await self.session.refresh(pre_analysis)

        logger.info("pre_analysis_updated", match_id=match_id)
        return pre_analysis

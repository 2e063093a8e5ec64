"""Reference data store.

Teams, competitions, markets and strategies share one contract: list,
get, create, update, delete and a normalized name search. Names are
unique after normalization (accents stripped, case folded, trimmed);
strategies are unique per market.
"""

from __future__ import annotations

import unicodedata
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.domain import NAME_MAX_LENGTH, Competition, Market, Strategy, Team
from app.services.errors import ConflictError, NotFoundError, ReferenceInUseError, ValidationError

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", Team, Competition, Market, Strategy)


def normalize_name(value: str) -> str:
    """
    Fold a display name into its comparison form.

    "  São Paulo " -> "sao paulo"
    """
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()


def clean_name(value: str | None, max_length: int = NAME_MAX_LENGTH) -> str:
    """Trim a display name and check it is usable."""
    name = (value or "").strip()
    if not name:
        raise ValidationError.for_field("name", "Name is required")
    if len(name) > max_length:
        raise ValidationError.for_field(
            "name", f"Name must be at most {max_length} characters"
        )
    return name


class ReferenceStore(Generic[ModelT]):
    """
    CRUD over one reference table.

    Subclasses set `model` and `entity_name`; strategies override the
    uniqueness scope.
    """

    model: type[ModelT]
    entity_name: str

    def __init__(self, session: AsyncSession):
        self.session = session

    def _scope_filters(self, values: dict[str, Any]) -> list:
        """Extra columns that partition the uniqueness check."""
        return []

    async def list(self, search: str | None = None) -> list[ModelT]:
        """All rows ordered by display name, optionally name-filtered."""
        query = select(self.model)
        if search:
            query = query.where(
                self.model.normalized_name.contains(normalize_name(search), autoescape=True)
            )
        result = await self.session.execute(query.order_by(self.model.name))
        return list(result.scalars().all())

    async def search(self, term: str) -> list[ModelT]:
        """Normalized substring match on the name."""
        return await self.list(search=term)

    async def get(self, entity_id: int) -> ModelT:
        """Fetch one row or raise NotFoundError."""
        row = await self.session.get(self.model, entity_id)
        if row is None:
            raise NotFoundError(self.entity_name, entity_id)
        return row

    async def _ensure_unique(
        self, normalized: str, values: dict[str, Any], exclude_id: int | None = None
    ) -> None:
        query = select(self.model.id).where(
            self.model.normalized_name == normalized, *self._scope_filters(values)
        )
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)
        existing = (await self.session.execute(query.limit(1))).scalar_one_or_none()
        if existing is not None:
            raise ConflictError(
                f"{self.entity_name} with this name already exists",
                code="DUPLICATE_NAME",
                details={"name": "A record with an equivalent name already exists"},
            )

    async def _flush_or_conflict(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning("reference_integrity_error", entity=self.entity_name, error=str(e.orig))
            raise ConflictError(
                f"{self.entity_name} with this name already exists",
                code="DUPLICATE_NAME",
            ) from e

    async def create(self, name: str, **values: Any) -> ModelT:
        """Insert a row; Conflict when the normalized name is taken."""
        name = clean_name(name)
        normalized = normalize_name(name)
        await self._ensure_unique(normalized, values)

        row = self.model(name=name, normalized_name=normalized, **values)
        self.session.add(row)
        await self._flush_or_conflict()
        await self.session.refresh(row)

        logger.info("reference_created", entity=self.entity_name, id=row.id, name=name)
        return row

    async def update(self, entity_id: int, name: str | None = None, **values: Any) -> ModelT:
        """Partial update; re-normalizes and re-checks uniqueness."""
        row = await self.get(entity_id)

        new_name = clean_name(name) if name is not None else row.name
        normalized = normalize_name(new_name)
        await self._ensure_unique(normalized, self._current_scope(row, values), exclude_id=row.id)

        row.name = new_name
        row.normalized_name = normalized
        for key, value in values.items():
            if value is not None:
                setattr(row, key, value)
        await self._flush_or_conflict()
        await self.session.refresh(row)

        logger.info("reference_updated", entity=self.entity_name, id=row.id, name=row.name)
        return row

    def _current_scope(self, row: ModelT, values: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def delete(self, entity_id: int) -> None:
        """
        Delete a row.

        The foreign keys decide whether the row is still referenced; an
        IntegrityError surfaces as ReferenceInUseError.
        """
        row = await self.get(entity_id)
        await self.session.delete(row)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.info("reference_delete_blocked", entity=self.entity_name, id=entity_id)
            raise ReferenceInUseError(self.entity_name, entity_id) from e

        logger.info("reference_deleted", entity=self.entity_name, id=entity_id)


class TeamStore(ReferenceStore[Team]):
    model = Team
    entity_name = "Team"


class CompetitionStore(ReferenceStore[Competition]):
    model = Competition
    entity_name = "Competition"


class MarketStore(ReferenceStore[Market]):
    model = Market
    entity_name = "Market"


class StrategyStore(ReferenceStore[Strategy]):
    """Strategies: unique per (normalized name, market)."""

    model = Strategy
    entity_name = "Strategy"

    def _scope_filters(self, values: dict[str, Any]) -> list:
        return [Strategy.market_id == values["market_id"]]

    def _current_scope(self, row: Strategy, values: dict[str, Any]) -> dict[str, Any]:
        market_id = values.get("market_id")
        return {"market_id": market_id if market_id is not None else row.market_id}

    async def list(
        self, search: str | None = None, market_id: int | None = None
    ) -> list[Strategy]:
        query = select(Strategy)
        if search:
            query = query.where(
                Strategy.normalized_name.contains(normalize_name(search), autoescape=True)
            )
        if market_id is not None:
            query = query.where(Strategy.market_id == market_id)
        result = await self.session.execute(query.order_by(Strategy.name))
        return list(result.scalars().all())

    async def create(self, name: str, market_id: int | None = None) -> Strategy:
        if market_id is None:
            raise ValidationError.for_field("market_id", "Market is required")
        await MarketStore(self.session).get(market_id)
        return await super().create(name, market_id=market_id)

    async def update(
        self, entity_id: int, name: str | None = None, market_id: int | None = None
    ) -> Strategy:
        if market_id is not None:
            await MarketStore(self.session).get(market_id)
        return await super().update(entity_id, name=name, market_id=market_id)

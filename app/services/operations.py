"""Operation and operation item storage.

Creating, completing and deleting operations changes the match status,
so those live in MatchLifecycleManager. This module covers reads and the
item legs underneath an operation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.domain import CloseType, Operation, OperationItem, OperationStatus
from app.services.catalog import MarketStore, StrategyStore
from app.services.errors import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

ITEM_FIELDS = (
    "market_id",
    "strategy_id",
    "stake",
    "entry_odds",
    "close_type",
    "exit_odds",
    "financial_result",
    "exposure_minutes",
    "followed_plan",
    "emotional_state",
    "entry_motivation",
    "self_assessment",
    "exit_note",
)


def resolve_exit_odds(close_type: str | None, exit_odds: Decimal | None) -> Decimal | None:
    """
    Apply the close-type rule to the exit odds.

    Manual closes need exit odds; automatic closes never keep them.
    """
    if close_type == CloseType.MANUAL.value and exit_odds is None:
        raise ValidationError.for_field(
            "exit_odds", "Exit odds are required for a Manual close"
        )
    if close_type == CloseType.AUTOMATIC.value:
        return None
    return exit_odds


class OperationService:
    """Reads over operations plus CRUD over their items."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(self, status: str | None = None) -> list[Operation]:
        """Operations, most recently registered first."""
        query = select(Operation)
        if status:
            query = query.where(Operation.status == status)
        result = await self.session.execute(
            query.order_by(Operation.registered_at.desc(), Operation.id.desc())
        )
        return list(result.scalars().all())

    async def get(self, operation_id: int) -> Operation:
        operation = await self.session.get(Operation, operation_id)
        if operation is None:
            raise NotFoundError("Operation", operation_id)
        return operation

    async def get_by_match(self, match_id: int) -> Operation | None:
        result = await self.session.execute(
            select(Operation).where(Operation.match_id == match_id)
        )
        return result.scalar_one_or_none()

    async def list_items(self, operation_id: int) -> list[OperationItem]:
        await self.get(operation_id)
        result = await self.session.execute(
            select(OperationItem)
            .where(OperationItem.operation_id == operation_id)
            .order_by(OperationItem.id)
        )
        return list(result.scalars().all())

    async def get_item(self, item_id: int) -> OperationItem:
        item = await self.session.get(OperationItem, item_id)
        if item is None:
            raise NotFoundError("OperationItem", item_id)
        return item

    async def _ensure_open(self, operation_id: int) -> Operation:
        operation = await self.get(operation_id)
        if operation.status == OperationStatus.COMPLETED.value:
            raise ConflictError(
                "Items of a completed operation cannot be changed",
                code="OPERATION_COMPLETED",
                details={"operation_id": operation_id},
            )
        return operation

    async def _check_market_strategy(self, market_id: int, strategy_id: int) -> None:
        await MarketStore(self.session).get(market_id)
        strategy = await StrategyStore(self.session).get(strategy_id)
        if strategy.market_id != market_id:
            raise ValidationError.for_field(
                "strategy_id", "Strategy does not belong to the selected market"
            )

    async def add_item(self, operation_id: int, **values: Any) -> OperationItem:
        """Record a trade leg under an open operation."""
        await self._ensure_open(operation_id)

        data = {key: values.get(key) for key in ITEM_FIELDS}
        await self._check_market_strategy(data["market_id"], data["strategy_id"])
        data["exit_odds"] = resolve_exit_odds(data["close_type"], data["exit_odds"])

        item = OperationItem(operation_id=operation_id, **data)
        self.session.add(item)
        await self.session.flush()
        await self.session.refresh(item)

        logger.info(
            "operation_item_added",
            operation_id=operation_id,
            item_id=item.id,
            market_id=item.market_id,
            stake=str(item.stake),
        )
        return item

    async def update_item(self, item_id: int, **values: Any) -> OperationItem:
        """Partial update; the close-type rule is checked on the merged row."""
        item = await self.get_item(item_id)
        await self._ensure_open(item.operation_id)

        changes = {key: value for key, value in values.items() if key in ITEM_FIELDS}
        merged = {key: changes.get(key, getattr(item, key)) for key in ITEM_FIELDS}
        if "market_id" in changes or "strategy_id" in changes:
            await self._check_market_strategy(merged["market_id"], merged["strategy_id"])
        changes["exit_odds"] = resolve_exit_odds(merged["close_type"], merged["exit_odds"])

        for key, value in changes.items():
            setattr(item, key, value)
        await self.session.flush()
        await self.session.refresh(item)

        logger.info("operation_item_updated", item_id=item_id, fields=sorted(changes))
        return item

    async def delete_item(self, item_id: int) -> None:
        item = await self.get_item(item_id)
        await self._ensure_open(item.operation_id)
        await self.session.delete(item)
        await self.session.flush()
        logger.info("operation_item_deleted", item_id=item_id, operation_id=item.operation_id)

"""Operation endpoints: opening, completing and deleting operations, and their items."""

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.models.domain import CloseType, OperationStatus
from app.services.lifecycle import MatchLifecycleManager
from app.services.operations import OperationService

router = APIRouter(prefix="/api/operations", tags=["operations"])

ODDS_MIN = Decimal("1.01")


# ============================================================================
# Request/Response Models
# ============================================================================

class OperationResponse(BaseModel):
    id: int
    match_id: int
    status: str
    registered_at: datetime
    completed_at: datetime | None

    class Config:
        from_attributes = True


class OperationCreateRequest(BaseModel):
    match_id: int


class ItemResponse(BaseModel):
    """One trade leg."""

    id: int
    operation_id: int
    market_id: int
    strategy_id: int
    stake: Decimal
    entry_odds: Decimal
    close_type: str | None
    exit_odds: Decimal | None
    financial_result: Decimal | None
    exposure_minutes: int | None
    followed_plan: bool | None
    emotional_state: str | None
    entry_motivation: str | None
    self_assessment: str | None
    exit_note: str | None

    class Config:
        from_attributes = True


class ItemCreateRequest(BaseModel):
    market_id: int
    strategy_id: int
    stake: Decimal = Field(..., gt=0)
    entry_odds: Decimal = Field(..., ge=ODDS_MIN)
    close_type: CloseType | None = None
    exit_odds: Decimal | None = Field(None, ge=ODDS_MIN)
    financial_result: Decimal | None = None
    exposure_minutes: int | None = Field(None, ge=0)
    followed_plan: bool | None = None
    emotional_state: str | None = Field(None, max_length=50)
    entry_motivation: str | None = Field(None, max_length=50)
    self_assessment: str | None = Field(None, max_length=50)
    exit_note: str | None = Field(None, max_length=400)


class ItemUpdateRequest(BaseModel):
    market_id: int | None = None
    strategy_id: int | None = None
    stake: Decimal | None = Field(None, gt=0)
    entry_odds: Decimal | None = Field(None, ge=ODDS_MIN)
    close_type: CloseType | None = None
    exit_odds: Decimal | None = Field(None, ge=ODDS_MIN)
    financial_result: Decimal | None = None
    exposure_minutes: int | None = Field(None, ge=0)
    followed_plan: bool | None = None
    emotional_state: str | None = Field(None, max_length=50)
    entry_motivation: str | None = Field(None, max_length=50)
    self_assessment: str | None = Field(None, max_length=50)
    exit_note: str | None = Field(None, max_length=400)


REQUIRED_ITEM_FIELDS = {"market_id", "strategy_id", "stake", "entry_odds"}


def _item_values(body: BaseModel, partial: bool = False) -> dict:
    values = body.model_dump(exclude_unset=partial)
    if partial:
        values = {
            key: value
            for key, value in values.items()
            if value is not None or key not in REQUIRED_ITEM_FIELDS
        }
    if values.get("close_type") is not None:
        values["close_type"] = CloseType(values["close_type"]).value
    return values


# ============================================================================
# Operations
# ============================================================================

@router.get("", response_model=list[OperationResponse])
async def list_operations(
    db: AsyncSession = Depends(get_db),
    status_filter: OperationStatus | None = Query(None, alias="status"),
):
    """Operations, most recently registered first."""
    return await OperationService(db).list(status=status_filter.value if status_filter else None)


@router.post("", response_model=OperationResponse, status_code=status.HTTP_201_CREATED)
async def create_operation(body: OperationCreateRequest, db: AsyncSession = Depends(get_db)):
    """Open the operation for a match; the match moves to OPERATION_PENDING."""
    return await MatchLifecycleManager(db).create_operation(body.match_id)


@router.put("/items/{item_id}", response_model=ItemResponse)
async def update_item(item_id: int, body: ItemUpdateRequest, db: AsyncSession = Depends(get_db)):
    return await OperationService(db).update_item(item_id, **_item_values(body, partial=True))


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: int, db: AsyncSession = Depends(get_db)):
    await OperationService(db).delete_item(item_id)


@router.get("/{operation_id}", response_model=OperationResponse)
async def get_operation(operation_id: int, db: AsyncSession = Depends(get_db)):
    return await OperationService(db).get(operation_id)


@router.delete("/{operation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_operation(operation_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a pending operation with its items; the match returns to PRE_ANALYSIS."""
    await MatchLifecycleManager(db).delete_operation(operation_id)


@router.patch("/{operation_id}/complete", response_model=OperationResponse)
async def complete_operation(operation_id: int, db: AsyncSession = Depends(get_db)):
    """
    Conclude an operation.

    Every item must carry a financial result; the match moves to
    OPERATION_COMPLETED in the same transaction.
    """
    return await MatchLifecycleManager(db).complete_operation(operation_id)


# ============================================================================
# Items
# ============================================================================

@router.get("/{operation_id}/items", response_model=list[ItemResponse])
async def list_items(operation_id: int, db: AsyncSession = Depends(get_db)):
    return await OperationService(db).list_items(operation_id)


@router.post(
    "/{operation_id}/items",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_item(operation_id: int, body: ItemCreateRequest, db: AsyncSession = Depends(get_db)):
    return await OperationService(db).add_item(operation_id, **_item_values(body))

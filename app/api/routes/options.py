"""Custom option endpoints.

Each field's choices are the built-in defaults followed by the values
users added. Only the added values can be changed or removed.
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.services.options import OptionRegistry

router = APIRouter(prefix="/api/options", tags=["options"])


class OptionResponse(BaseModel):
    value: str
    is_default: bool
    id: int | None = None
    order: int | None = None


class OptionCreateRequest(BaseModel):
    value: str
    order: int = Field(0, ge=0)


class OptionUpdateRequest(BaseModel):
    value: str | None = None
    order: int | None = Field(None, ge=0)


def _to_response(row) -> OptionResponse:
    return OptionResponse(value=row.value, is_default=False, id=row.id, order=row.display_order)


@router.get("/{field}", response_model=list[OptionResponse])
async def list_options(field: str, db: AsyncSession = Depends(get_db)):
    """Defaults first, then custom values by order and value."""
    entries = await OptionRegistry(db).list(field)
    return [
        OptionResponse(
            value=entry.value, is_default=entry.is_default, id=entry.id, order=entry.display_order
        )
        for entry in entries
    ]


@router.post("/{field}", response_model=OptionResponse, status_code=status.HTTP_201_CREATED)
async def add_option(field: str, body: OptionCreateRequest, db: AsyncSession = Depends(get_db)):
    row = await OptionRegistry(db).add(field, body.value, display_order=body.order)
    return _to_response(row)


@router.put("/{field}/{option_id}", response_model=OptionResponse)
async def update_option(
    field: str, option_id: int, body: OptionUpdateRequest, db: AsyncSession = Depends(get_db)
):
    row = await OptionRegistry(db).update(
        option_id, value=body.value, display_order=body.order, field=field
    )
    return _to_response(row)


@router.delete("/{field}/{option_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_option(field: str, option_id: int, db: AsyncSession = Depends(get_db)):
    await OptionRegistry(db).delete(option_id, field)


@router.delete("/{field}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_option(
    field: str,
    value: str = Query(..., description="Custom value to remove"),
    db: AsyncSession = Depends(get_db),
):
    """Remove a custom value by its text; built-in values are rejected."""
    await OptionRegistry(db).remove(field, value)

"""Reference data endpoints: teams, competitions, markets and strategies."""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.services.catalog import (
    CompetitionStore,
    MarketStore,
    ReferenceStore,
    StrategyStore,
    TeamStore,
)

router = APIRouter(prefix="/api/entities", tags=["entities"])


# ============================================================================
# Request/Response Models
# ============================================================================

class NamedEntity(BaseModel):
    """Team, competition or market."""

    id: int
    name: str

    class Config:
        from_attributes = True


class StrategyResponse(NamedEntity):
    """Strategy with its owning market."""

    market_id: int


class NameRequest(BaseModel):
    name: str


class NameUpdateRequest(BaseModel):
    name: str | None = None


class StrategyCreateRequest(BaseModel):
    name: str
    market_id: int


class StrategyUpdateRequest(BaseModel):
    name: str | None = None
    market_id: int | None = None


# ============================================================================
# Teams, competitions, markets
# ============================================================================

def _register_named_routes(path: str, store_class: type[ReferenceStore]) -> None:
    """Attach the five CRUD routes for a name-only reference table."""

    @router.get(f"/{path}", response_model=list[NamedEntity], name=f"list_{path}")
    async def list_rows(
        db: AsyncSession = Depends(get_db),
        search: str | None = Query(None, description="Accent/case-insensitive name filter"),
    ):
        return await store_class(db).list(search=search)

    @router.get(f"/{path}/{{entity_id}}", response_model=NamedEntity, name=f"get_{path}")
    async def get_row(entity_id: int, db: AsyncSession = Depends(get_db)):
        return await store_class(db).get(entity_id)

    @router.post(
        f"/{path}",
        response_model=NamedEntity,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{path}",
    )
    async def create_row(body: NameRequest, db: AsyncSession = Depends(get_db)):
        return await store_class(db).create(body.name)

    @router.put(f"/{path}/{{entity_id}}", response_model=NamedEntity, name=f"update_{path}")
    async def update_row(
        entity_id: int, body: NameUpdateRequest, db: AsyncSession = Depends(get_db)
    ):
        return await store_class(db).update(entity_id, name=body.name)

    @router.delete(
        f"/{path}/{{entity_id}}",
        status_code=status.HTTP_204_NO_CONTENT,
        name=f"delete_{path}",
    )
    async def delete_row(entity_id: int, db: AsyncSession = Depends(get_db)):
        await store_class(db).delete(entity_id)


_register_named_routes("teams", TeamStore)
_register_named_routes("competitions", CompetitionStore)
_register_named_routes("markets", MarketStore)


# ============================================================================
# Strategies
# ============================================================================

@router.get("/strategies", response_model=list[StrategyResponse])
async def list_strategies(
    db: AsyncSession = Depends(get_db),
    search: str | None = Query(None, description="Accent/case-insensitive name filter"),
    market_id: int | None = Query(None, description="Only strategies of this market"),
):
    return await StrategyStore(db).list(search=search, market_id=market_id)


@router.get("/strategies/{strategy_id}", response_model=StrategyResponse)
async def get_strategy(strategy_id: int, db: AsyncSession = Depends(get_db)):
    return await StrategyStore(db).get(strategy_id)


@router.post("/strategies", response_model=StrategyResponse, status_code=status.HTTP_201_CREATED)
async def create_strategy(body: StrategyCreateRequest, db: AsyncSession = Depends(get_db)):
    """Create a strategy; the name must be unique within its market."""
    return await StrategyStore(db).create(body.name, market_id=body.market_id)


@router.put("/strategies/{strategy_id}", response_model=StrategyResponse)
async def update_strategy(
    strategy_id: int, body: StrategyUpdateRequest, db: AsyncSession = Depends(get_db)
):
    return await StrategyStore(db).update(strategy_id, name=body.name, market_id=body.market_id)


@router.delete("/strategies/{strategy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_strategy(strategy_id: int, db: AsyncSession = Depends(get_db)):
    await StrategyStore(db).delete(strategy_id)

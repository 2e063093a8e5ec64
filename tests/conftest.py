"""Pytest configuration and fixtures for BetLedger tests.

Integration tests run against an in-memory SQLite database (aiosqlite)
with foreign keys enforced, so delete restrictions and cascades behave
as they do on PostgreSQL.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import date, time  # noqa: E402
from decimal import Decimal  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.dependencies import get_db  # noqa: E402
from app.models.base import Base, _enable_sqlite_foreign_keys  # noqa: E402
from app.models.domain import CloseType  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for service-level tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client bound to the app, with get_db pointed at the test database."""
    from app.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seeded(session):
    """
    A small ledger: one competition, two teams, one market with one strategy,
    and one match in PRE_ANALYSIS.
    """
    from app.services.catalog import CompetitionStore, MarketStore, StrategyStore, TeamStore
    from app.services.matches import MatchService

    competition = await CompetitionStore(session).create("Brasileirão")
    home = await TeamStore(session).create("Flamengo")
    away = await TeamStore(session).create("São Paulo")
    market = await MarketStore(session).create("Match Odds")
    strategy = await StrategyStore(session).create("Lay 0-1", market_id=market.id)
    match = await MatchService(session).create(
        match_date=date(2026, 3, 14),
        match_time=time(16, 0),
        competition_id=competition.id,
        home_team_id=home.id,
        away_team_id=away.id,
        home_odds=Decimal("1.85"),
    )
    return {
        "competition": competition,
        "home": home,
        "away": away,
        "market": market,
        "strategy": strategy,
        "match": match,
    }


@pytest.fixture
def item_values(seeded):
    """Keyword arguments for a settled Manual item in the seeded market."""

    def build(**overrides):
        values = {
            "market_id": seeded["market"].id,
            "strategy_id": seeded["strategy"].id,
            "stake": Decimal("100"),
            "entry_odds": Decimal("2.10"),
            "close_type": CloseType.MANUAL.value,
            "exit_odds": Decimal("1.90"),
            "financial_result": Decimal("20"),
            "followed_plan": True,
            "emotional_state": "Calmo",
        }
        values.update(overrides)
        return values

    return build

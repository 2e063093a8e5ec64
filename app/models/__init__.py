"""Database models for BetLedger."""

from app.models.base import Base, async_session_factory, engine
from app.models.domain import (
    CashTransaction,
    CloseType,
    Competition,
    CustomOption,
    Market,
    Match,
    MatchStatus,
    Operation,
    OperationItem,
    OperationStatus,
    PreAnalysis,
    Strategy,
    Team,
    TransactionType,
)

__all__ = [
    # Base
    "Base",
    "engine",
    "async_session_factory",
    # Enums
    "MatchStatus",
    "OperationStatus",
    "CloseType",
    "TransactionType",
    # Reference data
    "Team",
    "Competition",
    "Market",
    "Strategy",
    # Transactional data
    "Match",
    "PreAnalysis",
    "Operation",
    "OperationItem",
    "CashTransaction",
    "CustomOption",
]

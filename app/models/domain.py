"""Domain models for BetLedger.

Reference data (teams, competitions, markets, strategies) carries a
normalized shadow name so uniqueness and search are case and accent
insensitive. Transactional data hangs off a Match: at most one
Pre-Analysis and at most one Operation, the Operation owning its items.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

NAME_MAX_LENGTH = 30


class MatchStatus(str, Enum):
    """Lifecycle states of a tracked match."""
    PRE_ANALYSIS = "PRE_ANALYSIS"                # Created, nothing traded yet
    OPERATION_PENDING = "OPERATION_PENDING"      # Operation opened
    OPERATION_COMPLETED = "OPERATION_COMPLETED"  # Operation concluded (terminal)
    NOT_OPERATED = "NOT_OPERATED"                # User declared no trade (terminal)


class OperationStatus(str, Enum):
    """Operation states."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class CloseType(str, Enum):
    """How a trade leg was closed."""
    AUTOMATIC = "Automatic"
    MANUAL = "Manual"
    PARTIAL = "Partial"


class TransactionType(str, Enum):
    """Bankroll movement direction."""
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class Team(Base, TimestampMixin):
    """A club or national side referenced by matches."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    normalized_name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH), unique=True, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Team {self.name}>"


class Competition(Base, TimestampMixin):
    """League or tournament a match belongs to."""

    __tablename__ = "competitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    normalized_name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH), unique=True, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Competition {self.name}>"


class Market(Base, TimestampMixin):
    """Betting market category (Match Odds, Over/Under 2.5, ...)."""

    __tablename__ = "markets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    normalized_name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH), unique=True, nullable=False
    )

    # Relationships
    strategies: Mapped[list["Strategy"]] = relationship(
        "Strategy", back_populates="market", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<Market {self.name}>"


class Strategy(Base, TimestampMixin):
    """
    Named trading approach scoped to one market.

    The same strategy name may exist under different markets, so the
    uniqueness constraint covers (normalized_name, market_id).
    """

    __tablename__ = "strategies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    market_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("markets.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    normalized_name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH), nullable=False
    )

    # Relationships
    market: Mapped["Market"] = relationship("Market", back_populates="strategies")

    __table_args__ = (
        UniqueConstraint("normalized_name", "market_id", name="uq_strategies_name_market"),
    )

    def __repr__(self) -> str:
        return f"<Strategy {self.name} (market={self.market_id})>"


class Match(Base, TimestampMixin):
    """
    A real-world fixture the user is tracking.

    Starts in PRE_ANALYSIS. not_operated_verified_at doubles as the
    "already verified" marker for the pending-verification queue.
    """

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_date: Mapped[date] = mapped_column(Date, nullable=False)
    match_time: Mapped[time] = mapped_column(Time, nullable=False)
    competition_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("competitions.id"), nullable=False
    )
    home_team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id"), nullable=False
    )
    away_team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id"), nullable=False
    )
    home_odds: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    draw_odds: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    away_odds: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=MatchStatus.PRE_ANALYSIS.value,
        doc="PRE_ANALYSIS, OPERATION_PENDING, OPERATION_COMPLETED, NOT_OPERATED",
    )
    not_operated_justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    not_operated_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    competition: Mapped["Competition"] = relationship("Competition")
    home_team: Mapped["Team"] = relationship("Team", foreign_keys=[home_team_id])
    away_team: Mapped["Team"] = relationship("Team", foreign_keys=[away_team_id])

    __table_args__ = (
        Index("idx_matches_date", "match_date"),
        Index("idx_matches_status", "status"),
        CheckConstraint("home_odds IS NULL OR home_odds >= 1.01", name="ck_matches_home_odds"),
        CheckConstraint("draw_odds IS NULL OR draw_odds >= 1.01", name="ck_matches_draw_odds"),
        CheckConstraint("away_odds IS NULL OR away_odds >= 1.01", name="ck_matches_away_odds"),
    )

    def __repr__(self) -> str:
        return f"<Match {self.id} {self.match_date} ({self.status})>"


class PreAnalysis(Base, TimestampMixin):
    """Qualitative pre-match study, one per match (primary key = match_id)."""

    __tablename__ = "pre_analyses"

    match_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("matches.id"), primary_key=True
    )
    home_rank: Mapped[str | None] = mapped_column(String(2), nullable=True)
    away_rank: Mapped[str | None] = mapped_column(String(2), nullable=True)
    home_form: Mapped[str | None] = mapped_column(String(30), nullable=True)
    away_form: Mapped[str | None] = mapped_column(String(30), nullable=True)
    home_must_win: Mapped[str | None] = mapped_column(String(40), nullable=True)
    away_must_win: Mapped[str | None] = mapped_column(String(40), nullable=True)
    home_next_match_importance: Mapped[str | None] = mapped_column(String(30), nullable=True)
    away_next_match_importance: Mapped[str | None] = mapped_column(String(30), nullable=True)
    home_absences: Mapped[str | None] = mapped_column(String(30), nullable=True)
    away_absences: Mapped[str | None] = mapped_column(String(30), nullable=True)
    expected_tendency: Mapped[str | None] = mapped_column(String(30), nullable=True)
    home_performance_at_home: Mapped[str | None] = mapped_column(String(30), nullable=True)
    away_performance_away: Mapped[str | None] = mapped_column(String(30), nullable=True)
    odds_value: Mapped[str | None] = mapped_column(String(30), nullable=True)
    key_highlight: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    match: Mapped["Match"] = relationship("Match")

    def __repr__(self) -> str:
        return f"<PreAnalysis match={self.match_id}>"


class Operation(Base, TimestampMixin):
    """
    The decision to actually trade a match.

    One operation per match (unique match_id). Completing it requires every
    item to be settled.
    """

    __tablename__ = "operations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("matches.id"), unique=True, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OperationStatus.PENDING.value
    )
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    match: Mapped["Match"] = relationship("Match")
    items: Mapped[list["OperationItem"]] = relationship(
        "OperationItem",
        back_populates="operation",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_operations_registered", "registered_at"),)

    def __repr__(self) -> str:
        return f"<Operation {self.id} match={self.match_id} ({self.status})>"


class OperationItem(Base, TimestampMixin):
    """
    One trade leg. The unit every report aggregates over.

    financial_result stays NULL until the leg is settled.
    """

    __tablename__ = "operation_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    operation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("operations.id", ondelete="CASCADE"), nullable=False
    )
    market_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("markets.id"), nullable=False
    )
    strategy_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("strategies.id"), nullable=False
    )
    stake: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    entry_odds: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    close_type: Mapped[str | None] = mapped_column(
        String(20), nullable=True, doc="Automatic, Manual, Partial"
    )
    exit_odds: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    financial_result: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    exposure_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    followed_plan: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    emotional_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entry_motivation: Mapped[str | None] = mapped_column(String(50), nullable=True)
    self_assessment: Mapped[str | None] = mapped_column(String(50), nullable=True)
    exit_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    operation: Mapped["Operation"] = relationship("Operation", back_populates="items")

    __table_args__ = (
        Index("idx_operation_items_operation", "operation_id"),
        CheckConstraint("stake > 0", name="ck_operation_items_stake"),
        CheckConstraint("entry_odds >= 1.01", name="ck_operation_items_entry_odds"),
        CheckConstraint(
            "exit_odds IS NULL OR exit_odds >= 1.01", name="ck_operation_items_exit_odds"
        ),
        CheckConstraint(
            "exposure_minutes IS NULL OR exposure_minutes >= 0",
            name="ck_operation_items_exposure",
        ),
    )

    def __repr__(self) -> str:
        return f"<OperationItem {self.id} stake={self.stake} result={self.financial_result}>"


class CashTransaction(Base):
    """Deposit into or withdrawal from the bankroll."""

    __tablename__ = "cash_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_time: Mapped[time] = mapped_column(Time, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    transaction_type: Mapped[str] = mapped_column(
        String(20), nullable=False, doc="DEPOSIT or WITHDRAWAL"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_cash_transactions_date", "transaction_date"),
        CheckConstraint("amount > 0", name="ck_cash_transactions_amount"),
    )

    def __repr__(self) -> str:
        return f"<CashTransaction {self.transaction_type} {self.amount} ({self.transaction_date})>"


class CustomOption(Base, TimestampMixin):
    """User-added value for a selectable field, shown after the built-in list."""

    __tablename__ = "custom_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    field: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[str] = mapped_column(String(100), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_custom_options_field", "field"),)

    def __repr__(self) -> str:
        return f"<CustomOption {self.field}={self.value}>"

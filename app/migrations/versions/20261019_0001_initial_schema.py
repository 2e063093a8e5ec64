"""Initial schema for BetLedger.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates every table:
- Reference data: teams, competitions, markets, strategies
- Matches with their lifecycle status, and one pre-analysis per match
- Operations (one per match) and their items
- Cash transactions and custom options

Reference tables carry a normalized_name column with a unique constraint
(strategies: unique per market) so duplicates are rejected regardless of
case or accents.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # Reference tables with normalized unique names
    for table in ("teams", "competitions", "markets"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=30), nullable=False),
            sa.Column("normalized_name", sa.String(length=30), nullable=False),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("normalized_name"),
        )

    # Strategies, unique per market
    op.create_table(
        "strategies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("market_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=30), nullable=False),
        sa.Column("normalized_name", sa.String(length=30), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["market_id"], ["markets.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("normalized_name", "market_id", name="uq_strategies_name_market"),
    )

    # Matches
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_date", sa.Date(), nullable=False),
        sa.Column("match_time", sa.Time(), nullable=False),
        sa.Column("competition_id", sa.Integer(), nullable=False),
        sa.Column("home_team_id", sa.Integer(), nullable=False),
        sa.Column("away_team_id", sa.Integer(), nullable=False),
        sa.Column("home_odds", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("draw_odds", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("away_odds", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("not_operated_justification", sa.Text(), nullable=True),
        sa.Column("not_operated_verified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["competition_id"], ["competitions.id"]),
        sa.ForeignKeyConstraint(["home_team_id"], ["teams.id"]),
        sa.ForeignKeyConstraint(["away_team_id"], ["teams.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("home_odds IS NULL OR home_odds >= 1.01", name="ck_matches_home_odds"),
        sa.CheckConstraint("draw_odds IS NULL OR draw_odds >= 1.01", name="ck_matches_draw_odds"),
        sa.CheckConstraint("away_odds IS NULL OR away_odds >= 1.01", name="ck_matches_away_odds"),
    )
    op.create_index("idx_matches_date", "matches", ["match_date"])
    op.create_index("idx_matches_status", "matches", ["status"])

    # Pre-analyses, keyed by match
    op.create_table(
        "pre_analyses",
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("home_rank", sa.String(length=2), nullable=True),
        sa.Column("away_rank", sa.String(length=2), nullable=True),
        sa.Column("home_form", sa.String(length=30), nullable=True),
        sa.Column("away_form", sa.String(length=30), nullable=True),
        sa.Column("home_must_win", sa.String(length=40), nullable=True),
        sa.Column("away_must_win", sa.String(length=40), nullable=True),
        sa.Column("home_next_match_importance", sa.String(length=30), nullable=True),
        sa.Column("away_next_match_importance", sa.String(length=30), nullable=True),
        sa.Column("home_absences", sa.String(length=30), nullable=True),
        sa.Column("away_absences", sa.String(length=30), nullable=True),
        sa.Column("expected_tendency", sa.String(length=30), nullable=True),
        sa.Column("home_performance_at_home", sa.String(length=30), nullable=True),
        sa.Column("away_performance_away", sa.String(length=30), nullable=True),
        sa.Column("odds_value", sa.String(length=30), nullable=True),
        sa.Column("key_highlight", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"]),
        sa.PrimaryKeyConstraint("match_id"),
    )

    # Operations, one per match
    op.create_table(
        "operations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column(
            "registered_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id"),
    )
    op.create_index("idx_operations_registered", "operations", ["registered_at"])

    # Operation items (trade legs)
    op.create_table(
        "operation_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("operation_id", sa.Integer(), nullable=False),
        sa.Column("market_id", sa.Integer(), nullable=False),
        sa.Column("strategy_id", sa.Integer(), nullable=False),
        sa.Column("stake", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("entry_odds", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("close_type", sa.String(length=20), nullable=True),
        sa.Column("exit_odds", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("financial_result", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("exposure_minutes", sa.Integer(), nullable=True),
        sa.Column("followed_plan", sa.Boolean(), nullable=True),
        sa.Column("emotional_state", sa.String(length=50), nullable=True),
        sa.Column("entry_motivation", sa.String(length=50), nullable=True),
        sa.Column("self_assessment", sa.String(length=50), nullable=True),
        sa.Column("exit_note", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["operation_id"], ["operations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["market_id"], ["markets.id"]),
        sa.ForeignKeyConstraint(["strategy_id"], ["strategies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("stake > 0", name="ck_operation_items_stake"),
        sa.CheckConstraint("entry_odds >= 1.01", name="ck_operation_items_entry_odds"),
        sa.CheckConstraint(
            "exit_odds IS NULL OR exit_odds >= 1.01", name="ck_operation_items_exit_odds"
        ),
        sa.CheckConstraint(
            "exposure_minutes IS NULL OR exposure_minutes >= 0",
            name="ck_operation_items_exposure",
        ),
    )
    op.create_index("idx_operation_items_operation", "operation_items", ["operation_id"])

    # Cash transactions
    op.create_table(
        "cash_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("transaction_time", sa.Time(), nullable=False),
        sa.Column("amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_cash_transactions_amount"),
    )
    op.create_index("idx_cash_transactions_date", "cash_transactions", ["transaction_date"])

    # Custom options
    op.create_table(
        "custom_options",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("field", sa.String(length=50), nullable=False),
        sa.Column("value", sa.String(length=100), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_custom_options_field", "custom_options", ["field"])


def downgrade() -> None:
    op.drop_index("idx_custom_options_field", table_name="custom_options")
    op.drop_table("custom_options")
    op.drop_index("idx_cash_transactions_date", table_name="cash_transactions")
    op.drop_table("cash_transactions")
    op.drop_index("idx_operation_items_operation", table_name="operation_items")
    op.drop_table("operation_items")
    op.drop_index("idx_operations_registered", table_name="operations")
    op.drop_table("operations")
    op.drop_table("pre_analyses")
    op.drop_index("idx_matches_status", table_name="matches")
    op.drop_index("idx_matches_date", table_name="matches")
    op.drop_table("matches")
    op.drop_table("strategies")
    op.drop_table("markets")
    op.drop_table("competitions")
    op.drop_table("teams")

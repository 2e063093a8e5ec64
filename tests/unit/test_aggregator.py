"""Unit tests for the operation item aggregator.

The aggregator is pure: items and lookups are plain objects, no database.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest

from app.services.reporting.aggregator import (
    Groupings,
    MatchInfo,
    Metrics,
    ReportContext,
    ReportFilters,
    aggregate,
    aggregate_many,
    cumulative_profit,
    daily_series,
    filter_items,
    heatmap,
    summarize,
    to_decimal,
)


@dataclass
class Item:
    id: int
    operation_id: int
    market_id: int
    strategy_id: int
    stake: Decimal
    financial_result: Decimal | None
    followed_plan: bool | None = None
    emotional_state: str | None = None
    entry_motivation: str | None = None
    self_assessment: str | None = None


@pytest.fixture
def context():
    """Two matches, two markets; operation 3 points at a match that no longer exists."""
    return ReportContext(
        markets={1: "Match Odds", 2: "Over/Under 2.5"},
        strategies={10: ("Lay 0-1", 1), 20: ("Back Over", 2), 30: ("Orphan", 99)},
        competitions={5: "Brasileirão"},
        teams={7: "Flamengo", 8: "Palmeiras", 9: "Santos"},
        matches={
            100: MatchInfo(100, date(2026, 3, 2), 5, 7, 8),
            101: MatchInfo(101, date(2026, 3, 5), 5, 8, 9),
        },
        operation_matches={1: 100, 2: 101, 3: 404},
    )


@pytest.fixture
def items():
    return [
        Item(1, 1, 1, 10, Decimal("100"), Decimal("20"), True, "Calmo", "Sinal técnico", "Boa"),
        Item(2, 1, 1, 10, Decimal("50"), Decimal("-10"), False, "Ansioso", "Sinal técnico", "Ruim"),
        Item(3, 2, 2, 20, Decimal("80"), Decimal("15.50"), True, "Calmo", "Intuição/Feeling", "Boa"),
        Item(4, 2, 1, 10, Decimal("40"), None, None, None, None, None),
        Item(5, 3, 2, 30, Decimal("30"), Decimal("-5"), True, "Calmo", None, None),
    ]


class TestMetrics:
    """Test the per-group metrics."""

    def test_zero_stake_roi_is_zero(self):
        """A group with no stake reports ROI 0, never a division error."""
        metrics = Metrics()
        assert metrics.roi == 0
        assert metrics.hit_rate == 0
        assert metrics.average_per_operation == 0

    def test_example_market_group(self):
        """Stakes 100 and 50 with results 20 and -10: profit 10, ROI 6.67%."""
        metrics = summarize([
            Item(1, 1, 1, 10, Decimal("100"), Decimal("20")),
            Item(2, 1, 1, 10, Decimal("50"), Decimal("-10")),
        ])
        assert metrics.profit == Decimal("10")
        assert metrics.stake_total == Decimal("150")
        assert metrics.to_dict()["roi"] == pytest.approx(6.67)
        assert metrics.count == 2
        assert metrics.hit_rate == Decimal("50")

    def test_unsettled_item_counts_stake_but_no_profit(self):
        metrics = summarize([
            Item(1, 1, 1, 10, Decimal("100"), Decimal("20")),
            Item(2, 1, 1, 10, Decimal("100"), None),
        ])
        assert metrics.profit == Decimal("20")
        assert metrics.stake_total == Decimal("200")
        assert metrics.count == 2
        assert metrics.wins == 1

    def test_operation_count_and_average(self):
        metrics = summarize([
            Item(1, 1, 1, 10, Decimal("10"), Decimal("30")),
            Item(2, 1, 1, 10, Decimal("10"), Decimal("-10")),
            Item(3, 2, 1, 10, Decimal("10"), Decimal("10")),
        ])
        assert metrics.operation_count == 2
        assert metrics.average_per_operation == Decimal("15")

    def test_largest_gain(self):
        metrics = summarize([
            Item(1, 1, 1, 10, Decimal("10"), Decimal("-3")),
            Item(2, 1, 1, 10, Decimal("10"), Decimal("12.40")),
            Item(3, 2, 1, 10, Decimal("10"), Decimal("4")),
        ])
        assert metrics.largest_gain == Decimal("12.40")

    def test_to_dict_rounds_to_cents(self):
        metrics = summarize([Item(1, 1, 1, 10, Decimal("3"), Decimal("1"))])
        data = metrics.to_dict()
        assert data["roi"] == 33.33
        assert data["profit"] == 1.0

    def test_to_decimal_parses_stored_strings(self):
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(None) == 0
        assert to_decimal("") == 0
        assert to_decimal(3) == Decimal("3")


class TestGroupings:
    """Test the grouping functions over a shared fixture."""

    def test_market_groups_partition_profit(self, items, context):
        groups = aggregate(items, Groupings(context).by_market)
        total = sum(to_decimal(i.financial_result) for i in items)
        assert sum(m.profit for m in groups.values()) == total
        assert groups[1].profit == Decimal("10")
        assert groups[2].profit == Decimal("10.50")

    def test_strategy_groups_partition_profit(self, items, context):
        groups = aggregate(items, Groupings(context).by_strategy)
        assert set(groups) == {10, 20, 30}
        assert sum(m.count for m in groups.values()) == len(items)

    def test_team_grouping_counts_both_sides(self, items, context):
        """Each item lands on its home and its away team."""
        groups = aggregate_many(items, Groupings(context).by_team)
        assert groups[7].count == 2      # operation 1 only
        assert groups[8].count == 4      # both matches
        assert groups[9].count == 2      # operation 2 only

    def test_unresolved_match_is_dropped_from_date_groupings(self, items, context):
        """Item 5 belongs to a deleted match: no day bucket, still in its market."""
        by_day = aggregate(items, Groupings(context).by_day)
        assert sum(m.count for m in by_day.values()) == 4
        by_market = aggregate(items, Groupings(context).by_market)
        assert sum(m.count for m in by_market.values()) == 5

    def test_competition_grouping(self, items, context):
        groups = aggregate(items, Groupings(context).by_competition)
        assert list(groups) == [5]
        assert groups[5].count == 4

    def test_week_key_is_monday(self, items, context):
        groups = aggregate(items, Groupings(context).by_week)
        assert list(groups) == [date(2026, 3, 2)]

    def test_month_and_year_keys(self, items, context):
        groupings = Groupings(context)
        assert list(aggregate(items, groupings.by_month)) == [(2026, 3)]
        assert list(aggregate(items, groupings.by_year)) == [2026]

    def test_followed_plan_excludes_unknown(self, items, context):
        groups = aggregate(items, Groupings(context).by_followed_plan)
        assert groups[True].count == 3
        assert groups[False].count == 1

    def test_emotional_state_skips_blank(self, items, context):
        groups = aggregate(items, Groupings(context).by_emotional_state)
        assert set(groups) == {"Calmo", "Ansioso"}
        assert groups["Calmo"].count == 3

    def test_heatmap_cells(self, items, context):
        motivations, assessments, cells = heatmap(items, context)
        assert motivations == ["Sinal técnico", "Intuição/Feeling"]
        assert assessments == ["Boa", "Ruim"]
        assert cells[("Sinal técnico", "Boa")].profit == Decimal("20")
        assert ("Intuição/Feeling", "Ruim") not in cells


class TestLookups:
    """Missing lookups degrade to placeholders."""

    def test_strategy_with_missing_market_uses_placeholder(self, context):
        assert context.strategy_market_name(30) == "Other"
        assert context.strategy_market_name(10) == "Match Odds"

    def test_unknown_ids_give_empty_labels(self, context):
        assert context.strategy_name(999) == ""
        assert context.team_name(999) == ""
        assert context.competition_name(999) == ""
        assert context.market_name(999) == "Other"


class TestFilters:
    """Test report filtering."""

    def test_no_filters_keeps_everything(self, items, context):
        assert len(filter_items(items, context, ReportFilters())) == 5

    def test_date_range(self, items, context):
        filters = ReportFilters(date_from=date(2026, 3, 3), date_to=date(2026, 3, 31))
        selected = filter_items(items, context, filters)
        assert [i.id for i in selected] == [3, 4]

    def test_team_matches_either_side(self, items, context):
        selected = filter_items(items, context, ReportFilters(team_id=9))
        assert [i.id for i in selected] == [3, 4]

    def test_market_and_strategy(self, items, context):
        selected = filter_items(items, context, ReportFilters(market_id=1))
        assert [i.id for i in selected] == [1, 2, 4]
        selected = filter_items(items, context, ReportFilters(strategy_id=20))
        assert [i.id for i in selected] == [3]


class TestSeries:
    """Test day series."""

    def test_daily_series_is_zero_filled(self, items, context):
        series = daily_series(items, context, date(2026, 3, 1), date(2026, 3, 30))
        assert len(series) == 30
        assert series[0][0] == date(2026, 3, 1)
        assert series[0][1].count == 0
        assert series[1][1].profit == Decimal("10")

    def test_cumulative_profit(self, items, context):
        series = daily_series(items, context, date(2026, 3, 1), date(2026, 3, 5))
        points = cumulative_profit(series)
        assert [total for _, total in points] == [
            Decimal("0"),
            Decimal("10"),
            Decimal("10"),
            Decimal("10"),
            Decimal("25.50"),
        ]

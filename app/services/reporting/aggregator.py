"""Operation item aggregation.

Pure, synchronous folds over already-fetched rows. Every grouping maps
items to a key and accumulates Metrics per key; the lookups needed to
resolve an item's match (for dates, competition and teams) travel in a
ReportContext.

Amounts are Decimal end to end; rounding to cents happens only when a
Metrics is turned into a dict.
"""

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class ItemLike(Protocol):
    """Fields of an operation item the aggregator reads."""

    id: int
    operation_id: int
    market_id: int
    strategy_id: int
    stake: Any
    financial_result: Any
    followed_plan: bool | None
    emotional_state: str | None
    entry_motivation: str | None
    self_assessment: str | None


def to_decimal(value: Any) -> Decimal:
    """Parse a stored amount; None and empty strings count as zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Decimal) -> float:
    """Round to cents for presentation."""
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def safe_ratio_pct(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator * 100, defined as 0 when the denominator is not positive."""
    if denominator > 0:
        return numerator / denominator * HUNDRED
    return ZERO


@dataclass
class Metrics:
    """Financial result of a group of items."""

    profit: Decimal = ZERO
    stake_total: Decimal = ZERO
    count: int = 0
    wins: int = 0
    largest_gain: Decimal = ZERO
    operation_ids: set[int] = field(default_factory=set)

    def add(self, item: ItemLike) -> None:
        result = to_decimal(item.financial_result)
        if self.count == 0 or result > self.largest_gain:
            self.largest_gain = result
        self.profit += result
        self.stake_total += to_decimal(item.stake)
        self.count += 1
        if result > 0:
            self.wins += 1
        self.operation_ids.add(item.operation_id)

    @property
    def roi(self) -> Decimal:
        return safe_ratio_pct(self.profit, self.stake_total)

    @property
    def hit_rate(self) -> Decimal:
        return safe_ratio_pct(Decimal(self.wins), Decimal(self.count))

    @property
    def operation_count(self) -> int:
        return len(self.operation_ids)

    @property
    def average_per_operation(self) -> Decimal:
        if not self.operation_ids:
            return ZERO
        return self.profit / Decimal(len(self.operation_ids))

    def to_dict(self) -> dict[str, Any]:
        return {
            "profit": money(self.profit),
            "stake_total": money(self.stake_total),
            "roi": money(self.roi),
            "count": self.count,
            "hit_rate": money(self.hit_rate),
            "operation_count": self.operation_count,
            "average_per_operation": money(self.average_per_operation),
            "largest_gain": money(self.largest_gain),
        }


def summarize(items: Iterable[ItemLike]) -> Metrics:
    """Metrics over all items."""
    metrics = Metrics()
    for item in items:
        metrics.add(item)
    return metrics


def aggregate(
    items: Iterable[ItemLike], group_by: Callable[[ItemLike], Hashable | None]
) -> dict[Hashable, Metrics]:
    """
    Group items by a key and compute Metrics per group.

    Items whose key is None are left out. Groups keep first-seen order.
    """
    groups: dict[Hashable, Metrics] = {}
    for item in items:
        key = group_by(item)
        if key is None:
            continue
        if key not in groups:
            groups[key] = Metrics()
        groups[key].add(item)
    return groups


def aggregate_many(
    items: Iterable[ItemLike], group_by: Callable[[ItemLike], Iterable[Hashable]]
) -> dict[Hashable, Metrics]:
    """Like aggregate, but one item may land in several groups."""
    groups: dict[Hashable, Metrics] = {}
    for item in items:
        for key in group_by(item):
            if key not in groups:
                groups[key] = Metrics()
            groups[key].add(item)
    return groups


@dataclass(frozen=True)
class MatchInfo:
    """The slice of a match the reports need."""

    id: int
    match_date: date
    competition_id: int
    home_team_id: int
    away_team_id: int


@dataclass
class ReportContext:
    """
    Lookup tables resolving item foreign keys.

    Missing rows are tolerated: labels fall back to a placeholder and
    match-derived keys to None.
    """

    markets: dict[int, str] = field(default_factory=dict)
    strategies: dict[int, tuple[str, int]] = field(default_factory=dict)  # id -> (name, market_id)
    competitions: dict[int, str] = field(default_factory=dict)
    teams: dict[int, str] = field(default_factory=dict)
    matches: dict[int, MatchInfo] = field(default_factory=dict)
    operation_matches: dict[int, int] = field(default_factory=dict)  # operation id -> match id
    missing_label: str = "Other"

    def match_for(self, item: ItemLike) -> MatchInfo | None:
        match_id = self.operation_matches.get(item.operation_id)
        if match_id is None:
            return None
        return self.matches.get(match_id)

    def market_name(self, market_id: int | None) -> str:
        if market_id is None:
            return self.missing_label
        return self.markets.get(market_id, self.missing_label)

    def strategy_name(self, strategy_id: int) -> str:
        strategy = self.strategies.get(strategy_id)
        return strategy[0] if strategy else ""

    def strategy_market_name(self, strategy_id: int) -> str:
        strategy = self.strategies.get(strategy_id)
        return self.market_name(strategy[1] if strategy else None)

    def competition_name(self, competition_id: int) -> str:
        return self.competitions.get(competition_id, "")

    def team_name(self, team_id: int) -> str:
        return self.teams.get(team_id, "")


class Groupings:
    """Key functions for every cut the dashboards use."""

    def __init__(self, context: ReportContext):
        self.context = context

    @staticmethod
    def by_market(item: ItemLike) -> int:
        return item.market_id

    @staticmethod
    def by_strategy(item: ItemLike) -> int:
        return item.strategy_id

    def by_competition(self, item: ItemLike) -> int | None:
        match = self.context.match_for(item)
        return match.competition_id if match else None

    def by_team(self, item: ItemLike) -> list[int]:
        """Both sides of the item's match; use with aggregate_many."""
        match = self.context.match_for(item)
        if match is None:
            return []
        if match.home_team_id == match.away_team_id:
            return [match.home_team_id]
        return [match.home_team_id, match.away_team_id]

    @staticmethod
    def by_emotional_state(item: ItemLike) -> str | None:
        return item.emotional_state or None

    @staticmethod
    def by_entry_motivation(item: ItemLike) -> str | None:
        return item.entry_motivation or None

    @staticmethod
    def by_self_assessment(item: ItemLike) -> str | None:
        return item.self_assessment or None

    @staticmethod
    def by_followed_plan(item: ItemLike) -> bool | None:
        return item.followed_plan

    def by_motivation_and_assessment(self, item: ItemLike) -> tuple[str, str] | None:
        if not item.entry_motivation or not item.self_assessment:
            return None
        return (item.entry_motivation, item.self_assessment)

    def by_day(self, item: ItemLike) -> date | None:
        match = self.context.match_for(item)
        return match.match_date if match else None

    def by_week(self, item: ItemLike) -> date | None:
        """Monday of the ISO week the match was played in."""
        day = self.by_day(item)
        return day - timedelta(days=day.weekday()) if day else None

    def by_month(self, item: ItemLike) -> tuple[int, int] | None:
        day = self.by_day(item)
        return (day.year, day.month) if day else None

    def by_year(self, item: ItemLike) -> int | None:
        day = self.by_day(item)
        return day.year if day else None


@dataclass
class ReportFilters:
    """Narrowing applied before aggregation (all optional)."""

    date_from: date | None = None
    date_to: date | None = None
    competition_id: int | None = None
    team_id: int | None = None
    market_id: int | None = None
    strategy_id: int | None = None

    @property
    def needs_match(self) -> bool:
        return any(
            value is not None
            for value in (self.date_from, self.date_to, self.competition_id, self.team_id)
        )


def filter_items(
    items: Iterable[ItemLike], context: ReportContext, filters: ReportFilters
) -> list[ItemLike]:
    """Apply report filters. Match-based filters drop items without a known match."""
    selected = []
    for item in items:
        if filters.needs_match:
            match = context.match_for(item)
            if match is None:
                continue
            if filters.date_from and match.match_date < filters.date_from:
                continue
            if filters.date_to and match.match_date > filters.date_to:
                continue
            if filters.competition_id is not None and match.competition_id != filters.competition_id:
                continue
            if filters.team_id is not None and filters.team_id not in (
                match.home_team_id,
                match.away_team_id,
            ):
                continue
        if filters.market_id is not None and item.market_id != filters.market_id:
            continue
        if filters.strategy_id is not None and item.strategy_id != filters.strategy_id:
            continue
        selected.append(item)
    return selected


def daily_series(
    items: Iterable[ItemLike], context: ReportContext, start: date, end: date
) -> list[tuple[date, Metrics]]:
    """One Metrics per calendar day from start to end inclusive, zero-filled."""
    by_day = aggregate(items, Groupings(context).by_day)
    series = []
    day = start
    while day <= end:
        series.append((day, by_day.get(day, Metrics())))
        day += timedelta(days=1)
    return series


def cumulative_profit(series: list[tuple[date, Metrics]]) -> list[tuple[date, Decimal]]:
    """Running total of profit over a daily series."""
    running = ZERO
    points = []
    for day, metrics in series:
        running += metrics.profit
        points.append((day, running))
    return points


def heatmap(
    items: Iterable[ItemLike], context: ReportContext
) -> tuple[list[str], list[str], dict[tuple[str, str], Metrics]]:
    """
    Entry motivation x self-assessment matrix.

    Returns (row labels, column labels, cells); labels keep first-seen order
    and only cells with items are present.
    """
    items = list(items)
    motivations = list(dict.fromkeys(i.entry_motivation for i in items if i.entry_motivation))
    assessments = list(dict.fromkeys(i.self_assessment for i in items if i.self_assessment))
    cells = aggregate(items, Groupings(context).by_motivation_and_assessment)
    return motivations, assessments, cells

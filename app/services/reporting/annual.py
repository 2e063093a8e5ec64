"""
Annual summary: twelve monthly balance rows for one year.

The fold is sequential. Month 1 opens with everything that happened
before 1 January (cash movements plus trading profit); each month closes
at opening + profit and the next month opens at that close. Cash moved
during the year is reported per month and enters the balance from the
following year's opening.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from app.models.domain import TransactionType
from app.services.reporting.aggregator import ZERO, money, safe_ratio_pct, to_decimal


@dataclass
class MonthSummary:
    month: int
    opening_balance: Decimal
    profit: Decimal
    closing_balance: Decimal
    deposits: Decimal = ZERO
    withdrawals: Decimal = ZERO

    @property
    def roi(self) -> Decimal:
        return safe_ratio_pct(self.profit, self.opening_balance)

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "opening_balance": money(self.opening_balance),
            "profit": money(self.profit),
            "closing_balance": money(self.closing_balance),
            "roi": money(self.roi),
            "deposits": money(self.deposits),
            "withdrawals": money(self.withdrawals),
        }


@dataclass
class AnnualSummary:
    year: int
    months: list[MonthSummary] = field(default_factory=list)

    @property
    def opening_balance(self) -> Decimal:
        return self.months[0].opening_balance if self.months else ZERO

    @property
    def closing_balance(self) -> Decimal:
        return self.months[-1].closing_balance if self.months else ZERO

    @property
    def profit(self) -> Decimal:
        return sum((m.profit for m in self.months), ZERO)

    @property
    def deposits(self) -> Decimal:
        return sum((m.deposits for m in self.months), ZERO)

    @property
    def withdrawals(self) -> Decimal:
        return sum((m.withdrawals for m in self.months), ZERO)

    @property
    def roi(self) -> Decimal:
        return safe_ratio_pct(self.profit, self.opening_balance)

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "months": [m.to_dict() for m in self.months],
            "totals": {
                "opening_balance": money(self.opening_balance),
                "profit": money(self.profit),
                "closing_balance": money(self.closing_balance),
                "roi": money(self.roi),
                "deposits": money(self.deposits),
                "withdrawals": money(self.withdrawals),
            },
        }


def signed_amount(transaction: Any) -> Decimal:
    """Deposits add to the bankroll, withdrawals subtract."""
    amount = to_decimal(transaction.amount)
    if transaction.transaction_type == TransactionType.WITHDRAWAL.value:
        return -amount
    return amount


def annual_summary(
    year: int,
    transactions: Iterable[Any],
    dated_profits: Iterable[tuple[date, Decimal]],
) -> AnnualSummary:
    """
    Build the monthly rows for a year.

    Args:
        year: Calendar year to summarize
        transactions: Cash transactions (transaction_date, amount, transaction_type)
        dated_profits: (match date, financial result) per operation item

    Returns:
        AnnualSummary with exactly twelve months
    """
    start = date(year, 1, 1)
    opening = ZERO
    deposits = [ZERO] * 13
    withdrawals = [ZERO] * 13
    profits = [ZERO] * 13

    for transaction in transactions:
        tx_date = transaction.transaction_date
        if tx_date < start:
            opening += signed_amount(transaction)
        elif tx_date.year == year:
            if transaction.transaction_type == TransactionType.WITHDRAWAL.value:
                withdrawals[tx_date.month] += to_decimal(transaction.amount)
            else:
                deposits[tx_date.month] += to_decimal(transaction.amount)

    for day, result in dated_profits:
        if day < start:
            opening += to_decimal(result)
        elif day.year == year:
            profits[day.month] += to_decimal(result)

    summary = AnnualSummary(year=year)
    balance = opening
    for month in range(1, 13):
        closing = balance + profits[month]
        summary.months.append(
            MonthSummary(
                month=month,
                opening_balance=balance,
                profit=profits[month],
                closing_balance=closing,
                deposits=deposits[month],
                withdrawals=withdrawals[month],
            )
        )
        balance = closing
    return summary

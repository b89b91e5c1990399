from __future__ import annotations

from calendar import month_abbr
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from domain.models import Transaction
from domain.schemas import CategorySlice, DashboardSummary, DashboardTotals, MonthlyBucket

UNCATEGORIZED = "Uncategorized"
MONTHLY_SERIES_LIMIT = 6

_ZERO = Decimal("0")


def _money(value: Decimal) -> float:
    return round(float(value), 2)


def month_label(year: int, month: int) -> str:
    return f"{month_abbr[month]} {year:04d}"


def _in_month(txn: Transaction, reference_date: date) -> bool:
    if txn.posted_on is None:
        return False
    return txn.posted_on.year == reference_date.year and txn.posted_on.month == reference_date.month


def compute_totals(transactions: Iterable[Transaction], reference_date: date) -> DashboardTotals:
    """
    Dashboard headline numbers.

    `balance` is the all-time net of every transaction, while income and
    expenses cover only the calendar month of `reference_date`.
    """
    balance = _ZERO
    income = _ZERO
    expenses = _ZERO
    for txn in transactions:
        balance += txn.amount
        if not _in_month(txn, reference_date):
            continue
        if txn.amount > 0:
            income += txn.amount
        elif txn.amount < 0:
            expenses += txn.amount

    return DashboardTotals(
        balance=_money(balance),
        monthly_income=_money(income),
        monthly_expenses=_money(abs(expenses)),
    )


def compute_monthly_series(
    transactions: Iterable[Transaction],
    limit: int = MONTHLY_SERIES_LIMIT,
) -> list[MonthlyBucket]:
    """Income/expense sums per calendar month, oldest first, keeping the latest `limit` months."""
    buckets: dict[tuple[int, int], dict[str, Decimal]] = defaultdict(
        lambda: {"income": _ZERO, "expenses": _ZERO}
    )
    for txn in transactions:
        if txn.posted_on is None:
            continue
        entry = buckets[(txn.posted_on.year, txn.posted_on.month)]
        if txn.amount > 0:
            entry["income"] += txn.amount
        elif txn.amount < 0:
            entry["expenses"] += abs(txn.amount)

    keys = sorted(buckets)
    if 0 <= limit < len(keys):
        keys = keys[len(keys) - limit:]
    return [
        MonthlyBucket(
            year=year,
            month=month,
            label=month_label(year, month),
            income=_money(buckets[(year, month)]["income"]),
            expenses=_money(buckets[(year, month)]["expenses"]),
        )
        for year, month in keys
    ]


def _category_name(txn: Transaction) -> str:
    if txn.category is None:
        return UNCATEGORIZED
    return txn.category.name.strip() or UNCATEGORIZED


def compute_category_breakdown(transactions: Iterable[Transaction]) -> list[CategorySlice]:
    totals: dict[str, Decimal] = {}
    for txn in transactions:
        # Strictly negative: zero-amount rows are dropped, not bucketed.
        if not txn.amount < 0:
            continue
        name = _category_name(txn)
        totals[name] = totals.get(name, _ZERO) + abs(txn.amount)

    return [CategorySlice(name=name, value=_money(value)) for name, value in totals.items()]


def build_dashboard(transactions: Iterable[Transaction], reference_date: date) -> DashboardSummary:
    txns = list(transactions)
    return DashboardSummary(
        reference_date=reference_date,
        transaction_count=len(txns),
        totals=compute_totals(txns, reference_date),
        monthly_series=compute_monthly_series(txns),
        category_breakdown=compute_category_breakdown(txns),
    )

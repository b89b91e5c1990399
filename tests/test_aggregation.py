from __future__ import annotations

import random
import unittest
from datetime import date
from decimal import Decimal

from application.aggregation import (
    UNCATEGORIZED,
    build_dashboard,
    compute_category_breakdown,
    compute_monthly_series,
    compute_totals,
    month_label,
)
from domain.models import Category, CategoryType, Transaction


def _txn(id: str, amount: str, posted_on: date | None, category: str | None = None) -> Transaction:
    return Transaction(
        id=id,
        user_id="u_123",
        amount=Decimal(amount),
        posted_on=posted_on,
        description=f"txn {id}",
        category_id=f"cat_{category}" if category else None,
        category=Category(id=f"cat_{category}", user_id="u_123", name=category, type=CategoryType.EXPENSE)
        if category
        else None,
    )


class ComputeTotalsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.txns = [
            _txn("t1", "100", date(2025, 1, 15)),
            _txn("t2", "-40", date(2025, 1, 20), "Food"),
            _txn("t3", "-10", date(2025, 2, 1)),
        ]

    def test_reference_example(self) -> None:
        totals = compute_totals(self.txns, date(2025, 1, 31))

        self.assertEqual(totals.balance, 50)
        self.assertEqual(totals.monthly_income, 100)
        self.assertEqual(totals.monthly_expenses, 40)

    def test_balance_is_all_time_while_monthly_figures_are_scoped(self) -> None:
        totals = compute_totals(self.txns, date(2025, 2, 10))

        self.assertEqual(totals.balance, 50)
        self.assertEqual(totals.monthly_income, 0)
        self.assertEqual(totals.monthly_expenses, 10)

    def test_same_month_of_another_year_is_not_current(self) -> None:
        totals = compute_totals(self.txns, date(2024, 1, 15))

        self.assertEqual(totals.monthly_income, 0)
        self.assertEqual(totals.monthly_expenses, 0)

    def test_empty_input_yields_zeros(self) -> None:
        totals = compute_totals([], date(2025, 1, 1))

        self.assertEqual((totals.balance, totals.monthly_income, totals.monthly_expenses), (0, 0, 0))

    def test_balance_is_order_independent(self) -> None:
        txns = [_txn(f"t{i}", f"{(-1) ** i * (i * 7.25):.2f}", date(2025, 1 + i % 12, 1)) for i in range(30)]
        shuffled = list(txns)
        random.Random(7).shuffle(shuffled)

        expected = round(float(sum(t.amount for t in txns)), 2)
        self.assertEqual(compute_totals(txns, date(2025, 3, 1)).balance, expected)
        self.assertEqual(compute_totals(shuffled, date(2025, 3, 1)).balance, expected)

    def test_monthly_net_matches_income_minus_expenses(self) -> None:
        txns = self.txns + [_txn("t4", "25.50", date(2025, 1, 2)), _txn("t5", "-0.75", date(2025, 1, 3))]
        reference = date(2025, 1, 1)

        totals = compute_totals(txns, reference)
        month_net = sum(t.amount for t in txns if t.posted_on and t.posted_on.month == 1 and t.posted_on.year == 2025)
        self.assertAlmostEqual(totals.monthly_income - totals.monthly_expenses, float(month_net), places=2)

    def test_invalid_dates_count_towards_balance_only(self) -> None:
        txns = [_txn("t1", "-30", None), _txn("t2", "20", date(2025, 1, 5))]

        totals = compute_totals(txns, date(2025, 1, 1))

        self.assertEqual(totals.balance, -10)
        self.assertEqual(totals.monthly_income, 20)
        self.assertEqual(totals.monthly_expenses, 0)


class ComputeMonthlySeriesTests(unittest.TestCase):
    def test_buckets_are_chronological_and_split_income_expenses(self) -> None:
        txns = [
            _txn("t3", "-10", date(2025, 2, 1)),
            _txn("t1", "100", date(2025, 1, 15)),
            _txn("t2", "-40", date(2025, 1, 20), "Food"),
        ]

        series = compute_monthly_series(txns)

        self.assertEqual([b.label for b in series], ["Jan 2025", "Feb 2025"])
        self.assertEqual((series[0].income, series[0].expenses), (100, 40))
        self.assertEqual((series[1].income, series[1].expenses), (0, 10))

    def test_keeps_only_the_six_most_recent_months(self) -> None:
        txns = [_txn(f"t{m}", "-5", date(2024, m, 10)) for m in range(1, 13)]

        series = compute_monthly_series(txns)

        self.assertEqual(len(series), 6)
        self.assertEqual([(b.year, b.month) for b in series], [(2024, m) for m in range(7, 13)])

    def test_same_month_in_different_years_are_separate_buckets(self) -> None:
        txns = [_txn("a", "10", date(2023, 3, 1)), _txn("b", "20", date(2024, 3, 1))]

        series = compute_monthly_series(txns)

        self.assertEqual([b.label for b in series], ["Mar 2023", "Mar 2024"])
        self.assertEqual([b.income for b in series], [10, 20])

    def test_sparse_months_are_not_filled(self) -> None:
        txns = [_txn("a", "10", date(2025, 1, 1)), _txn("b", "10", date(2025, 4, 1))]

        self.assertEqual(len(compute_monthly_series(txns)), 2)

    def test_zero_amounts_create_bucket_without_totals(self) -> None:
        series = compute_monthly_series([_txn("z", "0", date(2025, 5, 5))])

        self.assertEqual(len(series), 1)
        self.assertEqual((series[0].income, series[0].expenses), (0, 0))

    def test_invalid_dates_are_skipped(self) -> None:
        series = compute_monthly_series([_txn("bad", "-10", None), _txn("ok", "-5", date(2025, 6, 1))])

        self.assertEqual([b.label for b in series], ["Jun 2025"])

    def test_series_is_non_decreasing_for_random_input(self) -> None:
        rng = random.Random(3)
        txns = [
            _txn(f"t{i}", str(rng.randint(-500, 500)), date(rng.randint(2019, 2026), rng.randint(1, 12), 1))
            for i in range(200)
        ]

        series = compute_monthly_series(txns)

        keys = [(b.year, b.month) for b in series]
        self.assertLessEqual(len(series), 6)
        self.assertEqual(keys, sorted(keys))

    def test_month_label_format(self) -> None:
        self.assertEqual(month_label(2025, 1), "Jan 2025")
        self.assertEqual(month_label(2024, 12), "Dec 2024")


class ComputeCategoryBreakdownTests(unittest.TestCase):
    def test_reference_example(self) -> None:
        txns = [
            _txn("t1", "100", date(2025, 1, 15)),
            _txn("t2", "-40", date(2025, 1, 20), "Food"),
            _txn("t3", "-10", date(2025, 2, 1)),
        ]

        breakdown = {s.name: s.value for s in compute_category_breakdown(txns)}

        self.assertEqual(breakdown, {"Food": 40, UNCATEGORIZED: 10})

    def test_excludes_income_and_zero_amounts(self) -> None:
        txns = [
            _txn("t1", "100", date(2025, 1, 1), "Salary"),
            _txn("t2", "0", date(2025, 1, 1), "Food"),
        ]

        self.assertEqual(compute_category_breakdown(txns), [])

    def test_sums_per_category_with_blank_names_uncategorized(self) -> None:
        blank = _txn("t3", "-7.25", date(2025, 1, 1), "Food")
        blank.category.name = "  "
        txns = [
            _txn("t1", "-12.50", date(2025, 1, 1), "Food"),
            _txn("t2", "-2.50", date(2025, 2, 1), "Food"),
            blank,
        ]

        breakdown = {s.name: s.value for s in compute_category_breakdown(txns)}

        self.assertEqual(breakdown, {"Food": 15.0, UNCATEGORIZED: 7.25})

    def test_invalid_dates_still_count(self) -> None:
        breakdown = compute_category_breakdown([_txn("t1", "-9", None, "Rent")])

        self.assertEqual([(s.name, s.value) for s in breakdown], [("Rent", 9)])


class BuildDashboardTests(unittest.TestCase):
    def test_empty_input(self) -> None:
        summary = build_dashboard([], date(2025, 1, 1))

        self.assertEqual(summary.transaction_count, 0)
        self.assertEqual(summary.totals.balance, 0)
        self.assertEqual(summary.monthly_series, [])
        self.assertEqual(summary.category_breakdown, [])

    def test_is_idempotent_and_accepts_generators(self) -> None:
        txns = [_txn("t1", "100", date(2025, 1, 15)), _txn("t2", "-40", date(2025, 1, 20), "Food")]

        first = build_dashboard((t for t in txns), date(2025, 1, 31))
        second = build_dashboard(txns, date(2025, 1, 31))

        self.assertEqual(first, second)
        self.assertEqual(first.transaction_count, 2)


if __name__ == "__main__":
    unittest.main()

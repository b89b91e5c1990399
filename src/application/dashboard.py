from __future__ import annotations

import logging
import time
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from application.aggregation import build_dashboard
from domain.models import Table
from domain.schemas import DashboardSummary, UserContext
from infrastructure.record_mapper import transactions_from_rows
from infrastructure.stores.store import RecordStore

logger = logging.getLogger(__name__)


def today_for(context: UserContext) -> date:
    try:
        tz = ZoneInfo(context.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone=%r for user_id=%s, using UTC", context.timezone, context.user_id)
        tz = ZoneInfo("UTC")
    return datetime.now(tz).date()


class DashboardService:
    """Fetches a user's transactions and turns them into dashboard chart data."""

    def __init__(self, store: RecordStore):
        self._store = store

    def summarize(self, context: UserContext, reference_date: date | None = None) -> DashboardSummary:
        logger.info("Dashboard summarize start user_id=%s", context.user_id)
        t0 = time.perf_counter()
        reference_date = reference_date or today_for(context)

        t = time.perf_counter()
        rows = self._store.list(Table.TRANSACTIONS, context, select="*,category:categories(*)", order="date.desc")
        transactions = transactions_from_rows(rows)
        logger.info("Transactions fetched in %.2fs count=%d", time.perf_counter() - t, len(transactions))

        t = time.perf_counter()
        summary = build_dashboard(transactions, reference_date)
        logger.info(
            "Aggregation complete in %.2fs months=%d categories=%d",
            time.perf_counter() - t,
            len(summary.monthly_series),
            len(summary.category_breakdown),
        )

        logger.info("Dashboard summarize complete in %.2fs reference_date=%s", time.perf_counter() - t0, reference_date)
        return summary

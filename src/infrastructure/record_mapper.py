from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from domain.models import Category, CategoryType, Profile, SavingsGoal, Transaction

logger = logging.getLogger(__name__)


def parse_calendar_date(raw: Any) -> date | None:
    """Parse a stored date column; unparseable values become None instead of raising."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    value = str(raw or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        logger.warning("Unparseable transaction date value=%r", value)
        return None


def parse_timestamp(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        return raw
    value = str(raw or "").strip()
    if not value:
        return None
    # fromisoformat on older interpreters rejects the Z suffix.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _decimal(raw: Any) -> Decimal:
    if raw is None or raw == "":
        return Decimal("0")
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        logger.warning("Unparseable amount value=%r", raw)
        return Decimal("0")
    if not value.is_finite():
        logger.warning("Non-finite amount value=%r", raw)
        return Decimal("0")
    return value


def _category_type(raw: Any) -> CategoryType:
    try:
        return CategoryType(str(raw or "").upper())
    except ValueError:
        return CategoryType.EXPENSE


def category_from_row(row: dict[str, Any]) -> Category:
    return Category(
        id=str(row.get("id")),
        user_id=str(row.get("user_id") or ""),
        name=str(row.get("name") or ""),
        type=_category_type(row.get("type")),
        created_at=parse_timestamp(row.get("created_at")),
    )


def transaction_from_row(row: dict[str, Any]) -> Transaction:
    embedded = row.get("category")
    category = category_from_row(embedded) if isinstance(embedded, dict) else None
    return Transaction(
        id=str(row.get("id")),
        user_id=str(row.get("user_id") or ""),
        amount=_decimal(row.get("amount")),
        posted_on=parse_calendar_date(row.get("date")),
        description=str(row.get("description") or ""),
        category_id=row.get("category_id"),
        category=category,
        created_at=parse_timestamp(row.get("created_at")),
    )


def savings_goal_from_row(row: dict[str, Any]) -> SavingsGoal:
    return SavingsGoal(
        id=str(row.get("id")),
        user_id=str(row.get("user_id") or ""),
        name=str(row.get("name") or ""),
        target_amount=_decimal(row.get("target_amount")),
        current_amount=_decimal(row.get("current_amount")),
        target_date=parse_calendar_date(row.get("target_date")),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def profile_from_row(row: dict[str, Any]) -> Profile:
    return Profile(
        id=str(row.get("id")),
        name=str(row.get("name") or ""),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def categories_from_rows(rows: Iterable[Any]) -> list[Category]:
    return [category_from_row(row) for row in rows if isinstance(row, dict)]


def transactions_from_rows(rows: Iterable[Any]) -> list[Transaction]:
    return [transaction_from_row(row) for row in rows if isinstance(row, dict)]


def savings_goals_from_rows(rows: Iterable[Any]) -> list[SavingsGoal]:
    return [savings_goal_from_row(row) for row in rows if isinstance(row, dict)]

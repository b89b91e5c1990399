from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class Table(str, Enum):
    PROFILES = "profiles"
    CATEGORIES = "categories"
    TRANSACTIONS = "transactions"
    SAVINGS_GOALS = "savings_goals"


class CategoryType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


@dataclass
class Category:
    id: str
    user_id: str
    name: str
    type: CategoryType = CategoryType.EXPENSE
    created_at: datetime | None = None


@dataclass
class Transaction:
    """A signed ledger entry: positive amounts are income, negative are expenses."""

    id: str
    user_id: str
    amount: Decimal
    posted_on: date | None
    description: str = ""
    category_id: str | None = None
    category: Category | None = None
    created_at: datetime | None = None


@dataclass
class SavingsGoal:
    id: str
    user_id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")
    target_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Profile:
    id: str
    name: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.models import CategoryType, Transaction


def _coerce_date(value: Any) -> Any:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return value

    text = value.strip()
    if not text:
        return value

    # Canonical format first.
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%m-%d-%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return value


class UserContext(BaseModel):
    """Identity of the signed-in user, passed explicitly to every store call."""

    user_id: str = Field(min_length=1)
    access_token: Optional[str] = None
    timezone: str = "UTC"


class CategoryForm(BaseModel):
    name: str = Field(min_length=1)
    type: CategoryType = CategoryType.EXPENSE

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    def to_payload(self, user_id: str) -> Dict[str, Any]:
        return {"user_id": user_id, "name": self.name, "type": self.type.value}


class TransactionForm(BaseModel):
    """
    Transaction input as typed by the user.

    `amount` is a magnitude; the stored sign is decided by the category type
    when the record book saves the form. `category_id` may be empty in an edit
    form built from an uncategorized transaction; the book refuses to save it.
    """

    model_config = ConfigDict(populate_by_name=True)

    description: str = ""
    amount: Decimal
    category_id: Optional[str] = None
    posted_on: date = Field(
        default_factory=date.today,
        alias="date",
        description="Date in YYYY-MM-DD format, e.g. 2026-01-31.",
    )

    @field_validator("category_id", mode="before")
    @classmethod
    def blank_category_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("posted_on", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransactionForm":
        return cls(
            description=txn.description,
            amount=abs(txn.amount),
            category_id=txn.category_id,
            posted_on=txn.posted_on or date.today(),
        )

    def signed_amount(self, category_type: CategoryType | None) -> Decimal:
        if category_type == CategoryType.EXPENSE:
            return -abs(self.amount)
        return abs(self.amount)

    def to_payload(self, user_id: str, category_type: CategoryType | None) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "description": self.description,
            "amount": float(self.signed_amount(category_type)),
            "category_id": self.category_id,
            "date": self.posted_on.isoformat(),
        }


class SavingsGoalForm(BaseModel):
    name: str = Field(min_length=1)
    target_amount: Decimal = Field(gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    target_date: date

    @field_validator("target_date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    def to_payload(self, user_id: str) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "name": self.name,
            "target_amount": float(self.target_amount),
            "current_amount": float(self.current_amount),
            "target_date": self.target_date.isoformat(),
        }


class DashboardTotals(BaseModel):
    balance: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0


class MonthlyBucket(BaseModel):
    year: int
    month: int = Field(ge=1, le=12)
    label: str
    income: float = 0.0
    expenses: float = 0.0


class CategorySlice(BaseModel):
    name: str
    value: float


class DashboardSummary(BaseModel):
    reference_date: date
    transaction_count: int = 0
    totals: DashboardTotals = Field(default_factory=DashboardTotals)
    monthly_series: List[MonthlyBucket] = Field(default_factory=list)
    category_breakdown: List[CategorySlice] = Field(default_factory=list)


class GoalProgress(BaseModel):
    id: str
    name: str
    target_amount: float
    current_amount: float
    target_date: Optional[date] = None
    progress_percent: float
    remaining: float


class ActionResult(BaseModel):
    """Outcome of a record-book action; failures are reported here instead of raised."""

    action: str
    table: str
    ok: bool = True
    refreshed: bool = False
    errors: List[str] = Field(default_factory=list)

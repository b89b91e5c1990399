from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

from domain.models import Category, CategoryType, SavingsGoal, Table, Transaction
from domain.schemas import (
    ActionResult,
    CategoryForm,
    GoalProgress,
    SavingsGoalForm,
    TransactionForm,
    UserContext,
)
from application.goals import goal_progress
from infrastructure.record_mapper import categories_from_rows, savings_goals_from_rows, transactions_from_rows
from infrastructure.stores.store import RecordStore, StoreError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class RecordBook(ABC, Generic[RecordT]):
    """
    Request-scoped copy of one table for one user.

    Every write is followed by a full refetch. A failed store call is logged and
    reported in the ActionResult; `items` keeps whatever was loaded before it.
    """

    table: Table
    select: str = "*"
    order: str | None = None

    def __init__(self, store: RecordStore, context: UserContext) -> None:
        self._store = store
        self._context = context
        self.items: list[RecordT] = []

    @abstractmethod
    def _parse(self, rows: list[dict[str, Any]]) -> list[RecordT]:
        raise NotImplementedError

    @abstractmethod
    def _payload(self, form: Any) -> dict[str, Any]:
        raise NotImplementedError

    def refresh(self) -> ActionResult:
        def fetch() -> None:
            rows = self._store.list(self.table, self._context, select=self.select, order=self.order)
            self.items = self._parse(rows)

        result = self._attempt("list", fetch)
        result.refreshed = result.ok
        return result

    def save(self, form: Any, record_id: str | None = None) -> ActionResult:
        action = "update" if record_id is not None else "create"
        missing = self._missing(form)
        if missing:
            logger.warning(
                "RecordBook %s rejected table=%s user_id=%s: %s",
                action,
                Table(self.table).value,
                self._context.user_id,
                "; ".join(missing),
            )
            return ActionResult(action=action, table=Table(self.table).value, ok=False, errors=missing)
        if record_id is not None:
            call = lambda: self._store.update(self.table, self._context, record_id, self._payload(form))  # noqa: E731
        else:
            call = lambda: self._store.create(self.table, self._context, self._payload(form))  # noqa: E731
        return self._write(action, call)

    def _missing(self, form: Any) -> list[str]:
        return []

    def delete(self, record_id: str) -> ActionResult:
        return self._write("delete", lambda: self._store.delete(self.table, self._context, record_id))

    def _write(self, action: str, call: Callable[[], Any]) -> ActionResult:
        result = self._attempt(action, call)
        if not result.ok:
            return result
        refreshed = self.refresh()
        result.refreshed = refreshed.ok
        result.errors.extend(refreshed.errors)
        return result

    def _attempt(self, action: str, call: Callable[[], Any]) -> ActionResult:
        table_name = Table(self.table).value
        try:
            call()
        except StoreError as exc:
            logger.error(
                "RecordBook %s failed table=%s user_id=%s: %s",
                action,
                table_name,
                self._context.user_id,
                exc,
            )
            return ActionResult(action=action, table=table_name, ok=False, errors=[str(exc) or exc.__class__.__name__])
        logger.info("RecordBook %s ok table=%s user_id=%s", action, table_name, self._context.user_id)
        return ActionResult(action=action, table=table_name)


class CategoryBook(RecordBook[Category]):
    table = Table.CATEGORIES
    order = "name"

    def _parse(self, rows: list[dict[str, Any]]) -> list[Category]:
        return categories_from_rows(rows)

    def _payload(self, form: CategoryForm) -> dict[str, Any]:
        return form.to_payload(self._context.user_id)


class TransactionBook(RecordBook[Transaction]):
    table = Table.TRANSACTIONS
    select = "*,category:categories(*)"
    order = "date.desc"

    def __init__(self, store: RecordStore, context: UserContext) -> None:
        super().__init__(store, context)
        self._categories = CategoryBook(store, context)

    @property
    def categories(self) -> list[Category]:
        return self._categories.items

    def refresh_categories(self) -> ActionResult:
        return self._categories.refresh()

    def load(self) -> list[ActionResult]:
        return [self.refresh(), self.refresh_categories()]

    def category_type(self, category_id: str | None) -> CategoryType | None:
        for category in self.categories:
            if category.id == category_id:
                return category.type
        return None

    def _parse(self, rows: list[dict[str, Any]]) -> list[Transaction]:
        return transactions_from_rows(rows)

    def _missing(self, form: TransactionForm) -> list[str]:
        return [] if form.category_id else ["category_id is required"]

    def _payload(self, form: TransactionForm) -> dict[str, Any]:
        return form.to_payload(self._context.user_id, self.category_type(form.category_id))


class SavingsGoalBook(RecordBook[SavingsGoal]):
    table = Table.SAVINGS_GOALS
    order = "created_at.desc"

    def _parse(self, rows: list[dict[str, Any]]) -> list[SavingsGoal]:
        return savings_goals_from_rows(rows)

    def _payload(self, form: SavingsGoalForm) -> dict[str, Any]:
        return form.to_payload(self._context.user_id)

    def progress(self) -> list[GoalProgress]:
        return [goal_progress(goal) for goal in self.items]

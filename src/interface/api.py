from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.encoders import jsonable_encoder

from application.dashboard import DashboardService
from application.records import CategoryBook, RecordBook, SavingsGoalBook, TransactionBook
from domain.schemas import (
    ActionResult,
    CategoryForm,
    DashboardSummary,
    SavingsGoalForm,
    TransactionForm,
    UserContext,
)
from infrastructure.record_mapper import parse_calendar_date
from infrastructure.stores.store import RecordStore, StoreError
from interface.cli import build_store

logger = logging.getLogger(__name__)


def user_context(
    x_user_id: str = Header(..., min_length=1),
    authorization: Optional[str] = Header(default=None),
    x_timezone: str = Header(default="UTC"),
) -> UserContext:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip() or None
    return UserContext(user_id=x_user_id, access_token=token, timezone=x_timezone)


def _ensure_ok(result: ActionResult) -> None:
    if not result.ok:
        raise HTTPException(status_code=502, detail={"action": result.action, "errors": result.errors})


def _require_category(form: TransactionForm) -> None:
    if not form.category_id:
        raise HTTPException(status_code=422, detail="category_id is required")


def _serialize(book: RecordBook) -> list[dict]:
    return jsonable_encoder(book.items)


def create_app(store: RecordStore) -> FastAPI:
    app = FastAPI(title="fintrack API")
    dashboard = DashboardService(store)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "store": store.name}

    @app.get("/dashboard", response_model=DashboardSummary)
    def get_dashboard(
        reference_date: Optional[str] = None,
        context: UserContext = Depends(user_context),
    ) -> DashboardSummary:
        ref: date | None = None
        if reference_date:
            ref = parse_calendar_date(reference_date)
            if ref is None:
                raise HTTPException(status_code=422, detail="reference_date must be YYYY-MM-DD")
        try:
            return dashboard.summarize(context, reference_date=ref)
        except StoreError as exc:
            logger.error("Dashboard fetch failed user_id=%s: %s", context.user_id, exc)
            raise HTTPException(status_code=502, detail={"action": "list", "errors": [str(exc)]}) from exc

    # ---- categories ----
    @app.get("/categories")
    def list_categories(context: UserContext = Depends(user_context)) -> list[dict]:
        book = CategoryBook(store, context)
        _ensure_ok(book.refresh())
        return _serialize(book)

    @app.post("/categories")
    def create_category(form: CategoryForm, context: UserContext = Depends(user_context)) -> list[dict]:
        book = CategoryBook(store, context)
        _ensure_ok(book.save(form))
        return _serialize(book)

    @app.put("/categories/{category_id}")
    def update_category(
        category_id: str,
        form: CategoryForm,
        context: UserContext = Depends(user_context),
    ) -> list[dict]:
        book = CategoryBook(store, context)
        _ensure_ok(book.save(form, record_id=category_id))
        return _serialize(book)

    @app.delete("/categories/{category_id}")
    def delete_category(category_id: str, context: UserContext = Depends(user_context)) -> list[dict]:
        book = CategoryBook(store, context)
        _ensure_ok(book.delete(category_id))
        return _serialize(book)

    # ---- transactions ----
    @app.get("/transactions")
    def list_transactions(context: UserContext = Depends(user_context)) -> list[dict]:
        book = TransactionBook(store, context)
        _ensure_ok(book.refresh())
        return _serialize(book)

    def _transaction_book(context: UserContext) -> TransactionBook:
        book = TransactionBook(store, context)
        # The amount sign depends on the category type, so categories must be current.
        _ensure_ok(book.refresh_categories())
        return book

    @app.post("/transactions")
    def create_transaction(form: TransactionForm, context: UserContext = Depends(user_context)) -> list[dict]:
        _require_category(form)
        book = _transaction_book(context)
        _ensure_ok(book.save(form))
        return _serialize(book)

    @app.put("/transactions/{transaction_id}")
    def update_transaction(
        transaction_id: str,
        form: TransactionForm,
        context: UserContext = Depends(user_context),
    ) -> list[dict]:
        _require_category(form)
        book = _transaction_book(context)
        _ensure_ok(book.save(form, record_id=transaction_id))
        return _serialize(book)

    @app.delete("/transactions/{transaction_id}")
    def delete_transaction(transaction_id: str, context: UserContext = Depends(user_context)) -> list[dict]:
        book = TransactionBook(store, context)
        _ensure_ok(book.delete(transaction_id))
        return _serialize(book)

    # ---- savings goals ----
    @app.get("/savings-goals")
    def list_goals(context: UserContext = Depends(user_context)) -> list[dict]:
        book = SavingsGoalBook(store, context)
        _ensure_ok(book.refresh())
        return [p.model_dump(mode="json") for p in book.progress()]

    @app.post("/savings-goals")
    def create_goal(form: SavingsGoalForm, context: UserContext = Depends(user_context)) -> list[dict]:
        book = SavingsGoalBook(store, context)
        _ensure_ok(book.save(form))
        return [p.model_dump(mode="json") for p in book.progress()]

    @app.put("/savings-goals/{goal_id}")
    def update_goal(
        goal_id: str,
        form: SavingsGoalForm,
        context: UserContext = Depends(user_context),
    ) -> list[dict]:
        book = SavingsGoalBook(store, context)
        _ensure_ok(book.save(form, record_id=goal_id))
        return [p.model_dump(mode="json") for p in book.progress()]

    @app.delete("/savings-goals/{goal_id}")
    def delete_goal(goal_id: str, context: UserContext = Depends(user_context)) -> list[dict]:
        book = SavingsGoalBook(store, context)
        _ensure_ok(book.delete(goal_id))
        return [p.model_dump(mode="json") for p in book.progress()]

    return app


app = create_app(build_store())

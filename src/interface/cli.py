from __future__ import annotations

import json
import os

from application.dashboard import DashboardService
from application.records import SavingsGoalBook
from domain.schemas import UserContext
from infrastructure.stores.memory_store import InMemoryRecordStore
from infrastructure.stores.rest_store import RestRecordStore
from infrastructure.stores.store import RecordStore, StoreError


def build_store() -> RecordStore:
    kind = os.getenv("FINTRACK_STORE", "rest").strip().lower()
    if kind == "memory":
        return InMemoryRecordStore()
    if kind != "rest":
        raise ValueError(f"Unknown FINTRACK_STORE: {kind!r} (expected 'rest' or 'memory')")
    return RestRecordStore()


def main() -> None:
    user_id = os.getenv("FINTRACK_USER_ID") or input("User ID > ").strip()
    if not user_id:
        print("A user id is required (set FINTRACK_USER_ID).")
        raise SystemExit(2)

    context = UserContext(
        user_id=user_id,
        access_token=os.getenv("FINTRACK_ACCESS_TOKEN"),
        timezone=os.getenv("FINTRACK_TIMEZONE", "UTC"),
    )
    store = build_store()
    try:
        summary = DashboardService(store).summarize(context)
    except StoreError as exc:
        print({"error": str(exc), "status": exc.status})
        raise SystemExit(1)

    print(summary.model_dump_json(indent=2))

    goals = SavingsGoalBook(store, context)
    result = goals.refresh()
    if result.ok:
        print(json.dumps({"savings_goals": [g.model_dump(mode="json") for g in goals.progress()]}, indent=2))
    else:
        print({"issues": result.errors})


if __name__ == "__main__":
    main()

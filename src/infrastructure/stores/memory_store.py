from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from domain.models import Table
from domain.schemas import UserContext
from infrastructure.stores.store import RecordStore, StoreError

logger = logging.getLogger(__name__)

_CATEGORY_EMBED = "category:categories"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryRecordStore(RecordStore):
    """Dict-backed store with the same ownership and ordering rules as the hosted backend."""

    name = "memory"

    def __init__(self) -> None:
        self._tables: dict[Table, dict[str, dict[str, Any]]] = {table: {} for table in Table}

    def seed(self, table: Table, rows: list[dict[str, Any]]) -> None:
        for row in rows:
            stored = copy.deepcopy(row)
            stored.setdefault("id", str(uuid.uuid4()))
            self._tables[Table(table)][str(stored["id"])] = stored

    def list(
        self,
        table: Table,
        context: UserContext,
        select: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        table = Table(table)
        rows = [copy.deepcopy(row) for row in self._owned(table, context)]
        if table == Table.TRANSACTIONS and _CATEGORY_EMBED in select.replace(" ", ""):
            categories = self._tables[Table.CATEGORIES]
            for row in rows:
                category = categories.get(str(row.get("category_id")))
                owned = category is not None and category.get("user_id") == context.user_id
                row["category"] = copy.deepcopy(category) if owned else None
        if order:
            rows = self._sorted(rows, order)
        return rows

    def create(self, table: Table, context: UserContext, payload: dict[str, Any]) -> list[dict[str, Any]]:
        table = Table(table)
        self._check_owner(payload, context)
        row = copy.deepcopy(payload)
        row["created_at"] = _now()
        if table == Table.PROFILES:
            # Profiles share the auth user's id.
            row["id"] = context.user_id
            row["updated_at"] = row["created_at"]
        else:
            row["id"] = str(uuid.uuid4())
            row["user_id"] = context.user_id
        if table == Table.SAVINGS_GOALS:
            row["updated_at"] = row["created_at"]
        self._tables[table][row["id"]] = row
        logger.debug("InMemoryRecordStore created table=%s id=%s", table.value, row["id"])
        return [copy.deepcopy(row)]

    def update(
        self,
        table: Table,
        context: UserContext,
        record_id: str,
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        table = Table(table)
        self._check_owner(payload, context)
        row = self._tables[table].get(str(record_id))
        # Rows owned by someone else are invisible, like an unmatched filter.
        if row is None or not self._is_owner(table, row, context):
            return []
        row.update({k: v for k, v in payload.items() if k not in ("id", "created_at")})
        if "updated_at" in row:
            row["updated_at"] = _now()
        return [copy.deepcopy(row)]

    def delete(self, table: Table, context: UserContext, record_id: str) -> list[dict[str, Any]]:
        table = Table(table)
        row = self._tables[table].get(str(record_id))
        if row is None or not self._is_owner(table, row, context):
            return []
        del self._tables[table][str(record_id)]
        return [copy.deepcopy(row)]

    def _owned(self, table: Table, context: UserContext) -> list[dict[str, Any]]:
        return [row for row in self._tables[table].values() if self._is_owner(table, row, context)]

    def _is_owner(self, table: Table, row: dict[str, Any], context: UserContext) -> bool:
        if table == Table.PROFILES:
            return str(row.get("id")) == context.user_id
        return row.get("user_id") == context.user_id

    def _check_owner(self, payload: dict[str, Any], context: UserContext) -> None:
        owner = payload.get("user_id")
        if owner is not None and owner != context.user_id:
            raise StoreError("new row violates row-level security policy", status=403)

    def _sorted(self, rows: list[dict[str, Any]], order: str) -> list[dict[str, Any]]:
        field, _, direction = order.partition(".")
        present = [row for row in rows if row.get(field) is not None]
        missing = [row for row in rows if row.get(field) is None]
        present.sort(key=lambda row: row[field], reverse=direction == "desc")
        return present + missing

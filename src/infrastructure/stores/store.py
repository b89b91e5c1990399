from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from domain.models import Table
from domain.schemas import UserContext


class StoreError(RuntimeError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RecordStore(ABC):
    """
    Base contract for the hosted row store.

    Implementations scope every call to `context.user_id` and raise StoreError
    on any failure. Rows are returned as plain dicts in the backend's column names.
    """

    name: str = "store"

    @abstractmethod
    def list(
        self,
        table: Table,
        context: UserContext,
        select: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def create(self, table: Table, context: UserContext, payload: dict[str, Any]) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def update(
        self,
        table: Table,
        context: UserContext,
        record_id: str,
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def delete(self, table: Table, context: UserContext, record_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError

from __future__ import annotations

import http.client
import json
import logging
import os
import socket
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from domain.models import Table
from domain.schemas import UserContext
from infrastructure.stores.store import RecordStore, StoreError

logger = logging.getLogger(__name__)


class RestRecordStore(RecordStore):
    """Adapter for the hosted store's auto-generated REST API (PostgREST conventions)."""

    name = "rest"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("FINTRACK_API_URL", "http://127.0.0.1:54321")).rstrip("/")
        self.api_key = api_key or os.getenv("FINTRACK_API_KEY", "")
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else float(os.getenv("FINTRACK_TIMEOUT_SECONDS", "30"))
        )

    def list(
        self,
        table: Table,
        context: UserContext,
        select: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": select}
        if order:
            params["order"] = order
        return self._request("GET", table, context, params=params)

    def create(self, table: Table, context: UserContext, payload: dict[str, Any]) -> list[dict[str, Any]]:
        return self._request("POST", table, context, body=[payload])

    def update(
        self,
        table: Table,
        context: UserContext,
        record_id: str,
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        return self._request("PATCH", table, context, params={"id": f"eq.{record_id}"}, body=payload)

    def delete(self, table: Table, context: UserContext, record_id: str) -> list[dict[str, Any]]:
        return self._request("DELETE", table, context, params={"id": f"eq.{record_id}"})

    def _url(self, table: Table, params: dict[str, str] | None) -> str:
        url = f"{self.base_url}/rest/v1/{Table(table).value}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params, safe='*,():.')}"
        return url

    def _headers(self, context: UserContext, method: str) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {context.access_token or self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if method != "GET":
            headers["Prefer"] = "return=representation"
        return headers

    def _request(
        self,
        method: str,
        table: Table,
        context: UserContext,
        params: dict[str, str] | None = None,
        body: Any = None,
    ) -> list[dict[str, Any]]:
        started = time.perf_counter()
        table_name = Table(table).value
        req = urllib.request.Request(
            url=self._url(table, params),
            data=json.dumps(body).encode("utf-8") if body is not None else None,
            headers=self._headers(context, method),
            method=method,
        )
        logger.info(
            "RestRecordStore request start method=%s table=%s user_id=%s timeout=%.1fs",
            method,
            table_name,
            context.user_id,
            self.timeout_seconds,
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            message = self._error_message(exc)
            logger.warning("RestRecordStore %s %s rejected status=%s: %s", method, table_name, exc.code, message)
            raise StoreError(f"{method} {table_name} failed: {message}", status=exc.code) from exc
        except (socket.timeout, TimeoutError, urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            elapsed = time.perf_counter() - started
            logger.warning("RestRecordStore %s %s failed after %.2fs: %s", method, table_name, elapsed, exc)
            raise StoreError(f"{method} {table_name} failed: {exc}") from exc
        except UnicodeDecodeError as exc:
            logger.warning("RestRecordStore %s %s returned a non-UTF-8 body: %s", method, table_name, exc)
            raise StoreError(f"{method} {table_name} returned a non-UTF-8 body") from exc

        rows = self._parse_rows(raw, method, table_name)
        logger.info(
            "RestRecordStore request complete method=%s table=%s in %.2fs rows=%d",
            method,
            table_name,
            time.perf_counter() - started,
            len(rows),
        )
        return rows

    def _parse_rows(self, raw: str, method: str, table_name: str) -> list[dict[str, Any]]:
        if not raw.strip():
            return []
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"{method} {table_name} returned a non-JSON body") from exc
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            raise StoreError(f"Expected row list from {table_name}, got {type(payload).__name__}")
        return [row for row in payload if isinstance(row, dict)]

    def _error_message(self, exc: urllib.error.HTTPError) -> str:
        try:
            body = exc.read().decode("utf-8")
        except (OSError, UnicodeDecodeError):
            return str(exc.reason or exc.code)
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body.strip() or str(exc.reason or exc.code)
        if isinstance(parsed, dict) and parsed.get("message"):
            return str(parsed["message"])
        return body.strip()

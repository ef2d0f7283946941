"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import time
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable
from typing import Any

from postgrest import APIError

from app.config import settings
from app.utils.errors import ConflictError, InvalidInputError, NotFoundError
from supabase import Client

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def translate_api_error(exc: APIError) -> Exception:
    """Map a PostgREST error onto the API exception hierarchy by SQLSTATE."""
    code = str(getattr(exc, "code", "") or "")
    message = str(getattr(exc, "message", "") or "Database request failed")
    if code == UNIQUE_VIOLATION or "duplicate key value" in message.lower():
        return ConflictError(message, code="DUPLICATE")
    if code == FOREIGN_KEY_VIOLATION:
        return ConflictError(message, code="HAS_DEPENDENTS")
    return InvalidInputError(message)


def is_duplicate(exc: ConflictError) -> bool:
    """Return True when a conflict came from a unique constraint."""
    return exc.code == "DUPLICATE"


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            raise translate_api_error(exc) from exc
        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    @staticmethod
    def _apply_filters(query, filters: dict[str, Any] | None):
        if not filters:
            return query
        for key, value in filters.items():
            if value is None:
                query = query.is_(key, "null")
            else:
                query = query.eq(key, value)
        return query

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        row = self.find_one(table, filters, columns=columns)
        if row is None:
            label = not_found_label or table
            raise NotFoundError(label)
        return row

    def find_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Select a single row or return None."""
        query = self._apply_filters(self.client.table(table).select(columns), filters)
        rows = self.execute(query.limit(1), default=[])
        return rows[0] if rows else None

    def fetch_all(
        self,
        build: Callable[[], Any],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Read every row of a select, one ``.range()`` page at a time.

        PostgREST silently truncates responses at ``db-max-rows``, so an
        unbounded select can't be trusted for counting. ``build`` returns a
        fresh filtered query per page; rows are ordered by ``order_by`` with
        ``id`` as the tiebreaker so pages never overlap.
        """
        page_size = settings.supabase_page_size
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            query = build()
            if order_by:
                query = query.order(order_by, desc=descending)
            if order_by != "id":
                query = query.order("id")
            page = self.execute(query.range(start, start + page_size - 1), default=[])
            rows.extend(page)
            if len(page) < page_size:
                return rows
            start += page_size

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select rows from a table with optional filters.

        Without ``limit`` every matching row is returned, paged past the
        server row cap.
        """

        def build():
            return self._apply_filters(self.client.table(table).select(columns), filters)

        if not limit:
            rows = self.fetch_all(build, order_by=order_by, descending=descending)
            return rows[offset:] if offset else rows

        query = build()
        if order_by:
            query = query.order(order_by, desc=descending)
        if offset:
            query = query.offset(offset)
        return self.execute(query.limit(limit), default=[])

    def select_in(
        self,
        table: str,
        column: str,
        values: Iterable[Any],
        columns: str = "*",
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Select every row whose ``column`` is one of ``values``."""
        unique_values = list(dict.fromkeys(values))
        if not unique_values:
            return []

        def build():
            query = self.client.table(table).select(columns).in_(column, unique_values)
            return self._apply_filters(query, filters)

        return self.fetch_all(build)

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        query = self.client.table(table).select("*", count="exact", head=True)
        query = self._apply_filters(query, filters)
        try:
            response = query.execute()
        except APIError as exc:
            raise translate_api_error(exc) from exc
        return response.count or 0

    def count_by(
        self,
        table: str,
        column: str,
        filters: dict[str, Any] | None = None,
    ) -> Counter:
        """Return row counts grouped by ``column``."""
        rows = self.select_many(table, filters=filters, columns=column)
        return Counter(row[column] for row in rows if row.get(column) is not None)

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise InvalidInputError(f"Failed to insert into {table}")
        return rows[0]

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self._apply_filters(self.client.table(table).update(payload), filters)
        return self.execute(query, default=[])

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete rows by equality filters and return removed rows."""
        query = self._apply_filters(self.client.table(table).delete(), filters)
        return self.execute(query, default=[])

    def get_users_map(self, user_ids: Iterable[Any]) -> dict[Any, dict[str, Any]]:
        """Fetch multiple users and return an id-keyed mapping."""
        rows = self.select_in("users", "id", [uid for uid in user_ids if uid is not None])
        return {row["id"]: row for row in rows}

    def get_departments_map(self, department_ids: Iterable[Any]) -> dict[Any, dict[str, Any]]:
        """Fetch departments by id as ``{id: {id, name}}``."""
        rows = self.select_in(
            "departments",
            "id",
            [did for did in department_ids if did is not None],
            columns="id,name",
        )
        return {row["id"]: row for row in rows}


def index_by(rows: Iterable[dict[str, Any]], key: str = "id") -> dict[Any, dict[str, Any]]:
    """Index rows by a unique key."""
    return {row[key]: row for row in rows}


def group_by(rows: list[dict[str, Any]], key: str) -> dict[Any, list[dict[str, Any]]]:
    """Group rows by an arbitrary key."""
    grouped: dict[Any, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[row[key]].append(row)
    return grouped


def require_text(value: Any, label: str) -> str:
    """Return a stripped non-empty string or raise InvalidInputError."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{label} is required")
    return value.strip()


def optional_text(value: Any) -> str | None:
    """Return a stripped string, or None when blank."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """Strip credential hashes from a user row."""
    return {
        key: value
        for key, value in user.items()
        if key not in {"password_hash", "voter_key_hash"}
    }

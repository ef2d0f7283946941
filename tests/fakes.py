"""In-memory stand-ins for the Supabase client and the SMTP mailer.

``FakeSupabase`` understands the subset of the PostgREST query builder that
``SupabaseService`` and the services use: ``select`` (with ``count``/``head``),
``insert``, ``update``, ``delete``, the ``eq``/``is_``/``in_``/``gt``/``gte``/
``lt``/``lte`` filters, ``order``, ``limit``, ``offset`` and ``range``. Unique
constraints raise ``postgrest.APIError`` with SQLSTATE 23505 like the real
database.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from postgrest import APIError

from app.utils.errors import MailDeliveryError
from app.config import settings
from app.utils.security import ROLE_ADMIN, ROLE_STUDENT, create_session_token, hash_secret
from app.utils.time import now_utc, parse_timestamp, to_iso

UNIQUE_CONSTRAINTS: dict[str, list[tuple[str, ...]]] = {
    "departments": [("name",)],
    "users": [("email",), ("student_id",)],
    "positions": [("election_id", "name")],
    "votes": [("voter_id", "election_id", "position_id")],
}

TABLE_DEFAULTS: dict[str, dict[str, Any]] = {
    "users": {
        "email_verified": False,
        "department_id": None,
        "student_id": None,
        "credentials_reset_at": None,
    },
    "elections": {"status": "DRAFT", "department_id": None, "start_at": None, "end_at": None},
    "positions": {"max_choices": 1},
    "candidates": {"user_id": None, "manifesto": None, "photo_url": None},
    "login_otps": {"consumed": False},
}

CLOCK_START = datetime(2026, 1, 1, tzinfo=UTC)


@dataclass
class FakeResponse:
    data: Any
    count: int | None = None


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return parse_timestamp(value)
        except ValueError:
            return value
    return value


class FakeQuery:
    """One chained PostgREST request against a ``FakeSupabase`` table."""

    def __init__(self, db: FakeSupabase, table: str) -> None:
        self.db = db
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.payload: dict[str, Any] | None = None
        self.with_count = False
        self.head = False
        self.filters: list = []
        self.ordering: list[tuple[str, bool]] = []
        self.row_limit: int | None = None
        self.row_offset = 0

    def select(self, columns: str = "*", count: str | None = None, head: bool = False):
        self.operation = "select"
        self.columns = columns
        self.with_count = count is not None
        self.head = head
        return self

    def insert(self, payload: dict[str, Any]):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict[str, Any]):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def is_(self, column: str, value: str):
        assert value == "null"
        self.filters.append(lambda row: row.get(column) is None)
        return self

    def in_(self, column: str, values: list[Any]):
        allowed = list(values)
        self.filters.append(lambda row: row.get(column) in allowed)
        return self

    def _compare(self, column: str, value: Any, check) -> FakeQuery:
        bound = _comparable(value)

        def predicate(row: dict[str, Any]) -> bool:
            current = row.get(column)
            return current is not None and check(_comparable(current), bound)

        self.filters.append(predicate)
        return self

    def gt(self, column: str, value: Any):
        return self._compare(column, value, lambda a, b: a > b)

    def gte(self, column: str, value: Any):
        return self._compare(column, value, lambda a, b: a >= b)

    def lt(self, column: str, value: Any):
        return self._compare(column, value, lambda a, b: a < b)

    def lte(self, column: str, value: Any):
        return self._compare(column, value, lambda a, b: a <= b)

    def order(self, column: str, desc: bool = False):
        self.ordering.append((column, desc))
        return self

    def limit(self, size: int):
        self.row_limit = size
        return self

    def offset(self, size: int):
        self.row_offset = size
        return self

    def range(self, start: int, end: int):
        self.row_offset = start
        self.row_limit = end - start + 1
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(predicate(row) for predicate in self.filters)

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        names = [name.strip() for name in self.columns.split(",") if name.strip()]
        return {name: copy.deepcopy(row.get(name)) for name in names}

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table, self.operation))
        rows = self.db.tables.setdefault(self.table, [])

        if self.operation == "insert":
            return FakeResponse([self.db.insert_row(self.table, self.payload or {})])

        matched = [row for row in rows if self._matches(row)]

        if self.operation == "update":
            for row in matched:
                candidate = {**row, **(self.payload or {})}
                self.db.check_unique(self.table, candidate, ignore=row)
                row.update(copy.deepcopy(self.payload or {}))
            return FakeResponse([copy.deepcopy(row) for row in matched])

        if self.operation == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return FakeResponse([copy.deepcopy(row) for row in matched])

        for column, desc in reversed(self.ordering):
            matched.sort(
                key=lambda row: (row.get(column) is None, _comparable(row.get(column))),
                reverse=desc,
            )
        total = len(matched)
        if self.row_offset:
            matched = matched[self.row_offset:]
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        if self.db.max_rows is not None:
            matched = matched[: self.db.max_rows]
        data = [] if self.head else [self._project(row) for row in matched]
        return FakeResponse(data, count=total if self.with_count else None)


class FakeSupabase:
    """Dict-backed replacement for ``supabase.Client`` in tests.

    ``max_rows`` mimics PostgREST's ``db-max-rows``: selects silently return at
    most that many rows while exact counts stay correct.
    """

    def __init__(self, max_rows: int | None = None) -> None:
        self.max_rows = max_rows
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self._next_id: dict[str, int] = {}
        self._ticks = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> list[dict[str, Any]]:
        return self.tables.get(name, [])

    def check_unique(
        self,
        table: str,
        candidate: dict[str, Any],
        ignore: dict[str, Any] | None = None,
    ) -> None:
        for columns in UNIQUE_CONSTRAINTS.get(table, []):
            values = tuple(candidate.get(column) for column in columns)
            if any(value is None for value in values):
                continue
            for row in self.tables.get(table, []):
                if row is ignore:
                    continue
                if tuple(row.get(column) for column in columns) == values:
                    raise APIError(
                        {
                            "code": "23505",
                            "message": "duplicate key value violates unique constraint",
                            "details": f"Key ({', '.join(columns)}) already exists.",
                            "hint": None,
                        }
                    )

    def insert_row(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        row = {**TABLE_DEFAULTS.get(table, {}), **copy.deepcopy(payload)}
        self.check_unique(table, row)
        self._next_id[table] = self._next_id.get(table, 0) + 1
        self._ticks += 1
        row.setdefault("id", self._next_id[table])
        row.setdefault("created_at", (CLOCK_START + timedelta(seconds=self._ticks)).isoformat())
        self.tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)


class RecordingMailer:
    """Mailer that keeps every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []

    def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})


class FailingMailer:
    """Mailer whose relay always refuses."""

    def __init__(self, reason: str = "SMTP relay refused connection") -> None:
        self.reason = reason
        self.attempts = 0

    def send(self, to: str, subject: str, html: str) -> None:
        self.attempts += 1
        raise MailDeliveryError(self.reason)


VOTER_PASSWORD = "Passw0rd!"
VOTER_KEY = "A1B2C3D4E5F6A7B8"


class Records:
    """Insert rows straight into a ``FakeSupabase`` for test setup."""

    def __init__(self, db: FakeSupabase) -> None:
        self.db = db

    def department(self, name: str = "Computer Science") -> dict[str, Any]:
        return self.db.insert_row("departments", {"name": name})

    def admin(self, email: str = "ec@unimak.edu.sl", password: str = "Admin@12345") -> dict:
        return self.db.insert_row(
            "users",
            {
                "email": email,
                "first_name": "Electoral",
                "last_name": "Commissioner",
                "role": ROLE_ADMIN,
                "password_hash": hash_secret(password),
            },
        )

    def voter(
        self,
        department_id: int | None,
        email: str = "alice@unimak.edu.sl",
        student_id: str = "S001",
        verified: bool = True,
    ) -> dict[str, Any]:
        return self.db.insert_row(
            "users",
            {
                "email": email,
                "first_name": "Alice",
                "last_name": "Kamara",
                "student_id": student_id,
                "role": ROLE_STUDENT,
                "department_id": department_id,
                "password_hash": hash_secret(VOTER_PASSWORD),
                "voter_key_hash": hash_secret(VOTER_KEY),
                "email_verified": verified,
            },
        )

    def election(
        self,
        department_id: int | None,
        name: str = "CS Department Elections",
        category: str = "DEPARTMENT",
        status: str = "RUNNING",
        start_offset_minutes: int | None = -60,
        end_offset_minutes: int | None = 60,
    ) -> dict[str, Any]:
        now = now_utc()
        return self.db.insert_row(
            "elections",
            {
                "name": name,
                "category": category,
                "department_id": department_id,
                "status": status,
                "start_at": (
                    to_iso(now + timedelta(minutes=start_offset_minutes))
                    if start_offset_minutes is not None
                    else None
                ),
                "end_at": (
                    to_iso(now + timedelta(minutes=end_offset_minutes))
                    if end_offset_minutes is not None
                    else None
                ),
            },
        )

    def position(self, election_id: int, name: str = "President") -> dict[str, Any]:
        return self.db.insert_row(
            "positions", {"name": name, "election_id": election_id, "max_choices": 1}
        )

    def candidate(self, position_id: int, display_name: str) -> dict[str, Any]:
        return self.db.insert_row(
            "candidates", {"display_name": display_name, "position_id": position_id}
        )

    def vote(self, voter: dict, election: dict, position: dict, candidate: dict) -> dict:
        return self.db.insert_row(
            "votes",
            {
                "voter_id": voter["id"],
                "election_id": election["id"],
                "position_id": position["id"],
                "candidate_id": candidate["id"],
            },
        )


def voter_headers(voter: dict[str, Any]) -> dict[str, str]:
    """Authorization header for a voter, as issued after login."""
    token = create_session_token(voter["id"], ROLE_STUDENT, settings.voter_session_ttl_minutes)
    return {"Authorization": f"Bearer {token}"}

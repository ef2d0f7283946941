"""Department management."""

from __future__ import annotations

from typing import Any

from app.services.common import SupabaseService, is_duplicate, require_text
from app.utils.errors import ConflictError
from app.utils.security import ROLE_STUDENT
from supabase import Client

DUPLICATE_NAME = "Department with this name already exists"


class DepartmentService:
    """Department CRUD with dependent-row guards."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _with_counts(self, departments: list[dict[str, Any]]) -> list[dict[str, Any]]:
        students = self.db.count_by("users", "department_id", {"role": ROLE_STUDENT})
        elections = self.db.count_by("elections", "department_id")
        hydrated = []
        for department in departments:
            payload = dict(department)
            payload["student_count"] = students.get(department["id"], 0)
            payload["election_count"] = elections.get(department["id"], 0)
            hydrated.append(payload)
        return hydrated

    def list_departments(self) -> list[dict[str, Any]]:
        """Return all departments ordered by name."""
        return self._with_counts(self.db.select_many("departments", order_by="name"))

    def get(self, department_id: int) -> dict[str, Any]:
        """Return one department with its usage counts."""
        department = self.db.select_one(
            "departments", {"id": department_id}, not_found_label="Department"
        )
        return self._with_counts([department])[0]

    def create(self, name: Any) -> dict[str, Any]:
        """Create a department with a unique name."""
        clean_name = require_text(name, "Department name")
        try:
            department = self.db.insert_one("departments", {"name": clean_name})
        except ConflictError as exc:
            if is_duplicate(exc):
                raise ConflictError(DUPLICATE_NAME, code="DUPLICATE") from exc
            raise
        return self._with_counts([department])[0]

    def update(self, department_id: int, name: Any) -> dict[str, Any]:
        """Rename a department."""
        clean_name = require_text(name, "Department name")
        self.db.select_one("departments", {"id": department_id}, not_found_label="Department")
        try:
            self.db.update("departments", {"id": department_id}, {"name": clean_name})
        except ConflictError as exc:
            if is_duplicate(exc):
                raise ConflictError(DUPLICATE_NAME, code="DUPLICATE") from exc
            raise
        return self.get(department_id)

    def delete(self, department_id: int) -> None:
        """Delete a department that no student or election references."""
        self.db.select_one("departments", {"id": department_id}, not_found_label="Department")
        students = self.db.count("users", {"department_id": department_id})
        elections = self.db.count("elections", {"department_id": department_id})
        if students > 0 or elections > 0:
            raise ConflictError(
                "Cannot delete department with associated students or elections",
                code="HAS_DEPENDENTS",
            )
        self.db.delete("departments", {"id": department_id})

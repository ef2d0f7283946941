"""Department schemas."""

from app.schemas.common import CamelModel


class DepartmentWrite(CamelModel):
    """Request body for creating or renaming a department."""

    name: str | None = None


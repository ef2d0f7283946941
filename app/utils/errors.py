"""Exception hierarchy for the voting API.

Every error carries an HTTP status and a stable ``code`` so clients can branch
on the failure without parsing messages.
"""

from __future__ import annotations


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class InvalidInputError(AppError):
    """Missing or malformed request fields."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=400)


class UnauthorizedError(AppError):
    """No valid admin session or voter token, or rejected credentials."""

    def __init__(self, reason: str = "Authentication required") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class ForbiddenError(AppError):
    """Authenticated, but not allowed to act on this election."""

    def __init__(self, reason: str = "You are not allowed to perform this action") -> None:
        super().__init__(message=reason, code="FORBIDDEN", status_code=403)


class NotFoundError(AppError):
    """``<resource> not found``."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ConflictError(AppError):
    """A write collides with existing rows.

    ``code`` narrows the reason: ``DUPLICATE``, ``ALREADY_VOTED`` or
    ``HAS_DEPENDENTS``.
    """

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class VotingClosedError(AppError):
    """A ballot arrived while the election is not open."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="ELECTION_NOT_OPEN", status_code=400)


class MailDeliveryError(AppError):
    """The SMTP relay is unconfigured or refused the message."""

    def __init__(self, reason: str = "Email could not be sent") -> None:
        super().__init__(message=reason, code="EMAIL_FAILED", status_code=502)

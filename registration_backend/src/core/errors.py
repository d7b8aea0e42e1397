"""
Error taxonomy for the registration backend.

Every error carries a machine-readable ``kind`` so the command endpoint can
report failures as structured payloads instead of bare message text.

RegistrationError (base)
├── ShapeMismatch            update assignments / predicates malformed
├── InvalidParticipantCount  golfer count outside {1, 2, 4}
├── InvalidOptionCode        non-numeric option selector
├── NotFound                 lookup matched no row
├── InvalidRequest           unknown table, field or action
└── StoreError               any statement failure, wrapped with its stage
"""

from __future__ import annotations

from typing import Any, Optional


class RegistrationError(Exception):
    """
    Base exception for all registration backend errors.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (ids, stage names, ...)
    """

    kind = "error"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"

    def to_payload(self) -> dict[str, Any]:
        """Body of the error envelope returned by the command endpoint."""
        return {"error": self.message, "kind": self.kind, "details": self.details}


class ShapeMismatch(RegistrationError):
    """Raised when an update's assignments or predicates cannot form a statement."""

    kind = "shape_mismatch"


class InvalidParticipantCount(RegistrationError):
    """Raised when a cart line is assembled with a golfer count outside {1, 2, 4}."""

    kind = "invalid_participant_count"

    def __init__(self, count: int):
        super().__init__(
            f"incorrect number of golfers: {count}",
            details={"count": count},
        )
        self.count = count


class InvalidOptionCode(RegistrationError):
    """Raised when an option selector does not parse as an option item id."""

    kind = "invalid_option_code"

    def __init__(self, option: str, code: str):
        super().__init__(
            f"{option}: invalid option code {code!r}",
            details={"option": option, "code": code},
        )
        self.option = option
        self.code = code


class NotFound(RegistrationError):
    """Raised when a lookup predicate matched no row."""

    kind = "not_found"

    def __init__(self, table: str, field: str, value: Any):
        super().__init__(
            f"{table}: no row where {field}={value}",
            details={"table": table, "field": field, "value": str(value)},
        )


class InvalidRequest(RegistrationError):
    """Raised for commands naming an unknown table, field or action."""

    kind = "invalid_request"


class StoreError(RegistrationError):
    """A statement failed; ``stage`` names the step of the operation that issued it."""

    kind = "store_error"

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage}: {cause}", details={"stage": stage})
        self.stage = stage
        self.cause = cause

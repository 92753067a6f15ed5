"""
Custom exception classes.

Request handlers translate these into HTTP responses; the engines themselves
only raise them for out-of-contract input that must be rejected.
"""
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldError:
    """A single per-field validation failure."""
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class EngineError(Exception):
    """Base engine exception with consistent structure."""

    def __init__(self, detail: str, error_code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.error_code = error_code


class CheckinValidationError(EngineError):
    """One or more check-in fields failed validation."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors) or "check-in"
        super().__init__(
            detail=f"Invalid check-in: {fields}",
            error_code="VALIDATION_ERROR",
        )

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.errors]

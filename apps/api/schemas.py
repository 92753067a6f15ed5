"""
Boundary row shapes.

Request handlers hand the engines already-fetched rows; these models pin down
the shapes the engines accept and normalise the quirks of the data-fetch path
(polymorphic joins, naive timestamps) before any scoring logic sees them.
"""
import re
from dataclasses import dataclass, field
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError
from datetime import datetime, timezone
from datetime import date as date_type
from typing import Any, Dict, List, Literal, Mapping, Optional, get_args

from core.exceptions import CheckinValidationError, FieldError


PriorityDomain = Literal[
    "Work", "Health", "Home", "Finance", "Social", "Personal Growth", "Admin", "Family"
]

PRIORITY_DOMAINS: List[str] = list(get_args(PriorityDomain))

TaskStatus = Literal["active", "done", "dropped", "skipped"]

CHECKIN_SCALE_MIN = 1
CHECKIN_SCALE_MAX = 5
SCALE_FIELDS = ("overwhelm", "anxiety", "energy", "clarity")

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def normalize_related(value: Any) -> Any:
    """
    Collapse a joined relation to a single nullable object.

    Depending on the fetch path a related row arrives either as an object or
    as a one-element list.
    """
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_valid_checkin_scale(value: Any) -> bool:
    """True for integers in [1, 5]. Bools, floats and strings are rejected."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and CHECKIN_SCALE_MIN <= value <= CHECKIN_SCALE_MAX
    )


def _scale_message(field_name: str) -> str:
    return f"{field_name.capitalize()} must be between {CHECKIN_SCALE_MIN} and {CHECKIN_SCALE_MAX}"


# ---------------------------------------------------------------------------
# Tasks, categories, priorities
# ---------------------------------------------------------------------------

class CategoryRow(BaseModel):
    id: str
    name: str
    icon: str = ""
    color: str = ""

    model_config = ConfigDict(from_attributes=True)


class TaskRow(BaseModel):
    """A task as consumed by the aggregation engine (read-only)."""
    id: str
    status: TaskStatus
    category_id: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    dropped_at: Optional[datetime] = None
    skipped_at: Optional[datetime] = None
    category: Optional[CategoryRow] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("category", mode="before")
    @classmethod
    def _single_category(cls, value):
        return normalize_related(value)

    @field_validator("created_at", "completed_at", "dropped_at", "skipped_at")
    @classmethod
    def _utc_timestamps(cls, value):
        return _as_utc(value)


class PriorityRow(BaseModel):
    domain: PriorityDomain
    rank: int = Field(ge=1, le=len(PRIORITY_DOMAINS))  # 1 = highest
    importance_score: int = Field(ge=0, le=10)
    last_reviewed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BalanceScoreRow(BaseModel):
    """Persisted snapshot of a Balance Score, one per user per calendar date."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    score: float = Field(ge=0, le=100)
    breakdown: List[Dict[str, Any]] = []
    computed_for_date: date_type

    model_config = ConfigDict(from_attributes=True)


class BalanceTrendPoint(BaseModel):
    date: date_type
    score: float


# ---------------------------------------------------------------------------
# Daily check-ins
# ---------------------------------------------------------------------------

class _CheckinScales(BaseModel):
    overwhelm: int
    anxiety: int
    energy: int
    clarity: int

    model_config = ConfigDict(from_attributes=True)

    @field_validator(*SCALE_FIELDS, mode="before")
    @classmethod
    def _scale_in_range(cls, value, info: ValidationInfo):
        # Never clamp: anything outside the scale is a validation failure.
        if not is_valid_checkin_scale(value):
            raise PydanticCustomError(
                "checkin_scale",
                "{message}",
                {"message": _scale_message(info.field_name)},
            )
        return value

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def _iso_calendar_date(cls, value):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date_type) or value is None:
            return value
        if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
            raise PydanticCustomError("date_format", "Date must be in YYYY-MM-DD format")
        return value


class CheckinSubmission(_CheckinScales):
    """Payload for creating or updating a day's check-in. Date defaults to today."""
    date: Optional[date_type] = None
    note: Optional[str] = None


class DailyCheckin(CheckinSubmission):
    id: Optional[str] = None
    user_id: Optional[str] = None
    date: date_type


class CheckinTrendPoint(_CheckinScales):
    date: date_type


class CheckinDayStats(BaseModel):
    """One check-in day joined with that day's outcome metrics."""
    date: date_type
    overwhelm: int = Field(ge=CHECKIN_SCALE_MIN, le=CHECKIN_SCALE_MAX)
    energy: int = Field(ge=CHECKIN_SCALE_MIN, le=CHECKIN_SCALE_MAX)
    untriaged_count: float = Field(default=0, ge=0)
    completed_count: float = Field(default=0, ge=0)


class CheckinCorrelations(BaseModel):
    """Pre-aggregated high/low cohort metrics over recent check-ins."""
    high_overwhelm_avg_untriaged: Optional[float] = None
    low_overwhelm_avg_untriaged: Optional[float] = None
    high_energy_tasks_completed: Optional[float] = None
    low_energy_tasks_completed: Optional[float] = None
    total_checkins: int = Field(default=0, ge=0)
    # Welch t-test p-values, present only when both cohorts had enough days.
    overwhelm_untriaged_p_value: Optional[float] = None
    energy_productivity_p_value: Optional[float] = None


# ---------------------------------------------------------------------------
# Validation entry points
# ---------------------------------------------------------------------------

@dataclass
class CheckinValidationResult:
    valid: bool
    errors: List[FieldError] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.errors]


def _field_errors(exc: ValidationError) -> List[FieldError]:
    errors: List[FieldError] = []
    for err in exc.errors():
        name = str(err["loc"][0]) if err["loc"] else "__root__"
        if name in SCALE_FIELDS:
            message = _scale_message(name)
        else:
            message = err["msg"]
        errors.append(FieldError(field=name, message=message))
    return errors


def validate_checkin_data(data: Mapping[str, Any]) -> CheckinValidationResult:
    """Validate a check-in submission without raising."""
    try:
        CheckinSubmission.model_validate(dict(data))
    except ValidationError as e:
        return CheckinValidationResult(valid=False, errors=_field_errors(e))
    return CheckinValidationResult(valid=True)


def parse_checkin(data: Mapping[str, Any], today: Optional[date_type] = None) -> DailyCheckin:
    """
    Parse a check-in row, raising CheckinValidationError with per-field errors.

    A missing date is filled with ``today`` when given.
    """
    payload = dict(data)
    if payload.get("date") is None and today is not None:
        payload["date"] = today
    try:
        return DailyCheckin.model_validate(payload)
    except ValidationError as e:
        raise CheckinValidationError(_field_errors(e)) from e

"""Data models for Renoplan requests.

Requests arrive as YAML/JSON documents using camelCase keys (``projectId``,
``canRunInParallel``); Python callers may use the snake_case field names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from functools import total_ordering
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .logger import get_logger

logger = get_logger()

VALID_WORKING_WEEKS = (5, 6, 7)
DEFAULT_WORKING_DAYS_PER_WEEK = 5

_DEPENDENCY_RE = re.compile(r"^(.+?)\s*\+\s*(\d+)([dw])$")


@total_ordering
@dataclass(frozen=True)
class Dependency:
    """A finish-to-start dependency on another task with optional lag.

    The lag is the number of working days that must pass after the
    dependency finishes before the dependent task can start.
    """

    task_id: str
    lag_days: int = 0

    @classmethod
    def parse(cls, dep_str: str, days_per_week: int = DEFAULT_WORKING_DAYS_PER_WEEK) -> Dependency:
        """Parse a dependency string.

        Supported formats:
        - "task-1" - no lag
        - "task-1 + 2d" - 2 working days lag
        - "task-1 + 1w" - one working week lag (days_per_week working days)
        """
        dep_str = dep_str.strip()
        match = _DEPENDENCY_RE.match(dep_str)
        if match:
            task_id, value, unit = match.groups()
            lag = int(value) * (days_per_week if unit == "w" else 1)
            return cls(task_id=task_id.strip(), lag_days=lag)
        return cls(task_id=dep_str, lag_days=0)

    def __str__(self) -> str:
        if self.lag_days == 0:
            return self.task_id
        return f"{self.task_id} + {self.lag_days}d"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Dependency):
            return NotImplemented
        return (self.task_id, self.lag_days) < (other.task_id, other.lag_days)


def coerce_date(value: Any) -> date | None:
    """Best-effort conversion of a date-like value; None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None


class RequestModel(BaseModel):
    """Base for request models: accepts camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(RequestModel):
    """A renovation task as supplied by the caller. Never mutated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str = ""
    description: str = ""
    duration: int = Field(ge=1)  # whole working days
    dependencies: list[str] = Field(default_factory=list)
    can_run_in_parallel: bool = False
    trade: str = "general"

    @field_validator("dependencies", mode="before")
    @classmethod
    def ensure_unique_list(cls, v: Any) -> list[str]:
        """Accept a single id, a list or a set; drop duplicates keeping order."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        seen: dict[str, None] = {}
        for item in v:
            seen.setdefault(str(item).strip(), None)
        return list(seen)

    @field_validator("trade", mode="before")
    @classmethod
    def default_trade(cls, v: Any) -> str:
        """Blank trades are classified as general work."""
        if v is None or not str(v).strip():
            return "general"
        return str(v).strip()

    def parsed_dependencies(
        self, days_per_week: int = DEFAULT_WORKING_DAYS_PER_WEEK
    ) -> list[Dependency]:
        """Dependencies with lag parsed out."""
        return [Dependency.parse(dep, days_per_week) for dep in self.dependencies]


class LaborRequirement(RequestModel):
    """Labor estimate for one task; only weights recommendations."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str  # task id
    trade: str = ""
    description: str = ""
    person_days: float = 0
    estimated_cost: float | None = None
    qualifications: list[str] = Field(default_factory=list)


class WeatherConstraint(RequestModel):
    """Advisory weather restrictions for a set of tasks."""

    task_ids: list[str] = Field(default_factory=list)
    seasonal_restrictions: list[str] = Field(default_factory=list)
    weather_dependencies: list[str] = Field(default_factory=list)


class TimelineConstraints(RequestModel):
    """Calendar and duration constraints for a schedule."""

    max_duration: int | None = Field(default=None, ge=1)
    available_start_date: date | None = None
    required_end_date: date | None = None
    working_days_per_week: int | None = None
    excluded_dates: list[date] = Field(default_factory=list)
    weather_constraints: list[WeatherConstraint] | None = None

    @field_validator("available_start_date", "required_end_date", mode="before")
    @classmethod
    def parse_optional_date(cls, v: Any) -> date | None:
        """Unparseable dates fall back to None rather than failing."""
        parsed = coerce_date(v)
        if v is not None and parsed is None:
            logger.warning(f"Ignoring invalid date in constraints: {v!r}")
        return parsed

    @field_validator("excluded_dates", mode="before")
    @classmethod
    def parse_excluded_dates(cls, v: Any) -> list[date]:
        """Drop exclusion entries that cannot be parsed."""
        if v is None:
            return []
        if isinstance(v, (str, date)):
            v = [v]
        result: list[date] = []
        for item in v:
            parsed = coerce_date(item)
            if parsed is None:
                logger.warning(f"Ignoring invalid excluded date: {item!r}")
                continue
            result.append(parsed)
        return sorted(set(result))

    @field_validator("working_days_per_week")
    @classmethod
    def validate_working_week(cls, v: int | None) -> int | None:
        """Only 5, 6 and 7 day working weeks are supported."""
        if v is not None and v not in VALID_WORKING_WEEKS:
            raise ValueError(f"working_days_per_week must be one of {VALID_WORKING_WEEKS}, got {v}")
        return v


class WorkingHours(RequestModel):
    """Preferred daily working window, e.g. 08:00-17:00."""

    start: str = "08:00"
    end: str = "17:00"


class TimelinePreferences(RequestModel):
    """Advisory flags; they order recommendations, never move dates."""

    prioritize_speed: bool = False
    prioritize_cost: bool = False
    minimize_disruption: bool = False
    preferred_working_hours: WorkingHours | None = None


class TimelineOptimizationRequest(RequestModel):
    """Complete input to one optimization run."""

    project_id: str = "project"
    project_type: str = "custom"  # advisory only
    tasks: list[Task] = Field(default_factory=list)
    labor_requirements: list[LaborRequirement] = Field(default_factory=list)
    constraints: TimelineConstraints | None = None
    user_preferences: TimelinePreferences | None = None


class TaskModification(RequestModel):
    """Partial task edit applied by regeneration: name and duration only."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    name: str | None = None
    duration: int | None = Field(default=None, ge=1)


class TimelineModifications(RequestModel):
    """Changes to apply to a previous request before re-optimizing.

    Constraint and preference changes are shallow merges: only fields that
    were explicitly provided override the original values.
    """

    task_modifications: list[TaskModification] = Field(default_factory=list)
    constraint_changes: TimelineConstraints | None = None
    preference_changes: TimelinePreferences | None = None

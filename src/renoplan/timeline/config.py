"""Configuration classes for the timeline engine."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from renoplan.models import DEFAULT_WORKING_DAYS_PER_WEEK, VALID_WORKING_WEEKS

DEFAULT_EXTERNAL_TRADES = ["roofing", "external", "landscaping"]
DEFAULT_INTERNAL_TRADES = ["electrical", "plumbing", "flooring"]


class AdvisorType(str, Enum):
    """Available cross-trade advisors."""

    NONE = "none"  # heuristic only
    COMMAND = "command"  # prompt an external text-generation command


class AdvisorConfig(BaseModel):
    """Configuration for the cross-trade advisor."""

    type: AdvisorType = AdvisorType.NONE
    command: list[str] = Field(default_factory=list)  # argv, prompt is written to stdin
    timeout: float = 30.0  # subprocess timeout in seconds

    @field_validator("command", mode="before")
    @classmethod
    def split_command(cls, v: object) -> object:
        """Allow the command as a single string."""
        if isinstance(v, str):
            return v.split()
        return v


class EngineConfig(BaseModel):
    """Tunables for the optimization pipeline."""

    # Used when the request's constraints do not specify a working week
    default_working_days_per_week: int = DEFAULT_WORKING_DAYS_PER_WEEK

    # Upper bound on the single advisor call; there is no retry
    advisor_timeout_seconds: float = Field(default=10.0, gt=0)

    # Trade-name fragments for the outdoor/indoor fallback heuristic
    external_trades: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTERNAL_TRADES))
    internal_trades: list[str] = Field(default_factory=lambda: list(DEFAULT_INTERNAL_TRADES))

    # Labor requirement person-days above which a task counts as labor-heavy
    high_labor_person_days: float = 5

    # Raise CircularDependencyError instead of dropping cyclic edges
    fail_on_cycles: bool = False

    @field_validator("default_working_days_per_week")
    @classmethod
    def validate_working_week(cls, v: int) -> int:
        """Only 5, 6 and 7 day working weeks are supported."""
        if v not in VALID_WORKING_WEEKS:
            raise ValueError(f"default_working_days_per_week must be one of {VALID_WORKING_WEEKS}")
        return v

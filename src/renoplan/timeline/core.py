"""Core dataclasses produced by the timeline engine."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class RecommendationType(str, Enum):
    """Category of an optimization recommendation."""

    PARALLEL_WORK = "parallel_work"
    DEPENDENCY_OPTIMIZATION = "dependency_optimization"
    RESOURCE_ALLOCATION = "resource_allocation"
    SCHEDULING = "scheduling"


class Priority(str, Enum):
    """Recommendation priority, highest first."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AdvisorStatus(str, Enum):
    """How cross-trade suggestions were obtained."""

    OK = "ok"  # advisor answered
    FALLBACK = "fallback"  # advisor failed, heuristic used
    DISABLED = "disabled"  # no advisor configured, heuristic used


@dataclass(frozen=True)
class DependencyLink:
    """A resolved finish-to-start edge with its explanation."""

    depends_on: str
    lag: int
    reason: str
    type: str = "finish_to_start"


@dataclass(frozen=True)
class DependencyAnalysis:
    """CPM results for one task."""

    task_id: str
    dependencies: list[DependencyLink]
    dependents: list[str]
    early_start: int
    early_finish: int
    late_start: int
    late_finish: int
    float_time: int
    critical_path_member: bool
    on_cycle: bool = False


@dataclass(frozen=True)
class ParallelWorkGroup:
    """Tasks that can occupy the same calendar span."""

    id: str
    name: str
    tasks: list[str]
    duration: int
    trades: list[str]
    requirements: list[str] = field(default_factory=list[str])
    conflicts: list[str] = field(default_factory=list[str])


@dataclass(frozen=True)
class GanttTask:
    """A task placed on the calendar."""

    id: str
    name: str
    start_date: date
    end_date: date
    duration: int  # the task's own duration
    scheduled_days: int  # working days of the calendar span, possibly compressed
    dependencies: list[str]
    trade: str
    progress: int = 0
    critical: bool = False
    group_id: str | None = None


@dataclass(frozen=True)
class GanttChart:
    """The dated project schedule."""

    id: str
    project_id: str
    tasks: list[GanttTask]
    start_date: date
    end_date: date
    total_duration: int  # working days, clamped to max_duration when one is set
    calendar_days: int
    critical_path: list[str]
    generated_at: datetime


@dataclass(frozen=True)
class OptimizationRecommendation:
    """One actionable scheduling recommendation."""

    type: RecommendationType
    priority: Priority
    description: str
    impact: str
    implementation: str


@dataclass(frozen=True)
class DependencyAnalysisResult:
    """Output of the dependency analyzer."""

    analyses: list[DependencyAnalysis]
    critical_path: list[str]
    project_length: int  # unconstrained CPM length in working days
    cyclic_tasks: list[str] = field(default_factory=list[str])
    warnings: list[str] = field(default_factory=list[str])

    def by_id(self) -> dict[str, DependencyAnalysis]:
        """Index analyses by task id."""
        return {a.task_id: a for a in self.analyses}


@dataclass(frozen=True)
class ParallelWorkResult:
    """Output of the parallel work detector."""

    groups: list[ParallelWorkGroup]
    advisor_status: AdvisorStatus


@dataclass(frozen=True)
class ScheduleResult:
    """Output of the calendar scheduler."""

    chart: GanttChart
    feasible: bool
    warnings: list[str] = field(default_factory=list[str])
    # Groups actually scheduled as units, trimmed to the tasks they hold
    groups: list[ParallelWorkGroup] = field(default_factory=list[ParallelWorkGroup])


@dataclass(frozen=True)
class OptimizationResult:
    """Complete result of one optimization run."""

    original_duration: int
    optimized_duration: int
    time_saved: int  # signed: negative when the schedule is longer than the naive sum
    parallel_work_opportunities: list[ParallelWorkGroup]
    critical_path: list[str]
    recommendations: list[OptimizationRecommendation]
    gantt_chart: GanttChart
    feasible: bool = True
    advisor_status: AdvisorStatus = AdvisorStatus.DISABLED
    cyclic_tasks: list[str] = field(default_factory=list[str])
    warnings: list[str] = field(default_factory=list[str])
    dependency_analysis: list[DependencyAnalysis] = field(default_factory=list[DependencyAnalysis])

"""High-level timeline optimization service."""

from __future__ import annotations

import threading
from datetime import date

from renoplan.logger import get_logger
from renoplan.models import (
    Task,
    TimelineConstraints,
    TimelineModifications,
    TimelineOptimizationRequest,
    TimelinePreferences,
)

from .analyzer import DependencyAnalyzer
from .config import EngineConfig
from .core import OptimizationResult
from .graph import TaskGraph
from .parallel import ParallelWorkDetector
from .protocols import CrossTradeAdvisor
from .reporter import OptimizationReporter, original_duration
from .scheduler import CalendarScheduler

logger = get_logger()


class TimelineOptimizationService:
    """Runs the full optimization pipeline for a request.

    This service coordinates:
    - TaskGraph (validation, cycle detection)
    - DependencyAnalyzer (critical path method)
    - ParallelWorkDetector (intra-trade groups, cross-trade advisor or heuristic)
    - CalendarScheduler (dated Gantt chart)
    - OptimizationReporter (recommendations)

    The pipeline keeps no state between calls; one service may serve
    concurrent requests.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        advisor: CrossTradeAdvisor | None = None,
        current_date: date | None = None,
    ):
        """Initialize the service.

        Args:
            config: Engine configuration
            advisor: Optional cross-trade advisor; the fallback heuristic is used without one
            current_date: Start date when a request gives none (defaults to today on each call)
        """
        self.config = config or EngineConfig()
        self.advisor = advisor
        self.current_date = current_date

    def optimize(
        self,
        request: TimelineOptimizationRequest,
        cancel_event: threading.Event | None = None,
    ) -> OptimizationResult:
        """Optimize a request into a dated schedule with recommendations.

        Args:
            request: The tasks, labor requirements, constraints and preferences
            cancel_event: Optional event that abandons a pending advisor call when set

        Raises:
            ValidationError: On duplicate task ids or a dependency on an unknown task
            CircularDependencyError: If cycles exist and fail_on_cycles is set
            OptimizationCancelled: If cancel_event is set during the advisor call
        """
        constraints = request.constraints
        days_per_week = (
            constraints.working_days_per_week
            if constraints is not None and constraints.working_days_per_week is not None
            else self.config.default_working_days_per_week
        )
        logger.changes(
            f"Optimizing project '{request.project_id}': {len(request.tasks)} task(s), "
            f"{days_per_week}-day working week"
        )

        graph = TaskGraph(request.tasks, days_per_week)
        analysis = DependencyAnalyzer(self.config).analyze(graph)
        parallel = ParallelWorkDetector(self.advisor, self.config).detect(
            graph, analysis, request.labor_requirements, cancel_event
        )
        schedule = CalendarScheduler(self.current_date).schedule(
            graph,
            analysis,
            parallel.groups,
            constraints,
            request.project_id,
            days_per_week,
        )
        recommendations = OptimizationReporter(self.config).recommendations(
            request.tasks,
            analysis.critical_path,
            schedule.groups,
            request.labor_requirements,
            constraints,
            request.user_preferences,
        )

        baseline = original_duration(request.tasks)
        optimized = schedule.chart.total_duration
        warnings = [*analysis.warnings, *schedule.warnings]
        logger.diagnostics(schedule.warnings)

        logger.changes(
            f"Optimized duration {optimized} working days (baseline {baseline}, "
            f"saved {baseline - optimized})"
        )
        return OptimizationResult(
            original_duration=baseline,
            optimized_duration=optimized,
            time_saved=baseline - optimized,
            parallel_work_opportunities=schedule.groups,
            critical_path=analysis.critical_path,
            recommendations=recommendations,
            gantt_chart=schedule.chart,
            feasible=schedule.feasible,
            advisor_status=parallel.advisor_status,
            cyclic_tasks=analysis.cyclic_tasks,
            warnings=warnings,
            dependency_analysis=analysis.analyses,
        )

    def regenerate(
        self,
        request: TimelineOptimizationRequest,
        modifications: TimelineModifications | None = None,
        cancel_event: threading.Event | None = None,
    ) -> OptimizationResult:
        """Apply modifications to a previous request and optimize it from scratch."""
        return self.optimize(apply_modifications(request, modifications), cancel_event)


def apply_modifications(
    request: TimelineOptimizationRequest, modifications: TimelineModifications | None
) -> TimelineOptimizationRequest:
    """Produce a new request with task edits and constraint/preference overrides applied.

    The original request is left unchanged.
    """
    if modifications is None:
        return request

    tasks: list[Task] = list(request.tasks)
    positions = {task.id: i for i, task in enumerate(tasks)}
    for modification in modifications.task_modifications:
        position = positions.get(modification.id)
        if position is None:
            logger.warning(f"Ignoring modification for unknown task '{modification.id}'")
            continue
        update = modification.model_dump(include={"name", "duration"}, exclude_none=True)
        if update:
            tasks[position] = tasks[position].model_copy(update=update)
            logger.changes(f"Modified task '{modification.id}': {update}")

    constraints = request.constraints
    if modifications.constraint_changes is not None:
        base = constraints.model_dump() if constraints is not None else {}
        changes = modifications.constraint_changes.model_dump(exclude_unset=True)
        constraints = TimelineConstraints.model_validate({**base, **changes})

    preferences = request.user_preferences
    if modifications.preference_changes is not None:
        base = preferences.model_dump() if preferences is not None else {}
        changes = modifications.preference_changes.model_dump(exclude_unset=True)
        preferences = TimelinePreferences.model_validate({**base, **changes})

    return request.model_copy(
        update={"tasks": tasks, "constraints": constraints, "user_preferences": preferences}
    )

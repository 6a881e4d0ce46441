"""Optimization reporter: summary metrics and recommendations."""

from collections.abc import Sequence

from renoplan.logger import get_logger
from renoplan.models import LaborRequirement, Task, TimelineConstraints, TimelinePreferences

from .config import EngineConfig
from .core import OptimizationRecommendation, ParallelWorkGroup, Priority, RecommendationType

logger = get_logger()

_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def original_duration(tasks: Sequence[Task]) -> int:
    """Naive baseline: every task done one after another."""
    return sum(task.duration for task in tasks)


def parallel_savings(tasks: Sequence[Task], groups: Sequence[ParallelWorkGroup]) -> int:
    """Days saved by running each group's tasks together instead of in sequence."""
    durations = {task.id: task.duration for task in tasks}
    total = 0
    for group in groups:
        sequential = sum(durations.get(task_id, 0) for task_id in group.tasks)
        total += max(0, sequential - group.duration)
    return total


def favored_types(preferences: TimelinePreferences | None) -> set[RecommendationType]:
    """Recommendation types the user's preferences bring forward."""
    if preferences is None:
        return set()
    favored: set[RecommendationType] = set()
    if preferences.prioritize_speed:
        favored |= {RecommendationType.PARALLEL_WORK, RecommendationType.DEPENDENCY_OPTIMIZATION}
    if preferences.prioritize_cost:
        favored.add(RecommendationType.RESOURCE_ALLOCATION)
    if preferences.minimize_disruption:
        favored.add(RecommendationType.SCHEDULING)
    return favored


class OptimizationReporter:
    """Generates prioritized recommendations from the pipeline's outputs."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def recommendations(  # noqa: PLR0913 - one input per recommendation trigger
        self,
        tasks: Sequence[Task],
        critical_path: Sequence[str],
        groups: Sequence[ParallelWorkGroup],
        labor_requirements: Sequence[LaborRequirement],
        constraints: TimelineConstraints | None,
        preferences: TimelinePreferences | None,
    ) -> list[OptimizationRecommendation]:
        """Build recommendations; categories whose trigger is false are omitted.

        Ordered by priority, then by the types the preferences favor.
        """
        recommendations: list[OptimizationRecommendation] = []
        task_ids = {task.id for task in tasks}

        if critical_path:
            recommendations.append(
                OptimizationRecommendation(
                    type=RecommendationType.DEPENDENCY_OPTIMIZATION,
                    priority=Priority.HIGH,
                    description=(
                        f"Critical path contains {len(critical_path)} tasks that determine "
                        "project duration"
                    ),
                    impact="Optimizing critical path tasks can directly reduce project timeline",
                    implementation=(
                        "Focus resources on critical path tasks and consider task splitting "
                        "or additional crews"
                    ),
                )
            )

        if groups:
            savings = parallel_savings(tasks, groups)
            recommendations.append(
                OptimizationRecommendation(
                    type=RecommendationType.PARALLEL_WORK,
                    priority=Priority.HIGH,
                    description=f"{len(groups)} parallel work opportunities identified",
                    impact=f"Potential time savings: {savings} days",
                    implementation="Coordinate multiple work crews and ensure adequate site access",
                )
            )

        high_labor = [
            req
            for req in labor_requirements
            if req.id in task_ids and req.person_days > self.config.high_labor_person_days
        ]
        if high_labor:
            recommendations.append(
                OptimizationRecommendation(
                    type=RecommendationType.RESOURCE_ALLOCATION,
                    priority=Priority.MEDIUM,
                    description=f"{len(high_labor)} tasks require significant labor resources",
                    impact="Proper resource allocation can prevent bottlenecks",
                    implementation=(
                        "Schedule high-labor tasks during periods of maximum crew availability"
                    ),
                )
            )

        if constraints is not None and constraints.weather_constraints:
            recommendations.append(
                OptimizationRecommendation(
                    type=RecommendationType.SCHEDULING,
                    priority=Priority.MEDIUM,
                    description="Weather-dependent tasks identified",
                    impact="Seasonal scheduling can prevent weather delays",
                    implementation="Schedule external work during favorable weather periods",
                )
            )

        favored = favored_types(preferences)
        recommendations.sort(
            key=lambda r: (_PRIORITY_RANK[r.priority], 0 if r.type in favored else 1)
        )
        logger.checks(
            "Recommendations: " + ", ".join(r.type.value for r in recommendations)
            if recommendations
            else "Recommendations: none"
        )
        return recommendations

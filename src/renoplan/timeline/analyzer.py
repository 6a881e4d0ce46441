"""Dependency analysis using the Critical Path Method."""

from renoplan.exceptions import CircularDependencyError
from renoplan.logger import get_logger

from .config import EngineConfig
from .core import DependencyAnalysis, DependencyAnalysisResult, DependencyLink
from .graph import TaskGraph

logger = get_logger()

# Why a trade usually waits for another: DEPENDENCY_REASONS[trade][dependency_trade]
DEPENDENCY_REASONS: dict[str, dict[str, str]] = {
    "electrical": {
        "structural": "Electrical work requires completed structural framework",
        "plumbing": "Electrical and plumbing coordination required to avoid conflicts",
        "insulation": "Electrical first fix must be completed before insulation",
    },
    "plumbing": {
        "structural": "Plumbing requires structural framework and floor access",
        "waterproofing": "Waterproofing must be completed before plumbing installation",
    },
    "insulation": {
        "electrical": "Electrical first fix must be completed before insulation",
        "plumbing": "Plumbing first fix must be completed before insulation",
    },
    "flooring": {
        "electrical": "Electrical first fix must be completed before flooring",
        "plumbing": "Plumbing first fix must be completed before flooring",
        "heating": "Underfloor heating installation required before flooring",
    },
    "decorating": {
        "electrical": "Electrical second fix must be completed before decorating",
        "plumbing": "Plumbing second fix must be completed before decorating",
        "flooring": "Flooring must be completed before final decorating",
    },
}


def dependency_reason(trade: str, dependency_trade: str) -> str:
    """Explain why work in one trade depends on work in another."""
    reason = DEPENDENCY_REASONS.get(trade.lower(), {}).get(dependency_trade.lower())
    return reason or f"{trade} work depends on completion of {dependency_trade}"


class DependencyAnalyzer:
    """Computes earliest/latest times, float and critical path membership.

    Times are integer working-day offsets from the project start. Tasks found
    on a dependency cycle are analysed as if they had no dependencies; each
    cycle is reported as a warning rather than dropped silently.
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def analyze(self, graph: TaskGraph) -> DependencyAnalysisResult:
        """Run the forward and backward passes over the graph.

        Raises:
            CircularDependencyError: If cycles exist and the config forbids them
        """
        warnings = [self._cycle_warning(cycle) for cycle in graph.cycles]
        if graph.cycles and self.config.fail_on_cycles:
            raise CircularDependencyError("; ".join(warnings))
        logger.diagnostics(warnings)

        tasks = graph.tasks
        order = graph.topological_order()
        durations = [task.duration for task in tasks]

        # Forward pass
        early_start = [0] * len(tasks)
        early_finish = [0] * len(tasks)
        for node in order:
            start = 0
            for dep, lag in graph.effective[node]:
                start = max(start, early_finish[dep] + lag)
            early_start[node] = start
            early_finish[node] = start + durations[node]

        project_end = max(early_finish, default=0)

        # Backward pass
        late_start = [0] * len(tasks)
        late_finish = [0] * len(tasks)
        for node in reversed(order):
            dependents = graph.dependents[node]
            if dependents:
                finish = min(late_start[p] - lag for p, lag in dependents)
            else:
                finish = project_end
            late_finish[node] = finish
            late_start[node] = finish - durations[node]

        analyses: list[DependencyAnalysis] = []
        critical_path: list[str] = []
        for i, task in enumerate(tasks):
            float_time = late_start[i] - early_start[i]
            critical = float_time == 0
            if critical:
                critical_path.append(task.id)
            logger.checks(
                f"  {task.id}: ES={early_start[i]} EF={early_finish[i]} "
                f"LS={late_start[i]} LF={late_finish[i]} float={float_time}"
                + (" (critical)" if critical else "")
            )
            analyses.append(
                DependencyAnalysis(
                    task_id=task.id,
                    dependencies=[
                        DependencyLink(
                            depends_on=tasks[dep].id,
                            lag=lag,
                            reason=dependency_reason(task.trade, tasks[dep].trade),
                        )
                        for dep, lag in graph.effective[i]
                    ],
                    dependents=[tasks[p].id for p, _ in graph.dependents[i]],
                    early_start=early_start[i],
                    early_finish=early_finish[i],
                    late_start=late_start[i],
                    late_finish=late_finish[i],
                    float_time=float_time,
                    critical_path_member=critical,
                    on_cycle=graph.on_cycle[i],
                )
            )

        logger.changes(
            f"Critical path ({len(critical_path)} tasks, {project_end} working days): "
            + ", ".join(critical_path)
        )

        return DependencyAnalysisResult(
            analyses=analyses,
            critical_path=critical_path,
            project_length=project_end,
            cyclic_tasks=graph.cyclic_task_ids,
            warnings=warnings,
        )

    @staticmethod
    def _cycle_warning(cycle: list[str]) -> str:
        chain = " -> ".join([*cycle, cycle[0]])
        return (
            f"Circular dependency detected: {chain}; "
            "dependencies of these tasks were ignored for scheduling"
        )

"""Calendar scheduler: assigns dates to tasks and parallel groups."""

from __future__ import annotations

import heapq
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime

from renoplan.logger import get_logger
from renoplan.models import TimelineConstraints

from .calendar import WorkingCalendar
from .core import DependencyAnalysisResult, GanttChart, GanttTask, ParallelWorkGroup, ScheduleResult
from .graph import TaskGraph

logger = get_logger()


@dataclass
class _Unit:
    """Tasks scheduled together as one calendar span."""

    members: list[int]
    group: ParallelWorkGroup | None = None
    dependencies: set[int] = field(default_factory=set[int])  # unit indices
    dependents: set[int] = field(default_factory=set[int])

    @property
    def first(self) -> int:
        return min(self.members)


class CalendarScheduler:
    """Places tasks on a working-day calendar in dependency order.

    Parallel groups are scheduled atomically: every member starts together
    and occupies the span of the longest member. A group whose members
    depend on each other (directly or through other tasks) cannot be
    scheduled atomically and is dissolved with a warning.
    """

    def __init__(self, current_date: date | None = None):
        """Initialize scheduler.

        Args:
            current_date: Start date used when the constraints give none (defaults to today)
        """
        self.current_date = current_date

    def schedule(
        self,
        graph: TaskGraph,
        analysis: DependencyAnalysisResult,
        groups: Sequence[ParallelWorkGroup],
        constraints: TimelineConstraints | None,
        project_id: str,
        working_days_per_week: int,
    ) -> ScheduleResult:
        """Schedule all tasks and build the Gantt chart."""
        constraints = constraints or TimelineConstraints()
        calendar = WorkingCalendar(working_days_per_week, constraints.excluded_dates)
        warnings: list[str] = []

        today = self.current_date or date.today()  # noqa: DTZ011
        requested_start = constraints.available_start_date or today
        effective_start = calendar.next_working_day(requested_start)
        if effective_start != requested_start:
            logger.checks(f"Start {requested_start} is not a working day; using {effective_start}")

        units, order = self._plan_units(graph, groups, warnings)
        max_duration = constraints.max_duration

        starts: list[date] = [effective_start] * len(graph)
        ends: list[date] = [effective_start] * len(graph)
        spans: list[int] = [0] * len(graph)
        group_of: list[str | None] = [None] * len(graph)

        for u in order:
            unit = units[u]
            floor = effective_start
            for member in unit.members:
                for dep, lag in graph.effective[member]:
                    floor = max(floor, calendar.add_working_days(ends[dep], lag))
            start = calendar.next_working_day(floor)

            duration = max(graph.tasks[m].duration for m in unit.members)
            if max_duration is not None:
                remaining = max_duration - calendar.working_days_between(effective_start, start)
                if remaining < duration:
                    compressed = max(1, remaining)
                    logger.changes(
                        f"Compressing {self._label(graph, unit)} from {duration} to "
                        f"{compressed} day(s) to respect max duration {max_duration}"
                    )
                    duration = compressed
            end = calendar.add_working_days(start, duration)

            logger.changes(f"Scheduled {self._label(graph, unit)}: {start} to {end}")
            for member in unit.members:
                starts[member] = start
                ends[member] = end
                spans[member] = duration
                group_of[member] = unit.group.id if unit.group else None

        end_date = max(ends, default=effective_start)
        working_days = calendar.working_days_between(effective_start, end_date)

        feasible = True
        total_duration = working_days
        if max_duration is not None and working_days > max_duration:
            feasible = False
            total_duration = max_duration
            warnings.append(
                f"Schedule needs {working_days} working days, exceeding the maximum of "
                f"{max_duration}; total duration is reported as {max_duration}"
            )

        required_end = constraints.required_end_date
        if required_end is not None:
            if required_end < effective_start:
                warnings.append(
                    f"Required end date {required_end} is before the project start "
                    f"{effective_start}; ignored"
                )
            elif end_date > required_end:
                warnings.append(
                    f"Projected end date {end_date} is after the required end date {required_end}"
                )

        critical = set(analysis.critical_path)
        gantt_tasks = [
            GanttTask(
                id=task.id,
                name=task.name or task.id,
                start_date=starts[i],
                end_date=ends[i],
                duration=task.duration,
                scheduled_days=spans[i],
                dependencies=[graph.tasks[dep].id for dep, _ in graph.effective[i]],
                trade=task.trade,
                critical=task.id in critical,
                group_id=group_of[i],
            )
            for i, task in enumerate(graph.tasks)
        ]

        chart = GanttChart(
            id=f"gantt_{project_id}",
            project_id=project_id,
            tasks=gantt_tasks,
            start_date=effective_start,
            end_date=end_date,
            total_duration=total_duration,
            calendar_days=(end_date - effective_start).days,
            critical_path=list(analysis.critical_path),
            generated_at=datetime.now(),  # noqa: DTZ005
        )
        scheduled_groups = [self._scheduled_group(graph, unit) for unit in units if unit.group]
        return ScheduleResult(
            chart=chart, feasible=feasible, warnings=warnings, groups=scheduled_groups
        )

    @staticmethod
    def _scheduled_group(graph: TaskGraph, unit: _Unit) -> ParallelWorkGroup:
        """The unit's group, narrowed to the members it actually claimed."""
        assert unit.group is not None
        members = [graph.tasks[m] for m in unit.members]
        ids = [task.id for task in members]
        if ids == unit.group.tasks:
            return unit.group
        return replace(
            unit.group,
            tasks=ids,
            duration=max(task.duration for task in members),
            trades=list(dict.fromkeys(task.trade for task in members)),
        )

    @staticmethod
    def _label(graph: TaskGraph, unit: _Unit) -> str:
        if unit.group is not None:
            return f"group '{unit.group.id}'"
        return f"task '{graph.tasks[unit.members[0]].id}'"

    def _plan_units(
        self,
        graph: TaskGraph,
        groups: Sequence[ParallelWorkGroup],
        warnings: list[str],
    ) -> tuple[list[_Unit], list[int]]:
        """Condense groups into scheduling units and order them.

        Dissolves one offending group at a time until the unit graph is acyclic.
        """
        active = list(groups)
        while True:
            units = self._build_units(graph, active)
            order, blocked = self._order_units(graph, units)
            if not blocked:
                return units, order

            offenders = {id(units[u].group) for u in blocked if units[u].group is not None}
            # A cycle among units always passes through at least one group
            group = next(g for g in active if id(g) in offenders)
            active.remove(group)
            message = (
                f"Parallel group '{group.id}' dissolved: its tasks depend on each other; "
                "tasks scheduled individually"
            )
            logger.changes(message)
            warnings.append(message)

    @staticmethod
    def _build_units(graph: TaskGraph, groups: Sequence[ParallelWorkGroup]) -> list[_Unit]:
        unit_of: list[int | None] = [None] * len(graph)
        units: list[_Unit] = []

        for group in groups:
            members: list[int] = []
            for task_id in group.tasks:
                i = graph.index.get(task_id)
                if i is not None and unit_of[i] is None and i not in members:
                    members.append(i)
            if len(members) < 2:
                logger.checks(f"Group '{group.id}' has fewer than 2 unclaimed tasks; not a unit")
                continue
            for i in members:
                unit_of[i] = len(units)
            units.append(_Unit(members=members, group=group))

        for i in range(len(graph)):
            if unit_of[i] is None:
                unit_of[i] = len(units)
                units.append(_Unit(members=[i]))

        for u, unit in enumerate(units):
            for member in unit.members:
                for dep, _lag in graph.effective[member]:
                    du = unit_of[dep]
                    assert du is not None
                    unit.dependencies.add(du)
                    units[du].dependents.add(u)
        return units

    @staticmethod
    def _order_units(graph: TaskGraph, units: list[_Unit]) -> tuple[list[int], list[int]]:
        """Kahn's algorithm over units.

        Returns:
            (order, blocked) where blocked lists units left on or between cycles
        """

        def key(u: int) -> tuple[bool, int, int]:
            cyclic = all(graph.on_cycle[m] for m in units[u].members)
            return (cyclic, units[u].first, u)

        remaining = [len(unit.dependencies) for unit in units]
        ready = [key(u) for u, count in enumerate(remaining) if count == 0]
        heapq.heapify(ready)
        order: list[int] = []
        while ready:
            *_, u = heapq.heappop(ready)
            order.append(u)
            for dependent in units[u].dependents:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, key(dependent))

        if len(order) == len(units):
            return order, []

        # Trim units that merely sit downstream of a cycle
        blocked = {u for u in range(len(units)) if remaining[u] > 0}
        trimmed = True
        while trimmed:
            trimmed = False
            for u in list(blocked):
                if not units[u].dependents & blocked:
                    blocked.discard(u)
                    trimmed = True
        return order, sorted(blocked)

"""Task dependency graph with arena storage.

Tasks live in a list and edges are stored as index lists, so mutually
referential dependencies never create object cycles. Edges point from a
task to the tasks it depends on.
"""

from __future__ import annotations

import heapq
from collections.abc import Sequence

from renoplan.exceptions import MissingReferenceError, ValidationError
from renoplan.logger import get_logger
from renoplan.models import DEFAULT_WORKING_DAYS_PER_WEEK, Task

logger = get_logger()

_WHITE, _GRAY, _BLACK = 0, 1, 2


class TaskGraph:
    """Dependency graph over a request's tasks.

    Attributes:
        tasks: Tasks in input order; a task's index is its node id
        declared: Per task, (dependency index, lag) pairs as supplied
        effective: Like declared, but empty for tasks on a cycle
        dependents: Reverse of effective, in input order
        on_cycle: Per task, True if the task was found on a dependency cycle
        cycles: Each detected cycle as a list of task ids, closing task last
    """

    def __init__(
        self, tasks: Sequence[Task], days_per_week: int = DEFAULT_WORKING_DAYS_PER_WEEK
    ) -> None:
        self.tasks: list[Task] = list(tasks)
        self.index: dict[str, int] = {}
        for i, task in enumerate(self.tasks):
            if task.id in self.index:
                raise ValidationError(f"Duplicate task id '{task.id}'")
            self.index[task.id] = i

        self.declared: list[list[tuple[int, int]]] = []
        for task in self.tasks:
            edges: list[tuple[int, int]] = []
            for dep in task.parsed_dependencies(days_per_week):
                if dep.task_id not in self.index:
                    raise MissingReferenceError(task.id, dep.task_id)
                edges.append((self.index[dep.task_id], dep.lag_days))
            self.declared.append(edges)

        self.on_cycle: list[bool] = [False] * len(self.tasks)
        self.cycles: list[list[str]] = []
        self._detect_cycles()

        self.effective: list[list[tuple[int, int]]] = [
            [] if self.on_cycle[i] else list(edges) for i, edges in enumerate(self.declared)
        ]
        self.dependents: list[list[tuple[int, int]]] = [[] for _ in self.tasks]
        for i, edges in enumerate(self.effective):
            for dep, lag in edges:
                self.dependents[dep].append((i, lag))

    def __len__(self) -> int:
        return len(self.tasks)

    def _detect_cycles(self) -> None:
        """Depth-first search with an in-progress marker.

        Every back edge closes a cycle; all tasks on the stack between the
        edge's target and source are marked. Dropping the dependencies of the
        marked tasks removes every back edge, so the effective graph is acyclic.
        """
        color = [_WHITE] * len(self.tasks)
        for root in range(len(self.tasks)):
            if color[root] != _WHITE:
                continue
            path: list[int] = [root]
            position = {root: 0}
            stack = [iter(self.declared[root])]
            color[root] = _GRAY
            while stack:
                node = path[-1]
                advanced = False
                for dep, _lag in stack[-1]:
                    if color[dep] == _WHITE:
                        color[dep] = _GRAY
                        position[dep] = len(path)
                        path.append(dep)
                        stack.append(iter(self.declared[dep]))
                        advanced = True
                        break
                    if color[dep] == _GRAY:
                        members = path[position[dep] :]
                        for member in members:
                            self.on_cycle[member] = True
                        self.cycles.append([self.tasks[m].id for m in members])
                        logger.checks(
                            f"Cycle found at edge {self.tasks[node].id} -> {self.tasks[dep].id}"
                        )
                if not advanced:
                    color[node] = _BLACK
                    del position[node]
                    path.pop()
                    stack.pop()

    @property
    def cyclic_task_ids(self) -> list[str]:
        """Ids of tasks found on a cycle, in input order."""
        return [task.id for i, task in enumerate(self.tasks) if self.on_cycle[i]]

    def directly_connected(self, a: int, b: int) -> bool:
        """True if either task declares a dependency on the other."""
        return any(dep == b for dep, _ in self.declared[a]) or any(
            dep == a for dep, _ in self.declared[b]
        )

    def topological_order(self) -> list[int]:
        """Kahn's algorithm over the effective edges.

        Among ready tasks, tasks off any cycle come first and input order
        breaks ties, so cyclic tasks land as late as their dependents allow.
        """
        remaining = [len(edges) for edges in self.effective]
        ready = [(self.on_cycle[i], i) for i, count in enumerate(remaining) if count == 0]
        heapq.heapify(ready)
        order: list[int] = []
        while ready:
            _, node = heapq.heappop(ready)
            order.append(node)
            for dependent, _lag in self.dependents[node]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, (self.on_cycle[dependent], dependent))
        # The effective graph is acyclic by construction
        assert len(order) == len(self.tasks)
        return order

"""Tests for the task dependency graph."""

import pytest

from renoplan.exceptions import MissingReferenceError, ValidationError
from renoplan.models import Task
from renoplan.timeline import TaskGraph


def _task(task_id: str, *deps: str, duration: int = 1) -> Task:
    return Task(id=task_id, duration=duration, dependencies=list(deps))


class TestConstruction:
    """Test graph building and validation."""

    def test_edges_are_indices(self, scenario_tasks: list[Task]) -> None:
        """Edges point from a task to the indices of its dependencies."""
        graph = TaskGraph(scenario_tasks)
        assert len(graph) == 5
        assert graph.index["task-4"] == 3
        assert graph.declared[3] == [(1, 0), (2, 0)]
        assert graph.dependents[0] == [(1, 0), (2, 0)]

    def test_lag_parsed(self) -> None:
        """Lags are stored on the edge in working days."""
        graph = TaskGraph([_task("a"), _task("b", "a + 1w")], days_per_week=6)
        assert graph.declared[1] == [(0, 6)]

    def test_duplicate_ids(self) -> None:
        """Two tasks with the same id are rejected."""
        with pytest.raises(ValidationError, match="Duplicate task id 'a'"):
            TaskGraph([_task("a"), _task("a")])

    def test_missing_dependency(self) -> None:
        """A dependency on an unknown task names both ids."""
        with pytest.raises(MissingReferenceError) as exc_info:
            TaskGraph([_task("a", "ghost")])
        assert exc_info.value.task_id == "a"
        assert exc_info.value.dependency_id == "ghost"
        assert "ghost" in str(exc_info.value)

    def test_missing_dependency_is_validation_error(self) -> None:
        """Missing references are a kind of validation error."""
        with pytest.raises(ValidationError):
            TaskGraph([_task("a", "b + 2d")])

    def test_directly_connected(self, scenario_tasks: list[Task]) -> None:
        """Connection checks both directions of declared edges only."""
        graph = TaskGraph(scenario_tasks)
        assert graph.directly_connected(0, 1)
        assert graph.directly_connected(1, 0)
        assert not graph.directly_connected(1, 2)
        assert not graph.directly_connected(0, 3)


class TestCycles:
    """Test cycle detection."""

    def test_acyclic(self, scenario_tasks: list[Task]) -> None:
        """The scenario has no cycles."""
        graph = TaskGraph(scenario_tasks)
        assert graph.cycles == []
        assert graph.cyclic_task_ids == []
        assert graph.effective == graph.declared

    def test_two_task_cycle(self) -> None:
        """Mutual dependencies are found and their edges dropped."""
        graph = TaskGraph([_task("task-a", "task-b"), _task("task-b", "task-a")])
        assert graph.cyclic_task_ids == ["task-a", "task-b"]
        assert len(graph.cycles) == 1
        assert set(graph.cycles[0]) == {"task-a", "task-b"}
        assert graph.effective == [[], []]

    def test_self_dependency(self) -> None:
        """A task depending on itself is a cycle of one."""
        graph = TaskGraph([_task("a", "a"), _task("b", "a")])
        assert graph.cycles == [["a"]]
        assert graph.effective == [[], [(0, 0)]]

    def test_cycle_downstream_of_normal_task(self) -> None:
        """Only tasks on the cycle lose their edges."""
        tasks = [
            _task("base"),
            _task("x", "base", "z"),
            _task("y", "x"),
            _task("z", "y"),
            _task("after", "z"),
        ]
        graph = TaskGraph(tasks)
        assert set(graph.cyclic_task_ids) == {"x", "y", "z"}
        assert graph.on_cycle[0] is False
        assert graph.effective[4] == [(3, 0)]

    def test_effective_graph_is_acyclic(self) -> None:
        """Overlapping cycles still leave an orderable graph."""
        tasks = [
            _task("a", "c"),
            _task("b", "a"),
            _task("c", "b", "d"),
            _task("d", "c"),
        ]
        graph = TaskGraph(tasks)
        assert sorted(graph.topological_order()) == [0, 1, 2, 3]
        assert graph.cycles


class TestTopologicalOrder:
    """Test dependency ordering."""

    def test_dependencies_first(self, scenario_tasks: list[Task]) -> None:
        """Every task comes after its dependencies."""
        graph = TaskGraph(scenario_tasks)
        order = graph.topological_order()
        position = {node: i for i, node in enumerate(order)}
        for node, edges in enumerate(graph.effective):
            for dep, _ in edges:
                assert position[dep] < position[node]

    def test_input_order_breaks_ties(self) -> None:
        """Independent tasks keep their input order."""
        graph = TaskGraph([_task("c"), _task("a"), _task("b")])
        assert graph.topological_order() == [0, 1, 2]

    def test_cyclic_tasks_last(self) -> None:
        """Tasks on a cycle are ordered after ready non-cyclic tasks."""
        graph = TaskGraph([_task("p", "q"), _task("q", "p"), _task("r")])
        assert graph.topological_order() == [2, 0, 1]

    def test_empty(self) -> None:
        """An empty graph has an empty order."""
        assert TaskGraph([]).topological_order() == []

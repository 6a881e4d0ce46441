"""Tests for request models."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from renoplan.models import (
    Dependency,
    Task,
    TimelineConstraints,
    TimelineModifications,
    TimelineOptimizationRequest,
    TimelinePreferences,
    coerce_date,
)


class TestDependencyParsing:
    """Test dependency strings with optional lag."""

    def test_plain_id(self) -> None:
        """A bare id has no lag."""
        dep = Dependency.parse("task-1")
        assert dep == Dependency(task_id="task-1", lag_days=0)
        assert str(dep) == "task-1"

    def test_day_lag(self) -> None:
        """'+ Nd' adds working days of lag."""
        dep = Dependency.parse("task-1 + 2d")
        assert dep.task_id == "task-1"
        assert dep.lag_days == 2
        assert str(dep) == "task-1 + 2d"

    def test_week_lag_uses_working_week(self) -> None:
        """'+ Nw' counts whole working weeks."""
        assert Dependency.parse("task-1 + 1w").lag_days == 5
        assert Dependency.parse("task-1 + 2w", days_per_week=6).lag_days == 12
        assert Dependency.parse("task-1+1w", days_per_week=7).lag_days == 7

    def test_surrounding_whitespace(self) -> None:
        """Whitespace around the id is ignored."""
        assert Dependency.parse("  task-9  ").task_id == "task-9"

    def test_sorting(self) -> None:
        """Dependencies order by id then lag."""
        deps = [Dependency("b"), Dependency("a", 2), Dependency("a")]
        assert sorted(deps) == [Dependency("a"), Dependency("a", 2), Dependency("b")]


class TestTask:
    """Test task validation."""

    def test_duration_must_be_positive(self) -> None:
        """A zero-day task is rejected."""
        with pytest.raises(PydanticValidationError):
            Task(id="t", duration=0)

    def test_camel_case_input(self) -> None:
        """Documents use camelCase keys."""
        task = Task.model_validate(
            {"id": "t", "duration": 2, "canRunInParallel": True, "trade": "plumbing"}
        )
        assert task.can_run_in_parallel is True
        assert task.trade == "plumbing"

    def test_duplicate_dependencies_removed(self) -> None:
        """Dependencies behave as a set but keep their order."""
        task = Task(id="t", duration=1, dependencies=["b", "a", "b"])
        assert task.dependencies == ["b", "a"]

    def test_single_dependency_string(self) -> None:
        """A lone id is accepted in place of a list."""
        task = Task.model_validate({"id": "t", "duration": 1, "dependencies": "a"})
        assert task.dependencies == ["a"]

    def test_blank_trade_is_general(self) -> None:
        """Tasks without a trade are general work."""
        assert Task(id="t", duration=1, trade="  ").trade == "general"
        assert Task(id="t", duration=1).trade == "general"

    def test_tasks_are_immutable(self) -> None:
        """Input tasks cannot be changed in place."""
        task = Task(id="t", duration=1)
        with pytest.raises(PydanticValidationError):
            task.duration = 3  # type: ignore[misc]

    def test_parsed_dependencies(self) -> None:
        """Lagged dependencies are parsed against the working week."""
        task = Task(id="t", duration=1, dependencies=["a", "b + 1w"])
        assert task.parsed_dependencies(6) == [Dependency("a"), Dependency("b", 6)]


class TestCoerceDate:
    """Test best-effort date conversion."""

    def test_values(self) -> None:
        """Dates, datetimes and ISO strings are accepted."""
        assert coerce_date(date(2024, 1, 15)) == date(2024, 1, 15)
        assert coerce_date(datetime(2024, 1, 15, 9, 30)) == date(2024, 1, 15)
        assert coerce_date("2024-01-15") == date(2024, 1, 15)
        assert coerce_date("2024-01-15T08:00:00") == date(2024, 1, 15)

    def test_unparseable(self) -> None:
        """Anything else becomes None."""
        assert coerce_date("next tuesday") is None
        assert coerce_date(42) is None
        assert coerce_date(None) is None


class TestTimelineConstraints:
    """Test constraint parsing and defaults."""

    def test_invalid_dates_become_none(self) -> None:
        """Unparseable start and end dates never fail validation."""
        constraints = TimelineConstraints.model_validate(
            {"availableStartDate": "soon", "requiredEndDate": "2024-13-45"}
        )
        assert constraints.available_start_date is None
        assert constraints.required_end_date is None

    def test_invalid_excluded_dates_dropped(self) -> None:
        """Only parseable exclusions are kept, sorted and unique."""
        constraints = TimelineConstraints.model_validate(
            {"excludedDates": ["2024-01-20", "garbage", "2024-01-18", "2024-01-20"]}
        )
        assert constraints.excluded_dates == [date(2024, 1, 18), date(2024, 1, 20)]

    def test_working_week_values(self) -> None:
        """Only 5, 6 and 7 day weeks are allowed."""
        for days in (5, 6, 7):
            assert TimelineConstraints(working_days_per_week=days).working_days_per_week == days
        with pytest.raises(PydanticValidationError):
            TimelineConstraints(working_days_per_week=4)

    def test_max_duration_positive(self) -> None:
        """A max duration below one day is rejected."""
        with pytest.raises(PydanticValidationError):
            TimelineConstraints(max_duration=0)


class TestRequest:
    """Test whole-request parsing."""

    def test_full_document(self) -> None:
        """A camelCase document parses into nested models."""
        request = TimelineOptimizationRequest.model_validate(
            {
                "projectId": "p1",
                "projectType": "bathroom",
                "tasks": [{"id": "a", "duration": 2}],
                "laborRequirements": [{"id": "a", "personDays": 3.5, "estimatedCost": 900}],
                "constraints": {
                    "maxDuration": 20,
                    "workingDaysPerWeek": 6,
                    "weatherConstraints": [{"taskIds": ["a"], "weatherDependencies": ["rain"]}],
                },
                "userPreferences": {
                    "prioritizeCost": True,
                    "preferredWorkingHours": {"start": "07:30", "end": "16:00"},
                },
            }
        )
        assert request.project_id == "p1"
        assert request.labor_requirements[0].person_days == 3.5
        assert request.constraints is not None
        assert request.constraints.max_duration == 20
        assert request.constraints.weather_constraints is not None
        assert request.constraints.weather_constraints[0].task_ids == ["a"]
        assert request.user_preferences == TimelinePreferences(
            prioritize_cost=True, preferred_working_hours={"start": "07:30", "end": "16:00"}
        )

    def test_defaults(self) -> None:
        """Everything but the tasks is optional."""
        request = TimelineOptimizationRequest()
        assert request.tasks == []
        assert request.constraints is None
        assert request.user_preferences is None


class TestModifications:
    """Test modification documents."""

    def test_only_name_and_duration_kept(self) -> None:
        """Other task fields in a modification are ignored."""
        mods = TimelineModifications.model_validate(
            {"taskModifications": [{"id": "a", "duration": 4, "trade": "roofing"}]}
        )
        assert mods.task_modifications[0].duration == 4
        assert not hasattr(mods.task_modifications[0], "trade")

    def test_constraint_changes_track_set_fields(self) -> None:
        """Only explicitly given constraint fields count as changes."""
        mods = TimelineModifications.model_validate(
            {"constraintChanges": {"workingDaysPerWeek": 7}}
        )
        assert mods.constraint_changes is not None
        assert mods.constraint_changes.model_dump(exclude_unset=True) == {
            "working_days_per_week": 7
        }

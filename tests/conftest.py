"""Pytest configuration and fixtures for renoplan tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from datetime import date
from typing import Any

import pytest

from renoplan.logger import reset_logger
from renoplan.models import (
    LaborRequirement,
    Task,
    TimelineConstraints,
    TimelineOptimizationRequest,
    TimelinePreferences,
)
from renoplan.timeline import DependencyAnalysis, StaticAdvisor, TimelineOptimizationService

# Monday
SCENARIO_START = date(2024, 1, 15)

ELECTRICAL_PLUMBING_SUGGESTION: dict[str, Any] = {
    "name": "External and Internal Work Parallel",
    "tasks": ["task-2", "task-3"],
    "duration": 3,
    "trades": ["electrical", "plumbing"],
    "requirements": ["Separate work areas", "Coordinated access"],
    "conflicts": [],
}


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Reset the renoplan logger between tests."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def scenario_tasks() -> list[Task]:
    """Five-task renovation: structural, two first fixes, insulation, flooring."""
    return [
        Task(id="task-1", name="Structural work", duration=5, trade="structural"),
        Task(
            id="task-2",
            name="Electrical first fix",
            duration=3,
            dependencies=["task-1"],
            can_run_in_parallel=True,
            trade="electrical",
        ),
        Task(
            id="task-3",
            name="Plumbing first fix",
            duration=3,
            dependencies=["task-1"],
            can_run_in_parallel=True,
            trade="plumbing",
        ),
        Task(
            id="task-4",
            name="Insulation",
            duration=2,
            dependencies=["task-2", "task-3"],
            trade="insulation",
        ),
        Task(
            id="task-5", name="Flooring", duration=4, dependencies=["task-4"], trade="flooring"
        ),
    ]


@pytest.fixture
def scenario_labor() -> list[LaborRequirement]:
    """Labor estimates for the five-task scenario."""
    return [
        LaborRequirement(id="task-1", trade="structural", person_days=10),
        LaborRequirement(id="task-2", trade="electrical", person_days=6),
        LaborRequirement(id="task-3", trade="plumbing", person_days=6),
        LaborRequirement(id="task-4", trade="insulation", person_days=4),
        LaborRequirement(id="task-5", trade="flooring", person_days=8),
    ]


@pytest.fixture
def make_request(
    scenario_tasks: list[Task], scenario_labor: list[LaborRequirement]
) -> Callable[..., TimelineOptimizationRequest]:
    """Factory for requests over the scenario (or given) tasks."""

    def _make(
        tasks: Sequence[Task] | None = None,
        *,
        preferences: TimelinePreferences | None = None,
        **constraints: Any,
    ) -> TimelineOptimizationRequest:
        constraints.setdefault("available_start_date", SCENARIO_START)
        return TimelineOptimizationRequest(
            project_id="test-project",
            project_type="kitchen",
            tasks=list(scenario_tasks if tasks is None else tasks),
            labor_requirements=scenario_labor if tasks is None else [],
            constraints=TimelineConstraints(**constraints),
            user_preferences=preferences,
        )

    return _make


@pytest.fixture
def scenario_request(
    make_request: Callable[..., TimelineOptimizationRequest],
) -> TimelineOptimizationRequest:
    """The five-task scenario starting on a Monday."""
    return make_request()


@pytest.fixture
def static_advisor() -> StaticAdvisor:
    """Advisor that always pairs the electrical and plumbing first fixes."""
    return StaticAdvisor([ELECTRICAL_PLUMBING_SUGGESTION])


class FailingAdvisor:
    """Advisor whose every call raises."""

    def __init__(self) -> None:
        self.calls = 0

    def suggest(self, tasks: Sequence[Task], analysis: Sequence[DependencyAnalysis]) -> Any:
        self.calls += 1
        raise RuntimeError("advisor service unavailable")


@pytest.fixture
def failing_advisor() -> FailingAdvisor:
    """Advisor that raises on every call."""
    return FailingAdvisor()


@pytest.fixture
def service() -> TimelineOptimizationService:
    """Service without an advisor and a fixed current date."""
    return TimelineOptimizationService(current_date=SCENARIO_START)

"""Parallel work detection."""

from __future__ import annotations

import re
import threading
import time
from collections.abc import Sequence
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any

from renoplan.exceptions import OptimizationCancelled
from renoplan.logger import get_logger
from renoplan.models import LaborRequirement, Task

from .advisors import AdvisorSuggestion, parse_suggestions
from .config import EngineConfig
from .core import AdvisorStatus, DependencyAnalysisResult, ParallelWorkGroup, ParallelWorkResult
from .graph import TaskGraph
from .protocols import AbortableAdvisor, CrossTradeAdvisor

logger = get_logger()

# How often a pending advisor call checks for caller cancellation
_CANCEL_POLL_SECONDS = 0.05

# Trade pairs that tend to clash when working side by side
_TRADE_CONFLICTS: list[tuple[str, str, str]] = [
    ("electrical", "plumbing", "Electrical and plumbing work may require same wall/ceiling access"),
    ("flooring", "decorating", "Flooring work may damage completed decorating"),
    ("structural", "electrical", "Structural changes may affect electrical routing"),
]


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_") or "general"


def _distinct(values: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(values))


class ParallelWorkDetector:
    """Finds tasks that can share a calendar span.

    Intra-trade groups come from graph analysis. Cross-trade groups come from
    an optional advisor; when it is absent or fails, a deterministic
    outdoor/indoor heuristic is used instead.
    """

    def __init__(
        self,
        advisor: CrossTradeAdvisor | None = None,
        config: EngineConfig | None = None,
    ):
        self.advisor = advisor
        self.config = config or EngineConfig()

    def detect(
        self,
        graph: TaskGraph,
        analysis: DependencyAnalysisResult,
        labor_requirements: Sequence[LaborRequirement] = (),
        cancel_event: threading.Event | None = None,
    ) -> ParallelWorkResult:
        """Detect parallel work groups.

        Args:
            graph: Task graph of the request
            analysis: Dependency analysis of the same graph
            labor_requirements: Per-task labor estimates (weights requirements text)
            cancel_event: Optional event; when set, a pending advisor call is abandoned

        Raises:
            OptimizationCancelled: If cancel_event is set while waiting for the advisor
        """
        labor = self._labor_by_task(graph, labor_requirements)
        groups = self._intra_trade_groups(graph, labor)
        cross_trade, status = self._cross_trade_groups(graph, analysis, cancel_event)
        groups.extend(cross_trade)
        logger.changes(
            f"Parallel work: {len(groups)} group(s) ({len(cross_trade)} cross-trade, "
            f"advisor {status.value})"
        )
        return ParallelWorkResult(groups=groups, advisor_status=status)

    @staticmethod
    def _labor_by_task(
        graph: TaskGraph, labor_requirements: Sequence[LaborRequirement]
    ) -> dict[str, LaborRequirement]:
        labor: dict[str, LaborRequirement] = {}
        for requirement in labor_requirements:
            if requirement.id not in graph.index:
                logger.debug(f"Labor requirement for unknown task '{requirement.id}' ignored")
                continue
            labor[requirement.id] = requirement
        return labor

    def _intra_trade_groups(
        self, graph: TaskGraph, labor: dict[str, LaborRequirement]
    ) -> list[ParallelWorkGroup]:
        by_trade: dict[str, list[int]] = {}
        for i, task in enumerate(graph.tasks):
            by_trade.setdefault(task.trade, []).append(i)

        groups: list[ParallelWorkGroup] = []
        for trade, members in by_trade.items():
            candidates = [i for i in members if graph.tasks[i].can_run_in_parallel]
            eligible = [
                i
                for i in candidates
                if not any(graph.directly_connected(i, other) for other in candidates if other != i)
            ]
            logger.checks(
                f"Trade '{trade}': {len(candidates)} parallel-eligible, "
                f"{len(eligible)} unconflicted"
            )
            if len(eligible) < 2:
                continue
            tasks = [graph.tasks[i] for i in eligible]
            groups.append(
                ParallelWorkGroup(
                    id=f"parallel_{_slug(trade)}",
                    name=f"Parallel {trade} work",
                    tasks=[t.id for t in tasks],
                    duration=max(t.duration for t in tasks),
                    trades=[trade],
                    requirements=self._requirements(tasks, labor),
                    conflicts=self._potential_conflicts(tasks),
                )
            )
        return groups

    def _requirements(
        self, tasks: Sequence[Task], labor: dict[str, LaborRequirement]
    ) -> list[str]:
        requirements: list[str] = []
        total_person_days = sum(labor[t.id].person_days for t in tasks if t.id in labor)
        if total_person_days > self.config.high_labor_person_days:
            requirements.append("Multiple work crews required")
        if len({t.trade for t in tasks}) > 2:
            requirements.append("Coordinated equipment scheduling")
        requirements.append("Clear communication between trades")
        requirements.append("Designated work areas to avoid conflicts")
        return requirements

    @staticmethod
    def _potential_conflicts(tasks: Sequence[Task]) -> list[str]:
        trades = {t.trade.lower() for t in tasks}
        return [message for a, b, message in _TRADE_CONFLICTS if a in trades and b in trades]

    def _cross_trade_groups(
        self,
        graph: TaskGraph,
        analysis: DependencyAnalysisResult,
        cancel_event: threading.Event | None,
    ) -> tuple[list[ParallelWorkGroup], AdvisorStatus]:
        if self.advisor is None:
            return self._heuristic_groups(graph), AdvisorStatus.DISABLED
        if not graph.tasks:
            return [], AdvisorStatus.OK

        try:
            payload = self._call_advisor(graph.tasks, analysis, cancel_event)
            suggestions = parse_suggestions(payload)
        except OptimizationCancelled:
            raise
        except Exception as e:  # noqa: BLE001 - any advisor failure degrades to the heuristic
            reason = "timed out" if isinstance(e, (TimeoutError, FuturesTimeoutError)) else str(e)
            logger.warning(f"Cross-trade advisor failed ({reason}); using fallback heuristic")
            return self._heuristic_groups(graph), AdvisorStatus.FALLBACK

        return self._groups_from_suggestions(graph, suggestions), AdvisorStatus.OK

    def _call_advisor(
        self,
        tasks: Sequence[Task],
        analysis: DependencyAnalysisResult,
        cancel_event: threading.Event | None,
    ) -> Any:
        """Single advisor attempt on a daemon thread, bounded by the configured timeout.

        The thread is never joined: on timeout or cancellation the advisor is
        aborted (when it supports it) and the thread is left to finish alone.
        """
        advisor = self.advisor
        assert advisor is not None
        if cancel_event is not None and cancel_event.is_set():
            raise OptimizationCancelled("Optimization cancelled before cross-trade analysis")

        future: Future[Any] = Future()
        task_list = list(tasks)
        analyses = list(analysis.analyses)

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(advisor.suggest(task_list, analyses))
            except Exception as e:  # noqa: BLE001 - handed to the waiting caller
                future.set_exception(e)

        worker = threading.Thread(target=run, name="renoplan-advisor", daemon=True)
        worker.start()
        try:
            return self._wait(future, cancel_event)
        finally:
            if not future.done():
                self._abort_advisor()

    def _abort_advisor(self) -> None:
        if isinstance(self.advisor, AbortableAdvisor):
            logger.checks("Aborting pending cross-trade advisor call")
            self.advisor.abort()

    def _wait(self, future: Future[Any], cancel_event: threading.Event | None) -> Any:
        timeout = self.config.advisor_timeout_seconds
        if cancel_event is None:
            return future.result(timeout=timeout)

        deadline = time.monotonic() + timeout
        while True:
            if cancel_event.is_set():
                raise OptimizationCancelled("Optimization cancelled during cross-trade analysis")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"advisor did not answer within {timeout}s")
            try:
                return future.result(timeout=min(remaining, _CANCEL_POLL_SECONDS))
            except FuturesTimeoutError:
                continue

    def _groups_from_suggestions(
        self, graph: TaskGraph, suggestions: Sequence[AdvisorSuggestion]
    ) -> list[ParallelWorkGroup]:
        groups: list[ParallelWorkGroup] = []
        for suggestion in suggestions:
            task_ids = _distinct([t.strip() for t in suggestion.tasks])
            unknown = [t for t in task_ids if t not in graph.index]
            if unknown:
                logger.checks(f"Dropping advisor suggestion with unknown tasks: {unknown}")
                continue
            if len(task_ids) < 2:
                logger.checks(f"Dropping advisor suggestion with fewer than 2 tasks: {task_ids}")
                continue
            tasks = [graph.tasks[graph.index[t]] for t in task_ids]
            duration = max(t.duration for t in tasks)
            if suggestion.duration is not None and suggestion.duration != duration:
                logger.checks(
                    f"Advisor duration {suggestion.duration} for {task_ids} replaced by "
                    f"longest member duration {duration}"
                )
            groups.append(
                ParallelWorkGroup(
                    id=f"cross_trade_{len(groups) + 1}",
                    name=suggestion.name or "Cross-trade parallel work",
                    tasks=task_ids,
                    duration=duration,
                    trades=suggestion.trades or _distinct([t.trade for t in tasks]),
                    requirements=suggestion.requirements or [],
                    conflicts=(
                        suggestion.conflicts
                        if suggestion.conflicts is not None
                        else self._potential_conflicts(tasks)
                    ),
                )
            )
        return groups

    def _heuristic_groups(self, graph: TaskGraph) -> list[ParallelWorkGroup]:
        """Outdoor work alongside indoor work when nothing links the two sets."""

        def matches(trade: str, fragments: Sequence[str]) -> bool:
            trade = trade.lower()
            return any(fragment.lower() in trade for fragment in fragments)

        external = [
            i for i, t in enumerate(graph.tasks) if matches(t.trade, self.config.external_trades)
        ]
        internal = [
            i
            for i, t in enumerate(graph.tasks)
            if i not in external and matches(t.trade, self.config.internal_trades)
        ]
        if not external or not internal:
            return []

        if any(graph.directly_connected(e, i) for e in external for i in internal):
            logger.checks("Heuristic: external and internal work are linked; no group")
            return []

        tasks = [graph.tasks[i] for i in external[:2] + internal[:2]]
        return [
            ParallelWorkGroup(
                id="external_internal_parallel",
                name="External and Internal Work Parallel",
                tasks=[t.id for t in tasks],
                duration=max(t.duration for t in tasks),
                trades=_distinct([t.trade for t in tasks]),
                requirements=["Separate work areas", "Coordinated access"],
                conflicts=["Weather dependency for external work"],
            )
        ]

"""Protocol definitions for pluggable timeline collaborators."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from renoplan.models import Task

from .core import DependencyAnalysis


class CrossTradeAdvisor(Protocol):
    """Suggests groups of tasks from different trades that can run together."""

    def suggest(self, tasks: Sequence[Task], analysis: Sequence[DependencyAnalysis]) -> Any:
        """Return candidate groups.

        Args:
            tasks: Tasks of the request
            analysis: Dependency analysis for the same tasks

        Returns:
            A list of suggestions, each a mapping (or AdvisorSuggestion) with
            ``tasks`` and optional ``name``, ``duration``, ``trades``,
            ``requirements`` and ``conflicts``. The caller validates the shape.
        """
        ...


class LLMBackend(Protocol):
    """Text generation backend used by PromptAdvisor."""

    def query(self, system_prompt: str, user_prompt: str) -> str:
        """Send a prompt and return the raw text response."""
        ...


@runtime_checkable
class AbortableAdvisor(Protocol):
    """Advisor whose in-flight call can be stopped from another thread."""

    def abort(self) -> None:
        """Stop any pending call; the blocked suggest() then raises."""
        ...

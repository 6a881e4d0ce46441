"""Cross-trade advisors and response parsing.

The advisor is the only out-of-process collaborator of the engine. Whatever
it returns is validated here; anything that does not fit raises AdvisorError
so the detector can fall back to its heuristic.
"""

from __future__ import annotations

import contextlib
import json
import os
import signal
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import asdict
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from renoplan.exceptions import AdvisorError
from renoplan.logger import get_logger
from renoplan.models import Task

from .config import AdvisorConfig, AdvisorType
from .core import DependencyAnalysis
from .protocols import CrossTradeAdvisor, LLMBackend

logger = get_logger()

_POSIX = os.name == "posix"

SYSTEM_PROMPT = (
    "You are a construction scheduling assistant for home renovations. "
    "You answer only with JSON."
)

USER_PROMPT_TEMPLATE = """Analyze the following construction tasks and identify opportunities for cross-trade parallel work.

Tasks:
{tasks}

Dependency Analysis:
{analysis}

Identify groups of tasks from different trades that can be executed in parallel without conflicts.
Consider:
1. Physical space requirements
2. Access requirements
3. Safety considerations
4. Resource sharing
5. Quality control checkpoints

Return a JSON array. Each element must have "tasks" (list of task ids) and may have
"name", "duration" (working days), "trades", "requirements" and "conflicts".
"""


class AdvisorSuggestion(BaseModel):
    """One candidate group proposed by an advisor."""

    model_config = ConfigDict(extra="ignore")

    tasks: list[str] = Field(min_length=1)
    name: str | None = None
    duration: int | None = Field(default=None, ge=1)
    trades: list[str] | None = None
    requirements: list[str] | None = None
    conflicts: list[str] | None = None


_SUGGESTIONS_ADAPTER = TypeAdapter(list[AdvisorSuggestion])


def parse_suggestions(payload: Any) -> list[AdvisorSuggestion]:
    """Validate an advisor payload.

    Accepts a list of suggestions, a ``{"groups": [...]}`` wrapper, or a JSON
    string of either.

    Raises:
        AdvisorError: If the payload does not have the expected shape
    """
    if isinstance(payload, str):
        payload = extract_json(payload)
    if isinstance(payload, dict) and "groups" in payload:
        payload = payload["groups"]
    if not isinstance(payload, list):
        raise AdvisorError(f"Expected a list of suggestions, got {type(payload).__name__}")
    items = [item.model_dump() if isinstance(item, AdvisorSuggestion) else item for item in payload]
    try:
        return _SUGGESTIONS_ADAPTER.validate_python(items)
    except PydanticValidationError as e:
        raise AdvisorError(f"Malformed advisor response: {e}") from e


def extract_json(text: str) -> Any:
    """Extract JSON from a text response, tolerating code fences and prose.

    Raises:
        AdvisorError: If no valid JSON can be found
    """
    text = text.strip()
    if not text:
        raise AdvisorError("Advisor returned an empty response")

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    if "```" in text:
        for part in text.split("```")[1:]:
            candidate = part.strip()
            if candidate and candidate.split("\n", 1)[0].strip() in ("json", "JSON", ""):
                candidate = candidate.split("\n", 1)[-1].strip() if "\n" in candidate else ""
            if candidate:
                try:
                    return json.loads(candidate)
                except json.JSONDecodeError:
                    continue

    # JSON embedded in prose: try the outermost array, then the outermost object
    for opener, closer in (("[", "]"), ("{", "}")):
        first = text.find(opener)
        last = text.rfind(closer)
        if first != -1 and last > first:
            try:
                return json.loads(text[first : last + 1])
            except json.JSONDecodeError:
                continue

    raise AdvisorError(f"Could not extract JSON from advisor response: {text[:200]!r}")


class StaticAdvisor:
    """Returns a fixed set of suggestions. Useful for tests and offline runs."""

    def __init__(self, suggestions: Sequence[dict[str, Any] | AdvisorSuggestion] = ()):
        self.suggestions = list(suggestions)

    def suggest(self, tasks: Sequence[Task], analysis: Sequence[DependencyAnalysis]) -> Any:
        return list(self.suggestions)


class PromptAdvisor:
    """Asks a text-generation backend for cross-trade groups."""

    def __init__(self, backend: LLMBackend):
        self.backend = backend

    def build_prompt(self, tasks: Sequence[Task], analysis: Sequence[DependencyAnalysis]) -> str:
        """Render the task list and dependency analysis into the user prompt."""
        task_context = [
            {
                "id": t.id,
                "name": t.name,
                "trade": t.trade,
                "duration": t.duration,
                "dependencies": t.dependencies,
            }
            for t in tasks
        ]
        analysis_context = [asdict(a) for a in analysis]
        return USER_PROMPT_TEMPLATE.format(
            tasks=json.dumps(task_context, indent=2),
            analysis=json.dumps(analysis_context, indent=2),
        )

    def suggest(self, tasks: Sequence[Task], analysis: Sequence[DependencyAnalysis]) -> Any:
        prompt = self.build_prompt(tasks, analysis)
        logger.debug(f"Advisor prompt length: {len(prompt)} characters")
        response = self.backend.query(SYSTEM_PROMPT, prompt)
        return extract_json(response)

    def abort(self) -> None:
        """Stop a pending backend query when the backend supports it."""
        abort = getattr(self.backend, "abort", None)
        if callable(abort):
            abort()


class CallableBackend:
    """Wraps a simple callable as a backend."""

    def __init__(self, fn: Callable[[str, str], str]):
        self._fn = fn

    def query(self, system_prompt: str, user_prompt: str) -> str:
        return self._fn(system_prompt, user_prompt)


class CommandBackend:
    """Runs an external command, writing the prompt to its stdin.

    The command runs in its own session so that abort() and the timeout can
    kill it together with any children it started.
    """

    def __init__(self, command: Sequence[str], timeout: float = 30.0):
        if not command:
            raise ValueError("CommandBackend requires a command")
        self.command = list(command)
        self.timeout = timeout
        self._lock = threading.Lock()
        self._running: set[subprocess.Popen[str]] = set()

    def query(self, system_prompt: str, user_prompt: str) -> str:
        try:
            process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=os.environ.copy(),
                start_new_session=_POSIX,
            )
        except OSError as e:
            raise AdvisorError(f"Advisor command failed: {e}") from e

        with self._lock:
            self._running.add(process)
        try:
            stdout, stderr = process.communicate(
                f"{system_prompt}\n\n{user_prompt}", timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            _kill(process)
            process.communicate()
            raise AdvisorError(f"Advisor command timed out after {self.timeout}s") from e
        finally:
            with self._lock:
                self._running.discard(process)

        if process.returncode != 0:
            raise AdvisorError(
                f"Advisor command exited with {process.returncode}: {stderr.strip()}"
            )
        return stdout.strip()

    def abort(self) -> None:
        """Kill every command still running."""
        with self._lock:
            running = list(self._running)
        for process in running:
            logger.checks(f"Killing advisor command (pid {process.pid})")
            _kill(process)


def _kill(process: subprocess.Popen[str]) -> None:
    if process.poll() is not None:
        return
    if _POSIX:
        # The whole session, so shell wrappers do not leave their children behind
        with contextlib.suppress(ProcessLookupError):
            os.killpg(process.pid, signal.SIGKILL)
    else:
        process.kill()


def create_advisor(
    config: AdvisorConfig | None, max_timeout: float | None = None
) -> CrossTradeAdvisor | None:
    """Create an advisor from configuration.

    Args:
        config: Advisor section of the unified config
        max_timeout: Upper bound for the backend's own timeout, normally
            EngineConfig.advisor_timeout_seconds

    Returns:
        An advisor, or None when cross-trade suggestions come from the heuristic only
    """
    if config is None or config.type == AdvisorType.NONE:
        return None

    if config.type == AdvisorType.COMMAND:
        timeout = config.timeout if max_timeout is None else min(config.timeout, max_timeout)
        return PromptAdvisor(CommandBackend(config.command, timeout=timeout))

    msg = f"Unknown advisor type: {config.type}"
    raise ValueError(msg)

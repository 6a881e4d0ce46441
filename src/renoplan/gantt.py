"""Mermaid Gantt chart rendering for optimized schedules."""

from __future__ import annotations

import re

from .timeline.core import GanttChart, GanttTask
from .unified_config import GanttConfig, GanttGroupBy

_MERMAID_ID_RE = re.compile(r"[^A-Za-z0-9_]")


def mermaid_id(task_id: str) -> str:
    """Mermaid task ids allow only letters, digits and underscores."""
    return _MERMAID_ID_RE.sub("_", task_id)


def mermaid_ids(task_ids: list[str]) -> dict[str, str]:
    """Map each task id to a Mermaid id unique within the chart.

    Ids that sanitize to the same text keep input order: the first gets the
    plain form, later ones get `_2`, `_3`, ... skipping any form another
    task already sanitizes to.
    """
    plain = {mermaid_id(task_id) for task_id in task_ids}
    used: set[str] = set()
    result: dict[str, str] = {}
    for task_id in task_ids:
        candidate = base = mermaid_id(task_id)
        suffix = 1
        while candidate in used or (candidate != base and candidate in plain):
            suffix += 1
            candidate = f"{base}_{suffix}"
        used.add(candidate)
        result[task_id] = candidate
    return result


class GanttRenderer:
    """Renders a GanttChart as Mermaid gantt syntax."""

    def __init__(self, config: GanttConfig | None = None):
        self.config = config or GanttConfig()

    def _build_mermaid_frontmatter(self) -> list[str]:
        """Build YAML frontmatter for Mermaid chart."""
        return [
            "---",
            "config:",
            "    gantt:",
            "        topAxis: true",
            "---",
        ]

    def _build_mermaid_header(self, title: str) -> list[str]:
        """Build Mermaid chart header."""
        return [
            "gantt",
            f"    title {title}",
            "    dateFormat YYYY-MM-DD",
            "    axisFormat %Y-%m-%d",
        ]

    def _organize_tasks(self, tasks: list[GanttTask]) -> dict[str | None, list[GanttTask]]:
        """Split tasks into sections, each sorted by start date then input order."""
        sections: dict[str | None, list[GanttTask]] = {}
        for task in tasks:
            key = task.trade if self.config.group_by == GanttGroupBy.TRADE else None
            sections.setdefault(key, []).append(task)
        return {key: sorted(group, key=lambda t: t.start_date) for key, group in sections.items()}

    def _task_line(self, task: GanttTask, ids: dict[str, str]) -> str:
        label = task.name.replace(":", " ").replace("#", " ")
        if task.group_id:
            label += " (parallel)"
        tags = "crit, " if self.config.show_critical and task.critical else ""
        start_str = task.start_date.strftime("%Y-%m-%d")
        # Mermaid durations are calendar days; the span covers rest days too
        calendar_duration = (task.end_date - task.start_date).days
        return f"    {label} :{tags}{ids[task.id]}, {start_str}, {calendar_duration}d"

    def generate_mermaid(self, chart: GanttChart, *, title: str | None = None) -> str:
        """Generate Mermaid gantt chart syntax.

        Args:
            chart: The optimized chart
            title: Chart title (defaults to the configured title)

        Returns:
            Mermaid gantt chart syntax as a string
        """
        lines: list[str] = []
        lines.extend(self._build_mermaid_frontmatter())
        lines.extend(self._build_mermaid_header(title or self.config.title))
        lines.append("")

        ids = mermaid_ids([task.id for task in chart.tasks])

        for section, tasks in self._organize_tasks(chart.tasks).items():
            if section is not None:
                lines.append(f"    section {section}")
            for task in tasks:
                lines.append(self._task_line(task, ids))

        return "\n".join(lines)


def wrap_markdown(mermaid: str) -> str:
    """Fence Mermaid syntax for embedding in a markdown file."""
    return f"```mermaid\n{mermaid}\n```\n"

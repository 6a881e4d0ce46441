"""Text and JSON rendering of optimization results."""

from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter
from pydantic.alias_generators import to_camel

from .timeline.core import OptimizationResult

_RESULT_ADAPTER = TypeAdapter(OptimizationResult)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {to_camel(key): _camelize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_camelize(item) for item in value]
    return value


def result_to_dict(result: OptimizationResult) -> dict[str, Any]:
    """Convert a result to JSON-compatible data with camelCase keys."""
    return _camelize(_RESULT_ADAPTER.dump_python(result, mode="json"))


def result_to_json(result: OptimizationResult, indent: int = 2) -> str:
    """Serialize a result as JSON."""
    return json.dumps(result_to_dict(result), indent=indent)


def format_text(result: OptimizationResult) -> str:
    """Human-readable summary of a result."""
    chart = result.gantt_chart
    lines = [
        f"Timeline Optimization: {chart.project_id}",
        "=" * 80,
        "",
        f"Original duration:  {result.original_duration} working days (all tasks in sequence)",
        f"Optimized duration: {result.optimized_duration} working days",
        f"Time saved:         {result.time_saved} working days",
        f"Schedule:           {chart.start_date} to {chart.end_date} "
        f"({chart.calendar_days} calendar days)",
    ]
    if not result.feasible:
        lines.append("Feasible:           no (maximum duration exceeded)")
    lines.append(f"Critical path:      {', '.join(result.critical_path) or '(none)'}")
    lines.append(f"Cross-trade advice: {result.advisor_status.value}")
    lines.append("")

    if chart.tasks:
        lines.append("Tasks")
        lines.append("-" * 80)
        for task in chart.tasks:
            marker = "*" if task.critical else " "
            suffix = f"  [{task.group_id}]" if task.group_id else ""
            lines.append(
                f"{marker} {task.id:<16} {task.start_date} -> {task.end_date}  "
                f"{task.scheduled_days:>3}d  {task.trade}{suffix}"
            )
        lines.append("")

    if result.parallel_work_opportunities:
        lines.append("Parallel work")
        lines.append("-" * 80)
        for group in result.parallel_work_opportunities:
            lines.append(f"{group.name} ({group.id}): {', '.join(group.tasks)}")
            for requirement in group.requirements:
                lines.append(f"  requires: {requirement}")
            for conflict in group.conflicts:
                lines.append(f"  conflict: {conflict}")
        lines.append("")

    if result.recommendations:
        lines.append("Recommendations")
        lines.append("-" * 80)
        for rec in result.recommendations:
            lines.append(f"[{rec.priority.value}] {rec.description}")
            lines.append(f"  Impact: {rec.impact}")
            lines.append(f"  How:    {rec.implementation}")
        lines.append("")

    if result.warnings:
        lines.append("Warnings")
        lines.append("-" * 80)
        for warning in result.warnings:
            lines.append(f"  - {warning}")
        lines.append("")

    return "\n".join(lines)

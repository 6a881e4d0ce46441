"""Unified configuration loader.

This module provides a single configuration file format (renoplan_config.yaml)
that combines engine tunables, the cross-trade advisor and Gantt output settings.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .timeline.config import AdvisorConfig, EngineConfig

CONFIG_FILENAME = "renoplan_config.yaml"


class GanttGroupBy(str, Enum):
    """How tasks are split into sections in a Mermaid Gantt chart."""

    NONE = "none"
    TRADE = "trade"


class GanttConfig(BaseModel):
    """Configuration for Gantt chart generation."""

    title: str = "Renovation Schedule"
    group_by: GanttGroupBy = GanttGroupBy.NONE
    show_critical: bool = True  # tag critical path tasks with `crit`


class UnifiedConfig(BaseModel):
    """Unified configuration; every section is optional."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    advisor: AdvisorConfig = Field(default_factory=AdvisorConfig)
    gantt: GanttConfig = Field(default_factory=GanttConfig)


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load unified configuration from YAML file.

    Args:
        config_path: Path to renoplan_config.yaml file

    Returns:
        UnifiedConfig with defaults for missing sections

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        data: Any = yaml.safe_load(f)

    if data is None:
        return UnifiedConfig()
    if not isinstance(data, dict):
        raise ValueError("Config must contain a mapping at the root level")

    unknown = set(data) - set(UnifiedConfig.model_fields)
    if unknown:
        raise ValueError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

    return UnifiedConfig.model_validate(data)

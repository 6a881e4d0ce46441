"""Request and modification file loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .models import TimelineModifications, TimelineOptimizationRequest
from .unified_config import CONFIG_FILENAME, UnifiedConfig, load_unified_config

ModelT = TypeVar("ModelT", bound=BaseModel)


def discover_config(
    request_path: Path | None = None,
    config_path: Path | None = None,
) -> UnifiedConfig:
    """Discover unified config from various locations.

    Search order:
    1. Explicit config_path argument (the CLI --config option)
    2. request file directory / renoplan_config.yaml
    3. Current directory / renoplan_config.yaml

    An explicit path must exist. Returns the default configuration when
    nothing is found.

    Raises:
        ParseError: If the explicit path is missing or a found file is invalid
    """
    candidates: list[Path] = []
    if config_path is not None:
        if not config_path.exists():
            raise ParseError(f"Config file not found: {config_path}")
        candidates.append(config_path)
    if request_path is not None:
        candidates.append(Path(request_path).parent / CONFIG_FILENAME)
    candidates.append(Path(CONFIG_FILENAME))

    for candidate in candidates:
        if candidate.exists():
            try:
                return load_unified_config(candidate)
            except (ValueError, yaml.YAMLError) as e:
                raise ParseError(f"Invalid config file {candidate}: {e}") from e
    return UnifiedConfig()


def _read_mapping(path: Path) -> dict[str, Any]:
    """Read a YAML (or JSON, a YAML subset) document with a mapping at the root."""
    if not path.exists():
        raise ParseError(f"File not found: {path}")
    try:
        with path.open() as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"{path} must contain a mapping at the root level")
    return data


def _validate(model: type[ModelT], data: dict[str, Any], path: Path) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid structure in {path}: {e}") from e


def load_request(path: Path | str) -> TimelineOptimizationRequest:
    """Load an optimization request from a YAML or JSON file.

    Raises:
        ParseError: If the file is missing or is not valid YAML/JSON
        ValidationError: If the document does not describe a valid request
    """
    path = Path(path)
    return _validate(TimelineOptimizationRequest, _read_mapping(path), path)


def load_modifications(path: Path | str) -> TimelineModifications:
    """Load regeneration modifications from a YAML or JSON file.

    Raises:
        ParseError: If the file is missing or is not valid YAML/JSON
        ValidationError: If the document does not describe valid modifications
    """
    path = Path(path)
    return _validate(TimelineModifications, _read_mapping(path), path)

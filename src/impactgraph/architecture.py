"""
Architecture model loader.

Reads layer and boundary declarations from YAML:

    layers:
      - name: CLI
        description: Command-line interface
        paths: ["src/cli/**"]
        allowedDependencies: [Core]
      - name: Core
        paths: ["src/core/**"]
    boundaries:
      - from: Modules
        to: CLI
        allowed: false
        reason: Modules should not depend on CLI

snake_case keys (path_globs, allowed_dependencies, from_layer, to_layer)
are accepted as well.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from . import config
from .errors import MalformedArchitectureModel
from .models import ArchitectureModel, Boundary, Layer

logger = logging.getLogger(__name__)


def _first(mapping: dict, *keys, default=None):
    for key in keys:
        if key in mapping:
            return mapping[key]
    return default


def _string_list(value, where: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MalformedArchitectureModel(f"{where} must be a list of strings")
    return list(value)


def parse_architecture(data) -> ArchitectureModel:
    """Build an ArchitectureModel from an already-parsed mapping."""
    if data is None:
        # Empty file: configured, with no layers
        return ArchitectureModel()
    if not isinstance(data, dict):
        raise MalformedArchitectureModel("architecture must be a mapping with 'layers' and 'boundaries'")

    raw_layers = data.get("layers") or []
    raw_boundaries = data.get("boundaries") or []
    if not isinstance(raw_layers, list) or not isinstance(raw_boundaries, list):
        raise MalformedArchitectureModel("'layers' and 'boundaries' must be lists")

    layers = []
    for i, item in enumerate(raw_layers):
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise MalformedArchitectureModel(f"layers[{i}] needs a string 'name'")
        layers.append(Layer(
            name=item["name"],
            path_globs=_string_list(
                _first(item, "paths", "path_globs", "pathGlobs"), f"layers[{i}].paths"
            ),
            allowed_dependency_layer_names=_string_list(
                _first(item, "allowedDependencies", "allowed_dependencies", "allowed"),
                f"layers[{i}].allowedDependencies",
            ),
            description=str(item.get("description") or ""),
        ))

    boundaries = []
    for i, item in enumerate(raw_boundaries):
        if not isinstance(item, dict):
            raise MalformedArchitectureModel(f"boundaries[{i}] must be a mapping")
        source = _first(item, "from", "from_layer", "fromLayer")
        target = _first(item, "to", "to_layer", "toLayer")
        if not isinstance(source, str) or not isinstance(target, str):
            raise MalformedArchitectureModel(f"boundaries[{i}] needs string 'from' and 'to'")
        allowed = item.get("allowed", False)
        if not isinstance(allowed, bool):
            raise MalformedArchitectureModel(f"boundaries[{i}].allowed must be true or false")
        reason = item.get("reason")
        boundaries.append(Boundary(
            from_layer=source,
            to_layer=target,
            allowed=allowed,
            reason=str(reason) if reason is not None else None,
        ))

    return ArchitectureModel(layers=layers, boundaries=boundaries)


def load_architecture(path) -> ArchitectureModel:
    """
    Load an ArchitectureModel from a YAML file.

    Raises:
        MalformedArchitectureModel: unreadable file, invalid YAML, or
            content that does not describe layers/boundaries
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise MalformedArchitectureModel(f"{path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise MalformedArchitectureModel(f"{path}: invalid YAML: {e}") from e

    try:
        model = parse_architecture(data)
    except MalformedArchitectureModel as e:
        raise MalformedArchitectureModel(f"{path}: {e}") from None

    logger.debug(
        "Loaded architecture from %s: %d layers, %d boundaries",
        path, len(model.layers), len(model.boundaries),
    )
    return model


def find_architecture_file(root) -> Optional[Path]:
    """<root>/<config dir>/architecture.yaml (or .yml), if present"""
    config_dir = Path(root) / config.CONFIG_DIR
    for name in config.ARCHITECTURE_FILES:
        candidate = config_dir / name
        if candidate.is_file():
            return candidate
    return None

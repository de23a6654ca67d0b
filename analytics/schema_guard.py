"""
Schema guard for scenario configs.

Sits on top of analytics.config_schema and:
  * lazily imports the modules that register field specs ("inputs",
    "assumptions") so their registration side-effects run; and
  * validates a raw config dict against every registered spec.

Usage::

    from analytics.schema_guard import validate_config

    validate_config(
        raw_config=config,
        config_path="scenarios/base_case.yaml",
        modules=["inputs", "assumptions"],
    )
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, List, Mapping, Sequence

from analytics.config_schema import PathSpec, get_required_fields

logger = logging.getLogger(__name__)


class ConfigValidationError(RuntimeError):
    """Raised when a YAML / JSON config is missing required fields."""

    def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.fields = tuple(fields)


# Logical module name -> import path that registers its specs
_MODULE_IMPORTS: Dict[str, str] = {
    "inputs": "analytics.scenario_loader",
    "assumptions": "finance.assumptions",
}


def _ensure_module_registered(name: str) -> None:
    """Import the module behind ``name`` so its specs are registered.

    Unknown names are a no-op.
    """
    module_path = _MODULE_IMPORTS.get(name)
    if not module_path:
        logger.debug("schema_guard: no registration module for '%s'", name)
        return
    importlib.import_module(module_path)


def _get_nested(container: Mapping[str, Any], path: PathSpec) -> Any:
    current: Any = container
    for seg in path:
        if not isinstance(current, Mapping) or seg not in current:
            return None
        current = current[seg]
    return current


def _first_resolved_value(raw_config: Mapping[str, Any], paths: Sequence[PathSpec]) -> Any:
    """Return the value at the first candidate path that exists."""
    for path in paths:
        if not path:
            continue
        parent = _get_nested(raw_config, path[:-1])
        if isinstance(parent, Mapping) and path[-1] in parent:
            return parent[path[-1]]
    return None


def validate_config(
    raw_config: Dict[str, Any],
    config_path: str,
    modules: Sequence[str] = ("inputs", "assumptions"),
) -> None:
    """
    Validate a raw scenario config against the registered field specs.

    Args:
        raw_config: The configuration dict loaded from YAML/JSON.
        config_path: Identifier used in error messages (usually the file path).
        modules: Logical module names, e.g. ["inputs", "assumptions"].

    Raises:
        ConfigValidationError: if any error-severity field is missing or
            fails its validator. All failures are listed in one message.
    """
    for m in modules:
        _ensure_module_registered(m)

    specs = []
    for m in modules:
        specs.extend(get_required_fields(m))

    if not specs:
        return

    failed: List[str] = []
    details: List[str] = []

    for spec in specs:
        if spec.severity.lower() != "error":
            continue

        val = _first_resolved_value(raw_config, spec.paths)
        ok = True

        if spec.required and val is None:
            ok = False
        elif spec.validator is not None:
            try:
                ok = bool(spec.validator(val))
            except (TypeError, ValueError):
                ok = False

        if not ok:
            path_labels = [".".join(p) for p in spec.paths] or ["<no paths registered>"]
            failed.append(spec.name)
            details.append(f"{spec.name} (paths: {', '.join(path_labels)})")

    if details:
        raise ConfigValidationError(
            f"Config '{config_path}' is missing or has invalid required fields: "
            f"{'; '.join(sorted(details))}",
            fields=failed,
        )


__all__ = [
    "ConfigValidationError",
    "validate_config",
]

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

ValidatorFn = Callable[[Any], bool]
PathSpec = Tuple[str, ...]

_SCHEMA_COLUMNS = [
    "module",
    "name",
    "path_candidates",
    "required",
    "severity",
    "description",
]


@dataclass(frozen=True)
class RequiredFieldSpec:
    """
    Description of a scenario-config field a module reads.

    Attributes
    ----------
    module:
        Logical owner ("inputs", "assumptions").
    name:
        Logical key ("investment_cost", "wacc", ...).
    paths:
        Candidate config paths tried in order, e.g.
        ("inputs", "investment_cost") then ("investment_cost",).
    required:
        True = the field must be present.
    severity:
        "error" or "warning"; only errors block validation.
    description:
        Human-friendly explanation used in schema dumps.
    validator:
        Optional predicate called with the resolved value (None when the
        field is absent) that returns True when the value is acceptable.
    """

    module: str
    name: str
    paths: Sequence[PathSpec]
    required: bool = True
    severity: str = "error"
    description: str = ""
    validator: Optional[ValidatorFn] = field(default=None)


_REGISTRY: Dict[str, List[RequiredFieldSpec]] = {}


def register_required_fields(
    module: str,
    specs: Iterable[RequiredFieldSpec],
) -> None:
    """
    Register field specs for a module. Called at import time by the
    module that reads those fields; re-registering a name replaces it.
    """
    bucket = _REGISTRY.setdefault(module, [])
    for spec in specs:
        bucket[:] = [s for s in bucket if s.name != spec.name]
        bucket.append(spec)


def get_required_fields(module: Optional[str] = None) -> List[RequiredFieldSpec]:
    """All registered specs, optionally filtered by module."""
    if module is None:
        out: List[RequiredFieldSpec] = []
        for specs in _REGISTRY.values():
            out.extend(specs)
        return out
    return list(_REGISTRY.get(module, []))


def build_schema_dataframe() -> pd.DataFrame:
    """
    Flatten the registry into a DataFrame, one row per field, sorted by
    module then name. Handy for documenting what a scenario file accepts.
    """
    rows: List[Dict[str, Any]] = [
        {
            "module": spec.module,
            "name": spec.name,
            "path_candidates": [".".join(p) for p in spec.paths],
            "required": spec.required,
            "severity": spec.severity,
            "description": spec.description,
        }
        for spec in get_required_fields()
    ]

    if not rows:
        return pd.DataFrame(columns=_SCHEMA_COLUMNS)

    return pd.DataFrame(rows).sort_values(["module", "name"]).reset_index(drop=True)


__all__ = [
    "RequiredFieldSpec",
    "register_required_fields",
    "get_required_fields",
    "build_schema_dataframe",
    "ValidatorFn",
    "PathSpec",
]

"""Assumption set for the feasibility model.

The rates below used to be module-level constants. They now live on a
frozen dataclass that is passed explicitly into every calculation, so a
scenario can run with a different WACC or tax rate without touching
shared state.

CONFIG:
-------
Scenario files may carry an optional ``assumptions`` mapping. Rates may
be given as decimals or percentages (values above 1.0 are read as
percentages):

  assumptions:
    wacc: 17.8             # or 0.178
    tax_rate: 11
    bad_debt_rate: 5
    marketing_rate: 30     # share of total revenue
    operational_rate: 20   # share of investment cost
    depreciation_years: 6
    otc_multiplier: 2.5    # one-time charge = N x monthly revenue
    cogs_rate: 70
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from analytics.config_schema import RequiredFieldSpec, register_required_fields
from finance.utils import as_float, as_int, pct_to_decimal

logger = logging.getLogger(__name__)

# Fields interpreted as rates (percent or decimal)
_RATE_FIELDS = (
    "wacc",
    "tax_rate",
    "bad_debt_rate",
    "marketing_rate",
    "operational_rate",
    "cogs_rate",
)


@dataclass(frozen=True)
class FeasibilityAssumptions:
    """Fixed constant set used by the projection and valuation engines.

    ``horizon_years`` is the last modeled period; periods run 0..horizon_years
    inclusive, so the default of 6 gives the seven-period table.
    """

    wacc: float = 0.178
    tax_rate: float = 0.11
    bad_debt_rate: float = 0.05
    marketing_rate: float = 0.30
    operational_rate: float = 0.20
    depreciation_years: int = 6
    otc_multiplier: float = 2.5
    cogs_rate: float = 0.70
    horizon_years: int = 6

    @property
    def periods(self) -> range:
        return range(self.horizon_years + 1)

    def with_overrides(self, **changes: Any) -> "FeasibilityAssumptions":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(
        cls, mapping: Optional[Mapping[str, Any]]
    ) -> "FeasibilityAssumptions":
        """Build assumptions from a config mapping, defaulting missing keys.

        Raises
        ------
        ScenarioConfigError
            If a known key holds a non-numeric value.
        """
        # Local import: scenario_loader imports this module
        from analytics.scenario_loader import ScenarioConfigError

        if not mapping:
            return cls()

        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}

        for key, raw in mapping.items():
            if key not in known:
                logger.debug("Ignoring unknown assumption key '%s'", key)
                continue

            if key in ("depreciation_years", "horizon_years"):
                value = as_int(raw)
                if value is None or value <= 0:
                    raise ScenarioConfigError(
                        f"assumptions.{key} must be a positive integer, got {raw!r}"
                    )
                kwargs[key] = value
                continue

            value_f = as_float(raw)
            if value_f is None:
                raise ScenarioConfigError(
                    f"assumptions.{key} must be numeric, got {raw!r}"
                )
            if key in _RATE_FIELDS:
                value_f = pct_to_decimal(value_f)
            kwargs[key] = value_f

        assumptions = cls(**kwargs)
        logger.debug("Resolved assumptions: %s", assumptions)
        return assumptions


DEFAULT_ASSUMPTIONS = FeasibilityAssumptions()


def _optional_number(value: Any) -> bool:
    return value is None or as_float(value) is not None


_ASSUMPTION_SPECS = [
    RequiredFieldSpec(
        module="assumptions",
        name=name,
        paths=[("assumptions", name)],
        required=False,
        description=f"Override for {name.replace('_', ' ')}",
        validator=_optional_number,
    )
    for name in (*_RATE_FIELDS, "depreciation_years", "otc_multiplier", "horizon_years")
]

register_required_fields("assumptions", _ASSUMPTION_SPECS)


__all__ = [
    "FeasibilityAssumptions",
    "DEFAULT_ASSUMPTIONS",
]

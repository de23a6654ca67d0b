"""NPV and Newton-Raphson IRR for periodic (annual) cash flows.

NPV(r)  = sum_{t=0..N} CF[t] / (1+r)^t
NPV'(r) = sum_{t=0..N} -t * CF[t] / (1+r)^(t+1)

The IRR solver never raises on numerical trouble. It returns an
IrrResult whose ``converged`` flag says whether ``rate`` is a real root;
callers decide what an unconverged rate is worth.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_GUESS = 0.10
DEFAULT_TOLERANCE = 1e-6
DEFAULT_MAX_ITERATIONS = 100

FAILURE_MAX_ITERATIONS = "max_iterations"
FAILURE_ZERO_DERIVATIVE = "zero_derivative"
FAILURE_NON_FINITE = "non_finite"


@dataclass(frozen=True)
class IrrResult:
    """Outcome of one IRR solve.

    Attributes
    ----------
    rate:
        Root as a decimal (0.21 = 21%). When ``converged`` is False this is
        the last iterate, or None if no finite iterate exists.
    converged:
        True when two successive iterates differ by less than the tolerance.
    iterations:
        Newton steps taken.
    failure:
        None on success, otherwise one of the FAILURE_* codes.
    """

    rate: Optional[float]
    converged: bool
    iterations: int
    failure: Optional[str] = None

    @property
    def percent(self) -> Optional[float]:
        return None if self.rate is None else self.rate * 100.0


# ============================================================================
# NPV
# ============================================================================


def npv(rate: float, cashflows: Sequence[float]) -> float:
    """Classic periodic Net Present Value.

    Parameters
    ----------
    rate : float
        Discount rate (decimal, e.g. 0.178 for 17.8%)
    cashflows : Sequence[float]
        Cashflow series starting at t=0

    Returns
    -------
    float
        Net Present Value

    Examples
    --------
    >>> npv(0.10, [-1000, 500, 500, 500])
    243.426...
    """
    r = float(rate)
    if r <= -1.0:
        r = -0.999999

    total = 0.0
    for t, cf in enumerate(cashflows):
        total += float(cf) / ((1.0 + r) ** t)
    return total


def _npv_and_derivative(rate: float, cashflows: Sequence[float]) -> Tuple[float, float]:
    value = 0.0
    slope = 0.0
    for t, cf in enumerate(cashflows):
        factor = (1.0 + rate) ** t
        value += cf / factor
        slope -= t * cf / (factor * (1.0 + rate))
    return value, slope


# ============================================================================
# IRR
# ============================================================================


def solve_irr(
    cashflows: Sequence[float],
    guess: float = DEFAULT_GUESS,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITERATIONS,
) -> IrrResult:
    """Internal Rate of Return by Newton-Raphson.

    Starts at ``guess`` and steps r <- r - NPV(r)/NPV'(r) until successive
    rates differ by less than ``tol``, for at most ``max_iter`` steps.

    Edge Cases
    ----------
    - NPV'(r) == 0: stops with failure "zero_derivative".
    - r reaches -1 or an iterate is inf/nan: stops with "non_finite".
    - No convergence within max_iter: returns the last iterate with
      failure "max_iterations".

    Examples
    --------
    >>> solve_irr([-1000, 500, 500, 500]).rate
    0.2343...
    """
    cfs = [float(x) for x in cashflows]
    r = float(guess)

    for i in range(1, max_iter + 1):
        if 1.0 + r == 0.0:
            logger.warning("IRR iterate hit -100%% at step %d", i)
            return IrrResult(rate=None, converged=False, iterations=i - 1, failure=FAILURE_NON_FINITE)

        try:
            value, slope = _npv_and_derivative(r, cfs)
        except (OverflowError, ZeroDivisionError):
            logger.warning("IRR evaluation overflowed at r=%r (step %d)", r, i)
            return IrrResult(rate=r, converged=False, iterations=i - 1, failure=FAILURE_NON_FINITE)

        if slope == 0.0:
            logger.warning("IRR derivative is zero at r=%r (step %d)", r, i)
            return IrrResult(rate=r, converged=False, iterations=i - 1, failure=FAILURE_ZERO_DERIVATIVE)

        new_r = r - value / slope
        if not math.isfinite(new_r):
            logger.warning("IRR iterate is not finite at step %d", i)
            return IrrResult(rate=r, converged=False, iterations=i, failure=FAILURE_NON_FINITE)

        if abs(new_r - r) < tol:
            logger.debug("IRR converged to %.8f after %d iterations", new_r, i)
            return IrrResult(rate=new_r, converged=True, iterations=i)

        r = new_r

    logger.warning(
        "IRR did not converge within %d iterations; last iterate %.6f",
        max_iter,
        r,
    )
    return IrrResult(rate=r, converged=False, iterations=max_iter, failure=FAILURE_MAX_ITERATIONS)


def irr(cashflows: Sequence[float]) -> Optional[float]:
    """Periodic IRR as a decimal, or None when the solver did not converge."""
    result = solve_irr(cashflows)
    return result.rate if result.converged else None


__all__ = [
    "IrrResult",
    "npv",
    "solve_irr",
    "irr",
    "FAILURE_MAX_ITERATIONS",
    "FAILURE_ZERO_DERIVATIVE",
    "FAILURE_NON_FINITE",
]

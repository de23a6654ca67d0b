"""Exception types raised by the feasibility engine."""

from __future__ import annotations

from typing import Sequence, Tuple


class FeasibilityError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(FeasibilityError, ValueError):
    """Raised when FinancialInputs break a precondition (non-positive cost, etc.)."""

    def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.fields: Tuple[str, ...] = tuple(fields)


class NumericalError(FeasibilityError, ArithmeticError):
    """Raised when a calculation would divide by zero or otherwise be undefined."""


__all__ = [
    "FeasibilityError",
    "InvalidInputError",
    "NumericalError",
]

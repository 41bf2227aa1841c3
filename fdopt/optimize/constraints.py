"""
Penalty-based handling of inequality and equality constraints.

Each constraint compares ``func(x)`` against a target value with one of the
operators ``<``, ``<=``, ``>``, ``>=``, ``=`` or ``!=``. Violations beyond the
constraint's tolerance are summed and multiplied by :data:`PENALTY_SLOPE`, so
that any infeasible point compares worse than every feasible one of ordinary
magnitude. Configuration mismatches are repaired with defaults and logged,
never raised, and a constraint function that fails while being evaluated
disables the penalty for that single point only.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

import numpy as np

from ..exceptions import ConfigurationError
from ..logging import get_logger
from .core import Array
from .utils import check_signature, is_real_scalar

ConstraintFunction = Callable[[Array], float]

OPERATORS = ("<", "<=", ">", ">=", "=", "!=")
DEFAULT_OPERATOR = "<="
DEFAULT_CONSTRAINT_TOLERANCE = 1e-3
PENALTY_SLOPE = 1e9
HARD_PENALTY = sys.float_info.max


class PenaltyModel(Protocol):
    """Anything able to turn a point into an additive objective penalty."""

    def evaluate_penalty(self, point: Array) -> float:
        ...


@dataclass(frozen=True)
class Constraint:
    """
    Descriptor of a single constraint ``func(x) <operator> value``.

    Args:
        func: Callable taking the point and returning a scalar.
        operator: One of :data:`OPERATORS`. Unknown operators never penalize.
        value: Target value compared against ``func(x)``.
        tolerance: Violations up to this magnitude are ignored.
    """

    func: ConstraintFunction
    operator: str = DEFAULT_OPERATOR
    value: float = 0.0
    tolerance: float = 1e-5


def constraint_violation(
    obtained: float, required: float, operator: str, tolerance: float
) -> float:
    """Return the violation magnitude of a single constraint (0.0 if satisfied)."""
    diff = obtained - required
    outside = abs(diff) > tolerance
    if operator == "<" and diff >= 0 and outside:
        return abs(diff)
    if operator == "<=" and diff > 0 and outside:
        return abs(diff)
    if operator == ">" and diff <= 0 and outside:
        return abs(diff)
    if operator == ">=" and diff < 0 and outside:
        return abs(diff)
    if operator == "=" and outside:
        return abs(diff)
    if operator == "!=" and abs(diff) < tolerance:
        return HARD_PENALTY
    return 0.0


class ConstraintSystem:
    """
    Fixed collection of constraints evaluated together as one penalty.

    The constraint functions are supplied once through :meth:`configure`;
    operators, targets and tolerances may be replaced afterwards.

    Args:
        logger: Logger receiving recovery messages. Defaults to the package
            logger for this module.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger if logger is not None else get_logger(__name__)
        self._functions: Optional[List[ConstraintFunction]] = None
        self._operators: List[str] = []
        self._targets: List[float] = []
        self._tolerances: List[float] = []

    def __len__(self) -> int:
        return 0 if self._functions is None else len(self._functions)

    @property
    def operators(self) -> tuple[str, ...]:
        return tuple(self._operators)

    @property
    def targets(self) -> tuple[float, ...]:
        return tuple(self._targets)

    @property
    def tolerances(self) -> tuple[float, ...]:
        return tuple(self._tolerances)

    def configure(
        self,
        functions: Sequence[ConstraintFunction],
        operators: Sequence[str],
        targets: Sequence[float],
        tolerances: Sequence[float],
    ) -> None:
        """Fix the constraint functions and apply operators, targets and tolerances."""
        if self._functions is not None:
            raise ConfigurationError("Constraint functions are already configured")
        functions = list(functions)
        if not functions:
            raise ConfigurationError("At least one constraint function is required")
        for index, func in enumerate(functions):
            check_signature(func, nargs=1, name=f"constraint {index}")
        self._functions = functions
        count = len(functions)
        self._operators = [DEFAULT_OPERATOR] * count
        self._targets = [0.0] * count
        self._tolerances = [DEFAULT_CONSTRAINT_TOLERANCE] * count
        self.set_operators(operators)
        self.set_targets(targets)
        self.set_tolerances(tolerances)
        self._logger.info("Configured %d constraint(s)", count)

    def set_operators(self, operators: Sequence[str]) -> None:
        operators = list(operators)
        if len(operators) != len(self):
            self._logger.warning(
                "Length of operator list (%d) does not match number of constraints (%d); "
                "declaring all operators as '%s'",
                len(operators),
                len(self),
                DEFAULT_OPERATOR,
            )
            self._operators = [DEFAULT_OPERATOR] * len(self)
            return
        for operator in operators:
            if operator not in OPERATORS:
                self._logger.debug("Operator %r is not recognised and never penalizes", operator)
        self._operators = operators

    def set_tolerances(self, tolerances: Sequence[float]) -> None:
        tolerances = list(tolerances)
        valid = len(tolerances) == len(self) and all(is_real_scalar(t) for t in tolerances)
        if not valid:
            self._logger.warning(
                "Tolerances %r do not match the %d constraint(s); declaring all tolerances as %g",
                tolerances,
                len(self),
                DEFAULT_CONSTRAINT_TOLERANCE,
            )
            self._tolerances = [DEFAULT_CONSTRAINT_TOLERANCE] * len(self)
            return
        self._tolerances = [float(t) for t in tolerances]

    def set_targets(self, targets: Sequence[float]) -> None:
        """Replace target values; invalid entries keep their previous value."""
        targets = list(targets)
        if len(targets) != len(self):
            self._logger.warning(
                "Got %d target value(s) for %d constraint(s); unmatched positions keep "
                "their previous value",
                len(targets),
                len(self),
            )
        for index, value in enumerate(targets[: len(self)]):
            if not is_real_scalar(value):
                self._logger.warning(
                    "Constraint value %r at position %d is not a real number; "
                    "skipping, keeping %g",
                    value,
                    index,
                    self._targets[index],
                )
                continue
            self._targets[index] = float(value)

    def _violations(self, point: Array) -> List[float]:
        if self._functions is None:
            return []
        return [
            constraint_violation(float(func(point)), target, operator, tolerance)
            for func, target, operator, tolerance in zip(
                self._functions, self._targets, self._operators, self._tolerances
            )
        ]

    def violations(self, point: Array) -> Array:
        """Per-constraint violation magnitudes at ``point``."""
        return np.array(self._violations(point), dtype=float)

    def evaluate_penalty(self, point: Array) -> float:
        """Scaled sum of violations, or 0.0 if any constraint fails to evaluate."""
        if self._functions is None:
            return 0.0
        try:
            total = sum(self._violations(point))
        except Exception as exc:
            self._logger.warning(
                "Error while calculating constraint penalty (%s: %s); "
                "ignoring constraints for this point",
                type(exc).__name__,
                exc,
            )
            return 0.0
        return PENALTY_SLOPE * total


__all__ = [
    "Constraint",
    "ConstraintSystem",
    "DEFAULT_CONSTRAINT_TOLERANCE",
    "DEFAULT_OPERATOR",
    "HARD_PENALTY",
    "OPERATORS",
    "PENALTY_SLOPE",
    "PenaltyModel",
    "constraint_violation",
]

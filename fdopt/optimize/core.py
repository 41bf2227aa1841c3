"""Core interfaces shared by the finite-difference optimizer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List

import numpy as np

from ..exceptions import ConfigurationError

Array = np.ndarray
Objective = Callable[[Array], float]

DEFAULT_MAX_EVAL = 1000
DEFAULT_TOLERANCE = 1e-5
DEFAULT_LEARNING_RATE = 1.0
DEFAULT_FINITE_DIFFERENCE_STEP = 1e-3

# Learning rate restored whenever a derivative exceeds its historical maximum.
LEARNING_RATE_RESET = 1.0
# Live tolerance before the first accepted improvement.
INITIAL_LIVE_TOLERANCE = 2e-3


class Status(Enum):
    """Lifecycle of an optimization engine."""

    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    FAILED = "failed"


def check_positive(value: float, name: str) -> float:
    """Return ``value`` as a float, rejecting non-finite or non-positive input."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a real number, got {value!r}") from exc
    if not math.isfinite(number) or number <= 0.0:
        raise ConfigurationError(f"{name} must be finite and positive, got {value!r}")
    return number


def check_budget(value: int) -> int:
    """Return ``value`` as an int, rejecting budgets smaller than one."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError(f"max_eval must be an integer, got {value!r}")
    if value < 1:
        raise ConfigurationError(f"max_eval must be at least 1, got {value}")
    return int(value)


@dataclass(frozen=True)
class DescentConfig:
    """
    Configuration for :class:`~fdopt.optimize.gradient.GradientDescent`.

    Args:
        max_eval: Outer-iteration budget. Defaults to 1000.
        tolerance: Convergence tolerance, also the floor for step scales.
            Defaults to 1e-5.
        learning_rate: Initial learning rate. Defaults to 1.0.
        finite_difference_step: Relative perturbation used for derivative
            estimates. Defaults to 1e-3.
        classic: Use fixed backtracking instead of the secant-scaled step.
        derivative_scaling: Scale each step by the observed derivative
            magnitude relative to its historical maximum.
    """

    max_eval: int = DEFAULT_MAX_EVAL
    tolerance: float = DEFAULT_TOLERANCE
    learning_rate: float = DEFAULT_LEARNING_RATE
    finite_difference_step: float = DEFAULT_FINITE_DIFFERENCE_STEP
    classic: bool = False
    derivative_scaling: bool = False

    def __post_init__(self) -> None:
        check_budget(self.max_eval)
        check_positive(self.tolerance, "tolerance")
        check_positive(self.learning_rate, "learning_rate")
        check_positive(self.finite_difference_step, "finite_difference_step")


@dataclass
class OptimizeResult:
    """Result object returned by :func:`~fdopt.optimize.gradient.gradient_descent`."""

    x: Array
    fun: float
    nit: int
    nfev: int
    success: bool
    status: Status
    message: str
    learning_rate: float
    history: List[Array] = field(default_factory=list)


__all__ = [
    "Array",
    "DEFAULT_FINITE_DIFFERENCE_STEP",
    "DEFAULT_LEARNING_RATE",
    "DEFAULT_MAX_EVAL",
    "DEFAULT_TOLERANCE",
    "DescentConfig",
    "INITIAL_LIVE_TOLERANCE",
    "LEARNING_RATE_RESET",
    "Objective",
    "OptimizeResult",
    "Status",
    "check_budget",
    "check_positive",
]

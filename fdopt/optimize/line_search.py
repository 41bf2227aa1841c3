"""Step-size selection: fixed-decay backtracking and a secant learning-rate search."""

from __future__ import annotations

import math
from typing import Optional

from ..exceptions import LineSearchError
from .core import Array, Objective
from .utils import project_box


def backtracking_step(
    f: Objective,
    x: Array,
    fx: float,
    derivatives: Array,
    scales: Array,
    learning_rate: float,
    lower: Optional[Array] = None,
    upper: Optional[Array] = None,
    decay: float = 0.99,
    max_attempts: int = 1000,
) -> tuple[Array, float, float]:
    """Shrink the learning rate until a bounds-projected step does not increase ``f``.

    Returns the accepted point, its value and the learning rate that produced
    it. Raises :class:`~fdopt.exceptions.LineSearchError` when ``max_attempts``
    candidates in a row are worse than ``fx``.
    """
    if not (0 < decay < 1):
        raise ValueError("decay must lie in (0, 1)")
    rate = float(learning_rate)
    for _ in range(max_attempts):
        candidate = project_box(x - derivatives * rate * scales, lower, upper)
        value = f(candidate)
        if value <= fx:
            return candidate, value, rate
        rate *= decay
    raise LineSearchError(
        f"Cannot find next point using back-tracking: {max_attempts} attempts "
        f"without improvement (learning rate reached {rate:.3g})"
    )


def secant_learning_rate(
    f: Objective,
    x: Array,
    derivatives: Array,
    scales: Array,
    current_residual: float,
    required_value: float,
    tol: float = 1e-3,
    maxiter: int = 100,
) -> float:
    """Find ``r`` with ``f(x - r * scales * derivatives) == required_value``.

    The secant iteration starts from the rates 0 and -0.5; ``current_residual``
    is the residual already known at rate 0. Candidate points are not
    projected onto any bounds, and the returned rate is unconstrained (it may
    be negative).
    """

    def residual(rate: float) -> float:
        return f(x - rate * scales * derivatives) - required_value

    current_rate = 0.0
    new_rate = -0.5
    current_val = float(current_residual)
    for _ in range(maxiter):
        new_val = residual(new_rate)
        denominator = new_val - current_val
        if denominator == 0.0 or not math.isfinite(denominator):
            break
        current_rate, new_rate = (
            new_rate,
            new_rate - new_val * (new_rate - current_rate) / denominator,
        )
        current_val = new_val
        if abs(new_rate - current_rate) <= tol:
            break
    return new_rate


__all__ = ["backtracking_step", "secant_learning_rate"]

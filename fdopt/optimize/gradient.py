"""Finite-difference gradient descent with backtracking or secant-scaled steps."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import numpy as np

from ..exceptions import ConfigurationError, ConvergenceError, LineSearchError
from ..logging import get_logger
from .constraints import Constraint, ConstraintSystem
from .core import (
    INITIAL_LIVE_TOLERANCE,
    LEARNING_RATE_RESET,
    Array,
    DescentConfig,
    Objective,
    OptimizeResult,
    Status,
    check_budget,
    check_positive,
)
from .derivatives import forward_difference, scale_steps, update_highest
from .evaluator import ObjectiveEvaluator
from .line_search import backtracking_step, secant_learning_rate
from .utils import as_point, point_distance, project_box

MAX_BACKTRACKING_ATTEMPTS = 1000
BACKTRACKING_DECAY = 0.99


class GradientDescent:
    """
    Minimize a scalar objective of a fixed number of continuous variables.

    Derivatives are estimated with relative forward differences. Each outer
    iteration takes one step, either with classic backtracking (the learning
    rate decays by 1% until the step improves the objective) or, by default,
    with a single secant-corrected retry when the first trial step is worse.
    Steps are projected onto the box bounds; constraints enter through a
    penalty added to every objective evaluation.

    Args:
        fun: Objective taking a 1-D array and returning a real scalar.
        x0: Initial guess. Its length fixes the dimensionality.
        config: Initial settings. Defaults to :class:`DescentConfig()`.
        logger: Logger for progress and recovered faults. Defaults to the
            package logger for this module.
        history: Record every iterate in :attr:`history`.

    Raises:
        ConfigurationError: If ``fun`` cannot be called with one point, or
            does not return a real scalar at ``x0``.

    Example:
        >>> import numpy as np
        >>> engine = GradientDescent(lambda x: float(np.sum((x - 1.0) ** 2) / 4), [3.0, -2.0])
        >>> value, point = engine.run()
    """

    def __init__(
        self,
        fun: Objective,
        x0: Sequence[float] | Array,
        config: Optional[DescentConfig] = None,
        logger: Optional[logging.Logger] = None,
        history: bool = False,
    ) -> None:
        config = config if config is not None else DescentConfig()
        self._logger = logger if logger is not None else get_logger(__name__)
        self._evaluate = ObjectiveEvaluator(fun, logger=self._logger)
        self._x = as_point(x0, name="initial guess")
        self._dim = self._x.size
        self._previous = self._x.copy()
        self._fx = self._evaluate(self._x, validate=True)

        self._max_eval = config.max_eval
        self._tolerance = config.tolerance
        self._learning_rate = config.learning_rate
        self._fd_step = config.finite_difference_step
        self._classic = config.classic
        self._derivative_scaling = config.derivative_scaling

        self._lower = np.full(self._dim, -np.inf)
        self._upper = np.full(self._dim, np.inf)
        self._step_scales = np.ones(self._dim)
        self._derivatives = np.zeros(self._dim)
        self._highest = np.zeros(self._dim)
        self._live_tolerance = INITIAL_LIVE_TOLERANCE
        self._constraints: Optional[ConstraintSystem] = None
        self._first_iteration = True
        self._nit = 0
        self._status = Status.INITIALIZED
        self._record = history
        self._history: list[Array] = [self._x.copy()] if history else []
        self._logger.info("Gradient descent instance created for %d variable(s)", self._dim)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    @property
    def status(self) -> Status:
        return self._status

    @property
    def x(self) -> Array:
        return self._x.copy()

    @property
    def fun(self) -> float:
        return self._fx

    @property
    def nfev(self) -> int:
        """Total number of objective evaluations, probes included."""
        return self._evaluate.nfev

    @property
    def nit(self) -> int:
        return self._nit

    @property
    def max_eval(self) -> int:
        return self._max_eval

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    @property
    def finite_difference_step(self) -> float:
        return self._fd_step

    @property
    def live_tolerance(self) -> float:
        return self._live_tolerance

    @property
    def derivatives(self) -> Array:
        return self._derivatives.copy()

    @property
    def highest_derivatives(self) -> Array:
        return self._highest.copy()

    @property
    def step_scales(self) -> Array:
        return self._step_scales.copy()

    @property
    def lower_bounds(self) -> Array:
        return self._lower.copy()

    @property
    def upper_bounds(self) -> Array:
        return self._upper.copy()

    @property
    def classic(self) -> bool:
        return self._classic

    @property
    def derivative_scaling(self) -> bool:
        return self._derivative_scaling

    @property
    def constraints_active(self) -> bool:
        return self._evaluate.constraints_active

    @property
    def history(self) -> list[Array]:
        return [point.copy() for point in self._history]

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def _ensure_configurable(self) -> None:
        if self._status is not Status.INITIALIZED:
            raise RuntimeError(
                f"Optimizer can only be configured before run(); status is {self._status.value}"
            )

    def set_max_eval(self, max_eval: int) -> None:
        self._ensure_configurable()
        self._max_eval = check_budget(max_eval)

    def set_tolerance(self, tolerance: float) -> None:
        self._ensure_configurable()
        self._tolerance = check_positive(tolerance, "tolerance")

    def set_initial_learning_rate(self, learning_rate: float) -> None:
        self._ensure_configurable()
        self._learning_rate = check_positive(learning_rate, "learning_rate")

    def set_finite_difference_step(self, step: float) -> None:
        self._ensure_configurable()
        self._fd_step = check_positive(step, "finite_difference_step")

    def _check_point_bounds(self, point: Array, lower: Array, upper: Array) -> None:
        outside = (point < lower) | (point > upper)
        if outside.any():
            dims = np.flatnonzero(outside).tolist()
            raise ConfigurationError(
                f"Initial guess is out-of-bounds in dimension(s) {dims}; "
                "use set_initial_guess() or widen the bounds"
            )

    def set_lower_bounds(self, lower: Sequence[float] | Array) -> None:
        """Set lower bounds; the current initial guess must satisfy them."""
        self._ensure_configurable()
        lower = as_point(lower, dim=self._dim, name="lower bounds")
        self._check_point_bounds(self._x, lower, self._upper)
        self._lower = lower
        self._logger.info("Lower bounds set")

    def set_upper_bounds(self, upper: Sequence[float] | Array) -> None:
        """Set upper bounds; the current initial guess must satisfy them."""
        self._ensure_configurable()
        upper = as_point(upper, dim=self._dim, name="upper bounds")
        self._check_point_bounds(self._x, self._lower, upper)
        self._upper = upper
        self._logger.info("Upper bounds set")

    def set_initial_guess(self, x0: Sequence[float] | Array) -> None:
        """Replace the initial guess; it must lie within the current bounds."""
        self._ensure_configurable()
        point = as_point(x0, dim=self._dim, name="initial guess")
        self._check_point_bounds(point, self._lower, self._upper)
        self._x = point
        self._previous = point.copy()
        self._fx = self._evaluate(point, validate=True)
        if self._record:
            self._history = [point.copy()]

    def toggle_classic_algorithm(self) -> bool:
        """Switch between classic backtracking and the secant-scaled step."""
        self._ensure_configurable()
        self._classic = not self._classic
        if self._classic:
            self._logger.info("Using classic gradient descent with backtracking")
        else:
            self._logger.info("Using secant learning-rate scaling")
        return self._classic

    def toggle_derivative_scaling(self) -> bool:
        """Switch derivative-based step scaling on or off."""
        self._ensure_configurable()
        self._derivative_scaling = not self._derivative_scaling
        if self._derivative_scaling:
            self._logger.info("Using derivative based step scaling")
        else:
            self._logger.info("Not using derivative based step scaling")
        return self._derivative_scaling

    def add_constraints(self, *constraints: Constraint) -> None:
        """Penalize violations of ``constraints`` in every objective evaluation."""
        self._ensure_configurable()
        if not constraints:
            raise ConfigurationError("add_constraints() requires at least one constraint")
        if self._constraints is not None:
            raise ConfigurationError("Constraints have already been added")
        system = ConstraintSystem(logger=self._logger)
        system.configure(
            [c.func for c in constraints],
            [c.operator for c in constraints],
            [c.value for c in constraints],
            [c.tolerance for c in constraints],
        )
        self._constraints = system
        self._evaluate.attach(system)
        self._fx = self._evaluate(self._x)
        self._logger.info("Constraints on: added %d constraint(s)", len(system))

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------
    def _next_point(self, base: Array) -> Array:
        candidate = base - self._derivatives * self._learning_rate * self._step_scales
        return project_box(candidate, self._lower, self._upper)

    def _update_derivatives(self) -> None:
        self._derivatives = forward_difference(
            self._evaluate,
            self._x,
            self._fx,
            self._fd_step,
            self._step_scales,
            logger=self._logger,
        )
        if update_highest(self._derivatives, self._highest):
            self._learning_rate = LEARNING_RATE_RESET
        if self._derivative_scaling and not self._first_iteration:
            self._step_scales = scale_steps(
                self._step_scales, self._derivatives, self._highest, self._tolerance
            )

    def _step_with_backtracking(self, base: Array) -> None:
        point, value, rate = backtracking_step(
            self._evaluate,
            base,
            self._fx,
            self._derivatives,
            self._step_scales,
            self._learning_rate,
            self._lower,
            self._upper,
            decay=BACKTRACKING_DECAY,
            max_attempts=MAX_BACKTRACKING_ATTEMPTS,
        )
        self._learning_rate = rate
        self._live_tolerance = abs(self._fx - value)
        self._x = point
        self._fx = value

    def _step_with_secant(self, base: Array) -> None:
        self._x = self._next_point(base)
        trial = self._evaluate(self._x)
        if trial <= self._fx:
            self._live_tolerance = abs(self._fx - trial)
            self._fx = trial
            return

        rate = secant_learning_rate(
            self._evaluate,
            self._x,
            self._derivatives,
            self._step_scales,
            trial - self._fx,
            self._fx,
        )
        adjusted = 0.5 * (self._learning_rate + rate)
        if not math.isfinite(adjusted) or adjusted <= 0.0:
            self._logger.warning(
                "Secant adjustment %.6g would make the learning rate %.6g; halving instead",
                rate,
                adjusted,
            )
            adjusted = 0.5 * self._learning_rate
        self._learning_rate = adjusted
        # The retaken step is accepted even if it is still worse.
        self._x = self._next_point(base)
        self._fx = self._evaluate(self._x)

    def _iterate(self) -> None:
        self._previous = self._x.copy()
        self._step_scales.fill(1.0)
        self._update_derivatives()
        if self._classic:
            self._step_with_backtracking(self._previous)
        else:
            self._step_with_secant(self._previous)
        self._first_iteration = False

    def convergence_metric(self) -> float:
        """Live tolerance plus the distance covered by the last step."""
        return self._live_tolerance + point_distance(self._x, self._previous)

    def run(self) -> tuple[float, Array]:
        """
        Iterate until convergence or until the iteration budget is spent.

        Returns:
            ``(value, point)`` at the final iterate.

        Raises:
            LineSearchError: If classic backtracking cannot improve the
                objective within a single step.
            ConvergenceError: If the budget is exhausted while the live
                tolerance still exceeds the configured tolerance.
            RuntimeError: If the optimizer has already been run.
        """
        if self._status is not Status.INITIALIZED:
            raise RuntimeError("Optimizer has already been run; create a new instance")
        self._status = Status.ITERATING
        self._logger.info(
            "Starting %s descent at f=%.6g",
            "classic" if self._classic else "secant-scaled",
            self._fx,
        )
        while True:
            self._logger.debug(
                "iteration @%d with optimal value %.10g at %s",
                self._nit,
                self._fx,
                np.array2string(self._x, precision=8),
            )
            try:
                self._iterate()
            except LineSearchError:
                self._status = Status.FAILED
                raise
            if self._record:
                self._history.append(self._x.copy())
            within_budget = self._nit < self._max_eval
            self._nit += 1
            if not (within_budget and self.convergence_metric() > self._tolerance):
                break

        if self._nit >= self._max_eval and self._live_tolerance > self._tolerance:
            self._status = Status.FAILED
            raise ConvergenceError(
                f"Gradient descent failed to converge after {self._nit} iterations "
                f"(live tolerance {self._live_tolerance:.3g} > {self._tolerance:.3g})"
            )
        self._status = Status.CONVERGED
        self._logger.info(
            "Converged with optimal value %.10g at %s after %d iterations (%d evaluations)",
            self._fx,
            np.array2string(self._x, precision=8),
            self._nit,
            self.nfev,
        )
        return self._fx, self._x.copy()


def gradient_descent(
    fun: Objective,
    x0: Sequence[float] | Array,
    config: Optional[DescentConfig] = None,
    lower: Optional[Sequence[float] | Array] = None,
    upper: Optional[Sequence[float] | Array] = None,
    constraints: Sequence[Constraint] = (),
    logger: Optional[logging.Logger] = None,
    history: bool = False,
) -> OptimizeResult:
    """Run :class:`GradientDescent` once and collect the outcome.

    Convergence failures are reported through ``success=False`` instead of
    being raised; configuration errors still raise.
    """
    engine = GradientDescent(fun, x0, config=config, logger=logger, history=history)
    if lower is not None:
        engine.set_lower_bounds(lower)
    if upper is not None:
        engine.set_upper_bounds(upper)
    if constraints:
        engine.add_constraints(*constraints)
    try:
        engine.run()
        message = "Tolerance satisfied."
    except ConvergenceError as exc:
        message = str(exc)
    return OptimizeResult(
        x=engine.x,
        fun=float(engine.fun),
        nit=engine.nit,
        nfev=engine.nfev,
        success=engine.status is Status.CONVERGED,
        status=engine.status,
        message=message,
        learning_rate=engine.learning_rate,
        history=engine.history,
    )


__all__ = ["GradientDescent", "gradient_descent"]

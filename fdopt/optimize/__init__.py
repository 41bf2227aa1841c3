"""Finite-difference gradient descent with bounds and penalty constraints.

Example
-------
>>> import numpy as np
>>> from fdopt.optimize import GradientDescent
>>> def bowl(x):
...     return 0.25 * float(np.sum((x - np.array([1.0, -2.0])) ** 2))
>>> engine = GradientDescent(bowl, [3.0, 1.5])
>>> engine.set_lower_bounds([-5.0, -5.0])
>>> engine.set_upper_bounds([5.0, 5.0])
>>> value, point = engine.run()
>>> bool(np.allclose(point, [1.0, -2.0], atol=1e-2))
True
"""

from .constraints import (
    OPERATORS,
    PENALTY_SLOPE,
    Constraint,
    ConstraintSystem,
    PenaltyModel,
    constraint_violation,
)
from .core import Array, DescentConfig, Objective, OptimizeResult, Status
from .derivatives import forward_difference, scale_steps, update_highest
from .evaluator import ObjectiveEvaluator
from .gradient import GradientDescent, gradient_descent
from .line_search import backtracking_step, secant_learning_rate
from .utils import as_point, as_scalar, check_signature, point_distance, project_box

__all__ = [
    "Array",
    "Constraint",
    "ConstraintSystem",
    "DescentConfig",
    "GradientDescent",
    "OPERATORS",
    "Objective",
    "ObjectiveEvaluator",
    "OptimizeResult",
    "PENALTY_SLOPE",
    "PenaltyModel",
    "Status",
    "as_point",
    "as_scalar",
    "backtracking_step",
    "check_signature",
    "constraint_violation",
    "forward_difference",
    "gradient_descent",
    "point_distance",
    "project_box",
    "scale_steps",
    "secant_learning_rate",
    "update_highest",
]

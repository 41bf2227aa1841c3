"""fdopt - finite-difference gradient descent for small continuous problems."""

__version__ = "0.1.0"

from .exceptions import ConfigurationError, ConvergenceError, FdoptError, LineSearchError
from .logging import configure_logging, get_logger, set_log_level
from .optimize import (
    Constraint,
    ConstraintSystem,
    DescentConfig,
    GradientDescent,
    OptimizeResult,
    Status,
    gradient_descent,
)

__all__ = [
    "ConfigurationError",
    "Constraint",
    "ConstraintSystem",
    "ConvergenceError",
    "DescentConfig",
    "FdoptError",
    "GradientDescent",
    "LineSearchError",
    "OptimizeResult",
    "Status",
    "__version__",
    "configure_logging",
    "gradient_descent",
    "get_logger",
    "set_log_level",
]

"""Exceptions raised within the fdopt library."""


class FdoptError(Exception):
    """Base class for all errors raised by fdopt."""


class ConfigurationError(FdoptError, ValueError):
    """Raised when an optimizer is configured with invalid inputs.

    Examples are an initial guess outside the supplied bounds, an objective
    that cannot be called with a single point, or a non-positive tolerance.
    """


class ConvergenceError(FdoptError, RuntimeError):
    """Raised when the evaluation budget is exhausted before convergence."""


class LineSearchError(ConvergenceError):
    """Raised when backtracking cannot find an improving point.

    This is a distinct convergence failure: the optimizer gave up within a
    single step, not at the end of its budget.
    """


__all__ = ["ConfigurationError", "ConvergenceError", "FdoptError", "LineSearchError"]

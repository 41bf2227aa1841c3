"""Counting wrapper around the user objective."""

from __future__ import annotations

import logging
from typing import Optional

from ..logging import get_logger
from .constraints import PenaltyModel
from .core import Array, Objective
from .utils import as_scalar, check_signature


class ObjectiveEvaluator:
    """
    Evaluate the objective and, when constraints are attached, its penalty.

    Every call is counted in :attr:`nfev`. An arithmetic fault inside the
    objective (``OverflowError``, ``ZeroDivisionError``, ``FloatingPointError``)
    is logged and reported as ``inf``, so that derivative probes and line
    searches see a non-finite value instead of an exception. Non-finite values
    returned by the objective are passed through unchanged. Any other
    exception propagates.
    """

    def __init__(
        self,
        fun: Objective,
        penalty: Optional[PenaltyModel] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fun = check_signature(fun, nargs=1, name="objective")
        self._penalty = penalty
        self._logger = logger if logger is not None else get_logger(__name__)
        self.nfev = 0

    @property
    def constraints_active(self) -> bool:
        return self._penalty is not None

    def attach(self, penalty: PenaltyModel) -> None:
        """Add ``penalty.evaluate_penalty(x)`` to every subsequent evaluation."""
        self._penalty = penalty

    def __call__(self, x: Array, validate: bool = False) -> float:
        """Return the (penalized) objective value at ``x``.

        With ``validate=True`` the raw objective value must be a real scalar,
        otherwise :class:`~fdopt.exceptions.ConfigurationError` is raised.
        """
        self.nfev += 1
        try:
            raw = self._fun(x)
        except ArithmeticError as exc:
            self._logger.warning(
                "Objective raised %s (%s) at %s; treating the value as inf",
                type(exc).__name__,
                exc,
                x,
            )
            return float("inf")
        value = as_scalar(raw, "objective") if validate else float(raw)
        if self._penalty is not None:
            value += self._penalty.evaluate_penalty(x)
        return value


__all__ = ["ObjectiveEvaluator"]

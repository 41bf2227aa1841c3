"""Finite-difference derivative estimates and derivative-driven step scaling.

Perturbations are relative: coordinate ``i`` moves by
``x[i] * step * scales[i]``, which keeps the estimate independent of the
coordinate's magnitude. A forward probe is used whenever it can be; when the
relative perturbation vanishes (zero coordinate) or the objective returns a
non-finite value at the probe, the estimate falls back to a backward
difference.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from ..logging import get_logger
from .core import Array, Objective

_logger = get_logger(__name__)


def _perturbation(coordinate: float, step: float, scale: float) -> tuple[float, bool]:
    """Return the perturbation size and whether it is relative to the coordinate."""
    delta = coordinate * step * scale
    if delta != 0.0 and math.isfinite(delta):
        return delta, True
    return step * scale, False


def forward_difference(
    fun: Objective,
    x: Array,
    fx: float,
    step: float,
    scales: Array,
    logger: Optional[logging.Logger] = None,
) -> Array:
    """
    Estimate the partial derivatives of ``fun`` at ``x``.

    Parameters
    ----------
    fun:
        Objective returning a scalar given a point.
    x:
        Point where the derivatives are estimated.
    fx:
        Objective value at ``x``.
    step:
        Relative finite-difference step.
    scales:
        Per-dimension multipliers applied to ``step``.
    logger:
        Receives a warning whenever the backward difference is used.

    Returns
    -------
    numpy.ndarray
        Derivative estimate, same shape as ``x``.
    """
    log = logger if logger is not None else _logger
    x = np.asarray(x, dtype=float)
    derivatives = np.zeros_like(x)
    for i in range(x.size):
        delta, relative = _perturbation(float(x[i]), step, float(scales[i]))
        if relative:
            probe = x.copy()
            probe[i] = x[i] + delta
            f_forward = fun(probe)
            if math.isfinite(f_forward):
                derivatives[i] = (f_forward - fx) / delta
                continue
            reason = f"non-finite objective value {f_forward}"
        else:
            reason = "zero coordinate"
        log.warning(
            "Forward difference unusable for dimension %d (%s); using backward difference instead",
            i,
            reason,
        )
        probe = x.copy()
        probe[i] = x[i] - delta
        f_backward = fun(probe)
        if math.isfinite(f_backward):
            derivatives[i] = (fx - f_backward) / delta
        else:
            log.warning(
                "Backward difference for dimension %d is also non-finite; derivative set to 0",
                i,
            )
    return derivatives


def update_highest(derivatives: Array, highest: Array) -> bool:
    """Record new per-dimension maxima of ``|derivatives|`` in ``highest``.

    Returns True if any dimension exceeded its previous maximum.
    """
    grown = np.abs(derivatives) > np.abs(highest)
    highest[grown] = derivatives[grown]
    return bool(grown.any())


def scale_steps(scales: Array, derivatives: Array, highest: Array, floor: float) -> Array:
    """Scale steps by ``sqrt(|d / d_max|)`` and keep them above ``floor``."""
    magnitude = np.abs(highest)
    ratio = np.divide(
        np.abs(derivatives), magnitude, out=np.zeros_like(magnitude), where=magnitude > 0
    )
    return np.maximum(scales * np.sqrt(ratio), floor)


__all__ = ["forward_difference", "scale_steps", "update_highest"]

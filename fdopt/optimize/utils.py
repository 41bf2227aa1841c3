"""Utility helpers for validating callables and manipulating points.

The optimizer treats user functions as opaque callables taking one point.
These checks run once, when a function is handed to the optimizer, so that an
incompatible function is rejected before any iteration starts.
"""

from __future__ import annotations

import inspect
import numbers
from typing import Callable, Optional, Sequence

import numpy as np

from ..exceptions import ConfigurationError
from .core import Array


def check_signature(func: Callable, nargs: int = 1, name: str = "function") -> Callable:
    """Ensure ``func`` can be called with ``nargs`` positional arguments.

    Callables whose signature cannot be introspected (C builtins, NumPy
    ufuncs) are accepted as they are.

    Raises
    ------
    ConfigurationError
        If ``func`` is not callable or cannot bind ``nargs`` arguments.
    """
    if not callable(func):
        raise ConfigurationError(f"{name} must be callable, got {type(func).__name__}")
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return func
    try:
        sig.bind(*([None] * nargs))
    except TypeError as exc:
        raise ConfigurationError(
            f"{name} must accept exactly {nargs} positional argument(s): {exc}"
        ) from exc
    return func


def is_real_scalar(value: object) -> bool:
    """Return True for real Python/NumPy scalars and 0-d real arrays."""
    if isinstance(value, bool):
        return False
    if isinstance(value, numbers.Real):
        return True
    if isinstance(value, np.ndarray):
        return value.shape == () and np.isrealobj(value) and value.dtype.kind in "fiu"
    return False


def as_scalar(value: object, name: str = "value") -> float:
    """Convert ``value`` to ``float``, rejecting anything but a real scalar."""
    if not is_real_scalar(value):
        raise ConfigurationError(
            f"{name} must return a real scalar, got {type(value).__name__}"
        )
    return float(value)


def as_point(
    values: Sequence[float] | Array, dim: Optional[int] = None, name: str = "point"
) -> Array:
    """Coerce ``values`` to a 1-D float array of the expected dimensionality."""
    try:
        point = np.array(values, dtype=float, copy=True).reshape(-1)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a sequence of real numbers") from exc
    if point.size == 0:
        raise ConfigurationError(f"{name} must have at least one coordinate")
    if dim is not None and point.size != dim:
        raise ConfigurationError(
            f"{name} must have {dim} coordinates, got {point.size}"
        )
    if np.isnan(point).any():
        raise ConfigurationError(f"{name} must not contain NaN")
    return point


def project_box(x: Array, lower: Optional[Array], upper: Optional[Array]) -> Array:
    """
    Project ``x`` onto the box defined by ``lower`` and ``upper``.

    Either bound may be ``None`` (interpreted as ``-inf``/``+inf``), in which
    case the corresponding side is left unchanged.
    """
    projected = np.array(x, dtype=float, copy=True)
    if lower is not None:
        projected = np.maximum(projected, lower)
    if upper is not None:
        projected = np.minimum(projected, upper)
    return projected


def point_distance(a: Array, b: Array) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))


__all__ = [
    "as_point",
    "as_scalar",
    "check_signature",
    "is_real_scalar",
    "point_distance",
    "project_box",
]

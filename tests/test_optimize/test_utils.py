import functools

import numpy as np
import pytest

from fdopt.exceptions import ConfigurationError
from fdopt.optimize.utils import (
    as_point,
    as_scalar,
    check_signature,
    point_distance,
    project_box,
)


def test_check_signature_accepts_single_point_callables():
    def objective(x: np.ndarray) -> float:
        return float(np.sum(x))

    def with_default(x, scale=2.0):
        return scale * x[0]

    assert check_signature(objective) is objective
    check_signature(with_default)
    check_signature(lambda *args: 0.0)
    check_signature(functools.partial(with_default, scale=3.0))
    check_signature(np.sum)


def test_check_signature_rejects_wrong_arity():
    with pytest.raises(ConfigurationError):
        check_signature(lambda x, y: x + y, name="objective")
    with pytest.raises(ConfigurationError):
        check_signature(lambda: 0.0)


def test_check_signature_rejects_non_callable():
    with pytest.raises(ConfigurationError):
        check_signature(3.0)


def test_as_scalar_accepts_real_scalars_only():
    assert as_scalar(2) == 2.0
    assert as_scalar(np.float32(1.5)) == 1.5
    assert as_scalar(np.array(4.0)) == 4.0
    for bad in (np.array([1.0, 2.0]), "1.0", None, 1 + 2j, True):
        with pytest.raises(ConfigurationError):
            as_scalar(bad)


def test_as_point_validates_shape_and_values():
    point = as_point([1, 2, 3])
    assert point.dtype == float
    assert point.shape == (3,)
    with pytest.raises(ConfigurationError):
        as_point([1.0, 2.0], dim=3)
    with pytest.raises(ConfigurationError):
        as_point([])
    with pytest.raises(ConfigurationError):
        as_point([1.0, np.nan])
    assert np.isinf(as_point([-np.inf, 1.0])[0])


def test_as_point_copies_input():
    source = np.array([1.0, 2.0])
    point = as_point(source)
    point[0] = 5.0
    assert source[0] == 1.0


def test_project_box_clamps_each_coordinate():
    lower = np.array([-1.0, 0.0, -np.inf])
    upper = np.array([1.0, 0.5, 2.0])
    projected = project_box(np.array([-3.0, 0.25, 7.0]), lower, upper)
    assert np.allclose(projected, [-1.0, 0.25, 2.0])
    assert np.allclose(project_box(np.array([5.0]), None, None), [5.0])


def test_point_distance_is_euclidean():
    assert point_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == pytest.approx(5.0)

import numpy as np
import pytest

from fdopt.exceptions import ConfigurationError, ConvergenceError
from fdopt.optimize import (
    Constraint,
    DescentConfig,
    GradientDescent,
    Status,
    gradient_descent,
)

CENTER = np.array([1.0, -2.0])


def bowl(x: np.ndarray) -> float:
    return float(0.25 * np.sum((x - CENTER) ** 2))


def far_bowl(x: np.ndarray) -> float:
    return float(0.25 * np.sum((x - np.array([5.0, -5.0])) ** 2))


def test_secant_descent_converges_on_bowl():
    engine = GradientDescent(bowl, [3.0, 1.5])
    value, point = engine.run()
    assert engine.status is Status.CONVERGED
    assert np.allclose(point, CENTER, atol=5e-3)
    assert value < 1e-4
    assert engine.nit < engine.max_eval


def test_classic_descent_converges_on_bowl():
    engine = GradientDescent(bowl, [3.0, 1.5], config=DescentConfig(classic=True))
    value, point = engine.run()
    assert engine.classic
    assert np.allclose(point, CENTER, atol=5e-3)


def test_derivative_scaling_still_converges():
    engine = GradientDescent(bowl, [3.0, 1.5])
    engine.toggle_derivative_scaling()
    engine.set_tolerance(1e-4)
    value, point = engine.run()
    assert engine.status is Status.CONVERGED
    assert np.allclose(point, CENTER, atol=2e-2)
    assert np.all(engine.step_scales >= engine.tolerance)


def test_learning_rate_stays_at_reset_value_on_bowl():
    engine = GradientDescent(bowl, [3.0, 1.5])
    engine.run()
    assert engine.learning_rate == 1.0
    assert np.all(np.abs(engine.highest_derivatives) >= np.abs(engine.derivatives))


def test_bounds_are_respected():
    engine = GradientDescent(far_bowl, [0.5, -0.5], history=True)
    engine.set_lower_bounds([-1.0, -1.0])
    engine.set_upper_bounds([1.0, 1.0])
    value, point = engine.run()
    assert np.allclose(point, [1.0, -1.0])
    assert value == pytest.approx(far_bowl(np.array([1.0, -1.0])))
    for x in engine.history:
        assert np.all(x >= -1.0) and np.all(x <= 1.0)


def test_default_bounds_are_infinite():
    engine = GradientDescent(bowl, [3.0, 1.5])
    assert np.all(np.isneginf(engine.lower_bounds))
    assert np.all(np.isposinf(engine.upper_bounds))


def test_out_of_bounds_guess_rejected():
    engine = GradientDescent(bowl, [3.0, 1.5])
    with pytest.raises(ConfigurationError, match=r"dimension\(s\) \[0\]"):
        engine.set_upper_bounds([2.0, 2.0])
    with pytest.raises(ConfigurationError, match=r"\[1\]"):
        engine.set_lower_bounds([0.0, 2.0])
    assert np.all(np.isposinf(engine.upper_bounds))


def test_initial_guess_must_lie_within_bounds():
    engine = GradientDescent(bowl, [0.0, 0.0])
    engine.set_lower_bounds([-1.0, -1.0])
    with pytest.raises(ConfigurationError):
        engine.set_initial_guess([-2.0, 0.0])
    engine.set_initial_guess([0.5, 0.5])
    assert np.allclose(engine.x, [0.5, 0.5])
    assert engine.fun == pytest.approx(bowl(np.array([0.5, 0.5])))


def test_bound_dimension_mismatch_rejected():
    engine = GradientDescent(bowl, [3.0, 1.5])
    with pytest.raises(ConfigurationError):
        engine.set_lower_bounds([0.0, 0.0, 0.0])


def test_invalid_objectives_rejected():
    with pytest.raises(ConfigurationError):
        GradientDescent(lambda x, y: 0.0, [1.0, 2.0])
    with pytest.raises(ConfigurationError):
        GradientDescent(lambda x: x, [1.0, 2.0])


def test_invalid_settings_rejected():
    engine = GradientDescent(bowl, [3.0, 1.5])
    with pytest.raises(ConfigurationError):
        engine.set_max_eval(0)
    with pytest.raises(ConfigurationError):
        engine.set_tolerance(-1.0)
    with pytest.raises(ConfigurationError):
        engine.set_initial_learning_rate(float("nan"))
    with pytest.raises(ConfigurationError):
        engine.set_finite_difference_step(0.0)
    with pytest.raises(ConfigurationError):
        DescentConfig(max_eval=0)


def test_toggles_return_new_flag():
    engine = GradientDescent(bowl, [3.0, 1.5])
    assert engine.toggle_classic_algorithm() is True
    assert engine.toggle_classic_algorithm() is False
    assert engine.toggle_derivative_scaling() is True
    assert engine.derivative_scaling


def test_repeated_setters_are_idempotent():
    once = GradientDescent(bowl, [3.0, 1.5], history=True)
    once.set_tolerance(1e-4)
    once.set_initial_learning_rate(0.5)
    once.run()

    twice = GradientDescent(bowl, [3.0, 1.5], history=True)
    for _ in range(2):
        twice.set_tolerance(1e-4)
        twice.set_initial_learning_rate(0.5)
    twice.run()

    assert len(once.history) == len(twice.history)
    for a, b in zip(once.history, twice.history):
        assert np.array_equal(a, b)


def test_budget_exhaustion_raises():
    engine = GradientDescent(bowl, [3.0, 1.5])
    engine.set_max_eval(1)
    with pytest.raises(ConvergenceError, match="failed to converge"):
        engine.run()
    assert engine.status is Status.FAILED


def test_configuration_locked_after_run():
    engine = GradientDescent(bowl, [3.0, 1.5])
    engine.run()
    with pytest.raises(RuntimeError):
        engine.set_tolerance(1e-3)
    with pytest.raises(RuntimeError):
        engine.toggle_classic_algorithm()
    with pytest.raises(RuntimeError):
        engine.run()


def test_add_constraints_penalizes_current_value():
    engine = GradientDescent(bowl, [3.0, 1.5])
    base = engine.fun
    engine.add_constraints(Constraint(lambda x: x[0], "<=", 0.0))
    assert engine.constraints_active
    assert engine.fun == pytest.approx(base + 3e9)


def test_add_constraints_errors():
    engine = GradientDescent(bowl, [3.0, 1.5])
    with pytest.raises(ConfigurationError):
        engine.add_constraints()
    engine.add_constraints(Constraint(lambda x: x[0]))
    with pytest.raises(ConfigurationError):
        engine.add_constraints(Constraint(lambda x: x[1]))


def test_diagnostics_report_evaluations():
    engine = GradientDescent(bowl, [3.0, 1.5])
    assert engine.nfev == 1
    assert engine.nit == 0
    engine.run()
    assert engine.nit > 0
    assert engine.nfev > engine.nit
    assert engine.convergence_metric() <= engine.tolerance


def test_run_logs_progress(fdopt_caplog):
    engine = GradientDescent(bowl, [3.0, 1.5])
    engine.run()
    assert "iteration @0" in fdopt_caplog.text
    assert "Converged with optimal value" in fdopt_caplog.text


def test_gradient_descent_result():
    result = gradient_descent(bowl, [3.0, 1.5], lower=[-5.0, -5.0], upper=[5.0, 5.0], history=True)
    assert result.success
    assert result.status is Status.CONVERGED
    assert result.message == "Tolerance satisfied."
    assert np.allclose(result.x, CENTER, atol=5e-3)
    assert len(result.history) == result.nit + 1


def test_gradient_descent_reports_failure():
    result = gradient_descent(bowl, [3.0, 1.5], config=DescentConfig(max_eval=1))
    assert not result.success
    assert result.status is Status.FAILED
    assert "failed to converge" in result.message


def test_gradient_descent_applies_constraints_argument():
    always_violated = Constraint(lambda x: 1.0, "<=", 0.0, 1e-3)
    result = gradient_descent(bowl, [3.0, 1.5], constraints=[always_violated])
    assert result.fun >= 1e9
    assert result.fun == pytest.approx(1e9 + bowl(result.x))

"""Tests for epitreat.integrate — RK4 / solve_ivp with breakpoints."""

import numpy as np
import pytest

from epitreat.exceptions import NumericalError
from epitreat.integrate import integrate, rk4_step


# ─── Helpers ──────────────────────────────────────────────────────────

def _decay(t, y):
    return -y


def _window(t, y):
    """Unit rate inside the closed window [1, 2], zero outside."""
    return np.array([1.0 if 1.0 <= t <= 2.0 else 0.0])


# ─── Tests ────────────────────────────────────────────────────────────

class TestRK4:
    def test_step_exact_for_polynomial(self):
        y = rk4_step(lambda t, y: np.array([t]), 0.0, np.array([0.0]), 0.5)
        assert y[0] == pytest.approx(0.125)

    def test_exponential_decay(self):
        t = np.linspace(0.0, 2.0, 5)
        y = integrate(_decay, [1.0], t, max_step=0.1)
        np.testing.assert_allclose(y[:, 0], np.exp(-t), rtol=1e-5)

    def test_output_shape_and_initial_row(self):
        t = np.arange(0, 11, 1.0)
        y = integrate(_decay, [1.0, 2.0], t)
        assert y.shape == (11, 2)
        np.testing.assert_array_equal(y[0], [1.0, 2.0])

    def test_duplicate_times_repeat_sample(self):
        y = integrate(_decay, [1.0], [0.0, 1.0, 1.0, 2.0])
        assert y[1, 0] == y[2, 0]

    def test_single_time(self):
        y = integrate(_decay, [3.0], [5.0])
        np.testing.assert_array_equal(y, [[3.0]])

    def test_uneven_output_grid(self):
        t = np.array([0.0, 0.05, 0.37, 1.0])
        y = integrate(_decay, [1.0], t, max_step=0.1)
        np.testing.assert_allclose(y[:, 0], np.exp(-t), rtol=1e-5)


class TestBreakpoints:
    def test_window_integrates_to_its_width(self):
        # steps of 0.7 would straddle both edges without breakpoints
        y = integrate(_window, [0.0], [0.0, 3.0], breakpoints=(1.0, 2.0), max_step=0.7)
        assert y[-1, 0] == pytest.approx(1.0, abs=1e-12)

    def test_nothing_before_window(self):
        y = integrate(_window, [0.0], [0.0, 0.5, 1.0], breakpoints=(1.0, 2.0))
        np.testing.assert_array_equal(y[:, 0], [0.0, 0.0, 0.0])

    def test_half_window(self):
        y = integrate(_window, [0.0], [0.0, 1.5], breakpoints=(1.0, 2.0), max_step=0.3)
        assert y[-1, 0] == pytest.approx(0.5, abs=1e-12)

    def test_breakpoints_outside_span_ignored(self):
        y = integrate(_decay, [1.0], [0.0, 1.0], breakpoints=(-5.0, 7.0))
        assert y[-1, 0] == pytest.approx(np.exp(-1.0), rel=1e-5)

    @pytest.mark.parametrize("method", ["RK45", "DOP853", "LSODA"])
    def test_scipy_methods(self, method):
        t = np.array([0.0, 0.5, 1.0, 1.5, 2.0, 3.0])
        y = integrate(_window, [0.0], t, breakpoints=(1.0, 2.0), method=method)
        np.testing.assert_allclose(y[:, 0], [0.0, 0.0, 0.0, 0.5, 1.0, 1.0], atol=1e-7)


class TestErrors:
    def test_decreasing_times(self):
        with pytest.raises(ValueError):
            integrate(_decay, [1.0], [0.0, 2.0, 1.0])

    def test_empty_times(self):
        with pytest.raises(ValueError):
            integrate(_decay, [1.0], [])

    def test_bad_max_step(self):
        with pytest.raises(ValueError):
            integrate(_decay, [1.0], [0.0, 1.0], max_step=0.0)

    @pytest.mark.parametrize("method", ["FOO", "rk45", ""])
    def test_unknown_method(self, method):
        with pytest.raises(ValueError, match="unknown integration method"):
            integrate(_decay, [1.0], [0.0, 1.0], method=method)

    def test_rk4_name_case_insensitive(self):
        y = integrate(_decay, [1.0], [0.0, 1.0], method="rk4")
        assert y[-1, 0] == pytest.approx(np.exp(-1.0), rel=1e-5)

    def test_negative_state(self):
        with pytest.raises(NumericalError):
            integrate(lambda t, y: np.array([-1.0]), [0.5], [0.0, 1.0])

    def test_small_excursion_tolerated(self):
        y = integrate(lambda t, y: np.array([-1.0]), [0.5], [0.0, 0.5 + 1e-8], tol=1e-6)
        assert y[-1, 0] == pytest.approx(-1e-8, abs=1e-12)

    def test_upper_bound(self):
        with pytest.raises(NumericalError):
            integrate(lambda t, y: np.array([1.0]), [0.0], [0.0, 1.0], upper=[0.5])

    def test_non_finite(self):
        with pytest.raises(NumericalError):
            integrate(lambda t, y: np.array([np.nan]), [0.0], [0.0, 1.0])

    def test_numerical_error_is_runtime_error(self):
        with pytest.raises(RuntimeError):
            integrate(lambda t, y: np.array([-1.0]), [0.0], [0.0, 1.0])

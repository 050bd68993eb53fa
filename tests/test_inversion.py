import numpy as np
import pytest
from scipy.stats import gamma as gamma_dist

from gammamc.config import InferenceConfig
from gammamc.core import NonconvergentRootFind
from gammamc.inversion import GammaInverter, get_cdf_evaluator, list_cdf_evaluators


@pytest.mark.parametrize("alpha", [0.5, 1.0, 2.0, 5.0])
@pytest.mark.parametrize("u", [0.1, 0.5, 0.9])
def test_inverse_cdf_round_trip(alpha: float, u: float) -> None:
    inverter = GammaInverter()
    x = inverter.inverse_cdf(u, alpha)
    assert abs(inverter.cdf(x, alpha) - u) <= inverter.config.tolerance


def test_inverse_cdf_matches_scipy_quantile() -> None:
    inverter = GammaInverter()
    reference = gamma_dist.ppf(0.5, 2.0)
    x = inverter.inverse_cdf(0.5, 2.0)
    # A CDF tolerance of t moves x by at most about t / pdf(x).
    bound = 1.1 * inverter.config.tolerance / gamma_dist.pdf(reference, 2.0)
    assert abs(x - reference) <= bound


def test_inverse_cdf_with_tight_tolerance_within_1e5() -> None:
    inverter = GammaInverter(InferenceConfig(tolerance=1e-6))
    assert inverter.inverse_cdf(0.5, 2.0) == pytest.approx(gamma_dist.ppf(0.5, 2.0), abs=1e-5)


def test_inverse_cdf_is_increasing_in_u() -> None:
    inverter = GammaInverter()
    grid = np.linspace(0.05, 0.95, 19)
    values = inverter.inverse_cdf_many(grid, 2.0)
    assert np.all(np.diff(values) > 0)


def test_numeric_integration_matches_closed_form() -> None:
    closed = GammaInverter(InferenceConfig(evaluation_method="closed-form"))
    numeric = GammaInverter(InferenceConfig(evaluation_method="numeric-integration"))
    assert numeric.cdf(1.3, 2.0) == pytest.approx(closed.cdf(1.3, 2.0), abs=1e-8)
    assert numeric.inverse_cdf(0.3, 2.0) == pytest.approx(closed.inverse_cdf(0.3, 2.0), abs=1e-3)


def test_cdf_evaluator_registry() -> None:
    assert list(list_cdf_evaluators()) == ["closed-form", "numeric-integration"]
    assert get_cdf_evaluator("Closed-Form")(0.0, 2.0) == 0.0
    with pytest.raises(KeyError):
        get_cdf_evaluator("spline")


def test_inverse_cdf_edge_cases() -> None:
    inverter = GammaInverter()
    assert inverter.inverse_cdf(0.0, 2.0) == 0.0
    with pytest.raises(ValueError):
        inverter.inverse_cdf(1.0, 2.0)
    with pytest.raises(ValueError):
        inverter.inverse_cdf(-0.1, 2.0)
    with pytest.raises(ValueError):
        inverter.inverse_cdf(0.5, 0.0)


def test_inverse_cdf_raises_when_capped() -> None:
    inverter = GammaInverter(InferenceConfig(max_iterations=5))
    with pytest.raises(NonconvergentRootFind):
        inverter.inverse_cdf(0.5, 2.0)


def test_inverse_cdf_small_shape_terminates() -> None:
    inverter = GammaInverter()
    x = inverter.inverse_cdf(0.2, 0.05)
    assert 0.0 < x < 1e-10
    assert abs(inverter.cdf(x, 0.05) - 0.2) <= inverter.config.tolerance


def test_derivative_wrt_u_tracks_reciprocal_density() -> None:
    inverter = GammaInverter()
    x = gamma_dist.ppf(0.5, 2.0)
    expected = 1.0 / gamma_dist.pdf(x, 2.0)
    assert inverter.derivative_wrt_u(0.5, 2.0) == pytest.approx(expected, rel=0.05)


def test_derivative_wrt_u_uses_backward_difference_near_one() -> None:
    inverter = GammaInverter()
    h = inverter.config.h_step
    expected = (inverter.inverse_cdf(0.995, 2.0) - inverter.inverse_cdf(0.995 - h, 2.0)) / h
    assert inverter.derivative_wrt_u(0.995, 2.0) == pytest.approx(expected)


def test_analytic_derivative_matches_scipy_difference() -> None:
    inverter = GammaInverter()
    step = 1e-3
    reference = (gamma_dist.ppf(0.5, 2.0 + step) - gamma_dist.ppf(0.5, 2.0 - step)) / (2 * step)
    assert inverter.analytic_derivative(0.5, 2.0) == pytest.approx(reference, rel=1e-2)


def test_finite_difference_alpha_derivative_close_to_analytic() -> None:
    inverter = GammaInverter()
    analytic = inverter.analytic_derivative(0.5, 2.0)
    finite = inverter.derivative_wrt_alpha(0.5, 2.0)
    assert finite == pytest.approx(analytic, abs=0.05)
    assert inverter.analytic_derivative(0.0, 2.0) == 0.0

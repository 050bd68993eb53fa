import numpy as np
import pytest

from gammamc.config import InferenceConfig
from gammamc.core import SufficientStatistics
from gammamc.datasets import get_dataset
from gammamc.estimation import ShapeEstimator
from gammamc.weighting import ImportanceWeighter, evaluate_phi, jacobian_term, prior_value

U = np.array([0.2, 0.5, 0.8])


@pytest.fixture()
def stats() -> SufficientStatistics:
    return SufficientStatistics.from_data(get_dataset("custom2").values)


def test_prior_values() -> None:
    assert prior_value("constant", 3.0) == 1.0
    assert prior_value("alpha", 3.0) == 3.0
    assert prior_value("beta", 3.0, beta=0.5) == 0.5
    assert prior_value("jeffreys", 1.0) == pytest.approx(0.281649, rel=1e-4)


def test_prior_errors() -> None:
    with pytest.raises(KeyError):
        prior_value("flat", 1.0)
    with pytest.raises(ValueError):
        prior_value("beta", 1.0)


def test_jacobian_term() -> None:
    assert jacobian_term([1.0, 2.0], [1.0, 1.0]) == pytest.approx(1.0 / 12.0)
    assert np.isnan(jacobian_term([0.0, 2.0], [1.0, 1.0]))


def test_evaluate_phi_policies() -> None:
    assert evaluate_phi([0.2, 0.6, 0.9]) == pytest.approx(2.0 / 3.0)
    assert evaluate_phi([0.2, 0.6, 0.9], threshold=0.1) == pytest.approx(1.0)
    assert evaluate_phi([1.0, 2.0, 4.0], "ratio-product") == 0.0
    assert evaluate_phi([2.0, 2.0, 4.0], "ratio-product") == 1.0
    assert evaluate_phi([2.0, 1.0, 2.0], "power-ratio") == 1.0
    assert evaluate_phi([0.1, 1.0, 2.0], "power-ratio") == 0.0


def test_evaluate_phi_rows() -> None:
    values = evaluate_phi(np.array([[0.2, 0.6, 0.9], [0.7, 0.8, 0.9]]))
    np.testing.assert_allclose(values, [2.0 / 3.0, 1.0])


def test_evaluate_phi_errors() -> None:
    with pytest.raises(KeyError):
        evaluate_phi([1.0, 2.0, 3.0], "median")
    with pytest.raises(ValueError):
        evaluate_phi([1.0, 2.0], "ratio-product")


def test_weight_is_positive_and_finite(stats: SufficientStatistics) -> None:
    weighter = ImportanceWeighter(stats)
    alpha = weighter.estimator.find_alpha(stats.s2, U).unwrap()
    weight = weighter.weight(U, alpha)
    assert np.isfinite(weight)
    assert weight > 0


def test_weight_is_zero_when_ill_defined(stats: SufficientStatistics) -> None:
    weighter = ImportanceWeighter(stats)
    assert weighter.weight([0.0, 0.5, 0.8], 2.0) == 0.0


def test_weight_prior_policies(stats: SufficientStatistics) -> None:
    constant = ImportanceWeighter(stats, InferenceConfig(prior_policy="constant"))
    alpha_prior = ImportanceWeighter(stats, InferenceConfig(prior_policy="alpha"))
    beta_prior = ImportanceWeighter(stats, InferenceConfig(prior_policy="beta"))
    base = constant.weight(U, 2.0)
    assert alpha_prior.weight(U, 2.0) == pytest.approx(2.0 * base)
    assert beta_prior.weight(U, 2.0) > 0


def test_weight_inversion(stats: SufficientStatistics) -> None:
    inverted = ImportanceWeighter(stats, InferenceConfig(invert_weight=True))
    direct = ImportanceWeighter(stats, InferenceConfig(invert_weight=False))
    assert inverted.weight(U, 2.0) * direct.weight(U, 2.0) == pytest.approx(1.0)


def test_weighter_shares_estimator(stats: SufficientStatistics) -> None:
    config = InferenceConfig(phi_policy="ratio-product", phi_threshold=1.0)
    estimator = ShapeEstimator(config)
    weighter = ImportanceWeighter(stats, estimator=estimator)
    assert weighter.config is config
    assert weighter.phi([2.0, 2.0, 3.0]) == 1.0


def test_direct_weight_is_absolute_jacobian_term(stats: SufficientStatistics) -> None:
    weighter = ImportanceWeighter(stats, InferenceConfig(invert_weight=False))
    inverter = weighter.estimator.inverter
    quantiles = inverter.inverse_cdf_many(U, 2.0)
    dalpha = [inverter.derivative_wrt_alpha(value, 2.0) for value in U]
    assert weighter.weight(U, 2.0) == pytest.approx(abs(jacobian_term(quantiles, dalpha)))

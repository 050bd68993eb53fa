"""Importance weights, prior multipliers and the ``phi`` summary statistic."""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from .config import InferenceConfig
from .core import ArrayLike, SufficientStatistics
from .estimation import ShapeEstimator

logger = logging.getLogger(__name__)

Prior = Callable[[float, float | None], float]


def _jeffreys(alpha: float, beta: float | None) -> float:
    with np.errstate(over="ignore", divide="ignore"):
        cosh_term = 2.0 - (np.exp(alpha) + np.exp(-alpha))
        return float(np.sqrt(1.0 / alpha**2 + 1.0 / cosh_term))


def _beta_prior(alpha: float, beta: float | None) -> float:
    if beta is None:
        raise ValueError("The 'beta' prior requires a scale estimate.")
    return float(beta)


_PRIORS: dict[str, Prior] = {
    "constant": lambda alpha, beta: 1.0,
    "beta": _beta_prior,
    "alpha": lambda alpha, beta: float(alpha),
    "jeffreys": _jeffreys,
}


def prior_value(policy: str, alpha: float, beta: float | None = None) -> float:
    """Evaluate the prior multiplier ``pi`` named by ``policy``."""
    try:
        prior = _PRIORS[policy]
    except KeyError:
        raise KeyError(f"Unknown prior policy '{policy}'.") from None
    return prior(alpha, beta)


def jacobian_term(quantiles: ArrayLike, dalpha: ArrayLike) -> float:
    """``mean(dalpha / x) - sum(dalpha) / sum(x)``; NaN when ill-defined."""
    x = np.asarray(quantiles, dtype=float)
    dx = np.asarray(dalpha, dtype=float)
    total = float(np.sum(x))
    if total == 0 or np.any(x == 0):
        return float("nan")
    return float(np.mean(dx / x) - np.sum(dx) / total)


def _indicator(x: np.ndarray, threshold: float) -> np.ndarray:
    return np.mean(x > threshold, axis=-1)


def _ratio_product(x: np.ndarray, threshold: float) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        value = x[..., 0] * x[..., 1] / x[..., 2]
    return (value > threshold).astype(float)


def _power_ratio(x: np.ndarray, threshold: float) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        value = np.power(x[..., 0] / x[..., 1], x[..., 2])
    return (value > threshold).astype(float)


_PHI: dict[str, Callable[[np.ndarray, float], np.ndarray]] = {
    "indicator": _indicator,
    "ratio-product": _ratio_product,
    "power-ratio": _power_ratio,
}


def evaluate_phi(
    x: ArrayLike,
    policy: str = "indicator",
    threshold: float = 0.5,
) -> np.ndarray | float:
    """Evaluate ``phi`` over the last axis of ``x``.

    ``indicator`` averages ``x_i > threshold``; ``ratio-product`` and
    ``power-ratio`` test ``x1*x2/x3`` and ``(x1/x2)**x3`` against the threshold.
    A one-dimensional input returns a float.
    """
    arr = np.asarray(x, dtype=float)
    if policy not in _PHI:
        raise KeyError(f"Unknown phi policy '{policy}'.")
    if policy != "indicator" and arr.shape[-1] < 3:
        raise ValueError(f"phi policy '{policy}' needs at least three coordinates.")
    values = _PHI[policy](arr, threshold)
    if arr.ndim == 1:
        return float(values)
    return values


class ImportanceWeighter:
    """Compute importance weights of uniform samples under a given config."""

    def __init__(
        self,
        stats: SufficientStatistics,
        config: InferenceConfig | None = None,
        estimator: ShapeEstimator | None = None,
    ) -> None:
        self.stats = stats
        self.estimator = estimator or ShapeEstimator(config)
        self.config = config or self.estimator.config

    def phi(self, x: ArrayLike) -> float:
        return float(evaluate_phi(x, self.config.phi_policy, self.config.phi_threshold))

    def weight(self, u: ArrayLike, alpha: float) -> float:
        """Unnormalised weight of ``u`` at shape ``alpha``; 0 when ill-defined.

        Uses ``|D|``, so weights of opposite-signed ``D`` still give a positive
        acceptance ratio.
        """
        inverter = self.estimator.inverter
        values = np.asarray(u, dtype=float)
        quantiles = inverter.inverse_cdf_many(values, alpha)
        dalpha = np.array([inverter.derivative_wrt_alpha(value, alpha) for value in values])
        term = abs(jacobian_term(quantiles, dalpha))
        if not np.isfinite(term):
            logger.debug("Ill-defined weight for alpha=%.6g (u=%s).", alpha, values)
            return 0.0

        beta = None
        if self.config.prior_policy == "beta":
            beta = float(self.stats.s1 * quantiles.size / np.sum(quantiles))
        pi = prior_value(self.config.prior_policy, alpha, beta)
        if self.config.invert_weight:
            if term == 0:
                return 0.0
            weight = pi / term
        else:
            weight = pi * term
        if not np.isfinite(weight) or weight < 0:
            return 0.0
        return float(weight)


__all__ = [
    "ImportanceWeighter",
    "evaluate_phi",
    "jacobian_term",
    "prior_value",
]

"""Shape and scale estimation by matching the ``tau2`` statistic."""

from __future__ import annotations

import logging

import numpy as np
from scipy.optimize import minimize_scalar

from .config import InferenceConfig
from .core import ArrayLike, FailureReason, NonconvergentRootFind, SearchResult, tau2
from .inversion import GammaInverter
from .rootfind import directional_search

logger = logging.getLogger(__name__)


class ShapeEstimator:
    """Estimate ``(alpha, beta)`` for a uniform-space sample."""

    def __init__(
        self,
        config: InferenceConfig | None = None,
        inverter: GammaInverter | None = None,
    ) -> None:
        self.config = config or (inverter.config if inverter is not None else InferenceConfig())
        self.inverter = inverter or GammaInverter(self.config)

    @property
    def bounds(self) -> tuple[float, float]:
        return self.config.alpha_lower_bound, self.config.alpha_upper_bound

    def quantiles(self, u: ArrayLike, alpha: float) -> np.ndarray:
        return self.inverter.inverse_cdf_many(u, alpha)

    def tau2(self, u: ArrayLike, alpha: float) -> float:
        """``tau2`` of the unit-scale sample reconstructed from ``u`` at ``alpha``."""
        return tau2(self.quantiles(u, alpha))

    def find_alpha(self, s2: float, u: ArrayLike) -> SearchResult:
        """Directional search for the shape whose ``tau2`` matches ``s2``."""
        values = np.asarray(u, dtype=float)
        cfg = self.config
        try:
            result = directional_search(
                lambda alpha: self.tau2(values, alpha),
                s2,
                start=cfg.alpha_start,
                step=cfg.alpha_step,
                tolerance=cfg.shape_tolerance,
                floor=cfg.alpha_floor,
                bounds=self.bounds,
                max_iterations=cfg.max_iterations,
            )
        except NonconvergentRootFind as exc:
            logger.warning("Quantile inversion failed during shape search: %s", exc)
            return SearchResult.failed(FailureReason.NONCONVERGENT)
        if result.failure is FailureReason.NONCONVERGENT:
            logger.warning("Shape search for s2=%.6g did not converge.", s2)
        return result

    def find_alpha_bounded(self, s2: float, u: ArrayLike) -> SearchResult:
        """Bounded scalar minimisation of ``|s2 - tau2(u, alpha)|``.

        Returns a failure straight away when ``s2`` is not bracketed by
        ``tau2`` at the two bounds.
        """
        values = np.asarray(u, dtype=float)
        lower, upper = self.bounds
        try:
            if self.tau2(values, upper) < s2 or self.tau2(values, lower) > s2:
                return SearchResult.failed(FailureReason.OUT_OF_BOUNDS)
            solution = minimize_scalar(
                lambda alpha: abs(s2 - self.tau2(values, alpha)),
                bounds=(lower, upper),
                method="bounded",
            )
        except NonconvergentRootFind as exc:
            logger.warning("Quantile inversion failed during bounded shape search: %s", exc)
            return SearchResult.failed(FailureReason.NONCONVERGENT)
        return SearchResult(value=float(solution.x), iterations=int(solution.nfev))

    def find_beta(self, s1: float, u: ArrayLike, alpha: float) -> float:
        """Scale matching the sample mean ``s1``."""
        quantiles = self.quantiles(u, alpha)
        return float(s1 * quantiles.size / np.sum(quantiles))

    def reconstruct(self, u: ArrayLike, alpha: float, beta: float) -> np.ndarray:
        return beta * self.quantiles(u, alpha)


__all__ = ["ShapeEstimator"]

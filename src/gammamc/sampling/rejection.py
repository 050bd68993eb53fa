"""Rejection samplers that match the sum and product of the observed data."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import numpy as np

from ..config import InferenceConfig
from ..core import ArrayLike, ChainRun, EstimationFailure
from ..weighting import evaluate_phi

logger = logging.getLogger(__name__)

UNIFORM_TOLERANCE = 0.03
GAMMA_TOLERANCE = 0.01

Proposer = Callable[[np.random.Generator, int, int], np.ndarray]


def exact_match_phi_average(
    data: ArrayLike,
    samples: int,
    proposer: Proposer,
    *,
    tolerance: float,
    config: InferenceConfig | None = None,
    random_state: np.random.Generator | int | None = None,
    batch_size: int = 10_000,
    max_draws: int = 50_000_000,
) -> ChainRun:
    """Average ``phi`` over proposals whose sum and product match ``data``.

    ``proposer(rng, batch, n)`` returns a ``(batch, n)`` array of candidates.
    A candidate is kept when both ``|sum - sum(data)|`` and
    ``|prod - prod(data)|`` are below ``tolerance``. Drawing stops after
    ``samples`` acceptances or ``max_draws`` candidates.
    """
    values = np.asarray(data, dtype=float)
    if values.ndim != 1 or values.size == 0:
        raise ValueError("Data must be a non-empty one-dimensional sample.")
    if samples < 1:
        raise ValueError("samples must be at least one.")
    cfg = config or InferenceConfig()
    rng = np.random.default_rng(random_state)
    target_sum = float(np.sum(values))
    target_prod = float(np.prod(values))

    kept: list[np.ndarray] = []
    accepted = 0
    draws = 0
    while accepted < samples and draws < max_draws:
        batch = min(batch_size, max_draws - draws)
        candidates = proposer(rng, batch, values.size)
        draws += batch
        mask = (np.abs(candidates.sum(axis=1) - target_sum) < tolerance) & (
            np.abs(candidates.prod(axis=1) - target_prod) < tolerance
        )
        matches = candidates[mask][: samples - accepted]
        if matches.size:
            kept.append(matches)
            accepted += matches.shape[0]

    if accepted == 0:
        raise EstimationFailure(f"No proposal matched the data in {draws} draws.")
    if accepted < samples:
        logger.warning("Only %d of %d samples accepted after %d draws.", accepted, samples, draws)

    matched = np.concatenate(kept)
    phis = np.asarray(evaluate_phi(matched, cfg.phi_policy, cfg.phi_threshold), dtype=float)
    return ChainRun(
        state=matched[-1],
        traces={"phi": phis},
        iterations=draws,
        accepted=accepted,
        estimate=float(np.mean(phis)),
    )


def rejection_phi_average(
    data: ArrayLike,
    samples: int,
    *,
    tolerance: float = UNIFORM_TOLERANCE,
    **kwargs: Any,
) -> ChainRun:
    """Exact-match rejection with uniform proposals on ``[0, sum(data)]``."""
    upper = float(np.sum(np.asarray(data, dtype=float)))

    def proposer(rng: np.random.Generator, batch: int, n: int) -> np.ndarray:
        return rng.uniform(0.0, upper, size=(batch, n))

    return exact_match_phi_average(data, samples, proposer, tolerance=tolerance, **kwargs)


def naive_phi_average(
    data: ArrayLike,
    samples: int,
    *,
    tolerance: float = GAMMA_TOLERANCE,
    **kwargs: Any,
) -> ChainRun:
    """Exact-match rejection with independent ``Gamma(1, 1)`` proposals."""

    def proposer(rng: np.random.Generator, batch: int, n: int) -> np.ndarray:
        return rng.gamma(shape=1.0, scale=1.0, size=(batch, n))

    return exact_match_phi_average(data, samples, proposer, tolerance=tolerance, **kwargs)


__all__ = [
    "GAMMA_TOLERANCE",
    "UNIFORM_TOLERANCE",
    "exact_match_phi_average",
    "naive_phi_average",
    "rejection_phi_average",
]

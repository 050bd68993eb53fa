"""Samplers operating on the uniform-space representation of the sample."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from ..config import InferenceConfig
from ..core import ChainRun, EstimationFailure, SearchResult, SufficientStatistics
from ..estimation import ShapeEstimator
from ..weighting import ImportanceWeighter
from .chain import MarkovChain, acceptance_ratio

logger = logging.getLogger(__name__)

MAX_INITIAL_DRAWS = 1000


@dataclass(slots=True, frozen=True)
class UniformState:
    """Uniform sample with its shape estimate and importance weight."""

    u: np.ndarray
    alpha: float
    weight: float


def _draw_valid(
    n: int,
    estimate: Callable[[np.ndarray], SearchResult],
    rng: np.random.Generator,
    max_draws: int,
) -> tuple[np.ndarray, float]:
    for _ in range(max_draws):
        u = rng.random(n)
        result = estimate(u)
        if result.ok and result.value is not None:
            return u, result.value
    raise EstimationFailure(f"No valid uniform sample found in {max_draws} draws.")


def _components(
    stats: SufficientStatistics,
    config: InferenceConfig | None,
    estimator: ShapeEstimator | None,
    weighter: ImportanceWeighter | None,
) -> tuple[ShapeEstimator, ImportanceWeighter]:
    estimator = estimator or ShapeEstimator(config)
    weighter = weighter or ImportanceWeighter(stats, estimator.config, estimator)
    return estimator, weighter


def density_weighter(
    stats: SufficientStatistics,
    estimator: ShapeEstimator,
) -> ImportanceWeighter:
    """Weighter with the plain ``|D|`` density and no prior factor."""
    config = estimator.config.with_overrides(invert_weight=False, prior_policy="constant")
    return ImportanceWeighter(stats, config, estimator)


def reconstructed_sample(
    u: np.ndarray,
    stats: SufficientStatistics,
    estimator: ShapeEstimator,
    alpha: float | None = None,
) -> np.ndarray:
    """Rescaled Gamma sample ``beta * F^-1(u; alpha)`` matching ``stats``."""
    if alpha is None:
        alpha = estimator.find_alpha(stats.s2, u).unwrap()
    beta = estimator.find_beta(stats.s1, u, alpha)
    return estimator.reconstruct(u, alpha, beta)


def weighted_uniform_chain(
    stats: SufficientStatistics,
    iterations: int,
    *,
    config: InferenceConfig | None = None,
    random_state: np.random.Generator | int | None = None,
    estimator: ShapeEstimator | None = None,
    weighter: ImportanceWeighter | None = None,
    max_initial_draws: int = MAX_INITIAL_DRAWS,
) -> ChainRun:
    """Independence sampler over uniform samples weighted by ``weight(u, alpha)``.

    Proposals are weighted by the density ``|D|`` of :func:`density_weighter`
    unless ``weighter`` is given, so ``invert_weight`` and ``prior_policy`` of
    the config do not apply here. Each step proposes a fresh uniform sample.
    When the shape search fails the proposal is rejected without drawing the
    acceptance uniform. Traces record the sample variance and first coordinate
    of the current ``u`` as well as its shape estimate.
    """
    estimator = estimator or ShapeEstimator(config)
    weighter = weighter or density_weighter(stats, estimator)
    rng = np.random.default_rng(random_state)
    n = stats.n

    u, alpha = _draw_valid(n, lambda v: estimator.find_alpha(stats.s2, v), rng, max_initial_draws)
    initial = UniformState(u=u, alpha=alpha, weight=weighter.weight(u, alpha))

    def propose(state: UniformState, generator: np.random.Generator) -> UniformState | None:
        proposal = generator.random(n)
        result = estimator.find_alpha(stats.s2, proposal)
        if not result.ok or result.value is None:
            return None
        return UniformState(
            u=proposal,
            alpha=result.value,
            weight=weighter.weight(proposal, result.value),
        )

    def observe(state: UniformState) -> dict[str, float]:
        variance = float(np.var(state.u, ddof=1)) if state.u.size > 1 else 0.0
        return {"variance": variance, "first": float(state.u[0]), "alpha": state.alpha}

    chain = MarkovChain(
        propose=propose,
        acceptance=lambda current, proposed: acceptance_ratio(proposed.weight, current.weight),
    )
    run = chain.run(initial, iterations, random_state=rng, observe=observe)
    logger.info(
        "Weighted uniform chain finished: %d iterations, acceptance %.3f",
        iterations,
        run.acceptance_rate,
    )
    return run


def alpha_mcmc_phi_average(
    stats: SufficientStatistics,
    iterations: int,
    *,
    config: InferenceConfig | None = None,
    random_state: np.random.Generator | int | None = None,
    estimator: ShapeEstimator | None = None,
    weighter: ImportanceWeighter | None = None,
    max_initial_draws: int = MAX_INITIAL_DRAWS,
) -> ChainRun:
    """MCMC over uniform samples using the bounded shape estimator.

    A proposal whose shape cannot be estimated gets weight 0: it is always
    rejected but still consumes the acceptance uniform. After every step the
    current state is rescaled to a Gamma sample and ``phi`` is accumulated;
    ``ChainRun.estimate`` holds the average.
    """
    estimator, weighter = _components(stats, config, estimator, weighter)
    rng = np.random.default_rng(random_state)
    n = stats.n

    u, alpha = _draw_valid(
        n, lambda v: estimator.find_alpha_bounded(stats.s2, v), rng, max_initial_draws
    )
    initial = UniformState(u=u, alpha=alpha, weight=weighter.weight(u, alpha))

    def propose(state: UniformState, generator: np.random.Generator) -> UniformState:
        proposal = generator.random(n)
        result = estimator.find_alpha_bounded(stats.s2, proposal)
        if not result.ok or result.value is None:
            return UniformState(u=proposal, alpha=float("nan"), weight=0.0)
        return UniformState(
            u=proposal,
            alpha=result.value,
            weight=weighter.weight(proposal, result.value),
        )

    def observe(state: UniformState) -> dict[str, float]:
        sample = reconstructed_sample(state.u, stats, estimator, state.alpha)
        return {"alpha": state.alpha, "phi": weighter.phi(sample)}

    chain = MarkovChain(
        propose=propose,
        acceptance=lambda current, proposed: acceptance_ratio(proposed.weight, current.weight),
    )
    run = chain.run(initial, iterations, random_state=rng, observe=observe)
    phi_trace = run.traces.get("phi", np.empty(0))
    run.estimate = float(np.mean(phi_trace)) if phi_trace.size else float("nan")
    return run


def independent_phi_average(
    stats: SufficientStatistics,
    samples: int,
    *,
    config: InferenceConfig | None = None,
    random_state: np.random.Generator | int | None = None,
    estimator: ShapeEstimator | None = None,
    weighter: ImportanceWeighter | None = None,
    max_draws_per_sample: int = MAX_INITIAL_DRAWS,
) -> ChainRun:
    """Average ``phi`` over independent uniform samples with a valid shape."""
    estimator, weighter = _components(stats, config, estimator, weighter)
    rng = np.random.default_rng(random_state)
    alphas = np.empty(samples, dtype=float)
    phis = np.empty(samples, dtype=float)
    u = np.empty(stats.n, dtype=float)
    for index in range(samples):
        u, alpha = _draw_valid(
            stats.n,
            lambda v: estimator.find_alpha_bounded(stats.s2, v),
            rng,
            max_draws_per_sample,
        )
        alphas[index] = alpha
        phis[index] = weighter.phi(reconstructed_sample(u, stats, estimator, alpha))
    return ChainRun(
        state=u,
        traces={"alpha": alphas, "phi": phis},
        iterations=samples,
        accepted=samples,
        estimate=float(np.mean(phis)) if samples else float("nan"),
    )


__all__ = [
    "UniformState",
    "weighted_uniform_chain",
    "alpha_mcmc_phi_average",
    "independent_phi_average",
    "reconstructed_sample",
    "density_weighter",
]

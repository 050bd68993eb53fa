"""Gibbs sampler over triples with a cubic reparametrisation.

Each update picks three coordinates with sum ``S`` and product ``P``, draws
``x1 ~ U(0, S)`` and solves for the two remaining coordinates so that they sum
to ``S - x1`` and multiply to ``P / x1``. A draw is admissible when the cubic
``x1^3 - 2 S x1^2 + S^2 x1 - 4 P`` is positive, i.e. when the quadratic has two
real roots.
"""

from __future__ import annotations

import logging

import numpy as np

from ..config import InferenceConfig
from ..core import ArrayLike, ChainRun
from ..weighting import evaluate_phi
from .chain import MarkovChain, acceptance_ratio

logger = logging.getLogger(__name__)


def is_valid_first_coordinate(x1: float, total: float, product: float) -> bool:
    return x1**3 - 2.0 * total * x1**2 + total**2 * x1 - 4.0 * product > 0


def solve_remaining(x1: float, total: float, product: float) -> tuple[float, float]:
    """Roots ``(x2, x3)`` with ``x2 + x3 = total - x1`` and ``x2 * x3 = product / x1``."""
    rest = total - x1
    with np.errstate(invalid="ignore"):
        root = float(np.sqrt(rest**2 - 4.0 * product / x1))
    x2 = (rest + root) / 2.0
    x3 = (product / x1) / x2 if x2 != 0 else float("nan")
    return x2, x3


def triple_density(triple: ArrayLike) -> float:
    """Jacobian-adjusted density ``1 / (x1 * sqrt((S - x1)^2 - 4 P / x1))``."""
    x = np.asarray(triple, dtype=float)
    total = float(np.sum(x))
    product = float(np.prod(x))
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(1.0 / (x[0] * np.sqrt((total - x[0]) ** 2 - 4.0 * product / x[0])))


class _TripleUpdate:
    """Proposal for one Gibbs update; remembers which indices it touched."""

    def __init__(self) -> None:
        self.indices: np.ndarray | None = None

    def __call__(self, state: np.ndarray, rng: np.random.Generator) -> np.ndarray | None:
        indices = rng.choice(state.size, size=3, replace=False)
        self.indices = indices
        triple = state[indices]
        total = float(np.sum(triple))
        product = float(np.prod(triple))
        x1 = rng.random() * total
        if not is_valid_first_coordinate(x1, total, product):
            return None
        x2, x3 = solve_remaining(x1, total, product)
        if not (np.isfinite(x2) and np.isfinite(x3)):
            logger.debug("Discarded non-real roots (x1=%.6g, S=%.6g, P=%.6g)", x1, total, product)
            return None
        proposal = state.copy()
        proposal[indices] = (x1, x2, x3)
        return proposal

    def ratio(self, current: np.ndarray, proposed: np.ndarray) -> float:
        if self.indices is None:
            return 0.0
        return acceptance_ratio(
            triple_density(proposed[self.indices]),
            triple_density(current[self.indices]),
        )


def _validate(x: ArrayLike) -> np.ndarray:
    state = np.array(x, dtype=float)
    if state.ndim != 1 or state.size < 3:
        raise ValueError("Gibbs sampling needs a one-dimensional sample with at least 3 points.")
    if np.any(state <= 0):
        raise ValueError("Gibbs sampling needs strictly positive values.")
    return state


def gibbs_step(x: ArrayLike, rng: np.random.Generator) -> tuple[np.ndarray, bool]:
    """Single Gibbs update; returns the new state and whether it moved."""
    update = _TripleUpdate()
    chain = MarkovChain(propose=update, acceptance=update.ratio)
    return chain.step(_validate(x), rng)


def gibbs_chain(
    x: ArrayLike,
    iterations: int,
    *,
    config: InferenceConfig | None = None,
    random_state: np.random.Generator | int | None = None,
    record: bool = True,
) -> ChainRun:
    """Run ``iterations`` Gibbs updates starting from ``x``.

    With ``record`` set the traces hold the first coordinate and ``phi`` of the
    state after every update.
    """
    cfg = config or InferenceConfig()
    update = _TripleUpdate()
    chain = MarkovChain(propose=update, acceptance=update.ratio)

    def observe(state: np.ndarray) -> dict[str, float]:
        return {
            "first": float(state[0]),
            "phi": float(evaluate_phi(state, cfg.phi_policy, cfg.phi_threshold)),
        }

    return chain.run(
        _validate(x),
        iterations,
        random_state=random_state,
        observe=observe if record else None,
    )


__all__ = [
    "gibbs_step",
    "gibbs_chain",
    "is_valid_first_coordinate",
    "solve_remaining",
    "triple_density",
]

"""Metropolis–Hastings step shared by the Markov chain samplers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from ..core import ChainRun

logger = logging.getLogger(__name__)

Proposal = Callable[[Any, np.random.Generator], Any]
Acceptance = Callable[[Any, Any], float]
Observer = Callable[[Any], Mapping[str, float]]


def acceptance_ratio(proposed: float, current: float) -> float:
    """``min(1, proposed / current)`` with degenerate densities guarded."""
    if not np.isfinite(proposed) or proposed <= 0:
        return 0.0
    if not np.isfinite(current):
        return 0.0
    if current <= 0:
        return 1.0
    return min(1.0, proposed / current)


@dataclass(slots=True)
class MarkovChain:
    """Generic single-state Markov chain.

    ``propose`` returns a candidate state or ``None`` for an invalid proposal.
    Invalid proposals are rejected without drawing the acceptance uniform
    unless ``draw_on_invalid`` is set.
    """

    propose: Proposal
    acceptance: Acceptance
    draw_on_invalid: bool = False

    def step(self, state: Any, rng: np.random.Generator) -> tuple[Any, bool]:
        candidate = self.propose(state, rng)
        if candidate is None:
            if self.draw_on_invalid:
                rng.random()
            return state, False
        ratio = self.acceptance(state, candidate)
        draw = rng.random()
        if ratio > 0 and draw <= ratio:
            return candidate, True
        return state, False

    def run(
        self,
        state: Any,
        iterations: int,
        *,
        random_state: np.random.Generator | int | None = None,
        observe: Observer | None = None,
    ) -> ChainRun:
        """Advance the chain ``iterations`` times, recording ``observe(state)``."""
        if iterations < 0:
            raise ValueError("iterations must be non-negative.")
        rng = np.random.default_rng(random_state)
        traces: dict[str, list[float]] = {}
        accepted = 0
        for iteration in range(iterations):
            state, moved = self.step(state, rng)
            accepted += int(moved)
            if observe is not None:
                for name, value in observe(state).items():
                    traces.setdefault(name, []).append(value)
            if iteration and iteration % 1000 == 0:
                logger.debug("Iteration %d, acceptance rate %.3f", iteration, accepted / iteration)
        return ChainRun(
            state=state,
            traces={name: np.asarray(values, dtype=float) for name, values in traces.items()},
            iterations=iterations,
            accepted=accepted,
        )


__all__ = ["MarkovChain", "acceptance_ratio"]

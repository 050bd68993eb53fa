"""Directional step search for increasing scalar functions."""

from __future__ import annotations

import logging
from collections.abc import Callable

from .core import FailureReason, SearchResult

logger = logging.getLogger(__name__)


def _outside(x: float, direction: int, bounds: tuple[float, float]) -> bool:
    lower, upper = bounds
    return (x < lower and direction == -1) or (x > upper and direction == 1)


def directional_search(
    func: Callable[[float], float],
    target: float,
    *,
    start: float,
    step: float,
    tolerance: float,
    floor: float = 0.0,
    bounds: tuple[float, float] | None = None,
    max_iterations: int = 10_000,
) -> SearchResult:
    """Find ``x`` with ``|func(x) - target| <= tolerance`` for increasing ``func``.

    The search walks from ``start`` in steps of ``step``. Whenever it passes the
    target (moving down and landing below it, or moving up and landing above it)
    the step is halved and the direction flipped. Points below ``floor`` are
    clamped to ``floor`` and the walk turns upwards.

    When ``bounds`` is given the search gives up as soon as it is outside the
    interval and still moving away from it, and a converged point outside the
    interval is not accepted. Both cases return ``FailureReason.OUT_OF_BOUNDS``.
    Reaching ``max_iterations`` returns ``FailureReason.NONCONVERGENT``.
    """
    if step <= 0:
        raise ValueError("step must be positive.")
    if tolerance <= 0:
        raise ValueError("tolerance must be positive.")

    x = max(float(start), floor)
    value = func(x)
    direction = 1
    iterations = 0
    while abs(value - target) > tolerance:
        if iterations >= max_iterations:
            logger.warning(
                "Directional search for target %.6g stopped after %d iterations (x=%.6g).",
                target,
                iterations,
                x,
            )
            return SearchResult.failed(FailureReason.NONCONVERGENT, iterations)
        iterations += 1
        x += direction * step
        if x < floor:
            x = floor
            direction = 1
        value = func(x)

        if target > value and direction == -1:
            step /= 2.0
            direction = 1
        elif target < value and direction == 1:
            step /= 2.0
            direction = -1

        if bounds is not None and _outside(x, direction, bounds):
            logger.debug("Search left bounds %s at x=%.6g.", bounds, x)
            return SearchResult.failed(FailureReason.OUT_OF_BOUNDS, iterations)

    if bounds is not None and not bounds[0] <= x <= bounds[1]:
        return SearchResult.failed(FailureReason.OUT_OF_BOUNDS, iterations)
    return SearchResult(value=x, iterations=iterations)


__all__ = ["directional_search"]

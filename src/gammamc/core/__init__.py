"""Core dataclasses, result types and exceptions shared by gammamc modules."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

import numpy as np
import pandas as pd

ArrayLike: TypeAlias = np.ndarray | Sequence[float]


class GammaMCError(Exception):
    """Base class for gammamc errors."""


class EstimationFailure(GammaMCError):
    """No shape parameter could be found inside the configured bounds."""


class NonconvergentRootFind(GammaMCError):
    """A directional search reached its iteration cap."""


class FailureReason(str, Enum):
    OUT_OF_BOUNDS = "out-of-bounds"
    NONCONVERGENT = "nonconvergent"


@dataclass(slots=True, frozen=True)
class SearchResult:
    """Outcome of a root search: a value, or the reason there is none."""

    value: float | None
    iterations: int = 0
    failure: FailureReason | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> float:
        """Return the value or raise the matching exception."""
        if self.failure is FailureReason.NONCONVERGENT:
            raise NonconvergentRootFind(f"Search did not converge in {self.iterations} iterations.")
        if self.failure is not None or self.value is None:
            raise EstimationFailure("No solution inside the configured bounds.")
        return self.value

    @classmethod
    def failed(cls, reason: FailureReason, iterations: int = 0) -> SearchResult:
        return cls(value=None, iterations=iterations, failure=reason)


def tau2(values: ArrayLike) -> float:
    """Ratio of the geometric mean to the arithmetic mean."""
    arr = np.asarray(values, dtype=float)
    total = float(np.sum(arr))
    if total <= 0:
        return 0.0
    with np.errstate(divide="ignore"):
        geometric = float(np.exp(np.mean(np.log(arr))))
    return arr.size * geometric / total


@dataclass(slots=True, frozen=True)
class SufficientStatistics:
    """Mean (``s1``) and ``tau2`` (``s2``) of an observed sample."""

    s1: float
    s2: float
    n: int

    @classmethod
    def from_data(cls, values: ArrayLike) -> SufficientStatistics:
        data = np.asarray(values, dtype=float)
        if data.ndim != 1 or data.size == 0:
            raise ValueError("Data must be a non-empty one-dimensional sample.")
        if np.any(~np.isfinite(data)) or np.any(data <= 0):
            raise ValueError("Gamma data must be finite and strictly positive.")
        return cls(s1=float(np.mean(data)), s2=tau2(data), n=int(data.size))


@dataclass(slots=True)
class ChainRun:
    """Final state and per-iteration traces of a Markov chain run."""

    state: Any
    traces: dict[str, np.ndarray] = field(default_factory=dict)
    iterations: int = 0
    accepted: int = 0
    estimate: float | None = None

    @property
    def acceptance_rate(self) -> float:
        return self.accepted / self.iterations if self.iterations else 0.0

    def to_frame(self) -> pd.DataFrame:
        """Return the traces as a data frame indexed by iteration."""
        frame = pd.DataFrame({name: np.asarray(trace) for name, trace in self.traces.items()})
        frame.index.name = "iteration"
        return frame


__all__ = [
    "ArrayLike",
    "GammaMCError",
    "EstimationFailure",
    "NonconvergentRootFind",
    "FailureReason",
    "SearchResult",
    "SufficientStatistics",
    "ChainRun",
    "tau2",
]

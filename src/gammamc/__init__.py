"""Top-level package exports for gammamc."""

from __future__ import annotations

from importlib import metadata

__version__ = "0.1.0"

try:
    __version__ = metadata.version("gammamc")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev fallback
    pass

from . import core as core  # noqa: F401
from . import sampling as sampling  # noqa: F401
from .config import InferenceConfig, load_config  # noqa: F401
from .core import SearchResult, SufficientStatistics  # noqa: F401
from .estimation import ShapeEstimator  # noqa: F401
from .inversion import GammaInverter  # noqa: F401
from .weighting import ImportanceWeighter  # noqa: F401
from .workflows.experiment import run_experiment  # noqa: F401

__all__ = [
    "__version__",
    "core",
    "sampling",
    "InferenceConfig",
    "load_config",
    "SearchResult",
    "SufficientStatistics",
    "ShapeEstimator",
    "GammaInverter",
    "ImportanceWeighter",
    "run_experiment",
]

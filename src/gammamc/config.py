"""Immutable configuration bundle shared by every gammamc component."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

EVALUATION_METHODS = ("closed-form", "numeric-integration")
PRIOR_POLICIES = ("constant", "beta", "alpha", "jeffreys")
PHI_POLICIES = ("indicator", "ratio-product", "power-ratio")
DATA_POLICIES = ("gamma", "bo", "custom", "custom2", "small-alpha")


@dataclass(slots=True, frozen=True)
class InferenceConfig:
    """Numerical constants and policy switches for inversion and sampling."""

    alpha_lower_bound: float = 0.05
    alpha_upper_bound: float = 200.0
    alpha_floor: float = 0.01
    alpha_start: float = 0.1
    alpha_step: float = 1.0
    shape_tolerance: float = 1e-4
    tolerance: float = 1e-5
    inverse_step: float = 0.1
    h_step: float = 0.01
    alpha_h_step: float = 0.01
    max_iterations: int = 10_000
    evaluation_method: str = "closed-form"
    prior_policy: str = "constant"
    phi_policy: str = "indicator"
    phi_threshold: float = 0.5
    invert_weight: bool = True
    data_policy: str = "custom"
    shape: float = 1.0
    scale: float = 1.0
    num_points: int = 3
    seed: int | None = None

    def __post_init__(self) -> None:
        if not 0 < self.alpha_lower_bound < self.alpha_upper_bound:
            raise ValueError("Alpha bounds must satisfy 0 < lower < upper.")
        if not 0 < self.alpha_floor < self.alpha_lower_bound:
            raise ValueError("alpha_floor must be positive and below alpha_lower_bound.")
        for name in (
            "alpha_start",
            "alpha_step",
            "shape_tolerance",
            "tolerance",
            "inverse_step",
            "h_step",
            "alpha_h_step",
            "shape",
            "scale",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive.")
        if self.h_step >= 1:
            raise ValueError("h_step must be smaller than one.")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least one.")
        if self.num_points < 1:
            raise ValueError("num_points must be at least one.")
        _check_choice("evaluation_method", self.evaluation_method, EVALUATION_METHODS)
        _check_choice("prior_policy", self.prior_policy, PRIOR_POLICIES)
        _check_choice("phi_policy", self.phi_policy, PHI_POLICIES)
        _check_choice("data_policy", self.data_policy, DATA_POLICIES)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> InferenceConfig:
        """Build a config from a mapping, rejecting unknown keys."""
        known = {item.name for item in fields(cls)}
        normalised = {str(key).replace("-", "_"): value for key, value in values.items()}
        unknown = sorted(set(normalised) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}.")
        return cls(**normalised)

    def with_overrides(self, **overrides: Any) -> InferenceConfig:
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)} (got '{value}').")


def load_config(path: str | os.PathLike[str]) -> InferenceConfig:
    """Load an :class:`InferenceConfig` from a YAML file.

    The file holds a mapping of field names to values, optionally nested under
    a top-level ``inference`` key.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file {path} not found.")
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration file {path} must contain a mapping.")
    if "inference" in data:
        data = data["inference"] or {}
    logger.debug("Loaded configuration %s: %s", path, data)
    return InferenceConfig.from_mapping(data)


def dump_config(config: InferenceConfig, path: str | os.PathLike[str]) -> Path:
    """Write ``config`` as YAML under an ``inference`` key."""
    path = Path(path)
    path.write_text(yaml.safe_dump({"inference": config.to_dict()}, sort_keys=False))
    return path


__all__ = [
    "EVALUATION_METHODS",
    "PRIOR_POLICIES",
    "PHI_POLICIES",
    "DATA_POLICIES",
    "InferenceConfig",
    "load_config",
    "dump_config",
]

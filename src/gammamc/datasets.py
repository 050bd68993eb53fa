"""Data presets for experiments: synthetic Gamma draws and fixed samples."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from .config import InferenceConfig


@dataclass(slots=True, frozen=True)
class DatasetPreset:
    name: str
    values: tuple[float, ...] | None
    alpha_bounds: tuple[float, float] | None = None
    notes: str | None = None


_PRESETS: dict[str, DatasetPreset] = {
    preset.name: preset
    for preset in (
        DatasetPreset(
            name="gamma",
            values=None,
            notes="Synthetic Gamma(shape, scale) draws of num_points values.",
        ),
        DatasetPreset(
            name="bo",
            values=(4.399, 1.307, 0.085, 0.7910, 0.2345, 0.1915),
            alpha_bounds=(0.8, 1.2),
            notes="Six observed points; shape restricted to [0.8, 1.2].",
        ),
        DatasetPreset(
            name="custom",
            values=(0.5772030, 0.4340237, 0.4212959),
            notes="Three tightly clustered points.",
        ),
        DatasetPreset(
            name="custom2",
            values=(1.621813, 1.059797, 1.554334),
            notes="Three points around 1.4.",
        ),
        DatasetPreset(
            name="small-alpha",
            values=(4.399, 1.307, 0.085),
            notes="Three dispersed points (small shape regime).",
        ),
    )
}


def list_datasets() -> Iterable[str]:
    return sorted(_PRESETS)


def get_dataset(name: str) -> DatasetPreset:
    key = name.lower()
    if key not in _PRESETS:
        raise KeyError(f"Unknown dataset '{name}'.")
    return _PRESETS[key]


def load_dataset(
    config: InferenceConfig,
    *,
    random_state: np.random.Generator | int | None = None,
) -> tuple[np.ndarray, InferenceConfig]:
    """Return the sample named by ``config.data_policy`` and the config to use with it.

    Presets that restrict the shape bounds return a config with those bounds.
    """
    preset = get_dataset(config.data_policy)
    if preset.values is None:
        rng = np.random.default_rng(random_state)
        values = rng.gamma(shape=config.shape, scale=config.scale, size=config.num_points)
    else:
        values = np.array(preset.values, dtype=float)
    if preset.alpha_bounds is not None:
        lower, upper = preset.alpha_bounds
        config = config.with_overrides(
            alpha_lower_bound=lower,
            alpha_upper_bound=upper,
            alpha_floor=min(config.alpha_floor, lower / 2.0),
            num_points=values.size,
        )
    elif config.num_points != values.size:
        config = config.with_overrides(num_points=int(values.size))
    return values, config


__all__ = ["DatasetPreset", "get_dataset", "list_datasets", "load_dataset"]

from pathlib import Path

import numpy as np
import pytest

from gammamc.config import InferenceConfig, dump_config, load_config
from gammamc.datasets import get_dataset, list_datasets, load_dataset


def test_default_config_is_valid() -> None:
    config = InferenceConfig()
    assert config.alpha_floor < config.alpha_lower_bound < config.alpha_upper_bound
    assert config.evaluation_method == "closed-form"
    assert config.to_dict()["max_iterations"] == 10_000


@pytest.mark.parametrize(
    "overrides",
    [
        {"alpha_lower_bound": 1.0, "alpha_upper_bound": 0.5},
        {"alpha_floor": 0.1},
        {"tolerance": 0.0},
        {"h_step": 1.0},
        {"max_iterations": 0},
        {"evaluation_method": "spline"},
        {"prior_policy": "flat"},
        {"phi_policy": "median"},
        {"data_policy": "unknown"},
    ],
)
def test_config_validation(overrides: dict) -> None:
    with pytest.raises(ValueError):
        InferenceConfig(**overrides)


def test_with_overrides_validates() -> None:
    config = InferenceConfig().with_overrides(alpha_upper_bound=20.0)
    assert config.alpha_upper_bound == 20.0
    with pytest.raises(ValueError):
        config.with_overrides(alpha_upper_bound=0.01)


def test_from_mapping_normalises_keys() -> None:
    config = InferenceConfig.from_mapping({"alpha-upper-bound": 50, "phi_policy": "power-ratio"})
    assert config.alpha_upper_bound == 50
    assert config.phi_policy == "power-ratio"
    with pytest.raises(ValueError, match="Unknown configuration keys"):
        InferenceConfig.from_mapping({"alpha_ceiling": 5})


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("inference:\n  alpha_upper_bound: 20\n  seed: 3\n  prior_policy: jeffreys\n")
    config = load_config(path)
    assert config.alpha_upper_bound == 20
    assert config.seed == 3
    assert config.prior_policy == "jeffreys"

    flat = tmp_path / "flat.yaml"
    flat.write_text("evaluation_method: numeric-integration\n")
    assert load_config(flat).evaluation_method == "numeric-integration"


def test_dump_config_round_trip(tmp_path: Path) -> None:
    config = InferenceConfig(alpha_upper_bound=25.0, seed=11, invert_weight=False)
    path = dump_config(config, tmp_path / "saved.yaml")
    assert load_config(path) == config


def test_load_config_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_dataset_registry() -> None:
    assert set(list_datasets()) == {"bo", "custom", "custom2", "gamma", "small-alpha"}
    assert get_dataset("Custom").values == (0.5772030, 0.4340237, 0.4212959)
    with pytest.raises(KeyError):
        get_dataset("unknown")


def test_load_dataset_restricts_bounds_for_bo() -> None:
    values, config = load_dataset(InferenceConfig(data_policy="bo"))
    assert values.shape == (6,)
    assert (config.alpha_lower_bound, config.alpha_upper_bound) == (0.8, 1.2)
    assert config.num_points == 6


def test_load_dataset_draws_synthetic_gamma() -> None:
    config = InferenceConfig(data_policy="gamma", shape=2.0, num_points=5)
    first, _ = load_dataset(config, random_state=1)
    second, _ = load_dataset(config, random_state=1)
    assert first.shape == (5,)
    assert np.all(first > 0)
    np.testing.assert_array_equal(first, second)

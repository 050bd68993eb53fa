from pathlib import Path

import pandas as pd
import pytest
from typer.testing import CliRunner

from gammamc import __version__
from gammamc.cli import app

runner = CliRunner()


@pytest.fixture()
def fast_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text("inference:\n  alpha_upper_bound: 20\n")
    return path


def test_datasets_command_lists_presets() -> None:
    result = runner.invoke(app, ["datasets"])
    assert result.exit_code == 0
    assert "small-alpha" in result.stdout
    assert "synthetic" in result.stdout


def test_version_option() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_invert_command_reports_quantile() -> None:
    result = runner.invoke(app, ["invert", "0.5", "2"])
    assert result.exit_code == 0
    assert "Inverse Gamma CDF" in result.stdout
    assert "CDF(x)" in result.stdout
    assert "dx/du" in result.stdout


def test_invert_command_rejects_invalid_probability() -> None:
    result = runner.invoke(app, ["invert", "1.5", "2"])
    assert result.exit_code == 1
    assert "u must lie in" in result.stdout


def test_estimate_command_with_fixed_uniforms(fast_config: Path) -> None:
    result = runner.invoke(
        app,
        [
            "estimate",
            "--dataset",
            "small-alpha",
            "--config",
            str(fast_config),
            "--u",
            "0.2",
            "--u",
            "0.5",
            "--u",
            "0.8",
        ],
    )
    assert result.exit_code == 0
    assert "mle_alpha" in result.stdout
    assert "alpha_bounded" in result.stdout
    assert "0.2000, 0.5000, 0.8000" in result.stdout


def test_estimate_command_reads_data_file(tmp_path: Path, fast_config: Path) -> None:
    data_path = tmp_path / "data.csv"
    pd.DataFrame({"value": [4.399, 1.307, 0.085]}).to_csv(data_path, index=False)
    result = runner.invoke(
        app,
        ["estimate", "--data-file", str(data_path), "--config", str(fast_config), "--seed", "1"],
    )
    assert result.exit_code == 0
    assert "s2" in result.stdout


def test_estimate_command_rejects_unknown_dataset() -> None:
    result = runner.invoke(app, ["estimate", "--dataset", "nope"])
    assert result.exit_code == 1
    assert "data_policy" in result.stdout


def test_experiment_command_writes_summary(tmp_path: Path, fast_config: Path) -> None:
    output = tmp_path / "summary.csv"
    result = runner.invoke(
        app,
        [
            "experiment",
            "--dataset",
            "small-alpha",
            "--config",
            str(fast_config),
            "--seed",
            "3",
            "--rejection-samples",
            "3",
            "--gibbs-sweeps",
            "2",
            "--gibbs-steps",
            "20",
            "--alpha-mcmc-iterations",
            "3",
            "--independent-samples",
            "2",
            "--weighted-chain-iterations",
            "3",
            "--output",
            str(output),
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert "Experiment Summary" in result.stdout
    frame = pd.read_csv(output)
    assert list(frame.columns) == ["quantity", "value"]
    quantities = set(frame["quantity"])
    assert {"s1", "s2", "mle_alpha", "rejection_phi", "gibbs_phi_p_value"} <= quantities
    assert {"alpha_mcmc_phi", "independent_phi"} <= quantities
    assert {"weighted_chain_acceptance", "weighted_chain_phi"} <= quantities

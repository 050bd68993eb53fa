"""Typer-based CLI entry point."""

from __future__ import annotations

import logging
import math
from pathlib import Path

import numpy as np
import pandas as pd
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import InferenceConfig, load_config
from .core import GammaMCError, SufficientStatistics
from .datasets import get_dataset, list_datasets, load_dataset
from .estimation import ShapeEstimator
from .goodness import fit_gamma_mle
from .inversion import GammaInverter
from .workflows.experiment import ExperimentSettings, run_experiment

app = typer.Typer(help="Monte Carlo inference for the Gamma shape parameter.")
console = Console()

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    exists=True,
    readable=True,
    help="YAML file with inference settings.",
    show_default=False,
)
METHOD_OPTION = typer.Option(
    None,
    "--method",
    help="CDF evaluation method: closed-form or numeric-integration.",
    show_default=False,
)
SEED_OPTION = typer.Option(None, "--seed", help="Seed of the random generator.")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose output.")
VERSION_OPTION = typer.Option(False, "--version", help="Show version and exit.")

DATA_FILE_OPTION = typer.Option(
    None,
    "--data-file",
    exists=True,
    readable=True,
    help="CSV file with a `value` column (overrides --dataset).",
    show_default=False,
)
DATASET_OPTION = typer.Option(None, "--dataset", "-d", help="Dataset preset name.")
UNIFORM_OPTION = typer.Option(
    None,
    "--u",
    help="Uniform coordinates for the shape estimate (repeat; random when omitted).",
    show_default=False,
)
OUTPUT_OPTION = typer.Option(
    None,
    "--output",
    "-o",
    help="Optional path to write the summary CSV.",
    show_default=False,
)


def _format_metric(value: float | None, digits: int = 6) -> str:
    if value is None:
        return "-"
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if math.isnan(number):
        return "nan"
    return f"{number:.{digits}g}"


def _resolve_config(
    config_path: Path | None,
    method: str | None = None,
    seed: int | None = None,
    dataset: str | None = None,
) -> InferenceConfig:
    config = load_config(config_path) if config_path is not None else InferenceConfig()
    overrides: dict[str, object] = {}
    if method is not None:
        overrides["evaluation_method"] = method
    if seed is not None:
        overrides["seed"] = seed
    if dataset is not None:
        overrides["data_policy"] = dataset
    return config.with_overrides(**overrides) if overrides else config


def _read_values(path: Path) -> np.ndarray:
    frame = pd.read_csv(path)
    if "value" not in frame.columns:
        raise ValueError(f"{path} has no `value` column.")
    return frame["value"].to_numpy(dtype=float)


@app.callback(invoke_without_command=True)
def cli_callback(  # noqa: B008
    ctx: typer.Context,
    verbose: bool = VERBOSE_OPTION,
    version: bool = VERSION_OPTION,
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
    if verbose or version:
        console.print(f"[bold green]gammamc {__version__}[/bold green]")
    if ctx.invoked_subcommand is None and not ctx.resilient_parsing:
        raise typer.Exit()


@app.command()
def datasets() -> None:
    """List dataset presets."""
    table = Table(title="Dataset Presets")
    table.add_column("Name")
    table.add_column("Values", overflow="fold")
    table.add_column("Description", overflow="fold")
    for name in list_datasets():
        preset = get_dataset(name)
        values = ", ".join(f"{v:g}" for v in preset.values) if preset.values else "synthetic"
        table.add_row(preset.name, values, preset.notes or "")
    console.print(table)


@app.command()
def invert(  # noqa: B008
    u: float = typer.Argument(..., help="Probability in [0, 1)."),
    alpha: float = typer.Argument(..., help="Gamma shape parameter."),
    method: str | None = METHOD_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Invert the unit-scale Gamma CDF and report derivatives of the inverse."""
    try:
        inverter = GammaInverter(_resolve_config(config_path, method=method))
        x = inverter.inverse_cdf(u, alpha)
        rows = [
            ("x", x),
            ("CDF(x)", inverter.cdf(x, alpha)),
            ("dx/du", inverter.derivative_wrt_u(u, alpha)),
            ("dx/dalpha", inverter.derivative_wrt_alpha(u, alpha)),
            ("dx/dalpha (analytic)", inverter.analytic_derivative(u, alpha)),
        ]
    except (KeyError, ValueError, GammaMCError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    table = Table(title=f"Inverse Gamma CDF (u={u:g}, alpha={alpha:g})")
    table.add_column("Quantity")
    table.add_column("Value", justify="right")
    for name, value in rows:
        table.add_row(name, _format_metric(value))
    console.print(table)


@app.command()
def estimate(  # noqa: B008
    dataset: str | None = DATASET_OPTION,
    data_file: Path | None = DATA_FILE_OPTION,
    uniforms: list[float] | None = UNIFORM_OPTION,
    config_path: Path | None = CONFIG_OPTION,
    seed: int | None = SEED_OPTION,
) -> None:
    """Report statistics, the Gamma MLE and the shape matching a uniform sample."""
    try:
        config = _resolve_config(config_path, seed=seed, dataset=dataset)
        values, config = load_dataset(config, random_state=config.seed)
        if data_file is not None:
            values = _read_values(data_file)
        stats = SufficientStatistics.from_data(values)
        fit = fit_gamma_mle(values)
        rng = np.random.default_rng(config.seed)
        u = np.asarray(uniforms, dtype=float) if uniforms else rng.random(stats.n)
        estimator = ShapeEstimator(config)
        directional = estimator.find_alpha(stats.s2, u)
        bounded = estimator.find_alpha_bounded(stats.s2, u)
    except (KeyError, ValueError, GammaMCError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    table = Table(title="Shape Estimates", expand=True)
    table.add_column("Quantity", no_wrap=True)
    table.add_column("Value", justify="right", no_wrap=True)
    table.add_row("s1", _format_metric(stats.s1))
    table.add_row("s2", _format_metric(stats.s2))
    table.add_row("mle_alpha", _format_metric(fit.alpha))
    table.add_row("mle_beta", _format_metric(fit.beta))
    table.add_row("u", ", ".join(f"{value:.4f}" for value in u))
    for label, result in (("alpha", directional), ("alpha_bounded", bounded)):
        if result.ok and result.value is not None:
            table.add_row(label, _format_metric(result.value))
            beta = estimator.find_beta(stats.s1, u, result.value)
            table.add_row(label.replace("alpha", "beta"), _format_metric(beta))
        else:
            reason = result.failure.value if result.failure is not None else "failed"
            table.add_row(label, reason)
    console.print(table)


@app.command()
def experiment(  # noqa: B008
    dataset: str | None = DATASET_OPTION,
    data_file: Path | None = DATA_FILE_OPTION,
    config_path: Path | None = CONFIG_OPTION,
    seed: int | None = SEED_OPTION,
    rejection_samples: int = typer.Option(1000, "--rejection-samples", min=0),
    naive_samples: int = typer.Option(0, "--naive-samples", min=0),
    gibbs_sweeps: int = typer.Option(100, "--gibbs-sweeps", min=0),
    gibbs_steps: int = typer.Option(5000, "--gibbs-steps", min=1),
    alpha_mcmc_iterations: int = typer.Option(1000, "--alpha-mcmc-iterations", min=0),
    independent_samples: int = typer.Option(1000, "--independent-samples", min=0),
    weighted_chain_iterations: int = typer.Option(1000, "--weighted-chain-iterations", min=0),
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Run every sampler on a dataset and summarise the results."""
    settings = ExperimentSettings(
        rejection_samples=rejection_samples,
        naive_samples=naive_samples,
        gibbs_sweeps=gibbs_sweeps,
        gibbs_steps=gibbs_steps,
        alpha_mcmc_iterations=alpha_mcmc_iterations,
        independent_samples=independent_samples,
        weighted_chain_iterations=weighted_chain_iterations,
    )
    try:
        config = _resolve_config(config_path, seed=seed, dataset=dataset)
        rng = np.random.default_rng(config.seed)
        values, config = load_dataset(config, random_state=rng)
        if data_file is not None:
            values = _read_values(data_file)
        summary = run_experiment(values, config, settings=settings, random_state=rng)
    except (KeyError, ValueError, GammaMCError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    frame = summary.to_frame()
    table = Table(title="Experiment Summary", expand=True)
    table.add_column("Quantity", no_wrap=True)
    table.add_column("Value", justify="right", no_wrap=True)
    for record in frame.itertuples(index=False):
        table.add_row(str(record.quantity), _format_metric(record.value))
    console.print(table)
    if output is not None:
        frame.to_csv(output, index=False)
        console.print(f"[green]Summary written[/green] {output} (rows={len(frame)})")


def main() -> None:  # pragma: no cover - console entry
    app()

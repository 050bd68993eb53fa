"""Workflow shortcuts for complete experiments."""

from __future__ import annotations

from .experiment import ExperimentSettings, ExperimentSummary, run_experiment

__all__ = ["ExperimentSettings", "ExperimentSummary", "run_experiment"]

"""Monte Carlo samplers built on the Gamma inversion engine."""

from __future__ import annotations

from .chain import MarkovChain, acceptance_ratio
from .gibbs import (
    gibbs_chain,
    gibbs_step,
    is_valid_first_coordinate,
    solve_remaining,
    triple_density,
)
from .independence import (
    UniformState,
    alpha_mcmc_phi_average,
    density_weighter,
    independent_phi_average,
    reconstructed_sample,
    weighted_uniform_chain,
)
from .rejection import exact_match_phi_average, naive_phi_average, rejection_phi_average

__all__ = [
    "MarkovChain",
    "acceptance_ratio",
    "UniformState",
    "weighted_uniform_chain",
    "alpha_mcmc_phi_average",
    "independent_phi_average",
    "reconstructed_sample",
    "density_weighter",
    "gibbs_step",
    "gibbs_chain",
    "is_valid_first_coordinate",
    "solve_remaining",
    "triple_density",
    "exact_match_phi_average",
    "rejection_phi_average",
    "naive_phi_average",
]

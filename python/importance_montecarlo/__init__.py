"""Importance Monte Carlo - Monte Carlo integration with pluggable sampling.

This library estimates definite integrals of one-dimensional functions by
Monte Carlo sampling and measures how the choice of sampling distribution
(importance sampling) changes convergence speed and error.

Example (Single Run):
    >>> import math
    >>> from importance_montecarlo import SinSquared, SamplingDistribution, integrate
    >>>
    >>> result = integrate(SinSquared(), SamplingDistribution.uniform(),
    ...                    0.0, math.pi, n_samples=1_000_000, seed=42)
    >>> print(f"{result.value:.4f} (error {result.error:+.4f})")  # ~1.5708

Example (Comparing Distributions):
    >>> from importance_montecarlo import compare_distributions
    >>>
    >>> summaries = compare_distributions(
    ...     SinSquared(),
    ...     [SamplingDistribution.uniform(), SamplingDistribution.sin()],
    ...     0.0, math.pi, n_trials=1000, n_samples=10_000, seed=42,
    ... )
    >>> for name, summary in summaries.items():
    ...     print(f"{name}: average |error| = {summary.average:.6f}")
"""

from .config import IntegrationRange
from .distributions import (
    FunctionDistribution,
    HalfCosDistribution,
    InverseCdfDistribution,
    PowerDistribution,
    SamplingDistribution,
    SinDistribution,
    SinSquaredDistribution,
    UniformDistribution,
)
from .driver import (
    ConvergenceDriver,
    ProgressReport,
    RunResult,
    RunState,
    integrate,
    integrate_until,
)
from .errors import ConfigurationError, MonteCarloError
from .estimator import IncrementalEstimator, RunningEstimate
from .integrands import FunctionIntegrand, Integrand, Sin, SinSquared
from .random_source import UniformVariateSource
from .trials import TrialAggregator, TrialStatistics, TrialSummary, compare_distributions

__version__ = "0.1.0"

__all__ = [
    "UniformVariateSource",
    "Integrand",
    "FunctionIntegrand",
    "SinSquared",
    "Sin",
    "SamplingDistribution",
    "UniformDistribution",
    "InverseCdfDistribution",
    "FunctionDistribution",
    "SinDistribution",
    "HalfCosDistribution",
    "PowerDistribution",
    "SinSquaredDistribution",
    "RunningEstimate",
    "IncrementalEstimator",
    "ConvergenceDriver",
    "RunState",
    "RunResult",
    "ProgressReport",
    "integrate",
    "integrate_until",
    "TrialAggregator",
    "TrialStatistics",
    "TrialSummary",
    "compare_distributions",
    "IntegrationRange",
    "MonteCarloError",
    "ConfigurationError",
]

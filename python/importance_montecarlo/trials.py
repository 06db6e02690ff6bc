"""Repeated runs and their min/max/average statistics.

A :class:`TrialAggregator` repeats a run configuration many times and reduces
each run's scalar outcome on the fly:

* fixed-count trials reduce the absolute error at the end of each run;
* threshold trials reduce the number of samples each run needed.

No outcome list is kept. The spread of these outcomes is what separates a
good sampling distribution from a bad one.

Example:
    >>> aggregator = TrialAggregator(SinSquared(), SamplingDistribution.sin(),
    ...                              0.0, math.pi, source=UniformVariateSource(1))
    >>> summary = aggregator.run_fixed(n_samples=10_000, n_trials=100)
    >>> summary.average, summary.minimum, summary.maximum
"""

import logging
import math
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from .config import (
    IntegrationRange,
    validate_max_iterations,
    validate_sample_count,
    validate_target_error,
    validate_trial_count,
)
from .distributions import SamplingDistribution
from .driver import ConvergenceDriver
from .errors import ConfigurationError
from .estimator import RunningEstimate
from .integrands import Integrand
from .random_source import SeedLike, UniformVariateSource

logger = logging.getLogger(__name__)

FIXED_COUNT = "fixed_count"
THRESHOLD = "threshold"


def _nan_min(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    return min(a, b)


def _nan_max(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    return max(a, b)


class TrialStatistics:
    """Constant-memory min/max/average over trial outcomes.

    ``nan`` outcomes propagate into all three statistics. Runs that ended
    without an outcome (threshold runs over their iteration cap) are only
    counted in ``failures``.

    Statistics from independent workers are combined with :meth:`merge`,
    which is associative and commutative up to floating-point rounding.
    """

    def __init__(self):
        self.minimum = math.inf
        self.maximum = -math.inf
        self.failures = 0
        self.non_finite = 0
        self._average = RunningEstimate()

    @property
    def count(self) -> int:
        return self._average.sample_index

    @property
    def average(self) -> float:
        return self._average.value if self.count else math.nan

    def add(self, outcome: float) -> None:
        self._average.fold(outcome)
        self.minimum = _nan_min(self.minimum, outcome)
        self.maximum = _nan_max(self.maximum, outcome)
        if not math.isfinite(outcome):
            self.non_finite += 1

    def record_failure(self) -> None:
        self.failures += 1

    def merge(self, other: "TrialStatistics") -> "TrialStatistics":
        """Fold ``other`` into this instance and return it."""
        total = self.count + other.count
        if other.count:
            own = self._average.value if self.count else 0.0
            self._average.value = own + (other._average.value - own) * (other.count / total)
            self._average.sample_index = total
        self.minimum = _nan_min(self.minimum, other.minimum)
        self.maximum = _nan_max(self.maximum, other.maximum)
        self.failures += other.failures
        self.non_finite += other.non_finite
        return self

    def __repr__(self):
        return (
            f"TrialStatistics(count={self.count}, minimum={self.minimum!r}, "
            f"maximum={self.maximum!r}, average={self.average!r}, failures={self.failures})"
        )


@dataclass(frozen=True)
class TrialSummary:
    """Aggregate outcome of one trial configuration.

    Attributes:
        integrand: Integrand name.
        distribution: Sampling distribution name.
        mode: ``"fixed_count"`` (outcome = absolute error) or ``"threshold"``
            (outcome = samples needed).
        parameter: ``n_samples`` for fixed-count mode, ``target_error`` for
            threshold mode.
        n_trials: Number of runs requested.
        completed: Number of runs that produced an outcome.
        minimum, maximum, average: Statistics over the outcomes.
        failures: Threshold runs that hit ``max_iterations``.
        non_finite: Outcomes that were ``inf`` or ``nan``.
    """

    integrand: str
    distribution: str
    mode: str
    parameter: float
    n_trials: int
    completed: int
    minimum: float
    maximum: float
    average: float
    failures: int = 0
    non_finite: int = 0

    @classmethod
    def from_statistics(cls, stats: TrialStatistics, **fields) -> "TrialSummary":
        return cls(
            completed=stats.count,
            minimum=stats.minimum if stats.count else math.nan,
            maximum=stats.maximum if stats.count else math.nan,
            average=stats.average,
            failures=stats.failures,
            non_finite=stats.non_finite,
            **fields,
        )


def _fixed_count_trials(
    integrand, distribution, range_min, range_max, source, n_samples, n_trials
) -> TrialStatistics:
    stats = TrialStatistics()
    for trial in range(n_trials):
        driver = ConvergenceDriver(integrand, distribution, range_min, range_max, source)
        result = driver.run_fixed(n_samples)
        stats.add(result.absolute_error)
        logger.debug("Trial %d/%d: |error|=%r", trial + 1, n_trials, result.absolute_error)
    return stats


def _threshold_trials(
    integrand, distribution, range_min, range_max, source, target_error, max_iterations, n_trials
) -> TrialStatistics:
    stats = TrialStatistics()
    for trial in range(n_trials):
        driver = ConvergenceDriver(integrand, distribution, range_min, range_max, source)
        result = driver.run_until(target_error, max_iterations=max_iterations)
        if result.converged:
            stats.add(result.sample_count)
        else:
            stats.record_failure()
        logger.debug(
            "Trial %d/%d: %s after %d samples",
            trial + 1,
            n_trials,
            result.state.name,
            result.sample_count,
        )
    return stats


class TrialAggregator:
    """Runs a :class:`ConvergenceDriver` configuration ``n_trials`` times.

    Sequential trials all draw from the aggregator's one source, so no two
    trials replay the same variates. Parallel trials (``parallel=True``)
    split the trials across worker processes, each with its own source
    spawned from the aggregator's; the integrand and distribution must then
    be picklable (module-level classes, not lambdas).

    Args:
        integrand: Function to integrate. Must have an antiderivative, since
            every outcome is measured against the true value.
        distribution: Distribution the samples are drawn from.
        range_min, range_max: Integration range.
        source: Random source. A fresh, OS-seeded source is created when
            omitted.
    """

    def __init__(
        self,
        integrand: Integrand,
        distribution: SamplingDistribution,
        range_min: float,
        range_max: float,
        source: Optional[UniformVariateSource] = None,
    ):
        if not isinstance(integrand, Integrand):
            raise TypeError(f"integrand must be an Integrand, got {type(integrand)}")
        if not isinstance(distribution, SamplingDistribution):
            raise TypeError(
                f"distribution must be a SamplingDistribution, got {type(distribution)}"
            )
        self.integrand = integrand
        self.distribution = distribution
        self.range = IntegrationRange(range_min, range_max)
        distribution.validate_range(self.range.range_min, self.range.range_max)
        if integrand.true_value(self.range.range_min, self.range.range_max) is None:
            raise ConfigurationError(
                f"Trials measure error against the true value, but {integrand.name} "
                "has no antiderivative"
            )
        self.source = source if source is not None else UniformVariateSource()

    def run_fixed(
        self,
        n_samples: int,
        n_trials: int,
        parallel: bool = False,
        max_workers: Optional[int] = None,
    ) -> TrialSummary:
        """Run ``n_trials`` fixed-count runs; outcome is each run's ``|error|``."""
        n_samples = validate_sample_count(n_samples)
        n_trials = validate_trial_count(n_trials)

        if parallel and n_trials > 1:
            stats = self._run_parallel(_fixed_count_trials, n_trials, max_workers, n_samples)
        else:
            stats = _fixed_count_trials(
                self.integrand,
                self.distribution,
                self.range.range_min,
                self.range.range_max,
                self.source,
                n_samples,
                n_trials,
            )
        return self._summarise(stats, FIXED_COUNT, n_samples, n_trials)

    def run_until(
        self,
        target_error: float,
        n_trials: int,
        max_iterations: Optional[int] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
    ) -> TrialSummary:
        """Run ``n_trials`` threshold runs; outcome is each run's sample count.

        Runs that reach ``max_iterations`` are reported in ``failures`` and
        excluded from min/max/average.
        """
        target_error = validate_target_error(target_error)
        max_iterations = validate_max_iterations(max_iterations)
        n_trials = validate_trial_count(n_trials)

        if parallel and n_trials > 1:
            stats = self._run_parallel(
                _threshold_trials, n_trials, max_workers, target_error, max_iterations
            )
        else:
            stats = _threshold_trials(
                self.integrand,
                self.distribution,
                self.range.range_min,
                self.range.range_max,
                self.source,
                target_error,
                max_iterations,
                n_trials,
            )
        return self._summarise(stats, THRESHOLD, target_error, n_trials)

    def _run_parallel(self, worker, n_trials, max_workers, *args) -> TrialStatistics:
        if max_workers is not None and max_workers <= 0:
            raise ConfigurationError(f"max_workers must be positive, got {max_workers}")
        n_workers = min(n_trials, max_workers or os.cpu_count() or 1)
        shares = [
            n_trials // n_workers + (1 if i < n_trials % n_workers else 0)
            for i in range(n_workers)
        ]
        sources = self.source.spawn(n_workers)
        logger.debug("Running %d trials on %d workers: %s", n_trials, n_workers, shares)

        stats = TrialStatistics()
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = [
                executor.submit(
                    worker,
                    self.integrand,
                    self.distribution,
                    self.range.range_min,
                    self.range.range_max,
                    source,
                    *args,
                    share,
                )
                for source, share in zip(sources, shares)
            ]
            for future in as_completed(futures):
                stats.merge(future.result())
        return stats

    def _summarise(self, stats, mode, parameter, n_trials) -> TrialSummary:
        summary = TrialSummary.from_statistics(
            stats,
            integrand=self.integrand.name,
            distribution=self.distribution.name,
            mode=mode,
            parameter=parameter,
            n_trials=n_trials,
        )
        logger.info(
            "%s with %s (%s=%g, %d trials): min=%r max=%r avg=%r failures=%d",
            summary.integrand,
            summary.distribution,
            mode,
            parameter,
            n_trials,
            summary.minimum,
            summary.maximum,
            summary.average,
            summary.failures,
        )
        return summary


def compare_distributions(
    integrand: Integrand,
    distributions: Iterable[SamplingDistribution],
    range_min: float,
    range_max: float,
    n_trials: int,
    n_samples: Optional[int] = None,
    target_error: Optional[float] = None,
    max_iterations: Optional[int] = None,
    source: Optional[UniformVariateSource] = None,
    seed: SeedLike = None,
    parallel: bool = False,
    max_workers: Optional[int] = None,
) -> Dict[str, TrialSummary]:
    """Run the same trial configuration for several distributions.

    Give exactly one of ``n_samples`` (fixed-count trials) or
    ``target_error`` (threshold trials). All distributions draw from one
    source, in the order given.

    Returns:
        Mapping of distribution name to its :class:`TrialSummary`, in input
        order.

    Raises:
        ConfigurationError: If both or neither of ``n_samples`` and
            ``target_error`` are given, or two distributions share a name.

    Example:
        >>> summaries = compare_distributions(
        ...     SinSquared(),
        ...     [SamplingDistribution.uniform(), SamplingDistribution.sin()],
        ...     0.0, math.pi, n_trials=100, n_samples=10_000, seed=7,
        ... )
        >>> {name: s.average for name, s in summaries.items()}
    """
    if (n_samples is None) == (target_error is None):
        raise ConfigurationError("Give exactly one of n_samples or target_error")
    if source is not None and seed is not None:
        raise ConfigurationError("Pass either source or seed, not both")
    distributions = list(distributions)
    names = [distribution.name for distribution in distributions]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigurationError(
            f"Distribution names must be unique, got duplicates: {duplicates}"
        )
    if source is None:
        source = UniformVariateSource(seed)

    summaries: Dict[str, TrialSummary] = {}
    for distribution in distributions:
        aggregator = TrialAggregator(integrand, distribution, range_min, range_max, source)
        if n_samples is not None:
            summary = aggregator.run_fixed(
                n_samples, n_trials, parallel=parallel, max_workers=max_workers
            )
        else:
            summary = aggregator.run_until(
                target_error,
                n_trials,
                max_iterations=max_iterations,
                parallel=parallel,
                max_workers=max_workers,
            )
        summaries[distribution.name] = summary
    return summaries

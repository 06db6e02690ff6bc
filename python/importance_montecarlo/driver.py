"""Single Monte Carlo integration runs.

A :class:`ConvergenceDriver` draws one variate per iteration from its
sampling distribution, forms the per-sample estimate ``F(x) / p(x)`` (or
``F(x) * width`` for uniform sampling) and folds it into an
:class:`~importance_montecarlo.estimator.IncrementalEstimator`. It runs in one
of two modes:

* fixed count: stop after exactly ``n_samples`` folds;
* threshold: stop at the first fold whose error against the known true value
  is at most ``target_error``.

Threshold mode needs the true value to decide when to stop, so it is a
benchmarking tool for comparing sampling distributions, not a stopping rule
for integrals whose value is unknown.

Example:
    >>> import math
    >>> from importance_montecarlo import SinSquared, SamplingDistribution, integrate
    >>> result = integrate(SinSquared(), SamplingDistribution.sin(), 0.0, math.pi,
    ...                    n_samples=100_000, seed=42)
    >>> print(f"{result.value:.3f}")  # ~1.571
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterable, Optional

from .config import (
    IntegrationRange,
    checkpoints_for,
    validate_max_iterations,
    validate_sample_count,
    validate_target_error,
)
from .distributions import SamplingDistribution
from .errors import ConfigurationError, MonteCarloError
from .estimator import IncrementalEstimator
from .integrands import Integrand
from .random_source import SeedLike, UniformVariateSource

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifecycle of a single run."""

    READY = auto()
    RUNNING = auto()
    COMPLETED_FIXED_COUNT = auto()
    COMPLETED_THRESHOLD = auto()
    EXCEEDED_MAX_ITERATIONS = auto()


@dataclass(frozen=True)
class ProgressReport:
    """Snapshot passed to progress callbacks at checkpoints.

    ``error`` and ``std_dev`` are None for blind runs.
    """

    sample_index: int
    estimate: float
    error: Optional[float]
    std_dev: Optional[float]


ProgressCallback = Callable[[ProgressReport], None]


@dataclass(frozen=True)
class RunResult:
    """Outcome of one run.

    Attributes:
        value: Final integral estimate.
        sample_count: Number of samples folded.
        state: Terminal :class:`RunState`.
        true_value: Ground truth, or None for blind runs.
        error: Signed ``value - true_value``, or None for blind runs.
        std_dev: Square root of the running mean squared error, or None.
        integrand: Name of the integrand.
        distribution: Name of the sampling distribution.
    """

    value: float
    sample_count: int
    state: RunState
    true_value: Optional[float] = None
    error: Optional[float] = None
    std_dev: Optional[float] = None
    integrand: str = ""
    distribution: str = ""

    @property
    def converged(self) -> bool:
        """True if a threshold run met its target."""
        return self.state is RunState.COMPLETED_THRESHOLD

    @property
    def absolute_error(self) -> Optional[float]:
        return None if self.error is None else abs(self.error)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.value)


class ConvergenceDriver:
    """Performs one Monte Carlo integration run.

    A driver is single-use: it moves from ``READY`` through ``RUNNING`` to a
    terminal state, and a second run raises :class:`MonteCarloError`.

    Args:
        integrand: Function to integrate.
        distribution: Distribution the samples are drawn from.
        range_min, range_max: Integration range.
        source: Random source to draw from. A fresh, OS-seeded source is
            created when omitted.

    Raises:
        ConfigurationError: If the range is degenerate or the distribution
            is not valid on it.
        TypeError: If integrand or distribution do not implement the
            required interfaces.
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
        self.source = source if source is not None else UniformVariateSource()
        self._state = RunState.READY

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def true_value(self) -> Optional[float]:
        return self.integrand.true_value(self.range.range_min, self.range.range_max)

    def _start(self) -> IncrementalEstimator:
        if self._state is not RunState.READY:
            raise MonteCarloError(
                f"ConvergenceDriver already used (state {self._state.name}); "
                "create a new driver for each run"
            )
        self._state = RunState.RUNNING
        return IncrementalEstimator(true_value=self.true_value)

    def _report(self, estimator: IncrementalEstimator) -> ProgressReport:
        return ProgressReport(
            sample_index=estimator.sample_index,
            estimate=estimator.value,
            error=estimator.error,
            std_dev=estimator.std_dev,
        )

    def _finish(self, estimator: IncrementalEstimator, state: RunState) -> RunResult:
        self._state = state
        result = RunResult(
            value=estimator.value,
            sample_count=estimator.sample_index,
            state=state,
            true_value=estimator.true_value,
            error=estimator.error,
            std_dev=estimator.std_dev,
            integrand=self.integrand.name,
            distribution=self.distribution.name,
        )
        logger.debug(
            "Run finished: %s with %s, state=%s, samples=%d, value=%r",
            result.integrand,
            result.distribution,
            state.name,
            result.sample_count,
            result.value,
        )
        return result

    def _warn_non_finite(self, estimator: IncrementalEstimator) -> None:
        logger.warning(
            "Estimate for %s with %s became %r at sample %d; the density is "
            "zero where the integrand is not (density does not match integrand)",
            self.integrand.name,
            self.distribution.name,
            estimator.value,
            estimator.sample_index,
        )

    def run_fixed(
        self,
        n_samples: int,
        progress: Optional[ProgressCallback] = None,
        checkpoints: Optional[Iterable[int]] = None,
    ) -> RunResult:
        """Fold exactly ``n_samples`` samples.

        Args:
            n_samples: Sample budget, must be positive.
            progress: Optional callback receiving a :class:`ProgressReport`
                at each checkpoint. It cannot influence the run.
            checkpoints: Sample indices to report at. Defaults to sample 1 and
                ``n_samples // d`` for ``d`` in 4096, 1024, 256, 64, 16, 4, 1.

        Returns:
            RunResult in state ``COMPLETED_FIXED_COUNT``.
        """
        n_samples = validate_sample_count(n_samples)
        if progress is not None:
            points = frozenset(checkpoints) if checkpoints is not None else checkpoints_for(n_samples)
        else:
            points = frozenset()

        estimator = self._start()
        logger.debug(
            "Fixed-count run: %s with %s over [%g, %g], n_samples=%d",
            self.integrand.name,
            self.distribution.name,
            self.range.range_min,
            self.range.range_max,
            n_samples,
        )

        source = self.source
        range_min, range_max = self.range
        evaluate = self.integrand.evaluate
        generate = self.distribution.generate
        sample_estimate = self.distribution.sample_estimate
        fold = estimator.fold
        warned = False

        for i in range(1, n_samples + 1):
            x = generate(source, range_min, range_max)
            value = fold(sample_estimate(evaluate(x), x, range_min, range_max))
            if not warned and not math.isfinite(value):
                self._warn_non_finite(estimator)
                warned = True
            if i in points:
                progress(self._report(estimator))

        return self._finish(estimator, RunState.COMPLETED_FIXED_COUNT)

    def run_until(
        self,
        target_error: float,
        max_iterations: Optional[int] = None,
        progress: Optional[ProgressCallback] = None,
        checkpoints: Optional[Iterable[int]] = None,
    ) -> RunResult:
        """Fold samples until ``|value - true_value| <= target_error``.

        Stops at the first fold meeting the target, so the result always
        satisfies its own stopping criterion. Without ``max_iterations`` the
        run is unbounded.

        Args:
            target_error: Positive error target.
            max_iterations: Optional cap. Reaching it without meeting the
                target ends the run in ``EXCEEDED_MAX_ITERATIONS``.
            progress: Optional callback, as in :meth:`run_fixed`.
            checkpoints: Sample indices to report at. Required when
                ``progress`` is given, since the run length is not known
                in advance.

        Returns:
            RunResult in state ``COMPLETED_THRESHOLD`` or
            ``EXCEEDED_MAX_ITERATIONS``.

        Raises:
            ConfigurationError: If the integrand has no antiderivative, if
                ``progress`` is given without ``checkpoints``, or
                the target or cap are invalid.
        """
        target_error = validate_target_error(target_error)
        max_iterations = validate_max_iterations(max_iterations)
        if self.true_value is None:
            raise ConfigurationError(
                f"Threshold mode needs the true value, but {self.integrand.name} "
                "has no antiderivative. Use run_fixed() for blind integration."
            )
        if progress is not None and checkpoints is None:
            raise ConfigurationError(
                "Threshold runs have no sample budget to derive checkpoints from; "
                "pass checkpoints together with progress"
            )
        points = frozenset(checkpoints) if progress is not None else frozenset()

        estimator = self._start()
        logger.debug(
            "Threshold run: %s with %s over [%g, %g], target_error=%g, max_iterations=%s",
            self.integrand.name,
            self.distribution.name,
            self.range.range_min,
            self.range.range_max,
            target_error,
            max_iterations,
        )

        source = self.source
        range_min, range_max = self.range
        true_value = estimator.true_value
        evaluate = self.integrand.evaluate
        generate = self.distribution.generate
        sample_estimate = self.distribution.sample_estimate
        fold = estimator.fold
        warned = False

        while True:
            if max_iterations is not None and estimator.sample_index >= max_iterations:
                logger.warning(
                    "%s with %s did not reach target error %g within %d iterations "
                    "(last error %r)",
                    self.integrand.name,
                    self.distribution.name,
                    target_error,
                    max_iterations,
                    estimator.error,
                )
                return self._finish(estimator, RunState.EXCEEDED_MAX_ITERATIONS)

            x = generate(source, range_min, range_max)
            value = fold(sample_estimate(evaluate(x), x, range_min, range_max))
            if estimator.sample_index in points:
                progress(self._report(estimator))
            if abs(value - true_value) <= target_error:
                return self._finish(estimator, RunState.COMPLETED_THRESHOLD)
            if not warned and not math.isfinite(value):
                self._warn_non_finite(estimator)
                warned = True


def _make_source(source: Optional[UniformVariateSource], seed: SeedLike) -> UniformVariateSource:
    if source is not None and seed is not None:
        raise ConfigurationError("Pass either source or seed, not both")
    return source if source is not None else UniformVariateSource(seed)


def integrate(
    integrand: Integrand,
    distribution: SamplingDistribution,
    range_min: float,
    range_max: float,
    n_samples: int = 1_000_000,
    source: Optional[UniformVariateSource] = None,
    seed: SeedLike = None,
    progress: Optional[ProgressCallback] = None,
) -> RunResult:
    """Convenience function for a fixed-count run.

    Shorthand for creating a :class:`ConvergenceDriver` and calling
    :meth:`ConvergenceDriver.run_fixed`. Give either an existing ``source``
    or a ``seed`` for a new one.
    """
    driver = ConvergenceDriver(
        integrand, distribution, range_min, range_max, _make_source(source, seed)
    )
    return driver.run_fixed(n_samples, progress=progress)


def integrate_until(
    integrand: Integrand,
    distribution: SamplingDistribution,
    range_min: float,
    range_max: float,
    target_error: float,
    max_iterations: Optional[int] = None,
    source: Optional[UniformVariateSource] = None,
    seed: SeedLike = None,
) -> RunResult:
    """Convenience function for a threshold run.

    Shorthand for creating a :class:`ConvergenceDriver` and calling
    :meth:`ConvergenceDriver.run_until`.
    """
    driver = ConvergenceDriver(
        integrand, distribution, range_min, range_max, _make_source(source, seed)
    )
    return driver.run_until(target_error, max_iterations=max_iterations)

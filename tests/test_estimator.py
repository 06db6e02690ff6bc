"""Tests for the online estimators."""

import math

import numpy as np
import pytest

from importance_montecarlo import IncrementalEstimator, RunningEstimate


class TestRunningEstimate:
    """Exact incremental mean."""

    def test_starts_empty(self):
        mean = RunningEstimate()
        assert mean.value == 0.0
        assert mean.sample_index == 0

    def test_first_fold_is_the_value(self):
        """After one fold the mean is that value exactly."""
        mean = RunningEstimate()
        mean.fold(3.25)
        assert mean.value == 3.25
        assert mean.sample_index == 1

    def test_matches_arithmetic_mean(self):
        """A deterministic sequence gives its arithmetic mean."""
        values = [1.0, 4.0, -2.5, 10.0, 0.125, 7.0, 3.0]
        mean = RunningEstimate()
        for v in values:
            mean.fold(v)
        assert mean.value == pytest.approx(sum(values) / len(values), rel=1e-14)
        assert mean.sample_index == len(values)

    def test_matches_numpy_mean_long_sequence(self):
        """A long non-random sequence matches numpy's mean."""
        values = [math.sin(i) * i for i in range(10_000)]
        mean = RunningEstimate()
        for v in values:
            mean.fold(v)
        assert mean.value == pytest.approx(np.mean(values), rel=1e-10, abs=1e-10)

    def test_fold_returns_value(self):
        mean = RunningEstimate()
        assert mean.fold(2.0) == 2.0
        assert mean.fold(4.0) == 3.0

    def test_constant_sequence(self):
        """Folding a constant keeps the mean at that constant."""
        mean = RunningEstimate()
        for _ in range(1000):
            mean.fold(math.pi / 2)
        assert mean.value == pytest.approx(math.pi / 2, rel=1e-15)

    @pytest.mark.parametrize("bad", [math.inf, -math.inf, math.nan])
    def test_non_finite_propagates(self, bad):
        """A non-finite value is not suppressed by later finite folds."""
        mean = RunningEstimate()
        mean.fold(1.0)
        mean.fold(bad)
        for _ in range(100):
            mean.fold(1.0)
        assert not math.isfinite(mean.value)


class TestIncrementalEstimator:
    """Running estimate with squared-error trace."""

    def test_blind_mode(self):
        """Without a true value there is no error trace."""
        estimator = IncrementalEstimator()
        estimator.fold(1.0)
        estimator.fold(2.0)
        assert estimator.value == 1.5
        assert estimator.sample_index == 2
        assert not estimator.tracks_error
        assert estimator.error is None
        assert estimator.mean_squared_error is None
        assert estimator.std_dev is None

    def test_error_trace(self):
        """The trace is the running mean of (value - truth)^2 after each fold."""
        estimator = IncrementalEstimator(true_value=1.0)
        folds = [2.0, 0.0, 4.0]
        running_values = []
        for v in folds:
            running_values.append(estimator.fold(v))
        # running means: 2.0, 1.0, 2.0
        assert running_values == [2.0, 1.0, 2.0]
        expected_mse = ((2.0 - 1.0) ** 2 + 0.0 + (2.0 - 1.0) ** 2) / 3
        assert estimator.mean_squared_error == pytest.approx(expected_mse)
        assert estimator.std_dev == pytest.approx(math.sqrt(expected_mse))
        assert estimator.error == pytest.approx(1.0)

    def test_signed_error(self):
        estimator = IncrementalEstimator(true_value=5.0)
        estimator.fold(3.0)
        assert estimator.error == -2.0

    def test_non_finite_propagates_to_trace(self):
        """An infinite estimate makes value, error and std_dev non-finite."""
        estimator = IncrementalEstimator(true_value=0.0)
        estimator.fold(1.0)
        estimator.fold(math.inf)
        estimator.fold(1.0)
        assert not math.isfinite(estimator.value)
        assert not math.isfinite(estimator.error)
        assert not math.isfinite(estimator.std_dev)

"""Online (constant-memory) running mean and error estimation."""

import math
from typing import Optional


class RunningEstimate:
    """Exact running mean updated one value at a time.

    After ``n`` folds, ``value`` is the arithmetic mean of the folded values
    (up to floating-point rounding). Non-finite input propagates into
    ``value`` and stays there.

    Example:
        >>> mean = RunningEstimate()
        >>> for v in (1.0, 2.0, 6.0):
        ...     _ = mean.fold(v)
        >>> mean.value, mean.sample_index
        (3.0, 3)
    """

    __slots__ = ("value", "sample_index")

    def __init__(self):
        self.value = 0.0
        self.sample_index = 0

    def fold(self, x: float) -> float:
        """Fold ``x`` into the mean with weight ``1 / sample_index``."""
        self.sample_index += 1
        self.value += (x - self.value) / self.sample_index
        return self.value

    def __repr__(self):
        return f"RunningEstimate(value={self.value!r}, sample_index={self.sample_index})"


class IncrementalEstimator:
    """Running integral estimate with an optional squared-error trace.

    When ``true_value`` is given, every fold also folds
    ``(value - true_value)^2`` into a second running mean, giving a live
    mean squared error and standard deviation for diagnostics. Blind
    estimation (``true_value=None``) skips the trace.
    """

    def __init__(self, true_value: Optional[float] = None):
        self.true_value = true_value
        self._estimate = RunningEstimate()
        self._squared_error = RunningEstimate() if true_value is not None else None

    @property
    def value(self) -> float:
        return self._estimate.value

    @property
    def sample_index(self) -> int:
        return self._estimate.sample_index

    @property
    def tracks_error(self) -> bool:
        return self._squared_error is not None

    def fold(self, sample_estimate: float) -> float:
        """Fold one per-sample estimate; returns the updated value."""
        value = self._estimate.fold(sample_estimate)
        if self._squared_error is not None:
            difference = value - self.true_value
            self._squared_error.fold(difference * difference)
        return value

    @property
    def error(self) -> Optional[float]:
        """Signed error ``value - true_value``, or None when blind."""
        if self.true_value is None:
            return None
        return self._estimate.value - self.true_value

    @property
    def mean_squared_error(self) -> Optional[float]:
        if self._squared_error is None:
            return None
        return self._squared_error.value

    @property
    def std_dev(self) -> Optional[float]:
        """Square root of the running mean squared error, or None when blind."""
        if self._squared_error is None:
            return None
        return math.sqrt(self._squared_error.value)

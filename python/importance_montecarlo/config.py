"""Run parameters, defaults and their validation.

All configuration is passed as keyword arguments; this module only holds the
defaults and the checks that reject a bad configuration before a run starts.
"""

import math
import numbers
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

# Uniform variates pulled from the generator per refill.
DEFAULT_BLOCK_SIZE = 4096

# Fixed-count progress is reported at n // d for each divisor (plus sample 1).
DEFAULT_CHECKPOINT_DIVISORS = (4096, 1024, 256, 64, 16, 4, 1)


@dataclass(frozen=True)
class IntegrationRange:
    """Closed interval ``[range_min, range_max]`` to integrate over.

    Raises:
        ConfigurationError: If either bound is not finite or the range is
            empty or reversed.
    """

    range_min: float
    range_max: float

    def __post_init__(self):
        for name, bound in (("range_min", self.range_min), ("range_max", self.range_max)):
            if not isinstance(bound, numbers.Real):
                raise ConfigurationError(f"{name} must be a real number, got {bound!r}")
            if not math.isfinite(bound):
                raise ConfigurationError(f"{name} must be finite, got {bound}")
        if self.range_min >= self.range_max:
            raise ConfigurationError(
                f"Degenerate range [{self.range_min}, {self.range_max}]: "
                "range_min must be strictly less than range_max"
            )
        object.__setattr__(self, "range_min", float(self.range_min))
        object.__setattr__(self, "range_max", float(self.range_max))

    @property
    def width(self) -> float:
        return self.range_max - self.range_min

    def __iter__(self):
        yield self.range_min
        yield self.range_max


def _validate_positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return int(value)


def validate_sample_count(n_samples) -> int:
    """Return ``n_samples`` as an int, rejecting zero or negative budgets."""
    return _validate_positive_int("n_samples", n_samples)


def validate_trial_count(n_trials) -> int:
    """Return ``n_trials`` as an int, rejecting zero or negative counts."""
    return _validate_positive_int("n_trials", n_trials)


def validate_max_iterations(max_iterations) -> Optional[int]:
    """Return the iteration cap, or None when threshold runs are unbounded."""
    if max_iterations is None:
        return None
    return _validate_positive_int("max_iterations", max_iterations)


def validate_target_error(target_error) -> float:
    """Return ``target_error`` as a float, rejecting non-positive targets."""
    if isinstance(target_error, bool) or not isinstance(target_error, numbers.Real):
        raise ConfigurationError(f"target_error must be a real number, got {target_error!r}")
    if not math.isfinite(target_error) or target_error <= 0:
        raise ConfigurationError(
            f"target_error must be positive and finite, got {target_error}"
        )
    return float(target_error)


def checkpoints_for(n_samples: int, divisors=DEFAULT_CHECKPOINT_DIVISORS) -> frozenset:
    """Sample indices at which fixed-count progress is reported.

    Always includes the first sample. Divisors larger than ``n_samples``
    produce no checkpoint.
    """
    points = {1}
    for divisor in divisors:
        index = n_samples // divisor
        if index >= 1:
            points.add(index)
    return frozenset(points)

"""Sampling distributions for Monte Carlo integration.

A sampling distribution pairs a variate generator with the probability
density of the variates it produces. Non-uniform distributions are sampled by
inverse transform: a uniform ``u`` in ``[0, 1)`` is mapped through the inverse
cumulative distribution function. Rejection sampling is never used.

Every distribution must satisfy two properties over the range it is used on:

* ``density`` integrates to 1, and
* ``density`` is strictly positive wherever ``generate`` can land.

These are proven when the density is derived, not checked at runtime.
Violating them biases the estimate or, for a zero density, turns it into
``inf``/``nan`` in the result.

Examples:
    >>> uniform = SamplingDistribution.uniform()
    >>> sin_pdf = SamplingDistribution.sin()
    >>> cubic = SamplingDistribution.power(3)
    >>> custom = SamplingDistribution.from_functions(
    ...     "PDF y=2x", lambda u, a, b: math.sqrt(u), lambda x, a, b: 2.0 * x
    ... )
"""

import math
import numbers
from abc import ABC, abstractmethod
from typing import Callable

from scipy.optimize import brentq

from .errors import ConfigurationError
from .random_source import UniformVariateSource

InverseCdf = Callable[[float, float, float], float]
Pdf = Callable[[float, float, float], float]


def ieee_divide(numerator: float, denominator: float) -> float:
    """Divide with IEEE 754 semantics instead of raising ZeroDivisionError.

    ``f / 0`` is ``+-inf`` (sign from both operands) and ``0 / 0`` is ``nan``.
    """
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0.0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


class SamplingDistribution(ABC):
    """Base class for sampling distributions over ``[range_min, range_max]``."""

    name: str = "distribution"

    @abstractmethod
    def generate(
        self, source: UniformVariateSource, range_min: float, range_max: float
    ) -> float:
        """Draw one variate in ``[range_min, range_max]`` using ``source``."""
        pass

    @abstractmethod
    def density(self, x: float, range_min: float, range_max: float) -> float:
        """Probability density of ``x`` under this distribution."""
        pass

    def validate_range(self, range_min: float, range_max: float) -> None:
        """Reject ranges on which the density is not valid.

        The default accepts every range. Raises ConfigurationError otherwise.
        """
        return None

    def sample_estimate(
        self, f_value: float, x: float, range_min: float, range_max: float
    ) -> float:
        """Unbiased single-sample estimate of the integral, ``F(x) / p(x)``."""
        return ieee_divide(f_value, self.density(x, range_min, range_max))

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"

    # Factory methods, mirroring the classes below.

    @staticmethod
    def uniform() -> "UniformDistribution":
        return UniformDistribution()

    @staticmethod
    def sin() -> "SinDistribution":
        return SinDistribution()

    @staticmethod
    def half_cos() -> "HalfCosDistribution":
        return HalfCosDistribution()

    @staticmethod
    def power(power: float) -> "PowerDistribution":
        return PowerDistribution(power)

    @staticmethod
    def sin_squared() -> "SinSquaredDistribution":
        return SinSquaredDistribution()

    @staticmethod
    def from_functions(name: str, inverse_cdf: InverseCdf, pdf: Pdf) -> "FunctionDistribution":
        return FunctionDistribution(name, inverse_cdf, pdf)


class UniformDistribution(SamplingDistribution):
    """Uniform distribution; draws directly from the source.

    The per-sample estimate is ``F(x) * (range_max - range_min)``, which is
    ``F(x) / p(x)`` with ``p = 1 / width`` without the extra division.
    """

    name = "uniform"

    def generate(self, source, range_min, range_max):
        return source.uniform(range_min, range_max)

    def density(self, x, range_min, range_max):
        return 1.0 / (range_max - range_min)

    def sample_estimate(self, f_value, x, range_min, range_max):
        return f_value * (range_max - range_min)


class InverseCdfDistribution(SamplingDistribution):
    """Distribution sampled as ``x = inverse_cdf(u)`` with ``u`` uniform on [0, 1).

    Subclasses must provide an inverse CDF that is monotonic on ``[0, 1)``,
    maps 0 to ``range_min`` and approaches ``range_max`` as ``u -> 1``.
    """

    @abstractmethod
    def inverse_cdf(self, u: float, range_min: float, range_max: float) -> float:
        pass

    def generate(self, source, range_min, range_max):
        return self.inverse_cdf(source.next(), range_min, range_max)


class FunctionDistribution(InverseCdfDistribution):
    """Inverse-CDF distribution assembled from a hand-derived callable pair.

    Args:
        name: Label used in reports.
        inverse_cdf: ``inverse_cdf(u, range_min, range_max) -> x``.
        pdf: ``pdf(x, range_min, range_max) -> p``.
    """

    def __init__(self, name: str, inverse_cdf: InverseCdf, pdf: Pdf):
        if not callable(inverse_cdf):
            raise ConfigurationError("inverse_cdf must be callable")
        if not callable(pdf):
            raise ConfigurationError("pdf must be callable")
        self.name = name
        self._inverse_cdf = inverse_cdf
        self._pdf = pdf

    def inverse_cdf(self, u, range_min, range_max):
        return self._inverse_cdf(u, range_min, range_max)

    def density(self, x, range_min, range_max):
        return self._pdf(x, range_min, range_max)


def _require_within(dist: SamplingDistribution, range_min, range_max, low, high, domain):
    if range_min < low or range_max > high:
        raise ConfigurationError(
            f"{dist.name} is only a valid density on {domain}, "
            f"got range [{range_min}, {range_max}]"
        )


class SinDistribution(InverseCdfDistribution):
    """Density proportional to ``sin(x)``, valid on sub-ranges of ``[0, pi]``.

    On ``[a, b]``::

        pdf(x)     = sin(x) / (cos(a) - cos(b))
        CDF(x)     = (cos(a) - cos(x)) / (cos(a) - cos(b))
        CDF^-1(u)  = arccos(cos(a) - u * (cos(a) - cos(b)))

    On ``[0, pi]`` this is ``sin(x) / 2`` with ``CDF^-1(u) = 2 asin(sqrt(u))``.
    """

    name = "PDF y=sin(x)"

    def validate_range(self, range_min, range_max):
        _require_within(self, range_min, range_max, 0.0, math.pi, "[0, pi]")

    def inverse_cdf(self, u, range_min, range_max):
        cos_min = math.cos(range_min)
        cos_max = math.cos(range_max)
        # clamp guards against cos(a) - (cos(a) - cos(b)) rounding past -1
        return math.acos(max(-1.0, min(1.0, cos_min - u * (cos_min - cos_max))))

    def density(self, x, range_min, range_max):
        return math.sin(x) / (math.cos(range_min) - math.cos(range_max))


class HalfCosDistribution(InverseCdfDistribution):
    """Density proportional to ``cos(x / 2)``, valid on sub-ranges of ``[-pi, pi]``.

    On ``[0, pi]`` this is ``cos(x / 2) / 2`` with ``CDF^-1(u) = 2 asin(u)``.
    """

    name = "PDF y=cos(x/2)"

    def validate_range(self, range_min, range_max):
        _require_within(self, range_min, range_max, -math.pi, math.pi, "[-pi, pi]")

    def inverse_cdf(self, u, range_min, range_max):
        sin_min = math.sin(range_min / 2.0)
        sin_max = math.sin(range_max / 2.0)
        return 2.0 * math.asin(max(-1.0, min(1.0, sin_min + u * (sin_max - sin_min))))

    def density(self, x, range_min, range_max):
        normaliser = 2.0 * (math.sin(range_max / 2.0) - math.sin(range_min / 2.0))
        return math.cos(x / 2.0) / normaliser


class PowerDistribution(InverseCdfDistribution):
    """Density proportional to ``(x - range_min)^k`` for ``k >= 0``.

    On ``[a, b]``::

        pdf(x)     = (k + 1) * (x - a)^k / (b - a)^(k + 1)
        CDF^-1(u)  = a + (b - a) * u^(1 / (k + 1))

    On ``[0, pi]``, ``k = 2`` and ``k = 5`` give ``(x/pi)^2 * 3/pi`` and
    ``(x/pi)^5 * 6/pi``.
    """

    def __init__(self, power: float):
        if isinstance(power, bool) or not isinstance(power, numbers.Real):
            raise ConfigurationError(f"power must be a number, got {power!r}")
        if not math.isfinite(power) or power < 0:
            raise ConfigurationError(f"power must be finite and >= 0, got {power}")
        self.power = float(power)
        self.name = f"PDF y=x^{self.power:g}"

    def inverse_cdf(self, u, range_min, range_max):
        return range_min + (range_max - range_min) * u ** (1.0 / (self.power + 1.0))

    def density(self, x, range_min, range_max):
        width = range_max - range_min
        t = (x - range_min) / width
        return (self.power + 1.0) * t**self.power / width


class SinSquaredDistribution(InverseCdfDistribution):
    """Density proportional to ``sin(x)^2``; matches the ``sin^2`` integrand exactly.

    The CDF ``(G(x) - G(a)) / (G(b) - G(a))`` with ``G(x) = x/2 - sin(2x)/4``
    has no closed-form inverse, so each draw solves ``CDF(x) = u`` with
    Brent's method. The CDF is strictly increasing on any range of positive
    width, so the root is unique.
    """

    name = "PDF y=sin(x)^2"

    def __init__(self, xtol: float = 1e-14):
        self.xtol = xtol

    @staticmethod
    def _primitive(x: float) -> float:
        return x / 2.0 - math.sin(2.0 * x) / 4.0

    def _normaliser(self, range_min, range_max):
        return self._primitive(range_max) - self._primitive(range_min)

    def cdf(self, x: float, range_min: float, range_max: float) -> float:
        base = self._primitive(range_min)
        return (self._primitive(x) - base) / self._normaliser(range_min, range_max)

    def inverse_cdf(self, u, range_min, range_max):
        if u <= 0.0:
            return range_min
        return brentq(
            lambda x: self.cdf(x, range_min, range_max) - u,
            range_min,
            range_max,
            xtol=self.xtol,
        )

    def density(self, x, range_min, range_max):
        s = math.sin(x)
        return s * s / self._normaliser(range_min, range_max)

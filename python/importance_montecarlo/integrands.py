"""Integrands: a function paired with its closed-form antiderivative.

The antiderivative is only used to compute the true value of the integral,
``antiderivative(range_max) - antiderivative(range_min)``, against which runs
measure their error. The engine never inspects a symbolic form.
"""

import math
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .errors import ConfigurationError


class Integrand(ABC):
    """Base class for functions to integrate."""

    name: str = "integrand"

    @abstractmethod
    def evaluate(self, x: float) -> float:
        """Evaluate ``F(x)``."""
        pass

    @abstractmethod
    def antiderivative(self, x: float) -> float:
        """Evaluate the exact antiderivative ``A(x)``."""
        pass

    @property
    def has_antiderivative(self) -> bool:
        return True

    def true_value(self, range_min: float, range_max: float) -> Optional[float]:
        """Exact integral over ``[range_min, range_max]``, or None if unknown."""
        if not self.has_antiderivative:
            return None
        return self.antiderivative(range_max) - self.antiderivative(range_min)

    def __call__(self, x: float) -> float:
        return self.evaluate(x)

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionIntegrand(Integrand):
    """Integrand assembled from plain callables.

    Without an antiderivative the integrand has no ground truth and can only
    be used for blind fixed-count runs.

    Example:
        >>> cube = FunctionIntegrand("y=x^3", lambda x: x**3, lambda x: x**4 / 4)
        >>> cube.true_value(0.0, 2.0)
        4.0
    """

    def __init__(
        self,
        name: str,
        function: Callable[[float], float],
        antiderivative: Optional[Callable[[float], float]] = None,
    ):
        if not callable(function):
            raise ConfigurationError("function must be callable")
        if antiderivative is not None and not callable(antiderivative):
            raise ConfigurationError("antiderivative must be callable or None")
        self.name = name
        self._function = function
        self._antiderivative = antiderivative

    def evaluate(self, x: float) -> float:
        return self._function(x)

    def antiderivative(self, x: float) -> float:
        if self._antiderivative is None:
            raise NotImplementedError(f"{self.name} has no known antiderivative")
        return self._antiderivative(x)

    @property
    def has_antiderivative(self) -> bool:
        return self._antiderivative is not None


class SinSquared(Integrand):
    """``y = sin(x)^2``; integrates to ``pi / 2`` over ``[0, pi]``."""

    name = "y=sin(x)^2"

    def evaluate(self, x: float) -> float:
        s = math.sin(x)
        return s * s

    def antiderivative(self, x: float) -> float:
        return x / 2.0 - math.sin(2.0 * x) / 4.0


class Sin(Integrand):
    """``y = sin(x)``; integrates to 2 over ``[0, pi]``."""

    name = "y=sin(x)"

    def evaluate(self, x: float) -> float:
        return math.sin(x)

    def antiderivative(self, x: float) -> float:
        return -math.cos(x)

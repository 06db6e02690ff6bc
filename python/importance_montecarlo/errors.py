"""Exceptions raised by the Monte Carlo engine."""


class MonteCarloError(Exception):
    """Base class for errors raised by importance_montecarlo."""

    pass


class ConfigurationError(MonteCarloError, ValueError):
    """Error raised when a run is configured with invalid parameters.

    Raised before any sample is drawn. Invalid parameters are never coerced
    into valid ones.
    """

    pass

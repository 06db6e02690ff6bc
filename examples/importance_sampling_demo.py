#!/usr/bin/env python3
"""Importance Sampling Example

Compare sampling distributions for y = sin(x)^2 on [0, pi]:

1. Run each until its error is below a target and report how many samples
   that took (min / max / average over many runs).
2. Run each for a fixed budget and report the error spread.
3. Show what happens when the density does not cover the integrand.
"""

import logging
import math

from importance_montecarlo import (
    SamplingDistribution,
    SinSquared,
    compare_distributions,
    integrate,
)
from importance_montecarlo.report import format_comparison, format_result

logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

distributions = [
    SamplingDistribution.uniform(),
    SamplingDistribution.power(2),
    SamplingDistribution.sin(),
    SamplingDistribution.sin_squared(),
]

# Stopping on the true error only works because the answer is known here;
# it is a way to compare distributions, not a practical stopping rule.
until_target = compare_distributions(
    SinSquared(),
    distributions,
    0.0,
    math.pi,
    n_trials=100,
    target_error=1e-4,
    max_iterations=5_000_000,
    seed=42,
)
print(format_comparison(until_target))
print()

fixed_budget = compare_distributions(
    SinSquared(),
    distributions,
    0.0,
    math.pi,
    n_trials=1000,
    n_samples=10_000,
    seed=42,
)
print(format_comparison(fixed_budget))
print()

# A pdf that is zero on (pi/2, pi] while samples still land there
mismatched = SamplingDistribution.from_functions(
    "PDF zero on upper half",
    lambda u, a, b: a + u * (b - a),
    lambda x, a, b: 2.0 / (b - a) if x <= (a + b) / 2.0 else 0.0,
)
print(format_result(integrate(SinSquared(), mismatched, 0.0, math.pi, n_samples=10_000, seed=42)))

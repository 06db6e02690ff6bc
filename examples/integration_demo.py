#!/usr/bin/env python3
"""Monte Carlo Integration Example

Integrate y = sin(x)^2 over [0, pi] (exact answer pi/2) three ways, then show
how the running estimate converges for several sampling densities.
"""

import math

from importance_montecarlo import (
    SamplingDistribution,
    Sin,
    SinSquared,
    UniformVariateSource,
    integrate,
)
from importance_montecarlo.report import format_header, progress_printer

RANGE_MIN = 0.0
RANGE_MAX = math.pi
N_SAMPLES = 1_000_000

source = UniformVariateSource()

# 1) Average height times width
simple = integrate(SinSquared(), SamplingDistribution.uniform(), RANGE_MIN, RANGE_MAX, 10_000, source=source)
print(f"Simple Monte Carlo says: {simple.value:f}\n")

# 2) Same thing written as F(x) / pdf(x) with a uniform pdf
general = integrate(
    SinSquared(),
    SamplingDistribution.from_functions(
        "PDF y=1/pi", lambda u, a, b: a + u * (b - a), lambda x, a, b: 1.0 / (b - a)
    ),
    RANGE_MIN,
    RANGE_MAX,
    10_000,
    source=source,
)
print(f"General Monte Carlo says: {general.value:f}\n")

# 3) Importance sampled with a pdf shaped like sin(x)
importance = integrate(SinSquared(), SamplingDistribution.sin(), RANGE_MIN, RANGE_MAX, 10_000, source=source)
print(f"Importance Sampled Monte Carlo says: {importance.value:f}\n")

runs = [
    (SinSquared(), SamplingDistribution.uniform()),
    (SinSquared(), SamplingDistribution.sin()),
    (SinSquared(), SamplingDistribution.half_cos()),
    (SinSquared(), SamplingDistribution.power(5)),
    (SinSquared(), SamplingDistribution.power(2)),
    (SinSquared(), SamplingDistribution.sin_squared()),
    (Sin(), SamplingDistribution.uniform()),
    (Sin(), SamplingDistribution.sin()),
]

for integrand, distribution in runs:
    print(
        format_header(
            integrand.name,
            RANGE_MIN,
            RANGE_MAX,
            integrand.true_value(RANGE_MIN, RANGE_MAX),
            N_SAMPLES,
            distribution.name,
        )
    )
    integrate(
        integrand,
        distribution,
        RANGE_MIN,
        RANGE_MAX,
        N_SAMPLES,
        source=source,
        progress=progress_printer(),
    )
    print()

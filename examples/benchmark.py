"""Error scaling benchmark.

Measures the average absolute error of y = sin(x)^2 on [0, pi] across sample
budgets for several sampling distributions, and plots it against the
1/sqrt(N) reference. Quadrupling the samples should halve the error.
"""

import math
import time

import numpy as np
from matplotlib import pyplot as plt

from importance_montecarlo import SamplingDistribution, SinSquared, TrialAggregator, UniformVariateSource

SAMPLE_SIZES = [64, 256, 1024, 4096, 16384]
N_TRIALS = 200

distributions = [
    SamplingDistribution.uniform(),
    SamplingDistribution.power(2),
    SamplingDistribution.sin(),
]

source = UniformVariateSource(seed=2024)
errors = {dist.name: [] for dist in distributions}

for dist in distributions:
    aggregator = TrialAggregator(SinSquared(), dist, 0.0, math.pi, source)
    for n_samples in SAMPLE_SIZES:
        start = time.time()
        summary = aggregator.run_fixed(n_samples=n_samples, n_trials=N_TRIALS)
        elapsed = time.time() - start
        errors[dist.name].append(summary.average)
        print(
            f"{dist.name:>16} N={n_samples:>6}: avg |error| = {summary.average:.6f} "
            f"(min {summary.minimum:.6f}, max {summary.maximum:.6f}) in {elapsed:.2f}s"
        )

    ratios = np.array(errors[dist.name][:-1]) / np.array(errors[dist.name][1:])
    print(f"{dist.name:>16} error ratio per 4x samples: {np.round(ratios, 2)}\n")

plt.figure(figsize=(8, 6), dpi=100, layout="constrained")
for name, values in errors.items():
    plt.loglog(SAMPLE_SIZES, values, "o-", label=name, linewidth=2, markersize=8)

reference = errors[distributions[0].name][0] * np.sqrt(SAMPLE_SIZES[0] / np.array(SAMPLE_SIZES))
plt.loglog(SAMPLE_SIZES, reference, "k--", label="1/sqrt(N)", linewidth=1)

plt.xlabel("Number of Samples", fontsize=12)
plt.ylabel("Average Absolute Error", fontsize=12)
plt.title("Monte Carlo Error vs Sample Count", fontsize=14)
plt.legend(fontsize=11)
plt.show()

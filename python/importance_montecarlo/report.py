"""Plain-text formatting of progress, run results and trial summaries."""

import sys
from typing import Mapping, Optional, TextIO

from .driver import ProgressCallback, ProgressReport, RunResult, RunState
from .trials import FIXED_COUNT, TrialSummary


def _signed(value: float) -> str:
    return f"{value:+f}"


def format_header(
    integrand_name: str,
    range_min: float,
    range_max: float,
    true_value: Optional[float],
    n_samples: int,
    distribution_name: Optional[str] = None,
) -> str:
    lines = [f"Integrating {integrand_name} from {range_min:f} to {range_max:f}"]
    if true_value is not None:
        lines.append(f"The actual answer is {true_value:f}")
    sampling = f"Doing Monte Carlo integration with {n_samples} samples"
    if distribution_name is not None:
        sampling += f", using {distribution_name}"
    lines.append(sampling + ":")
    return "\n".join(lines)


def format_progress(report: ProgressReport) -> str:
    """One progress line, e.g. ``[      4096] 1.570524  (-0.000272) (estimate stddev: 0.001873)``."""
    line = f"[{report.sample_index:>10d}] {report.estimate:f}"
    if report.error is not None:
        line += f"  ({_signed(report.error)}) (estimate stddev: {report.std_dev:f})"
    return line


def format_result(result: RunResult) -> str:
    line = f"{result.integrand} with {result.distribution}: {result.value:f} after {result.sample_count} samples"
    if result.error is not None:
        line += f" (error {_signed(result.error)})"
    if result.state is RunState.EXCEEDED_MAX_ITERATIONS:
        line += " [did not converge]"
    return line


def format_summary(summary: TrialSummary) -> str:
    """Multi-line min/max/average block for one trial configuration."""
    if summary.mode == FIXED_COUNT:
        title = f"{summary.n_trials} runs of {int(summary.parameter)} samples, absolute error"
        fmt = "{:f}"
    else:
        title = f"{summary.n_trials} runs until error <= {summary.parameter:g}, samples needed"
        fmt = "{:.1f}"
    lines = [
        f"{summary.integrand} using {summary.distribution}: {title}",
        f"  min: {fmt.format(summary.minimum)}",
        f"  max: {fmt.format(summary.maximum)}",
        f"  avg: {fmt.format(summary.average)}",
    ]
    if summary.failures:
        lines.append(f"  did not converge: {summary.failures}")
    if summary.non_finite:
        lines.append(f"  non-finite outcomes: {summary.non_finite}")
    return "\n".join(lines)


def format_comparison(summaries: Mapping[str, TrialSummary]) -> str:
    return "\n\n".join(format_summary(summary) for summary in summaries.values())


def progress_printer(stream: Optional[TextIO] = None) -> ProgressCallback:
    """Return a progress callback that writes :func:`format_progress` lines."""

    def _print(report: ProgressReport) -> None:
        print(format_progress(report), file=stream if stream is not None else sys.stdout)

    return _print

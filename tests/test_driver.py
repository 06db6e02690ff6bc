"""Tests for single integration runs."""

import logging
import math

import pytest

from importance_montecarlo import (
    ConfigurationError,
    ConvergenceDriver,
    FunctionDistribution,
    FunctionIntegrand,
    MonteCarloError,
    RunState,
    SamplingDistribution,
    Sin,
    SinSquared,
    UniformVariateSource,
    integrate,
    integrate_until,
)

PI = math.pi


def make_driver(distribution=None, integrand=None, seed=42, range_min=0.0, range_max=PI):
    return ConvergenceDriver(
        integrand or SinSquared(),
        distribution or SamplingDistribution.uniform(),
        range_min,
        range_max,
        UniformVariateSource(seed),
    )


class TestFixedCount:
    """Fixed sample count mode."""

    def test_exact_sample_count(self):
        """A fixed run folds exactly n_samples samples."""
        result = make_driver().run_fixed(1234)
        assert result.sample_count == 1234
        assert result.state is RunState.COMPLETED_FIXED_COUNT
        assert not result.converged

    def test_result_fields(self):
        """Result carries ground truth, signed error and names."""
        result = make_driver().run_fixed(1000)
        assert result.true_value == pytest.approx(PI / 2)
        assert result.error == pytest.approx(result.value - PI / 2)
        assert result.absolute_error == abs(result.error)
        assert result.std_dev is not None and result.std_dev >= 0.0
        assert result.integrand == "y=sin(x)^2"
        assert result.distribution == "uniform"
        assert result.is_finite

    def test_reasonable_estimate(self):
        """Uniform sampling with 100k samples lands near pi/2."""
        result = make_driver().run_fixed(100_000)
        assert abs(result.value - PI / 2) < 0.05

    def test_importance_sampled_estimate(self):
        """The sin(x) density estimates sin^2 with lower variance."""
        result = make_driver(SamplingDistribution.sin()).run_fixed(100_000)
        assert abs(result.value - PI / 2) < 0.01

    def test_sin_squared_density_is_exact(self):
        """A density matching the integrand gives the answer on every sample."""
        result = make_driver(SamplingDistribution.sin_squared()).run_fixed(200)
        assert result.value == pytest.approx(PI / 2, rel=1e-10)

    def test_other_integrand(self):
        """sin(x) integrates to 2."""
        result = make_driver(SamplingDistribution.sin(), integrand=Sin()).run_fixed(10)
        assert result.value == pytest.approx(2.0, rel=1e-12)

    def test_seed_reproducibility(self):
        """Equal seeds give equal results."""
        a = make_driver(seed=7).run_fixed(5000)
        b = make_driver(seed=7).run_fixed(5000)
        assert a.value == b.value

    def test_sub_range(self):
        """Integration works on ranges other than [0, pi]."""
        result = make_driver(range_min=-1.0, range_max=2.0).run_fixed(100_000)
        assert result.error is not None
        assert abs(result.error) < 0.05

    def test_blind_run(self):
        """An integrand without antiderivative still integrates, without error."""
        integrand = FunctionIntegrand("y=exp(-x^2)", lambda x: math.exp(-x * x))
        result = make_driver(integrand=integrand, range_min=0.0, range_max=1.0).run_fixed(50_000)
        assert result.true_value is None
        assert result.error is None
        assert result.std_dev is None
        assert abs(result.value - 0.746824) < 0.01


class TestThreshold:
    """Iterate-until-error-below-target mode."""

    def test_meets_own_criterion(self):
        """The run stops at an index where the error is within the target."""
        result = make_driver(SamplingDistribution.sin()).run_until(1e-3)
        assert result.state is RunState.COMPLETED_THRESHOLD
        assert result.converged
        assert abs(result.value - PI / 2) <= 1e-3
        assert result.sample_count >= 1

    def test_exact_density_stops_after_one_sample(self):
        """A perfect density converges on the first fold."""
        result = make_driver(SamplingDistribution.sin_squared()).run_until(1e-9)
        assert result.sample_count == 1
        assert result.converged

    def test_stops_at_first_crossing(self):
        """No earlier sample index satisfied the criterion."""
        seen = []
        driver = make_driver(SamplingDistribution.uniform(), seed=3)
        result = driver.run_until(
            1e-2,
            max_iterations=199_999,
            progress=lambda report: seen.append(report),
            checkpoints=range(1, 200_000),
        )
        assert result.converged
        assert [r.sample_index for r in seen] == list(range(1, result.sample_count + 1))
        assert all(abs(r.error) > 1e-2 for r in seen[:-1])
        assert abs(seen[-1].error) <= 1e-2

    def test_progress_without_checkpoints_rejected(self):
        """A callback that could never fire is a configuration error."""
        driver = make_driver()
        with pytest.raises(ConfigurationError, match="checkpoints"):
            driver.run_until(1e-2, max_iterations=1000, progress=lambda report: None)
        assert driver.state is RunState.READY

    def test_max_iterations_reported(self):
        """Hitting the cap is a distinct outcome, not a success."""
        result = make_driver().run_until(1e-12, max_iterations=50)
        assert result.state is RunState.EXCEEDED_MAX_ITERATIONS
        assert not result.converged
        assert result.sample_count == 50

    def test_requires_ground_truth(self):
        """Threshold mode without an antiderivative is rejected."""
        integrand = FunctionIntegrand("blind", math.sin)
        driver = make_driver(integrand=integrand)
        with pytest.raises(ConfigurationError):
            driver.run_until(1e-3)
        assert driver.state is RunState.READY

    def test_cap_warning_logged(self, caplog):
        """A run over its cap logs a warning."""
        with caplog.at_level(logging.WARNING, logger="importance_montecarlo.driver"):
            make_driver().run_until(1e-12, max_iterations=10)
        assert "did not reach target error" in caplog.text


class TestStateMachine:
    """Driver lifecycle."""

    def test_ready_then_completed(self):
        driver = make_driver()
        assert driver.state is RunState.READY
        driver.run_fixed(10)
        assert driver.state is RunState.COMPLETED_FIXED_COUNT

    def test_running_state_visible_during_run(self):
        """The driver is RUNNING while progress callbacks fire."""
        driver = make_driver()
        states = []
        driver.run_fixed(16, progress=lambda report: states.append(driver.state))
        assert states and all(s is RunState.RUNNING for s in states)

    def test_single_use(self):
        """A second run on the same driver is rejected."""
        driver = make_driver()
        driver.run_fixed(10)
        with pytest.raises(MonteCarloError):
            driver.run_fixed(10)
        with pytest.raises(MonteCarloError):
            driver.run_until(0.1)


class TestConfigurationErrors:
    """Bad configurations are rejected before any sample is drawn."""

    @pytest.mark.parametrize("bounds", [(1.0, 1.0), (2.0, 1.0), (0.0, math.inf), (math.nan, 1.0)])
    def test_degenerate_range(self, bounds):
        with pytest.raises(ConfigurationError):
            make_driver(range_min=bounds[0], range_max=bounds[1])

    @pytest.mark.parametrize("n_samples", [0, -5, 10.5, None, True])
    def test_invalid_sample_budget(self, n_samples):
        with pytest.raises(ConfigurationError):
            make_driver().run_fixed(n_samples)

    @pytest.mark.parametrize("target", [0.0, -1e-3, math.nan, math.inf, "0.1"])
    def test_invalid_target_error(self, target):
        with pytest.raises(ConfigurationError):
            make_driver().run_until(target)

    @pytest.mark.parametrize("cap", [0, -1, 2.5])
    def test_invalid_max_iterations(self, cap):
        with pytest.raises(ConfigurationError):
            make_driver().run_until(1e-3, max_iterations=cap)

    def test_distribution_range_mismatch(self):
        """The sin density is not valid beyond pi."""
        with pytest.raises(ConfigurationError):
            make_driver(SamplingDistribution.sin(), range_min=0.0, range_max=4.0)

    def test_wrong_types(self):
        with pytest.raises(TypeError):
            ConvergenceDriver(math.sin, SamplingDistribution.uniform(), 0.0, 1.0)
        with pytest.raises(TypeError):
            ConvergenceDriver(SinSquared(), "uniform", 0.0, 1.0)

    def test_rejected_config_leaves_driver_ready(self):
        driver = make_driver()
        with pytest.raises(ConfigurationError):
            driver.run_fixed(0)
        assert driver.state is RunState.READY


class TestProgress:
    """Progress callbacks at checkpoints."""

    def test_default_checkpoints(self):
        """Defaults are sample 1 and n // 4096 ... n // 1."""
        reports = []
        make_driver().run_fixed(8192, progress=reports.append)
        assert [r.sample_index for r in reports] == [1, 2, 8, 32, 128, 512, 2048, 8192]

    def test_small_budget_skips_zero_checkpoints(self):
        reports = []
        make_driver().run_fixed(10, progress=reports.append)
        assert [r.sample_index for r in reports] == [1, 2, 10]

    def test_custom_checkpoints(self):
        reports = []
        make_driver().run_fixed(100, progress=reports.append, checkpoints=[5, 50])
        assert [r.sample_index for r in reports] == [5, 50]

    def test_report_contents(self):
        """The final report matches the result."""
        reports = []
        result = make_driver().run_fixed(1000, progress=reports.append)
        last = reports[-1]
        assert last.sample_index == 1000
        assert last.estimate == result.value
        assert last.error == result.error
        assert last.std_dev == result.std_dev

    def test_progress_does_not_change_result(self):
        """Observing a run does not alter it."""
        observed = make_driver(seed=5).run_fixed(4096, progress=lambda r: None)
        plain = make_driver(seed=5).run_fixed(4096)
        assert observed.value == plain.value


class TestDensityMismatch:
    """A density that is zero where the integrand is not."""

    @staticmethod
    def half_support_distribution():
        # uniform draws over [0, pi], but claims zero density on (pi/2, pi]
        return FunctionDistribution(
            "PDF zero on upper half",
            lambda u, a, b: a + u * (b - a),
            lambda x, a, b: 2.0 / (b - a) if x <= (a + b) / 2.0 else 0.0,
        )

    def test_produces_non_finite_value(self):
        """Division by the zero density surfaces as a non-finite estimate."""
        result = make_driver(self.half_support_distribution()).run_fixed(1000)
        assert not result.is_finite
        assert not math.isfinite(result.error)

    def test_warning_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="importance_montecarlo.driver"):
            make_driver(self.half_support_distribution()).run_fixed(1000)
        assert "does not match integrand" in caplog.text

    def test_threshold_run_does_not_converge(self):
        """A corrupted run never meets its target and hits the cap."""
        result = make_driver(self.half_support_distribution()).run_until(1e-6, max_iterations=5000)
        assert result.state is RunState.EXCEEDED_MAX_ITERATIONS


class TestConvenienceFunctions:
    """integrate() and integrate_until()."""

    def test_integrate(self):
        result = integrate(SinSquared(), SamplingDistribution.sin(), 0.0, PI, n_samples=20_000, seed=1)
        assert result.sample_count == 20_000
        assert abs(result.error) < 0.02

    def test_integrate_with_source(self):
        source = UniformVariateSource(3)
        result = integrate(SinSquared(), SamplingDistribution.uniform(), 0.0, PI, 100, source=source)
        assert result.sample_count == 100

    def test_integrate_seed_and_source_conflict(self):
        with pytest.raises(ConfigurationError):
            integrate(
                SinSquared(),
                SamplingDistribution.uniform(),
                0.0,
                PI,
                100,
                source=UniformVariateSource(1),
                seed=1,
            )

    def test_integrate_until(self):
        result = integrate_until(SinSquared(), SamplingDistribution.sin(), 0.0, PI, 1e-3, seed=2)
        assert result.converged
        assert abs(result.error) <= 1e-3

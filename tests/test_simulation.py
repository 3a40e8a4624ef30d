"""Tests for simulation.py - Vasicek Monte Carlo engine."""

import math

import pytest
import numpy as np

from vasicek_credit import (
    VasicekEngine,
    ParallelVasicekEngine,
    SimulationResult,
    GeneratorStream,
    SequenceStream,
    Loan,
    Portfolio,
    DEFAULT_BATCH_SIZE,
    DEFAULT_SCENARIOS,
    InvalidInputError,
    InvalidParameterError,
    simulate
)
from vasicek_credit.lib import simulation as simulation_module
from vasicek_credit.lib.statistics import norm_cdf, norm_inv


class TestSimulationResult:
    """Tests for SimulationResult dataclass."""

    @pytest.fixture
    def sample_result(self):
        """Create a sample simulation result."""
        losses = np.sort(np.random.default_rng(42).exponential(1000, 1000))
        return SimulationResult(
            scenario_name="Sample",
            stress_factor=1.0,
            mean_expected_loss=float(np.mean(losses)),
            value_at_risk_99=float(losses[990]),
            losses=losses,
            processing_time_ms=1.0,
            rho=0.2
        )

    def test_num_iterations(self, sample_result):
        assert sample_result.num_iterations == 1000

    def test_loss_std(self, sample_result):
        assert sample_result.loss_std == np.std(sample_result.losses)

    def test_get_var_floor_index(self, sample_result):
        assert sample_result.get_var(0.99) == sample_result.losses[990]
        assert sample_result.get_var(0.95) == sample_result.losses[950]

    def test_get_expected_shortfall(self, sample_result):
        expected = np.mean(sample_result.losses[990:])
        assert sample_result.get_expected_shortfall(0.99) == pytest.approx(expected)
        assert sample_result.get_expected_shortfall(0.99) >= sample_result.get_var(0.99)

    def test_unexpected_loss(self, sample_result):
        assert sample_result.unexpected_loss == pytest.approx(
            sample_result.value_at_risk_99 - sample_result.mean_expected_loss
        )


class TestVasicekEngine:
    """Tests for VasicekEngine."""

    def test_three_loan_end_to_end(self, three_loan_portfolio):
        """With rho = 0 the single loss is the un-stressed expected loss, 246."""
        engine = VasicekEngine(GeneratorStream(0))
        result = engine.simulate(three_loan_portfolio, 1, 0.0, 2.5, "Known")
        assert result.losses.shape == (1,)
        assert result.losses[0] == pytest.approx(246.0, rel=1e-9)
        assert result.mean_expected_loss == pytest.approx(246.0, rel=1e-9)
        assert result.value_at_risk_99 == pytest.approx(246.0, rel=1e-9)

    def test_result_shape_and_order(self, vasicek_engine, small_trained_portfolio):
        result = vasicek_engine.simulate(small_trained_portfolio, 1000, 0.2, 1.0, "Baseline")
        assert result.num_iterations == 1000
        assert np.all(np.diff(result.losses) >= 0)
        assert result.scenario_name == "Baseline"
        assert result.stress_factor == 1.0
        assert result.rho == 0.2
        assert result.processing_time_ms >= 0

    def test_summary_statistics(self, vasicek_engine, small_trained_portfolio):
        n = 1234
        result = vasicek_engine.simulate(small_trained_portfolio, n, 0.2, 1.0, "Baseline")
        assert result.value_at_risk_99 == result.losses[math.floor(n * 0.99)]
        assert result.mean_expected_loss == pytest.approx(np.mean(result.losses), rel=1e-12)

    def test_losses_bounded(self, vasicek_engine, small_trained_portfolio):
        result = vasicek_engine.simulate(small_trained_portfolio, 2000, 0.3, 2.5, "Stressed")
        assert np.all(result.losses >= 0)
        assert np.all(result.losses <= small_trained_portfolio.total_exposure * (1 + 1e-12))

    def test_loss_formula(self, three_loan_portfolio):
        """Each loss equals the closed form for the Box-Muller draw."""
        u1, u2 = 0.3, 0.7
        rho, stress = 0.2, 2.5
        z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
        s = np.sqrt(rho) * np.sqrt(stress) * z
        expected = sum(
            loan.ead * loan.lgd * norm_cdf((norm_inv(loan.pd) + s) / np.sqrt(1 - rho))
            for loan in three_loan_portfolio
        )
        engine = VasicekEngine(SequenceStream([u1, u2]))
        result = engine.simulate(three_loan_portfolio, 1, rho, stress, "Formula")
        assert result.losses[0] == pytest.approx(expected, rel=1e-12)

    def test_rho_zero_collapses(self, vasicek_engine, small_trained_portfolio):
        """Without correlation every iteration has the un-stressed expected loss."""
        result = vasicek_engine.simulate(small_trained_portfolio, 500, 0.0, 2.5, "NoCorr")
        np.testing.assert_allclose(
            result.losses, small_trained_portfolio.total_expected_loss, rtol=1e-9
        )

    def test_zero_stress_collapses(self, vasicek_engine, three_loan_portfolio):
        """A zero stress factor removes the systemic shock but keeps the rho scaling."""
        rho = 0.2
        result = vasicek_engine.simulate(three_loan_portfolio, 10, rho, 0.0, "NoStress")
        expected = sum(
            loan.exposure * norm_cdf(norm_inv(loan.pd) / np.sqrt(1 - rho))
            for loan in three_loan_portfolio
        )
        np.testing.assert_allclose(result.losses, expected, rtol=1e-12)

    def test_deterministic_with_seed(self, small_trained_portfolio):
        r1 = VasicekEngine(GeneratorStream(42)).simulate(small_trained_portfolio, 500, 0.2, 1.0, "A")
        r2 = VasicekEngine(GeneratorStream(42)).simulate(small_trained_portfolio, 500, 0.2, 1.0, "A")
        assert np.array_equal(r1.losses, r2.losses)

    def test_deterministic_with_sequence(self, small_trained_portfolio, uniform_grid):
        r1 = VasicekEngine(SequenceStream(uniform_grid)).simulate(
            small_trained_portfolio, 300, 0.2, 1.0, "A")
        r2 = VasicekEngine(SequenceStream(uniform_grid)).simulate(
            small_trained_portfolio, 300, 0.2, 1.0, "A")
        assert np.array_equal(r1.losses, r2.losses)

    def test_batch_size_invariant(self, small_trained_portfolio, uniform_grid):
        """Batching changes memory use, not results."""
        full = VasicekEngine(SequenceStream(uniform_grid), batch_size=None).simulate(
            small_trained_portfolio, 1000, 0.2, 1.0, "A")
        batched = VasicekEngine(SequenceStream(uniform_grid), batch_size=37).simulate(
            small_trained_portfolio, 1000, 0.2, 1.0, "A")
        np.testing.assert_allclose(full.losses, batched.losses, rtol=1e-12)

    def test_batch_size_invariant_generator(self, small_trained_portfolio):
        full = VasicekEngine(GeneratorStream(3), batch_size=None).simulate(
            small_trained_portfolio, 1000, 0.2, 1.0, "A")
        batched = VasicekEngine(GeneratorStream(3), batch_size=128).simulate(
            small_trained_portfolio, 1000, 0.2, 1.0, "A")
        np.testing.assert_allclose(full.losses, batched.losses, rtol=1e-12)

    def test_default_batch_is_bounded(self, small_trained_portfolio, monkeypatch):
        """A default engine never builds the full iterations x loans matrix."""
        shapes = []
        original = simulation_module.vasicek_conditional_pd

        def recording(probit_pd, systemic, rho):
            result = original(probit_pd, systemic, rho)
            shapes.append(result.shape)
            return result

        monkeypatch.setattr(simulation_module, "vasicek_conditional_pd", recording)
        engine = VasicekEngine(GeneratorStream(5))
        result = engine.simulate(small_trained_portfolio, 2500, 0.2, 1.0, "A")

        assert engine.batch_size == DEFAULT_BATCH_SIZE == 1000
        assert result.num_iterations == 2500
        assert shapes == [(1000, 200), (1000, 200), (500, 200)]

    def test_default_batch_matches_unbatched(self, small_trained_portfolio):
        default = VasicekEngine(GeneratorStream(11)).simulate(
            small_trained_portfolio, 2500, 0.2, 2.5, "A")
        full = VasicekEngine(GeneratorStream(11), batch_size=None).simulate(
            small_trained_portfolio, 2500, 0.2, 2.5, "A")
        np.testing.assert_allclose(default.losses, full.losses, rtol=1e-12)

        np.testing.assert_allclose(full.losses, batched.losses, rtol=1e-12)

    def test_stress_monotonicity_common_draws(self, small_trained_portfolio):
        """With identical draws, a higher stress factor never lowers the tail."""
        base = VasicekEngine(GeneratorStream(99)).simulate(
            small_trained_portfolio, 5000, 0.2, 1.0, "Baseline Scenario")
        stressed = VasicekEngine(GeneratorStream(99)).simulate(
            small_trained_portfolio, 5000, 0.2, 2.5, "Severe Downturn")
        assert stressed.value_at_risk_99 > base.value_at_risk_99
        assert np.all(stressed.losses[-50:] >= base.losses[-50:])

    def test_stress_monotonicity_repeated_seeds(self, three_loan_portfolio):
        """Across independent seeds the stressed scenario has the larger VaR and mean."""
        for seed in range(10):
            base = VasicekEngine(GeneratorStream(seed)).simulate(
                three_loan_portfolio, 2000, 0.2, 1.0, "Baseline")
            stressed = VasicekEngine(GeneratorStream(1000 + seed)).simulate(
                three_loan_portfolio, 2000, 0.2, 2.5, "Stressed")
            assert stressed.value_at_risk_99 > base.value_at_risk_99
            assert stressed.mean_expected_loss > base.mean_expected_loss

    def test_mean_matches_closed_form(self, small_trained_portfolio):
        """E[Φ((a + cZ)/d)] = Φ(a / √(d² + c²)) for Z ~ N(0, 1)."""
        rho, stress = 0.2, 2.5
        result = VasicekEngine(GeneratorStream(11)).simulate(
            small_trained_portfolio, 20000, rho, stress, "Stressed")
        probit = norm_inv(small_trained_portfolio.pds())
        expected = np.dot(
            small_trained_portfolio.exposures(),
            norm_cdf(probit / np.sqrt(1 - rho + rho * stress))
        )
        assert result.mean_expected_loss == pytest.approx(expected, rel=0.02)

    def test_baseline_mean_is_expected_loss(self, small_trained_portfolio):
        """With stress 1 the Monte Carlo mean recovers Σ EAD x LGD x PD."""
        result = VasicekEngine(GeneratorStream(12)).simulate(
            small_trained_portfolio, 20000, 0.2, 1.0, "Baseline")
        assert result.mean_expected_loss == pytest.approx(
            small_trained_portfolio.total_expected_loss, rel=0.02)

    def test_run_scenarios(self, vasicek_engine, small_trained_portfolio):
        results = vasicek_engine.run_scenarios(small_trained_portfolio, 500, 0.2)
        assert [r.scenario_name for r in results] == [n for n, _ in DEFAULT_SCENARIOS]
        assert [r.stress_factor for r in results] == [s for _, s in DEFAULT_SCENARIOS]

    def test_portfolio_reused_unchanged(self, vasicek_engine, small_trained_portfolio):
        pds_before = small_trained_portfolio.pds().copy()
        vasicek_engine.run_scenarios(small_trained_portfolio, 200, 0.2)
        assert np.array_equal(pds_before, small_trained_portfolio.pds())

    def test_module_level_simulate(self, three_loan_portfolio):
        result = simulate(three_loan_portfolio, 5, 0.0, 1.0, "Fn", stream=7)
        np.testing.assert_allclose(result.losses, 246.0, rtol=1e-9)


class TestSimulationValidation:
    """Tests for parameter and input validation."""

    @pytest.mark.parametrize("rho", [1.0, 1.5, -0.1, float("nan")])
    def test_invalid_rho(self, vasicek_engine, three_loan_portfolio, rho):
        with pytest.raises(InvalidParameterError, match="rho"):
            vasicek_engine.simulate(three_loan_portfolio, 10, rho, 1.0, "Bad")

    @pytest.mark.parametrize("iterations", [0, -1, 2.5, True])
    def test_invalid_iterations(self, vasicek_engine, three_loan_portfolio, iterations):
        with pytest.raises(InvalidParameterError, match="iterations"):
            vasicek_engine.simulate(three_loan_portfolio, iterations, 0.2, 1.0, "Bad")

    def test_negative_stress(self, vasicek_engine, three_loan_portfolio):
        with pytest.raises(InvalidParameterError, match="stress_factor"):
            vasicek_engine.simulate(three_loan_portfolio, 10, 0.2, -1.0, "Bad")

    @pytest.mark.parametrize("stress_factor", [float("inf"), float("nan")])
    def test_non_finite_stress(self, vasicek_engine, three_loan_portfolio, stress_factor):
        """An infinite stress factor would collapse every loan to PD 0 or 1."""
        with pytest.raises(InvalidParameterError, match="finite"):
            vasicek_engine.simulate(three_loan_portfolio, 10, 0.2, stress_factor, "Bad")

    def test_untrained_portfolio(self, vasicek_engine, generated_portfolio):
        """PD of 0 must not reach the inverse CDF."""
        with pytest.raises(InvalidParameterError, match="outside"):
            vasicek_engine.simulate(generated_portfolio, 10, 0.2, 1.0, "Bad")

    def test_partially_trained_portfolio(self, vasicek_engine):
        portfolio = Portfolio([
            Loan(id=0, ead=100.0, lgd=0.6, prior_late_payments=0, pd=0.02),
            Loan(id=7, ead=100.0, lgd=0.6, prior_late_payments=0),
        ])
        with pytest.raises(InvalidParameterError, match="Loan 7"):
            vasicek_engine.simulate(portfolio, 10, 0.2, 1.0, "Bad")

    def test_empty_portfolio(self, vasicek_engine):
        with pytest.raises(InvalidInputError, match="empty"):
            vasicek_engine.simulate(Portfolio(), 10, 0.2, 1.0, "Bad")

    def test_invalid_batch_size(self):
        with pytest.raises(InvalidParameterError):
            VasicekEngine(batch_size=0)


class TestParallelVasicekEngine:
    """Tests for ParallelVasicekEngine."""

    def test_parallel_basic(self, small_trained_portfolio):
        engine = ParallelVasicekEngine(num_workers=2, random_state=42)
        result = engine.simulate(small_trained_portfolio, 1001, 0.2, 1.0, "Parallel")
        assert result.num_iterations == 1001
        assert np.all(np.diff(result.losses) >= 0)
        assert result.value_at_risk_99 == result.losses[math.floor(1001 * 0.99)]

    def test_parallel_reproducible(self, small_trained_portfolio):
        r1 = ParallelVasicekEngine(num_workers=2, random_state=5).simulate(
            small_trained_portfolio, 400, 0.2, 2.5, "P")
        r2 = ParallelVasicekEngine(num_workers=2, random_state=5).simulate(
            small_trained_portfolio, 400, 0.2, 2.5, "P")
        assert np.array_equal(r1.losses, r2.losses)

    def test_single_worker_matches_spawned_stream(self, small_trained_portfolio):
        """One worker draws from the first child of the seeded stream."""
        parallel = ParallelVasicekEngine(num_workers=1, random_state=8).simulate(
            small_trained_portfolio, 300, 0.2, 1.0, "P")
        child = GeneratorStream(8).spawn(1)[0]
        serial = VasicekEngine(child).simulate(small_trained_portfolio, 300, 0.2, 1.0, "P")
        assert np.array_equal(parallel.losses, serial.losses)

    def test_parallel_rho_zero(self, three_loan_portfolio):
        result = ParallelVasicekEngine(num_workers=2, random_state=1).simulate(
            three_loan_portfolio, 10, 0.0, 2.5, "P")
        np.testing.assert_allclose(result.losses, 246.0, rtol=1e-9)

    def test_parallel_validation(self, three_loan_portfolio):
        with pytest.raises(InvalidParameterError):
            ParallelVasicekEngine(num_workers=0)
        with pytest.raises(InvalidParameterError):
            ParallelVasicekEngine(num_workers=2).simulate(three_loan_portfolio, 10, 1.0, 1.0, "P")

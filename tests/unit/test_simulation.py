"""
Unit tests for simulation.py module.

Tests SimulationEngine orchestration and SimulationResult.
"""

import logging

import numpy as np
import pytest

from finmc.config import AppSettings, EgarchConfig, ScenarioConfig
from finmc.exceptions import DegenerateInputWarning, NumericAnomalyError, ValidationError
from finmc.simulation import SimulationEngine, SimulationResult


class TestSimulationEngineConstruction:

    def test_from_params(self):
        engine = SimulationEngine.from_params(
            total_month=12, initial_investment=0, monthly_investment=3, total_investment=500,
            n_sims=10, seed=1,
        )
        assert engine.config.plan.total_month == 12
        assert engine.config.simulation.seed == 1
        assert "T=12" in repr(engine)

    @pytest.mark.parametrize(
        "override, field",
        [
            ({"total_month": -1}, "plan.total_month"),
            ({"initial_investment": -5}, "plan.initial_investment"),
            ({"total_investment": 5000}, "plan.total_investment"),
            ({"n_sims": -1}, "simulation.n_sims"),
        ],
    )
    def test_from_params_reports_field(self, override, field):
        params = dict(total_month=12, initial_investment=0, monthly_investment=3, total_investment=500)
        params.update(override)
        with pytest.raises(ValidationError) as exc_info:
            SimulationEngine.from_params(**params)
        assert exc_info.value.field == field

    def test_settings_supply_worker_count(self, scenario_config):
        engine = SimulationEngine(scenario_config, settings=AppSettings(max_workers=3))
        assert engine.simulator.max_workers == 3

    def test_request_worker_count_wins(self, plan_config):
        config = ScenarioConfig(plan=plan_config, simulation={"max_workers": 2})
        engine = SimulationEngine(config, settings=AppSettings(max_workers=3))
        assert engine.simulator.max_workers == 2


class TestSimulationEngineRun:

    def test_result_contents(self, scenario_config):
        result = SimulationEngine(scenario_config).run()

        assert isinstance(result, SimulationResult)
        assert result.asset_paths.shape == (200, 24)
        assert result.schedule.shape == (24,)
        assert result.total_invested == pytest.approx(100 + 3 * 23)
        assert not result.is_degenerate
        assert result.elapsed >= 0.0

        period, terminal = result.period_statistics, result.terminal_statistics
        assert np.all(period.q1 <= period.median)
        assert np.all(period.median <= period.q3)
        assert 0.0 <= terminal.shortfall_probability <= 1.0
        assert terminal.invested == result.total_invested

    def test_idempotent_with_seed(self, scenario_config):
        engine = SimulationEngine(scenario_config)
        a = engine.run()
        b = engine.run()

        np.testing.assert_array_equal(a.asset_paths, b.asset_paths)
        assert a.terminal_statistics == b.terminal_statistics

    def test_parallel_matches_sequential(self, plan_config):
        seq = SimulationEngine(ScenarioConfig(plan=plan_config, simulation={"n_sims": 64, "seed": 4})).run()
        par = SimulationEngine(
            ScenarioConfig(plan=plan_config, simulation={"n_sims": 64, "seed": 4, "parallel": True, "max_workers": 4})
        ).run()

        np.testing.assert_allclose(par.asset_paths, seq.asset_paths)
        np.testing.assert_allclose(par.period_statistics.median, seq.period_statistics.median)

    def test_single_simulation_quartiles_collapse(self):
        result = SimulationEngine.from_params(
            total_month=6, initial_investment=10, monthly_investment=1, total_investment=20,
            n_sims=1, seed=0,
        ).run()
        t = result.terminal_statistics
        assert t.q1 == t.median == t.q3 == t.minimum == t.maximum

    def test_extra_quantiles_reported(self, plan_config):
        config = ScenarioConfig(
            plan=plan_config,
            simulation={"n_sims": 50, "seed": 1, "quantiles": (0.05, 0.25, 0.5, 0.75, 0.95)},
        )
        result = SimulationEngine(config).run()
        extra = result.period_statistics.extra

        assert np.all(extra["0.05"] <= result.period_statistics.q1)
        assert np.all(extra["0.95"] >= result.period_statistics.q3)

    def test_logs_start_and_finish(self, scenario_config, caplog):
        with caplog.at_level(logging.INFO, logger="finmc.simulation"):
            SimulationEngine(scenario_config).run()

        assert "Running scenario 'test'" in caplog.text
        assert "finished in" in caplog.text

    @pytest.mark.parametrize("T, n", [(0, 100), (12, 0)])
    def test_degenerate_request_warns(self, T, n, caplog):
        engine = SimulationEngine.from_params(
            total_month=T, initial_investment=100, monthly_investment=3, total_investment=500,
            n_sims=n, seed=1,
        )
        with pytest.warns(DegenerateInputWarning):
            result = engine.run()

        assert result.is_degenerate
        assert result.period_statistics is None
        assert result.terminal_statistics is None
        assert result.asset_paths.shape == (n, T)
        assert "Degenerate request" in caplog.text

    def test_zero_horizon_total_invested(self):
        engine = SimulationEngine.from_params(
            total_month=0, initial_investment=100, monthly_investment=3, total_investment=500, n_sims=5,
        )
        with pytest.warns(DegenerateInputWarning):
            result = engine.run()
        assert result.total_invested == 0.0

    def test_numeric_anomaly_propagates(self, plan_config, caplog):
        config = ScenarioConfig(
            plan=plan_config,
            simulation={"n_sims": 4, "seed": 0},
            model=EgarchConfig(omega=5.0, beta=5.0, warmup=20),
        )
        with pytest.raises(NumericAnomalyError):
            SimulationEngine(config).run()
        assert "aborted" in caplog.text

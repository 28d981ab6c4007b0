"""
Pytest configuration and fixtures for FinMC test suite.

This module provides reusable fixtures for testing all FinMC components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import logging
from datetime import date

import numpy as np
import pytest

from finmc.config import EgarchConfig, InvestmentPlanConfig, ScenarioConfig, SimulationConfig
from finmc.contributions import ContributionSchedule, calc_invested_cumulative
from finmc.portfolio import PortfolioSimulator
from finmc.returns import EgarchReturnModel
from finmc.statistics import DistributionAggregator


# ---------------------------------------------------------------------------
# Horizon and Randomness Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> date:
    """Standard start date for tests."""
    return date(2025, 1, 1)


@pytest.fixture
def months() -> int:
    """Standard investment horizon for tests."""
    return 24


@pytest.fixture
def n_sims() -> int:
    """Standard number of Monte Carlo paths for tests."""
    return 200


@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


@pytest.fixture
def rng(seed) -> np.random.Generator:
    """Seeded generator for single-path tests."""
    return np.random.default_rng(seed)


# ---------------------------------------------------------------------------
# Contribution Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def reference_schedule() -> ContributionSchedule:
    """
    Reference plan: 100 up front, 3 per month, capped at 500.
    """
    return ContributionSchedule(initial_amount=100.0, periodic_amount=3.0, total_cap=500.0)


@pytest.fixture
def invested_cum(reference_schedule, months) -> np.ndarray:
    """Cumulative schedule of the reference plan over the standard horizon."""
    return reference_schedule.cumulative(months)


@pytest.fixture
def flat_schedule() -> np.ndarray:
    """Single lump sum of 100 held for 12 months."""
    return calc_invested_cumulative(12, 100.0, 0.0, 100.0)


# ---------------------------------------------------------------------------
# Model Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def return_model() -> EgarchReturnModel:
    """Calibrated EGARCH model with default warm-up."""
    return EgarchReturnModel()


@pytest.fixture
def short_warmup_model() -> EgarchReturnModel:
    """Calibrated coefficients with a short warm-up, for fast tests."""
    return EgarchReturnModel(EgarchConfig(warmup=10))


@pytest.fixture
def explosive_model() -> EgarchReturnModel:
    """
    Non-stationary EGARCH: log-variance grows geometrically and overflows.
    """
    return EgarchReturnModel(EgarchConfig(omega=5.0, beta=5.0, warmup=20))


@pytest.fixture
def simulator(return_model) -> PortfolioSimulator:
    """Portfolio simulator on the calibrated model."""
    return PortfolioSimulator(return_model, max_workers=4)


@pytest.fixture
def aggregator() -> DistributionAggregator:
    """Quartile aggregator."""
    return DistributionAggregator()


@pytest.fixture
def paths(simulator, invested_cum, n_sims, seed) -> np.ndarray:
    """Simulated ensemble of the reference plan, shape (n_sims, months)."""
    return simulator.simulate(invested_cum, n_sims=n_sims, seed=seed)


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def plan_config() -> InvestmentPlanConfig:
    """Two-year reference plan."""
    return InvestmentPlanConfig(
        total_month=24,
        initial_investment=100.0,
        monthly_investment=3.0,
        total_investment=500.0,
    )


@pytest.fixture
def scenario_config(plan_config, seed) -> ScenarioConfig:
    """Complete small request."""
    return ScenarioConfig(
        name="test",
        plan=plan_config,
        simulation=SimulationConfig(n_sims=200, seed=seed),
    )


# ---------------------------------------------------------------------------
# Logging Isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo setup_logging() calls made by CLI invocations."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)

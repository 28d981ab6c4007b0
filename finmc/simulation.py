"""Simulation orchestrator for FinMC

Connects `contributions.py`, `portfolio.py` and `statistics.py`: one
request builds the contribution schedule, simulates the asset-path
ensemble and reduces it to the statistics a client displays.

Design goals
------------
- Stateless per request: nothing is shared between runs, so identical
  requests with the same seed give identical results.
- Degenerate requests (T = 0 or n_sims = 0) are not errors: they return a
  result without statistics and emit a DegenerateInputWarning.

Typical usage
-------------
>>> engine = SimulationEngine.from_params(
...     total_month=120,
...     initial_investment=100,
...     monthly_investment=3,
...     total_investment=500,
...     n_sims=1000,
...     seed=42,
... )
>>> result = engine.run()
>>> result.terminal_statistics.shortfall_pct
"""
from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import (
    AppSettings,
    InvestmentPlanConfig,
    ScenarioConfig,
    SimulationConfig,
    validate_config,
)
from .contributions import ContributionSchedule
from .exceptions import DegenerateEnsembleError, DegenerateInputWarning, NumericAnomalyError
from .portfolio import PortfolioSimulator
from .returns import EgarchReturnModel
from .statistics import DistributionAggregator, PeriodStatistics, TerminalStatistics

logger = logging.getLogger(__name__)

__all__ = [
    "SimulationResult",
    "SimulationEngine",
]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SimulationResult:
    """
    Output of one simulation request.

    Attributes
    ----------
    config : ScenarioConfig
        The validated request.
    schedule : np.ndarray, shape (T,)
        Cumulative invested amount per month (read-only).
    asset_paths : np.ndarray, shape (n_sims, T)
        Simulated asset values (read-only).
    period_statistics : PeriodStatistics or None
        None for a degenerate request.
    terminal_statistics : TerminalStatistics or None
        None for a degenerate request.
    elapsed : float
        Wall-clock seconds spent in the run.
    """
    config: ScenarioConfig
    schedule: np.ndarray
    asset_paths: np.ndarray
    period_statistics: Optional[PeriodStatistics]
    terminal_statistics: Optional[TerminalStatistics]
    elapsed: float = 0.0

    @property
    def is_degenerate(self) -> bool:
        return self.period_statistics is None

    @property
    def n_sims(self) -> int:
        return int(self.asset_paths.shape[0])

    @property
    def total_month(self) -> int:
        return int(self.schedule.shape[0])

    @property
    def total_invested(self) -> float:
        """Cumulative amount invested by the last month (0 when T = 0)."""
        return float(self.schedule[-1]) if self.schedule.size else 0.0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """High-level orchestrator: schedule, ensemble, statistics.

    Parameters
    ----------
    config : ScenarioConfig
        Validated request.
    settings : AppSettings, optional
        Process-level defaults; ``settings.max_workers`` is used when the
        request does not name a pool size.
    """

    def __init__(self, config: ScenarioConfig, settings: Optional[AppSettings] = None):
        self.config = config
        self.settings = settings
        self.schedule = ContributionSchedule.from_plan(config.plan)
        self.return_model = EgarchReturnModel(config.model)
        max_workers = config.simulation.max_workers
        if max_workers is None and settings is not None:
            max_workers = settings.max_workers
        self.simulator = PortfolioSimulator(self.return_model, max_workers=max_workers)
        self.aggregator = DistributionAggregator(config.simulation.quantiles)

    @classmethod
    def from_params(
        cls,
        total_month: int,
        initial_investment: float,
        monthly_investment: float,
        total_investment: float,
        n_sims: int = 1000,
        seed: Optional[int] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
        name: str = "default",
        settings: Optional[AppSettings] = None,
    ) -> "SimulationEngine":
        """
        Build an engine from flat request parameters.

        Raises
        ------
        ValidationError
            Naming the first out-of-domain field (e.g. ``plan.total_month``).
        """
        data = {
            "name": name,
            "plan": {
                "total_month": total_month,
                "initial_investment": initial_investment,
                "monthly_investment": monthly_investment,
                "total_investment": total_investment,
            },
            "simulation": {
                "n_sims": n_sims,
                "seed": seed,
                "parallel": parallel,
                "max_workers": max_workers,
            },
        }
        return cls(validate_config(ScenarioConfig, data), settings=settings)

    def __repr__(self) -> str:
        plan = self.config.plan
        return (
            f"SimulationEngine(name={self.config.name!r}, T={plan.total_month}, "
            f"n_sims={self.config.simulation.n_sims})"
        )

    def run(self) -> SimulationResult:
        """
        Execute the request.

        Returns
        -------
        SimulationResult
            With statistics set to None when T = 0 or n_sims = 0.

        Raises
        ------
        NumericAnomalyError
            If the simulation produced NaN/inf values.
        """
        plan: InvestmentPlanConfig = self.config.plan
        sim: SimulationConfig = self.config.simulation
        T, n_sims = plan.total_month, sim.n_sims
        logger.info(
            "Running scenario '%s': T=%d months, n_sims=%d, parallel=%s",
            self.config.name, T, n_sims, sim.parallel,
        )
        started = time.perf_counter()

        invested_cum = self.schedule.cumulative(T)
        logger.debug(
            "Schedule built: total invested %.2f after %d months",
            invested_cum[-1] if T else 0.0, T,
        )

        try:
            paths = self.simulator.simulate(
                invested_cum, n_sims=n_sims, seed=sim.seed, parallel=sim.parallel
            )
        except NumericAnomalyError as e:
            logger.error("Scenario '%s' aborted: %s", self.config.name, e)
            raise

        period: Optional[PeriodStatistics] = None
        terminal: Optional[TerminalStatistics] = None
        try:
            period, terminal = self.aggregator.summarize(paths, invested_cum)
        except DegenerateEnsembleError as e:
            logger.warning("Degenerate request for scenario '%s': %s", self.config.name, e)
            warnings.warn(
                f"no statistics produced (T={T}, n_sims={n_sims}): {e}",
                DegenerateInputWarning,
                stacklevel=2,
            )

        elapsed = time.perf_counter() - started
        logger.info(
            "Scenario '%s' finished in %.3fs (%d x %d ensemble)",
            self.config.name, elapsed, n_sims, T,
        )
        return SimulationResult(
            config=self.config,
            schedule=invested_cum,
            asset_paths=paths,
            period_statistics=period,
            terminal_statistics=terminal,
            elapsed=elapsed,
        )

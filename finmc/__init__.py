"""
FinMC - Monte Carlo simulator for periodic investment plans

Projects the distribution of outcomes of a lump-sum-plus-monthly
investment plan under EGARCH(1,1,1) monthly returns.

Modules
-------
- returns       : EGARCH(1,1,1) monthly log-return generator
- contributions : Capped cumulative contribution schedule
- portfolio     : Asset-path ensemble simulation (sequential or threaded)
- statistics    : Per-period quartiles, terminal distribution, shortfall
- simulation    : Request orchestration (schedule → ensemble → statistics)
- config        : Pydantic request models and environment settings
- serialization : JSON export/import of results and scenarios
- utils         : Shared validation, array and randomness helpers

"""

__version__ = "0.1.0"

from .config import EgarchConfig, InvestmentPlanConfig, SimulationConfig, ScenarioConfig
from .contributions import ContributionSchedule, calc_invested_cumulative
from .returns import EgarchReturnModel
from .portfolio import PortfolioSimulator, simulate_path
from .statistics import DistributionAggregator, PeriodStatistics, TerminalStatistics
from .simulation import SimulationEngine, SimulationResult
from .exceptions import (
    FinMCError,
    ValidationError,
    NumericAnomalyError,
    DegenerateEnsembleError,
    DegenerateInputWarning,
)
from . import utils

"""
Configuration management module for FinMC.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation, and serialization. Supports environment variables,
JSON configs, and programmatic defaults.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON for config files
- Environment-aware: Supports .env files for process-level settings
- Defaults: The calibrated S&P 500 EGARCH coefficients and a
  100-month / 3-per-month reference plan

Example
-------
>>> from finmc.config import InvestmentPlanConfig, SimulationConfig
>>> plan = InvestmentPlanConfig(total_month=120, initial_investment=100,
...                             monthly_investment=3, total_investment=500)
>>> sim = SimulationConfig(n_sims=1000, seed=42)
>>>
>>> # Serialize to dict/JSON
>>> plan.model_dump()
>>> loaded = InvestmentPlanConfig.model_validate_json(plan.model_dump_json())
"""

from __future__ import annotations
from typing import Optional, Literal, Tuple
from pathlib import Path

import pydantic
from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_N_SIMS,
    DEFAULT_QUANTILES,
    EGARCH_ALPHA,
    EGARCH_BETA,
    EGARCH_GAMMA,
    EGARCH_MU,
    EGARCH_OMEGA,
    EGARCH_WARMUP,
    MAX_INITIAL_INVESTMENT,
    MAX_MONTHLY_INVESTMENT,
    MAX_TOTAL_INVESTMENT,
    MAX_TOTAL_MONTH,
)
from .exceptions import ValidationError

__all__ = [
    "EgarchConfig",
    "InvestmentPlanConfig",
    "SimulationConfig",
    "ScenarioConfig",
    "AppSettings",
    "validate_config",
]


# ---------------------------------------------------------------------------
# Model Configuration
# ---------------------------------------------------------------------------

class EgarchConfig(BaseModel):
    """
    EGARCH(1,1,1) coefficients for monthly log returns.

        ln σ²_t = ω + β·ln σ²_{t-1} + γ·z_{t-1} + α·(|z_{t-1}| - E|Z|)
        r_t     = μ + σ_t·z_t

    Attributes
    ----------
    omega, alpha, beta, gamma : float
        Log-variance recursion coefficients.
    mu : float
        Mean monthly log return.
    warmup : int
        Recursion steps discarded before output is recorded.

    Examples
    --------
    >>> params = EgarchConfig()
    >>> params.omega
    -2.293
    >>> EgarchConfig(warmup=0).warmup
    0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    omega: float = Field(default=EGARCH_OMEGA, allow_inf_nan=False, description="Constant ω")
    alpha: float = Field(default=EGARCH_ALPHA, allow_inf_nan=False, description="Magnitude effect α")
    beta: float = Field(default=EGARCH_BETA, allow_inf_nan=False, description="Persistence β")
    gamma: float = Field(default=EGARCH_GAMMA, allow_inf_nan=False, description="Asymmetry γ")
    mu: float = Field(default=EGARCH_MU, allow_inf_nan=False, description="Mean monthly log return μ")
    warmup: int = Field(
        default=EGARCH_WARMUP,
        ge=0,
        description="Number of discarded warm-up steps"
    )


# ---------------------------------------------------------------------------
# Investment Plan Configuration
# ---------------------------------------------------------------------------

class InvestmentPlanConfig(BaseModel):
    """
    Periodic contribution plan (amounts in ¥10,000 units).

    Attributes
    ----------
    total_month : int
        Investment horizon T in months (0-480).
    initial_investment : float
        Lump sum invested in month 1 (0-500).
    monthly_investment : float
        Contribution added from month 2 onwards (0-10).
    total_investment : float
        Cap on cumulative contributions from month 2 onwards (0-1800).

    Examples
    --------
    >>> plan = InvestmentPlanConfig(total_month=12, initial_investment=0,
    ...                             monthly_investment=3, total_investment=500)
    >>> plan.total_month
    12
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total_month: int = Field(
        default=120,
        ge=0,
        le=MAX_TOTAL_MONTH,
        description="Investment horizon (months)"
    )
    initial_investment: float = Field(
        default=100.0,
        ge=0,
        le=MAX_INITIAL_INVESTMENT,
        allow_inf_nan=False,
        description="Initial lump sum"
    )
    monthly_investment: float = Field(
        default=3.0,
        ge=0,
        le=MAX_MONTHLY_INVESTMENT,
        allow_inf_nan=False,
        description="Monthly contribution from month 2"
    )
    total_investment: float = Field(
        default=500.0,
        ge=0,
        le=MAX_TOTAL_INVESTMENT,
        allow_inf_nan=False,
        description="Cumulative contribution cap"
    )


# ---------------------------------------------------------------------------
# Simulation Configuration
# ---------------------------------------------------------------------------

class SimulationConfig(BaseModel):
    """
    Configuration for Monte Carlo simulation parameters.

    Attributes
    ----------
    n_sims : int
        Number of simulated paths (>= 0; 0 yields a degenerate result).
    seed : int, optional
        Root seed for per-row random streams. If None, uses OS entropy.
    parallel : bool
        Run row chunks on a thread pool.
    max_workers : int, optional
        Worker pool size (default: os.cpu_count()).
    quantiles : tuple of float
        Quantile levels computed for every period. Must include 0.25,
        0.5 and 0.75; extra levels (e.g. 0.05, 0.95) are reported too.

    Examples
    --------
    >>> config = SimulationConfig(n_sims=500, seed=42)
    >>> config.n_sims
    500
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    n_sims: int = Field(
        default=DEFAULT_N_SIMS,
        ge=0,
        description="Number of Monte Carlo paths"
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Root random seed for reproducibility"
    )
    parallel: bool = Field(
        default=False,
        description="Simulate row chunks on a thread pool"
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Thread pool size"
    )
    quantiles: Tuple[float, ...] = Field(
        default=DEFAULT_QUANTILES,
        description="Quantile levels reported per period"
    )

    @field_validator("quantiles")
    @classmethod
    def validate_quantiles(cls, v):
        """Ensure levels lie in [0, 1] and include the quartiles."""
        if any(not 0.0 <= q <= 1.0 for q in v):
            raise ValueError(f"quantile levels must lie in [0, 1], got {v}")
        missing = [q for q in DEFAULT_QUANTILES if q not in v]
        if missing:
            raise ValueError(f"quantiles must include {DEFAULT_QUANTILES}, missing {missing}")
        return tuple(sorted(set(v)))


# ---------------------------------------------------------------------------
# Scenario Configuration (Complete Request)
# ---------------------------------------------------------------------------

class ScenarioConfig(BaseModel):
    """
    Complete simulation request: plan + simulation settings + model.

    Requests normally omit `model` and run on the calibrated S&P 500 fit.
    Overriding it is a diagnostics hook (stress tests, explosive-coefficient
    checks) and not part of the end-user parameter set.

    Examples
    --------
    >>> scenario = ScenarioConfig(
    ...     name="NISA 10y",
    ...     plan=InvestmentPlanConfig(total_month=120),
    ...     simulation=SimulationConfig(n_sims=1000, seed=7),
    ... )
    >>> ScenarioConfig.model_validate_json(scenario.model_dump_json()) == scenario
    True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(
        default="default",
        min_length=1,
        max_length=100,
        description="Scenario name"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Scenario description"
    )
    plan: InvestmentPlanConfig = Field(
        default_factory=InvestmentPlanConfig,
        description="Contribution plan"
    )
    simulation: SimulationConfig = Field(
        default_factory=SimulationConfig,
        description="Simulation parameters"
    )
    model: EgarchConfig = Field(
        default_factory=EgarchConfig,
        description="Return model coefficients (diagnostics-only override; defaults are the calibrated fit)"
    )


def validate_config(model_cls: type[BaseModel], data: dict) -> BaseModel:
    """
    Validate *data* against *model_cls*, re-raising as FinMC ValidationError.

    The first offending field (dotted path for nested models) is attached
    to the raised error.

    Examples
    --------
    >>> validate_config(InvestmentPlanConfig, {"total_month": -1})
    Traceback (most recent call last):
    ...
    finmc.exceptions.ValidationError: total_month: Input should be greater than or equal to 0
    """
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or None
        raise ValidationError(f"{field}: {first['msg']}", field=field) from e


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with FINMC_ (e.g., FINMC_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    max_workers : int, optional
        Default worker pool size for parallel simulation
    default_n_sims : int
        Simulation count used by the CLI when none is given
    default_seed : int, optional
        Seed used by the CLI when none is given
    output_dir : Path
        Base directory for relative CLI output paths (`simulate -o`,
        `report -o`) and for the default CSV report

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'INFO'
    """

    model_config = SettingsConfigDict(
        env_prefix="FINMC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Default thread pool size"
    )
    default_n_sims: int = Field(
        default=DEFAULT_N_SIMS,
        ge=0,
        description="Default number of simulated paths"
    )
    default_seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Default root seed"
    )
    output_dir: Path = Field(
        default=Path("results"),
        description="Directory for exported results"
    )

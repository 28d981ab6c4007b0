"""
Global constants for FinMC.

Purpose
-------
Centralizes the fixed model coefficients, input domains and default values
used throughout the FinMC codebase. The EGARCH coefficients were calibrated
offline on 1985-2025 monthly S&P 500 log returns (USD) and are not
user-configurable at runtime.

Usage
-----
>>> from finmc.constants import DEFAULT_N_SIMS, EGARCH_OMEGA
>>>
>>> engine = SimulationEngine.from_params(120, 100, 3, 500, n_sims=DEFAULT_N_SIMS)

Categories
----------
- Model: EGARCH(1,1,1) coefficients and warm-up length
- Input domains: bounds accepted by the request layer
- Simulation: scenario counts, seeds, quantile levels
- Reporting: rounding used when presenting results
"""

import math
from typing import Tuple

__all__ = [
    # Model
    "EGARCH_OMEGA",
    "EGARCH_ALPHA",
    "EGARCH_BETA",
    "EGARCH_GAMMA",
    "EGARCH_MU",
    "EGARCH_WARMUP",
    "EXPECTED_ABS_NORMAL",
    # Input domains
    "MAX_TOTAL_MONTH",
    "MAX_INITIAL_INVESTMENT",
    "MAX_MONTHLY_INVESTMENT",
    "MAX_TOTAL_INVESTMENT",
    # Simulation
    "DEFAULT_N_SIMS",
    "DEFAULT_SEED",
    "DEFAULT_QUANTILES",
    "DEFAULT_HISTOGRAM_BINS",
    "MONTHS_PER_YEAR",
    # Reporting
    "VALUE_DECIMALS",
    "PERCENT_DECIMALS",
]


# =============================================================================
# Model (EGARCH(1,1,1), monthly log returns)
# =============================================================================

EGARCH_OMEGA: float = -2.293
"""Constant term ω of the log-variance recursion."""

EGARCH_ALPHA: float = 0.337
"""Magnitude effect α applied to |z_{t-1}| - E|Z|."""

EGARCH_BETA: float = 0.638
"""Persistence β of the log-variance."""

EGARCH_GAMMA: float = -0.345
"""Asymmetry (leverage) γ applied to z_{t-1}."""

EGARCH_MU: float = 0.00692
"""Mean monthly log return μ."""

EGARCH_WARMUP: int = 100
"""Number of initial recursion steps discarded before output is recorded."""

EXPECTED_ABS_NORMAL: float = math.sqrt(2.0 / math.pi)
"""E|Z| for Z ~ N(0, 1)."""


# =============================================================================
# Input Domains
# =============================================================================

MAX_TOTAL_MONTH: int = 480
"""Longest accepted investment horizon (40 years)."""

MAX_INITIAL_INVESTMENT: float = 500.0
"""Largest accepted initial lump sum (in ¥10,000 units)."""

MAX_MONTHLY_INVESTMENT: float = 10.0
"""Largest accepted monthly contribution (in ¥10,000 units)."""

MAX_TOTAL_INVESTMENT: float = 1800.0
"""Largest accepted cumulative contribution cap (in ¥10,000 units)."""


# =============================================================================
# Simulation Defaults
# =============================================================================

DEFAULT_N_SIMS: int = 1000
"""Default number of simulated asset paths per request."""

DEFAULT_SEED: int = 42
"""Seed written into the `finmc config create` templates.

The `simulate` command falls back to `AppSettings.default_seed` (None by
default, i.e. OS entropy) when --seed is omitted.
"""

DEFAULT_QUANTILES: Tuple[float, ...] = (0.25, 0.50, 0.75)
"""Quantile levels reported for every period (Q1, median, Q3)."""

DEFAULT_HISTOGRAM_BINS: int = 50
"""Number of bins for the terminal value histogram."""

MONTHS_PER_YEAR: int = 12
"""Number of months in a year."""


# =============================================================================
# Reporting
# =============================================================================

VALUE_DECIMALS: int = 1
"""Decimals shown for asset values."""

PERCENT_DECIMALS: int = 2
"""Decimals shown for the shortfall probability (in percent)."""

"""
Stochastic return generation for FinMC portfolios.

Mathematical Model
------------------
Monthly log returns follow an EGARCH(1,1,1) process:

    ln σ²_t = ω + β·ln σ²_{t-1} + γ·z_{t-1} + α·(|z_{t-1}| - E|Z|)
    σ_t     = sqrt(exp(ln σ²_t))
    r_t     = μ + σ_t·z_t

with z_t ~ iid N(0, 1), E|Z| = sqrt(2/π) and ln σ²_1 = ω. The first
`warmup` steps are discarded so that recorded output starts from a
representative volatility regime.

Design principles
-----------------
- Log-variance recursion: σ²_t > 0 for any coefficient signs
  (exp underflow to 0 is an accepted degenerate case, not an error)
- Injectable randomness: every call takes a NormalSource; no global RNG
- No carried state: each call runs a fresh recursion, so paths are
  conditionally independent given the coefficients
- Vectorized across rows: the recursion loops over time only, operating on
  a (n_rows, T + warmup) block of draws at once
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from .config import EgarchConfig
from .constants import EXPECTED_ABS_NORMAL
from .types import NormalSource
from .utils import check_count

logger = logging.getLogger(__name__)

__all__ = ["EgarchReturnModel", "egarch_recursion"]


def egarch_recursion(
    z: np.ndarray,
    params: EgarchConfig,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run the EGARCH recursion over the last axis of a block of draws.

    Parameters
    ----------
    z : np.ndarray, shape (..., T_total)
        Standard-normal draws; leading axes are independent rows.
    params : EgarchConfig
        Model coefficients (warm-up is NOT discarded here).

    Returns
    -------
    r, sigma : np.ndarray, shape (..., T_total)
        Log returns and conditional volatilities for every step.
    """
    z = np.asarray(z, dtype=float)
    T_total = z.shape[-1]
    ln_sigma2 = np.empty_like(z)
    if T_total == 0:
        return np.empty_like(z), np.empty_like(z)

    ln_sigma2[..., 0] = params.omega
    # explosive coefficients may overflow to inf; callers check finiteness
    with np.errstate(over="ignore", invalid="ignore"):
        for t in range(1, T_total):
            z_prev = z[..., t - 1]
            ln_sigma2[..., t] = (
                params.omega
                + params.beta * ln_sigma2[..., t - 1]
                + params.gamma * z_prev
                + params.alpha * (np.abs(z_prev) - EXPECTED_ABS_NORMAL)
            )
        sigma = np.sqrt(np.exp(ln_sigma2))
        r = params.mu + sigma * z
    return r, sigma


class EgarchReturnModel:
    """
    EGARCH(1,1,1) monthly log-return generator.

    Parameters
    ----------
    params : EgarchConfig, optional
        Model coefficients. Defaults to the calibrated S&P 500 values.

    Methods
    -------
    simulate(T, rng) -> (r, sigma)
        One path of returns and volatilities (warm-up discarded).
    generate(T, rng) -> r
        One path of returns only.
    generate_rows(T, rngs) -> R
        One path per generator, stacked into shape (len(rngs), T).
    params_table() -> pd.DataFrame
        Coefficient table for introspection.

    Examples
    --------
    >>> model = EgarchReturnModel()
    >>> r = model.generate(T=24, rng=np.random.default_rng(42))
    >>> r.shape
    (24,)
    """

    def __init__(self, params: Optional[EgarchConfig] = None):
        self.params = params if params is not None else EgarchConfig()
        if abs(self.params.beta) >= 1.0:
            logger.warning(
                "EGARCH persistence |beta|=%.4f >= 1: log-variance is not stationary",
                abs(self.params.beta),
            )

    # ========== Introspection ==========

    @property
    def warmup(self) -> int:
        """Number of discarded warm-up steps."""
        return self.params.warmup

    @property
    def long_run_log_variance(self) -> float:
        """
        Unconditional mean of ln σ²_t, ω / (1 - β).

        Returns nan when the recursion is not stationary (|β| >= 1).
        """
        if abs(self.params.beta) >= 1.0:
            return float("nan")
        return self.params.omega / (1.0 - self.params.beta)

    @property
    def long_run_volatility(self) -> float:
        """Monthly volatility at the long-run log-variance level."""
        return float(np.sqrt(np.exp(self.long_run_log_variance)))

    def params_table(self) -> pd.DataFrame:
        """
        Coefficient table.

        Examples
        --------
        >>> print(EgarchReturnModel().params_table())
                     value
        parameter
        ω           -2.293
        ...
        """
        p = self.params
        rows = [
            ("ω", p.omega),
            ("α", p.alpha),
            ("β", p.beta),
            ("γ", p.gamma),
            ("μ", p.mu),
            ("warmup", float(p.warmup)),
        ]
        return pd.DataFrame(rows, columns=["parameter", "value"]).set_index("parameter")

    def __repr__(self) -> str:
        p = self.params
        return (
            f"EgarchReturnModel(ω={p.omega}, α={p.alpha}, β={p.beta}, "
            f"γ={p.gamma}, μ={p.mu}, warmup={p.warmup})"
        )

    # ========== Core generation ==========

    def simulate(self, T: int, rng: NormalSource) -> Tuple[np.ndarray, np.ndarray]:
        """
        Simulate one path of returns and conditional volatilities.

        Parameters
        ----------
        T : int
            Number of recorded periods (after warm-up).
        rng : NormalSource
            Source of standard-normal draws; consumes T + warmup draws.

        Returns
        -------
        r, sigma : np.ndarray, shape (T,)

        Notes
        -----
        T = 0 returns two empty arrays without drawing from *rng*.
        """
        T = check_count("T", T)
        if T == 0:
            return np.zeros(0, dtype=float), np.zeros(0, dtype=float)

        z = np.asarray(rng.standard_normal(T + self.warmup), dtype=float)
        r, sigma = egarch_recursion(z, self.params)
        return r[self.warmup:], sigma[self.warmup:]

    def generate(self, T: int, rng: NormalSource) -> np.ndarray:
        """
        Simulate one path of monthly log returns of length T.

        Examples
        --------
        >>> model.generate(0, rng).shape
        (0,)
        """
        r, _ = self.simulate(T, rng)
        return r

    def generate_rows(self, T: int, rngs: list) -> np.ndarray:
        """
        Simulate one independent path per generator.

        Row k draws exclusively from ``rngs[k]``, so the result for a row
        does not depend on which other rows are simulated alongside it.

        Parameters
        ----------
        T : int
            Number of recorded periods.
        rngs : list of NormalSource
            One generator per row.

        Returns
        -------
        R : np.ndarray, shape (len(rngs), T)
        """
        T = check_count("T", T)
        n_rows = len(rngs)
        if T == 0 or n_rows == 0:
            return np.zeros((n_rows, T), dtype=float)

        T_total = T + self.warmup
        z = np.empty((n_rows, T_total), dtype=float)
        for k, rng in enumerate(rngs):
            z[k] = rng.standard_normal(T_total)

        r, _ = egarch_recursion(z, self.params)
        return r[:, self.warmup:]

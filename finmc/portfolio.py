"""
Portfolio path simulation module for FinMC.

Purpose
-------
Composes many independent return paths with one deterministic contribution
schedule into an ensemble of asset-value trajectories.

Key Mathematical Framework
--------------------------
- Cumulative schedule: C_t (from contributions.py), C_0 = 0
- Additional contribution: A_t = C_t - C_{t-1}
- Monthly log return: r_t (from returns.py)
- Value evolution: V_t = (V_{t-1} + A_t) · exp(r_t),  V_0 = 0

The month-t contribution is invested before the month-t return is applied,
and nothing is invested before month 1.

Design principles
-----------------
- Separation of concerns: the simulator executes dynamics, the return
  model generates returns, the aggregator reduces the ensemble
- Per-row streams: row s always draws from child stream s of
  SeedSequence(seed), so results do not depend on chunking or worker count
- Vectorized within a chunk: loops over time, not over simulations
- Barrier: the ensemble is only returned (read-only) after every chunk
  has written its rows

Example
-------
>>> from finmc.contributions import calc_invested_cumulative
>>> from finmc.portfolio import PortfolioSimulator
>>> invested_cum = calc_invested_cumulative(120, 100.0, 3.0, 500.0)
>>> sim = PortfolioSimulator()
>>> paths = sim.simulate(invested_cum, n_sims=1000, seed=42)
>>> paths.shape
(1000, 120)
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional

import numpy as np

from .contributions import schedule_increments
from .exceptions import ValidationError
from .returns import EgarchReturnModel
from .utils import check_count, check_finite, ensure_1d, row_chunks, spawn_generators

logger = logging.getLogger(__name__)

__all__ = [
    "PortfolioSimulator",
    "simulate_path",
    "accumulate_values",
]


def accumulate_values(increments: np.ndarray, R: np.ndarray) -> np.ndarray:
    """
    Recursive value dynamics V_t = (V_{t-1} + A_t) · exp(r_t), V_0 = 0.

    Parameters
    ----------
    increments : np.ndarray, shape (T,)
        Additional contribution per month.
    R : np.ndarray, shape (n_rows, T)
        Monthly log returns.

    Returns
    -------
    V : np.ndarray, shape (n_rows, T)
    """
    n_rows, T = R.shape
    V = np.empty((n_rows, T), dtype=float)
    value = np.zeros(n_rows, dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        growth = np.exp(R)
        for t in range(T):
            value = (value + increments[t]) * growth[:, t]
            V[:, t] = value
    return V


def simulate_path(invested_cum: np.ndarray, returns: np.ndarray) -> np.ndarray:
    """
    Asset values for one return series against a cumulative schedule.

    Examples
    --------
    >>> r = np.array([0.01, -0.02])
    >>> simulate_path(np.array([100.0, 100.0]), r)
    array([101.00501671,  99.00498337])
    """
    cum = ensure_1d(invested_cum, name="invested_cum")
    r = ensure_1d(returns, name="returns")
    if r.shape != cum.shape:
        raise ValidationError(
            f"returns shape {r.shape} != invested_cum shape {cum.shape}",
            field="returns",
        )
    return accumulate_values(schedule_increments(cum), r[None, :])[0]


class PortfolioSimulator:
    """
    Monte Carlo executor for contribution-plan asset paths.

    Parameters
    ----------
    return_model : EgarchReturnModel, optional
        Return generator (default: calibrated S&P 500 EGARCH).
    max_workers : int, optional
        Thread pool size for parallel runs (default: os.cpu_count()).

    Methods
    -------
    simulate(invested_cum, n_sims, seed=None, parallel=False) -> np.ndarray
        Ensemble of shape (n_sims, T), read-only.
    simulate_rows(increments, rngs) -> np.ndarray
        Values for one chunk of rows with the given generators.

    Examples
    --------
    >>> sim = PortfolioSimulator(max_workers=4)
    >>> paths = sim.simulate(invested_cum, n_sims=1000, seed=7, parallel=True)
    """

    def __init__(
        self,
        return_model: Optional[EgarchReturnModel] = None,
        max_workers: Optional[int] = None,
    ):
        self.return_model = return_model if return_model is not None else EgarchReturnModel()
        if max_workers is not None:
            max_workers = check_count("max_workers", max_workers)
            if max_workers == 0:
                raise ValidationError("max_workers must be >= 1 (got 0).", field="max_workers")
        self.max_workers = max_workers

    def __repr__(self) -> str:
        return f"PortfolioSimulator({self.return_model!r}, max_workers={self.max_workers})"

    def simulate_rows(self, increments: np.ndarray, rngs: List[np.random.Generator]) -> np.ndarray:
        """
        Simulate one chunk of rows.

        Each row draws a fresh return path from its own generator and runs
        the value recursion against the shared increments.
        """
        T = increments.shape[0]
        R = self.return_model.generate_rows(T, rngs)
        check_finite("returns", R)
        return accumulate_values(increments, R)

    def simulate(
        self,
        invested_cum: np.ndarray,
        n_sims: int,
        seed: Optional[int] = None,
        parallel: bool = False,
    ) -> np.ndarray:
        """
        Build the asset-path ensemble.

        Parameters
        ----------
        invested_cum : np.ndarray, shape (T,)
            Cumulative invested amount per month (non-decreasing).
        n_sims : int
            Number of independent paths (>= 0).
        seed : int, optional
            Root seed; row s uses child stream s of SeedSequence(seed).
        parallel : bool, default False
            Run contiguous row chunks on a ThreadPoolExecutor.

        Returns
        -------
        paths : np.ndarray, shape (n_sims, T)
            Read-only; paths[s, t] is the value of simulation s at month t+1.

        Raises
        ------
        ValidationError
            If n_sims is negative or the schedule is invalid.
        NumericAnomalyError
            If any return or value is NaN/inf.
        """
        n_sims = check_count("n_sims", n_sims)
        increments = schedule_increments(invested_cum)
        increments.flags.writeable = False
        T = increments.shape[0]

        paths = np.zeros((n_sims, T), dtype=float)
        if n_sims == 0 or T == 0:
            logger.debug("Empty ensemble requested (n_sims=%d, T=%d)", n_sims, T)
            paths.flags.writeable = False
            return paths

        rngs = spawn_generators(seed, n_sims)
        started = time.perf_counter()

        if parallel:
            workers = self.max_workers or os.cpu_count() or 1
            chunks = row_chunks(n_sims, workers)
            logger.debug("Simulating %d rows in %d chunks on %d workers", n_sims, len(chunks), workers)
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self.simulate_rows, increments, rngs[a:b]): (a, b)
                    for a, b in chunks
                }
                for future in as_completed(futures):
                    a, b = futures[future]
                    paths[a:b] = future.result()
                    logger.debug("Rows %d-%d complete", a, b - 1)
        else:
            paths[:] = self.simulate_rows(increments, rngs)

        check_finite("asset paths", paths)
        logger.debug(
            "Simulated %d paths x %d months in %.3fs",
            n_sims, T, time.perf_counter() - started,
        )
        paths.flags.writeable = False
        return paths

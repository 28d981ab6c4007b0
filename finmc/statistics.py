"""
Distribution aggregation for FinMC asset-path ensembles.

Purpose
-------
Reduces an (N, T) ensemble of asset values to the order statistics a
client displays: per-period quartile bands and a summary of the
final-period distribution, including the probability that the final value
ends below the total amount invested.

Quantile convention
-------------------
Quantiles use linear interpolation between order statistics at fractional
rank (n - 1)·q over the ascending sort of the n samples, which is
``numpy.quantile(..., method="linear")``. With n = 1 every quantile equals
the single sample.

Key components
--------------
- quantile: q-quantile of a 1-D sample
- PeriodStatistics: per-period quartiles (plus extra levels)
- TerminalStatistics: final-period quartiles, extremes and shortfall
- DistributionAggregator: computes both from an ensemble

Example
-------
>>> agg = DistributionAggregator()
>>> period = agg.period_statistics(paths)
>>> terminal = agg.terminal_statistics(paths, invested_total=invested_cum[-1])
>>> terminal.shortfall_pct
12.3
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import DEFAULT_HISTOGRAM_BINS, DEFAULT_QUANTILES, PERCENT_DECIMALS
from .exceptions import DegenerateEnsembleError, ValidationError
from .types import PeriodStatisticsDict, TerminalStatisticsDict
from .utils import check_count, check_finite, check_non_negative, month_index

logger = logging.getLogger(__name__)

__all__ = [
    "quantile",
    "PeriodStatistics",
    "TerminalStatistics",
    "DistributionAggregator",
]


def quantile(values: Sequence[float] | np.ndarray, q: float) -> float:
    """
    Linear-interpolation q-quantile of a non-empty 1-D sample.

    Examples
    --------
    >>> quantile([1.0, 2.0, 3.0, 4.0], 0.25)
    1.75
    >>> quantile([5.0], 0.75)
    5.0
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise ValidationError(f"values must be 1-D, got shape {arr.shape}.", field="values")
    if arr.size == 0:
        raise DegenerateEnsembleError("quantile of an empty sample is undefined.")
    if not 0.0 <= q <= 1.0:
        raise ValidationError(f"q must lie in [0, 1] (got {q}).", field="q")
    return float(np.quantile(arr, q, method="linear"))


def _level_key(q: float) -> str:
    return f"{q:g}"


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PeriodStatistics:
    """
    Per-period order statistics of the ensemble.

    Attributes
    ----------
    median, q1, q3 : np.ndarray, shape (T,)
        Index t holds the statistic of column t (month t+1).
    extra : dict
        Additional quantile levels, keyed by their string form ("0.05").
    """
    median: np.ndarray
    q1: np.ndarray
    q3: np.ndarray
    extra: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def n_periods(self) -> int:
        return int(self.median.shape[0])

    def to_frame(
        self,
        invested: Optional[np.ndarray] = None,
        start: Optional[date] = None,
    ) -> pd.DataFrame:
        """
        Quartile bands as a DataFrame (columns q1, median, q3[, invested]).

        Indexed by month number 1..T or, with *start*, by a first-of-month
        calendar index. Extra quantile levels are appended as columns
        named ``q<level>``.
        """
        T = self.n_periods
        if start is None:
            index = pd.RangeIndex(1, T + 1, name="month")
        else:
            index = month_index(start, T)
        data = {"q1": self.q1, "median": self.median, "q3": self.q3}
        for key, values in self.extra.items():
            data[f"q{key}"] = values
        if invested is not None:
            inv = np.asarray(invested, dtype=float)
            if inv.shape != (T,):
                raise ValidationError(
                    f"invested shape {inv.shape} != ({T},)", field="invested"
                )
            data["invested"] = inv
        return pd.DataFrame(data, index=index)

    def to_dict(self) -> PeriodStatisticsDict:
        return {
            "median": self.median.tolist(),
            "q1": self.q1.tolist(),
            "q3": self.q3.tolist(),
            "extra": {k: v.tolist() for k, v in self.extra.items()},
        }

    @classmethod
    def from_dict(cls, data: PeriodStatisticsDict) -> "PeriodStatistics":
        return cls(
            median=np.asarray(data["median"], dtype=float),
            q1=np.asarray(data["q1"], dtype=float),
            q3=np.asarray(data["q3"], dtype=float),
            extra={k: np.asarray(v, dtype=float) for k, v in data.get("extra", {}).items()},
        )


@dataclass(frozen=True)
class TerminalStatistics:
    """
    Statistics of the final-period values V[:, T-1].

    Attributes
    ----------
    median, q1, q3 : float
        Quartiles of the final values.
    minimum, maximum, mean : float
        Extremes and mean of the final values.
    invested : float
        Total amount invested by the last month (shortfall threshold).
    shortfall_probability : float
        Fraction of simulations whose final value is strictly below
        *invested*, in [0, 1].
    """
    median: float
    q1: float
    q3: float
    minimum: float
    maximum: float
    mean: float
    invested: float
    shortfall_probability: float

    @property
    def shortfall_pct(self) -> float:
        """Shortfall probability in percent, rounded for display."""
        return round(100.0 * self.shortfall_probability, PERCENT_DECIMALS)

    def to_dict(self) -> TerminalStatisticsDict:
        return {
            "median": self.median,
            "q1": self.q1,
            "q3": self.q3,
            "minimum": self.minimum,
            "maximum": self.maximum,
            "mean": self.mean,
            "invested": self.invested,
            "shortfall_probability": self.shortfall_probability,
        }

    @classmethod
    def from_dict(cls, data: TerminalStatisticsDict) -> "TerminalStatistics":
        return cls(**{k: float(data[k]) for k in cls.__dataclass_fields__})


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class DistributionAggregator:
    """
    Reduces an asset-path ensemble to per-period and terminal statistics.

    The ensemble is never modified; every statistic is computed on a
    sorted copy of the relevant column(s).

    Parameters
    ----------
    quantiles : sequence of float
        Levels to compute per period. Must include 0.25, 0.5 and 0.75.

    Examples
    --------
    >>> agg = DistributionAggregator(quantiles=(0.05, 0.25, 0.5, 0.75, 0.95))
    >>> stats = agg.period_statistics(paths)
    >>> sorted(stats.extra)
    ['0.05', '0.95']
    """

    def __init__(self, quantiles: Sequence[float] = DEFAULT_QUANTILES):
        levels = tuple(sorted(set(float(q) for q in quantiles)))
        if any(not 0.0 <= q <= 1.0 for q in levels):
            raise ValidationError(
                f"quantile levels must lie in [0, 1], got {levels}", field="quantiles"
            )
        missing = [q for q in DEFAULT_QUANTILES if q not in levels]
        if missing:
            raise ValidationError(
                f"quantiles must include {DEFAULT_QUANTILES}, missing {missing}",
                field="quantiles",
            )
        self.quantiles: Tuple[float, ...] = levels

    def __repr__(self) -> str:
        return f"DistributionAggregator(quantiles={self.quantiles})"

    @staticmethod
    def _as_ensemble(paths: np.ndarray) -> np.ndarray:
        V = np.asarray(paths, dtype=float)
        if V.ndim != 2:
            raise ValidationError(f"paths must be 2-D (N, T), got shape {V.shape}.", field="paths")
        n_sims, T = V.shape
        if n_sims == 0 or T == 0:
            raise DegenerateEnsembleError(
                f"statistics are undefined for an empty ensemble (n_sims={n_sims}, T={T})."
            )
        check_finite("paths", V)
        return V

    def period_statistics(self, paths: np.ndarray) -> PeriodStatistics:
        """
        Quantiles of each column of the ensemble.

        Raises
        ------
        DegenerateEnsembleError
            If the ensemble has no rows or no columns.
        NumericAnomalyError
            If the ensemble holds NaN or infinite values.
        """
        V = self._as_ensemble(paths)
        levels = np.quantile(V, self.quantiles, axis=0, method="linear")
        by_level = dict(zip(self.quantiles, levels))
        extra = {
            _level_key(q): by_level[q]
            for q in self.quantiles
            if q not in DEFAULT_QUANTILES
        }
        return PeriodStatistics(
            median=by_level[0.5],
            q1=by_level[0.25],
            q3=by_level[0.75],
            extra=extra,
        )

    def terminal_statistics(self, paths: np.ndarray, invested_total: float) -> TerminalStatistics:
        """
        Quartiles, extremes and shortfall probability of the final column.

        Parameters
        ----------
        paths : np.ndarray, shape (N, T)
        invested_total : float
            Cumulative amount invested by month T.
        """
        invested = check_non_negative("invested_total", invested_total)
        final = self._as_ensemble(paths)[:, -1]
        q1, median, q3 = np.quantile(final, DEFAULT_QUANTILES, method="linear")
        return TerminalStatistics(
            median=float(median),
            q1=float(q1),
            q3=float(q3),
            minimum=float(final.min()),
            maximum=float(final.max()),
            mean=float(final.mean()),
            invested=invested,
            shortfall_probability=float(np.mean(final < invested)),
        )

    def summarize(
        self,
        paths: np.ndarray,
        invested_cum: np.ndarray,
    ) -> Tuple[PeriodStatistics, TerminalStatistics]:
        """Period and terminal statistics against a cumulative schedule."""
        cum = np.asarray(invested_cum, dtype=float)
        V = self._as_ensemble(paths)
        if cum.shape != (V.shape[1],):
            raise ValidationError(
                f"invested_cum shape {cum.shape} != ({V.shape[1]},)", field="invested_cum"
            )
        period = self.period_statistics(V)
        terminal = self.terminal_statistics(V, invested_total=float(cum[-1]))
        logger.debug(
            "Aggregated %d x %d ensemble: terminal median %.3f, shortfall %.4f",
            V.shape[0], V.shape[1], terminal.median, terminal.shortfall_probability,
        )
        return period, terminal

    def terminal_histogram(
        self,
        paths: np.ndarray,
        bins: int = DEFAULT_HISTOGRAM_BINS,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Histogram of the final-period values.

        Returns
        -------
        counts : np.ndarray, shape (bins,)
        edges : np.ndarray, shape (bins + 1,)
        """
        if check_count("bins", bins) < 1:
            raise ValidationError(f"bins must be a positive integer (got {bins!r}).", field="bins")
        final = self._as_ensemble(paths)[:, -1]
        counts, edges = np.histogram(final, bins=bins)
        return counts, edges

"""
Type definitions for FinMC.

Purpose
-------
Provides the randomness protocol and TypedDict definitions for structured
dictionary types used in serialization. Using TypedDicts documents the
expected structure of exported results.

Type Definitions
----------------
NormalSource
    Anything that can produce standard-normal draws via
    ``standard_normal(size)``; ``numpy.random.Generator`` satisfies it.

PeriodStatisticsDict
    Per-period quantiles: {"median", "q1", "q3", "extra"}

TerminalStatisticsDict
    Terminal outcome: {"median", "q1", "q3", "minimum", ...}

SimulationResultDict
    Full exported result: {"schema_version", "parameters", ...}
"""

from typing import Dict, List, Optional, Protocol, runtime_checkable

import numpy as np
from typing_extensions import NotRequired, TypedDict

__all__ = [
    "NormalSource",
    "PeriodStatisticsDict",
    "TerminalStatisticsDict",
    "SimulationResultDict",
]


@runtime_checkable
class NormalSource(Protocol):
    """
    Injectable source of independent standard-normal draws.

    Examples
    --------
    >>> rng: NormalSource = np.random.default_rng(42)
    >>> rng.standard_normal(3).shape
    (3,)
    """

    def standard_normal(self, size=None) -> np.ndarray: ...


class PeriodStatisticsDict(TypedDict):
    """
    Per-period order statistics, aligned by period index.

    Attributes
    ----------
    median, q1, q3 : List[float]
        Length-T sequences.
    extra : Dict[str, List[float]]
        Additional quantile levels keyed by their string form (e.g. "0.05").
    """

    median: List[float]
    q1: List[float]
    q3: List[float]
    extra: Dict[str, List[float]]


class TerminalStatisticsDict(TypedDict):
    """Statistics of the final-period values."""

    median: float
    q1: float
    q3: float
    minimum: float
    maximum: float
    mean: float
    invested: float
    shortfall_probability: float


class SimulationResultDict(TypedDict):
    """
    Exported simulation result.

    Statistics are None when the request was degenerate (T = 0 or
    n_sims = 0). Asset paths are only present when explicitly requested.
    """

    schema_version: str
    parameters: Dict[str, object]
    schedule: List[float]
    period_statistics: Optional[PeriodStatisticsDict]
    terminal_statistics: Optional[TerminalStatisticsDict]
    asset_paths: NotRequired[List[List[float]]]

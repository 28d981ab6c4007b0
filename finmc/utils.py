"""General utilities for FinMC

Contents
--------
- Validation helpers (non-negative scalars, integer counts)
- Array helpers (ensure_1d, check_finite)
- Index builders (month_index)
- Randomness helpers (spawn_generators, row_chunks)
"""

from __future__ import annotations

from datetime import date
from numbers import Integral
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import NumericAnomalyError, ValidationError

__all__ = [
    # Validation
    "check_non_negative",
    "check_count",
    # Arrays
    "ensure_1d",
    "check_finite",
    # Index
    "month_index",
    # Randomness
    "spawn_generators",
    "row_chunks",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> float:
    """Raise if *value* is negative or not a finite real number."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a real number (got {value!r}).", field=name)
    if not np.isfinite(v):
        raise ValidationError(f"{name} must be finite (got {value}).", field=name)
    if v < 0:
        raise ValidationError(f"{name} must be non-negative (got {value}).", field=name)
    return v


def check_count(name: str, value: int) -> int:
    """Raise unless *value* is a non-negative integer (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValidationError(f"{name} must be an integer (got {value!r}).", field=name)
    if value < 0:
        raise ValidationError(f"{name} must be non-negative (got {value}).", field=name)
    return int(value)


# ---------------------------------------------------------------------------
# Array helpers
# ---------------------------------------------------------------------------

def ensure_1d(a: Sequence[float] | np.ndarray, *, name: str = "array") -> np.ndarray:
    """Convert input to a 1-D float NumPy array with helpful error messages."""
    arr = np.asarray(a, dtype=float)
    if arr.ndim != 1:
        raise ValidationError(f"{name} must be 1-D, got shape {arr.shape}.", field=name)
    if not np.isfinite(arr).all():
        raise ValidationError(f"{name} must contain only finite values.", field=name)
    return arr


def check_finite(name: str, arr: np.ndarray) -> None:
    """Raise NumericAnomalyError if *arr* holds any NaN or infinite value."""
    bad = ~np.isfinite(arr)
    if not bad.any():
        return
    first = tuple(int(i) for i in np.argwhere(bad)[0])
    raise NumericAnomalyError(
        f"{name} contain {int(bad.sum())} non-finite values (first at index {first})."
    )


# ---------------------------------------------------------------------------
# Index builders
# ---------------------------------------------------------------------------

def month_index(start: Optional[date], months: int) -> pd.DatetimeIndex:
    """Construct a first-of-month DatetimeIndex for *months* periods.

    If *start* is None, uses the current month as the first period.
    """
    if months <= 0:
        return pd.DatetimeIndex([], dtype="datetime64[ns]")
    if start is None:
        today = pd.Timestamp.today().normalize()
        first = pd.Timestamp(today.year, today.month, 1)
    else:
        first = pd.Timestamp(start.year, start.month, 1)
    return pd.date_range(start=first, periods=months, freq="MS")


# ---------------------------------------------------------------------------
# Randomness helpers
# ---------------------------------------------------------------------------

def spawn_generators(seed: Optional[int], n: int) -> List[np.random.Generator]:
    """Return *n* statistically independent generators derived from *seed*.

    Child k only depends on (seed, k), so the stream assigned to a given
    simulation row does not change with the number of workers or the
    order in which rows are processed. ``seed=None`` draws fresh OS entropy.
    """
    if n <= 0:
        return []
    children = np.random.SeedSequence(seed).spawn(int(n))
    return [np.random.default_rng(child) for child in children]


def row_chunks(n_rows: int, n_chunks: int) -> List[Tuple[int, int]]:
    """Split ``range(n_rows)`` into at most *n_chunks* contiguous (start, stop) slices."""
    if n_rows <= 0:
        return []
    n_chunks = max(1, min(int(n_chunks), n_rows))
    bounds = np.linspace(0, n_rows, n_chunks + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(bounds[:-1], bounds[1:]) if b > a]

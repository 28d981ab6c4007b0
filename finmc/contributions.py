"""
Contribution schedule modeling for FinMC.

Purpose
-------
Computes the deterministic cumulative amount invested at the end of each
month for a lump-sum-plus-monthly plan with a total cap. The schedule is
computed once per request and shared read-only by every simulated path.

Policy
------
- Month 1: the full initial amount is invested, even when it exceeds the cap.
- Month t > 1: if invested-so-far < cap, add min(monthly, cap - invested-so-far);
  otherwise add nothing.

The cap only throttles monthly contributions; it never reduces the
initial lump sum.

Example
-------
>>> from finmc.contributions import ContributionSchedule
>>> plan = ContributionSchedule(initial_amount=0, periodic_amount=3, total_cap=500)
>>> plan.cumulative(4)
array([0., 3., 6., 9.])
>>> plan.increments(4)
array([0., 3., 3., 3.])
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

import numpy as np
import pandas as pd

from .exceptions import ValidationError
from .utils import check_count, check_non_negative, ensure_1d, month_index

__all__ = [
    "ContributionSchedule",
    "calc_invested_cumulative",
    "schedule_increments",
]


def calc_invested_cumulative(
    total_month: int,
    initial_investment: float,
    monthly_investment: float,
    total_investment: float,
) -> np.ndarray:
    """
    Cumulative amount invested through each month.

    Parameters
    ----------
    total_month : int
        Horizon T (>= 0).
    initial_investment : float
        Lump sum applied in month 1 regardless of the cap.
    monthly_investment : float
        Amount added each month from month 2 while below the cap.
    total_investment : float
        Cap on the cumulative amount for months >= 2.

    Returns
    -------
    np.ndarray, shape (T,)
        Non-decreasing, read-only array.

    Raises
    ------
    ValidationError
        If any argument is negative or T is not an integer.
    """
    T = check_count("total_month", total_month)
    initial = check_non_negative("initial_investment", initial_investment)
    monthly = check_non_negative("monthly_investment", monthly_investment)
    cap = check_non_negative("total_investment", total_investment)

    invested_cum = np.zeros(T, dtype=float)
    invested_so_far = 0.0
    for t in range(T):
        if t == 0:
            invested_so_far += initial
        elif invested_so_far < cap:
            invested_so_far += min(monthly, cap - invested_so_far)
        invested_cum[t] = invested_so_far

    invested_cum.flags.writeable = False
    return invested_cum


def schedule_increments(invested_cum: np.ndarray) -> np.ndarray:
    """
    Per-month additional contribution A_t implied by a cumulative schedule.

    A_1 = invested_cum[0] and A_t = invested_cum[t] - invested_cum[t-1].

    Raises
    ------
    ValidationError
        If the schedule is not 1-D and finite, or decreases.
    """
    cum = ensure_1d(invested_cum, name="invested_cum")
    increments = np.diff(cum, prepend=0.0)
    if np.any(increments < 0):
        bad = int(np.argmax(increments < 0))
        raise ValidationError(
            f"invested_cum must be non-negative and non-decreasing "
            f"(violated at period {bad + 1}).",
            field="invested_cum",
        )
    return increments


@dataclass(frozen=True)
class ContributionSchedule:
    """
    Lump-sum-plus-monthly contribution plan with a total cap.

    Parameters
    ----------
    initial_amount : float
        Lump sum invested in month 1.
    periodic_amount : float
        Monthly contribution from month 2 onwards.
    total_cap : float
        Cap on the cumulative amount for months >= 2.

    Examples
    --------
    >>> ContributionSchedule(100, 5, 0).cumulative(1)
    array([100.])
    >>> ContributionSchedule(100, 0, 100).cumulative(3)
    array([100., 100., 100.])
    """
    initial_amount: float
    periodic_amount: float
    total_cap: float

    def __post_init__(self):
        check_non_negative("initial_amount", self.initial_amount)
        check_non_negative("periodic_amount", self.periodic_amount)
        check_non_negative("total_cap", self.total_cap)

    @classmethod
    def from_plan(cls, plan) -> "ContributionSchedule":
        """Build from an InvestmentPlanConfig."""
        return cls(
            initial_amount=plan.initial_investment,
            periodic_amount=plan.monthly_investment,
            total_cap=plan.total_investment,
        )

    def cumulative(self, months: int) -> np.ndarray:
        """Read-only cumulative invested amount per month, shape (months,)."""
        return calc_invested_cumulative(
            months, self.initial_amount, self.periodic_amount, self.total_cap
        )

    def increments(self, months: int) -> np.ndarray:
        """Additional amount invested in each month, shape (months,)."""
        return schedule_increments(self.cumulative(months))

    def months_to_cap(self) -> Optional[int]:
        """
        First month in which the cumulative amount reaches the cap.

        Returns None when the cap is never reached (zero monthly amount
        and initial amount below the cap).
        """
        if self.initial_amount >= self.total_cap:
            return 1
        if self.periodic_amount == 0:
            return None
        remaining = self.total_cap - self.initial_amount
        return 1 + int(np.ceil(remaining / self.periodic_amount))

    def to_series(self, months: int, start: Optional[date] = None) -> pd.Series:
        """
        Cumulative schedule as a pandas Series.

        Indexed by month number (1..months) or, with *start*, by a
        first-of-month calendar index.
        """
        values = self.cumulative(months)
        if start is None:
            index = pd.RangeIndex(1, months + 1, name="month")
        else:
            index = month_index(start, months)
        return pd.Series(values, index=index, name="invested")

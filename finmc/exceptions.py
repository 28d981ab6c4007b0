"""
Custom exceptions for FinMC.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all FinMC modules. All exceptions inherit from FinMCError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
FinMCError (base)
├── ValidationError - Input parameter outside its documented domain
├── NumericAnomalyError - NaN/inf produced during simulation
└── DegenerateEnsembleError - Statistics requested on an empty ensemble

DegenerateInputWarning (UserWarning)
    Non-fatal signal that a request (T = 0 or n_sims = 0) produced
    no statistics.

Usage
-----
>>> from finmc.exceptions import ValidationError, FinMCError
>>>
>>> raise ValidationError("initial_investment must be non-negative, got -1", field="initial_investment")
>>>
>>> try:
...     result = engine.run()
... except FinMCError as e:
...     print(f"FinMC error: {e}")
"""

from typing import Optional


class FinMCError(Exception):
    """
    Base exception for all FinMC errors.

    Examples
    --------
    >>> try:
    ...     engine.run()
    ... except FinMCError as e:
    ...     logger.error("Simulation failed: %s", e)
    """
    pass


class ValidationError(FinMCError):
    """
    Input parameter outside its documented domain.

    Raised before any simulation work starts, such as:
    - Negative horizon or simulation count
    - Negative contribution amounts or cap
    - Contribution schedules that are not 1-D, finite and non-decreasing

    Parameters
    ----------
    message : str
        Human-readable description.
    field : str, optional
        Name of the offending parameter.

    Examples
    --------
    >>> err = ValidationError("T must be non-negative, got -1", field="T")
    >>> err.field
    'T'
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NumericAnomalyError(FinMCError):
    """
    Non-finite values (NaN/inf) detected in simulated returns or values.

    Aborts the current request. Retrying with a fresh random stream is a
    caller-level decision; the core never retries.

    Examples
    --------
    >>> raise NumericAnomalyError(
    ...     "asset paths contain 3 non-finite values (first at row 12, period 431)"
    ... )
    """
    pass


class DegenerateEnsembleError(FinMCError):
    """
    Statistics requested on an ensemble with no rows or no periods.

    Quantiles and shortfall probability are undefined when there are no
    simulations or no periods, so the aggregator refuses instead of
    returning zeros.
    """
    pass


class DegenerateInputWarning(UserWarning):
    """
    Request produced no statistics (T = 0 or n_sims = 0).

    Emitted by SimulationEngine.run() when the aggregator signals a
    degenerate ensemble. The returned result carries the (possibly empty)
    schedule and ensemble, with statistics set to None.
    """
    pass

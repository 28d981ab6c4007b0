"""
Serialization module for FinMC results and scenarios.

Purpose
-------
Provides JSON export and import for simulation results and scenario
configurations, so a run can be archived, reported on later, or replayed
with the same parameters and seed.

Supports serialization of:
- ScenarioConfig (plan + simulation settings + model coefficients)
- SimulationResult (schedule, period and terminal statistics, optionally
  the full asset-path ensemble)

Design Principles
-----------------
- Type-safe: scenario configs round-trip through Pydantic validation
- Human-readable: indented JSON
- Reproducible: the request, including its seed, travels with the result
- Backward compatible: schema versions are checked on load

Example
-------
>>> from pathlib import Path
>>> from finmc.serialization import save_result, load_result
>>>
>>> save_result(result, Path("results/nisa.json"))
>>> data = load_result(Path("results/nisa.json"))
>>> data["terminal_statistics"].median
"""

from __future__ import annotations
from typing import Dict, Any, TYPE_CHECKING
from pathlib import Path
import json
import logging
import warnings

import numpy as np

from .config import ScenarioConfig, validate_config
from .statistics import PeriodStatistics, TerminalStatistics
from .types import SimulationResultDict

if TYPE_CHECKING:
    from .simulation import SimulationResult

logger = logging.getLogger(__name__)

__all__ = [
    "SCHEMA_VERSION",
    "result_to_dict",
    "save_result",
    "load_result",
    "save_scenario",
    "load_scenario",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


def _check_schema_version(data: Dict[str, Any], path: Path) -> None:
    schema_version = data.get("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"{path} schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


# ---------------------------------------------------------------------------
# Result Serialization
# ---------------------------------------------------------------------------

def result_to_dict(result: SimulationResult, include_paths: bool = False) -> SimulationResultDict:
    """
    Convert a SimulationResult to a JSON-compatible dictionary.

    Parameters
    ----------
    result : SimulationResult
        Result to serialize
    include_paths : bool
        Whether to include the full (n_sims, T) asset-path ensemble

    Returns
    -------
    dict
        Statistics are None for a degenerate result.
    """
    data: SimulationResultDict = {
        "schema_version": SCHEMA_VERSION,
        "parameters": result.config.model_dump(mode="json"),
        "schedule": np.asarray(result.schedule, dtype=float).tolist(),
        "period_statistics": (
            result.period_statistics.to_dict()
            if result.period_statistics is not None else None
        ),
        "terminal_statistics": (
            result.terminal_statistics.to_dict()
            if result.terminal_statistics is not None else None
        ),
    }
    if include_paths:
        data["asset_paths"] = np.asarray(result.asset_paths, dtype=float).tolist()
    return data


def save_result(
    result: SimulationResult,
    path: Path,
    include_paths: bool = False,
) -> None:
    """
    Save a SimulationResult to a JSON file.

    Parameters
    ----------
    result : SimulationResult
        Result to save
    path : Path
        Output file path (parent directories are created)
    include_paths : bool
        Whether to include the full asset-path ensemble

    Examples
    --------
    >>> save_result(result, Path("results/run.json"), include_paths=True)
    """
    data = result_to_dict(result, include_paths=include_paths)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    logger.debug("Saved result to %s (include_paths=%s)", path, include_paths)


def load_result(path: Path) -> Dict[str, Any]:
    """
    Load a saved result.

    Note: Returns a dictionary instead of a SimulationResult because the
    asset-path ensemble is optional in the file.

    Returns
    -------
    dict
        Keys: "schema_version", "config" (ScenarioConfig), "schedule"
        (np.ndarray), "period_statistics" (PeriodStatistics or None),
        "terminal_statistics" (TerminalStatistics or None) and, when
        saved, "asset_paths" (np.ndarray).

    Examples
    --------
    >>> data = load_result(Path("results/run.json"))
    >>> data["schedule"][-1]
    """
    path = Path(path)
    with open(path, "r") as f:
        raw = json.load(f)

    _check_schema_version(raw, path)

    period = raw.get("period_statistics")
    terminal = raw.get("terminal_statistics")
    data: Dict[str, Any] = {
        "schema_version": raw.get("schema_version"),
        "config": validate_config(ScenarioConfig, raw["parameters"]),
        "schedule": np.array(raw["schedule"], dtype=float),
        "period_statistics": PeriodStatistics.from_dict(period) if period is not None else None,
        "terminal_statistics": TerminalStatistics.from_dict(terminal) if terminal is not None else None,
    }
    if "asset_paths" in raw:
        data["asset_paths"] = np.array(raw["asset_paths"], dtype=float)
    return data


# ---------------------------------------------------------------------------
# Scenario Serialization
# ---------------------------------------------------------------------------

def save_scenario(config: ScenarioConfig, path: Path) -> None:
    """
    Save a ScenarioConfig to a JSON file.

    Examples
    --------
    >>> save_scenario(ScenarioConfig(name="10y"), Path("scenarios/10y.json"))
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"schema_version": SCHEMA_VERSION, **config.model_dump(mode="json")}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_scenario(path: Path) -> ScenarioConfig:
    """
    Load and validate a ScenarioConfig from a JSON file.

    Raises
    ------
    ValidationError
        If the file holds an out-of-domain parameter.
    """
    path = Path(path)
    with open(path, "r") as f:
        raw = json.load(f)
    if "schema_version" in raw:
        _check_schema_version(raw, path)
        raw = {k: v for k, v in raw.items() if k != "schema_version"}
    return validate_config(ScenarioConfig, raw)

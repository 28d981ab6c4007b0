"""
Command-Line Interface for FinMC.

Purpose
-------
Provides a CLI for running investment-plan simulations, managing scenario
files and reporting on saved results without writing Python code.

Commands
--------
- simulate: Run the Monte Carlo simulation for a contribution plan
- config: Validate, display and create scenario files
- report: Summarize a saved simulation result
- info: Show package and dependency versions

Example Usage
-------------
    # 10-year plan: 100 up front, 3 per month, capped at 500
    $ finmc simulate -T 120 --initial 100 --monthly 3 --cap 500 --seed 42

    # Run a saved scenario on 8 threads and keep the result
    $ finmc simulate -c nisa.json --parallel --workers 8 -o results/nisa.json

    # Validate a scenario file
    $ finmc config validate nisa.json

    # Show version
    $ finmc --version
"""

from __future__ import annotations

import json
import sys
import warnings
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import AppSettings, ScenarioConfig, validate_config
from .constants import DEFAULT_SEED, MONTHS_PER_YEAR, PERCENT_DECIMALS, VALUE_DECIMALS
from .exceptions import DegenerateInputWarning, FinMCError, ValidationError
from .logging_config import setup_logging


def _fail(err: Exception) -> None:
    """Print a FinMC error to stderr and exit with status 1."""
    if isinstance(err, ValidationError) and err.field:
        click.echo(f"Error: {err} (field: {err.field})", err=True)
    else:
        click.echo(f"Error: {err}", err=True)
    sys.exit(1)


def _fail_unreadable(path: Path, err: Exception) -> None:
    """Report a file that is not valid JSON or lacks a required key, then exit 1."""
    if isinstance(err, json.JSONDecodeError):
        click.echo(f"Error: {path} is not valid JSON: {err}", err=True)
    else:
        click.echo(f"Error: {path} is missing required key {err}", err=True)
    sys.exit(1)


def _resolve_output(settings: AppSettings, path: Path) -> Path:
    """Place a relative output path under the configured output directory."""
    return path if path.is_absolute() else settings.output_dir / path


def _fmt(value: float) -> str:
    return f"{value:,.{VALUE_DECIMALS}f}"


def _fmt_pct(probability: float) -> str:
    return f"{100.0 * probability:.{PERCENT_DECIMALS}f}%"


def _terminal_rows(terminal, total_month: int, n_sims: int):
    """(label, value) pairs shared by `simulate` and `report`."""
    return [
        ("Horizon", f"{total_month} months"),
        ("Simulations", f"{n_sims:,}"),
        ("Total Invested", _fmt(terminal.invested)),
        ("", ""),
        ("Median Final Value", _fmt(terminal.median)),
        ("25th Percentile", _fmt(terminal.q1)),
        ("75th Percentile", _fmt(terminal.q3)),
        ("Minimum", _fmt(terminal.minimum)),
        ("Maximum", _fmt(terminal.maximum)),
        ("Shortfall Probability", _fmt_pct(terminal.shortfall_probability)),
    ]


def _print_rows(ctx: click.Context, title: str, rows) -> None:
    console: Console = ctx.obj["console"]
    if ctx.obj["quiet"]:
        for label, value in rows:
            if label:
                click.echo(f"{label}: {value}")
        return
    table = Table(title=title, show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for label, value in rows:
        table.add_row(label, value)
    console.print(table)


@click.group()
@click.version_option(version=__version__, prog_name="finmc")
@click.option("--quiet", "-q", is_flag=True, help="Plain output, no tables or progress messages")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: FINMC_LOG_LEVEL or INFO)",
)
@click.pass_context
def main(ctx: click.Context, quiet: bool, log_level: Optional[str]) -> None:
    """
    FinMC - Monte Carlo simulator for periodic investment plans.

    Projects the distribution of a lump-sum-plus-monthly plan's value
    under EGARCH(1,1,1) monthly returns.

    Use 'finmc COMMAND --help' for command-specific help.
    """
    ctx.ensure_object(dict)
    settings = AppSettings()
    setup_logging((log_level or settings.log_level).upper())
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = Console()


@main.command()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Scenario file (JSON); options below override its values"
)
@click.option("--months", "-T", type=int, default=None, help="Investment horizon in months (0-480)")
@click.option("--initial", type=float, default=None, help="Initial lump sum (0-500)")
@click.option("--monthly", type=float, default=None, help="Monthly contribution from month 2 (0-10)")
@click.option("--cap", type=float, default=None, help="Total contribution cap (0-1800)")
@click.option(
    "--simulations", "-n",
    type=int,
    default=None,
    help="Number of Monte Carlo paths (default: FINMC_DEFAULT_N_SIMS or 1000)"
)
@click.option("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
@click.option("--parallel/--sequential", default=None, help="Simulate row chunks on a thread pool")
@click.option("--workers", "-w", type=int, default=None, help="Thread pool size (default: CPU count)")
@click.option(
    "--quantile", "quantiles",
    type=float,
    multiple=True,
    help="Extra quantile level to report per month (repeatable, e.g. --quantile 0.05)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Save the result to this JSON file (relative paths go under FINMC_OUTPUT_DIR)"
)
@click.option("--include-paths", is_flag=True, help="Include every asset path in the saved result")
@click.pass_context
def simulate(
    ctx: click.Context,
    config: Optional[Path],
    months: Optional[int],
    initial: Optional[float],
    monthly: Optional[float],
    cap: Optional[float],
    simulations: Optional[int],
    seed: Optional[int],
    parallel: Optional[bool],
    workers: Optional[int],
    quantiles: Tuple[float, ...],
    output: Optional[Path],
    include_paths: bool,
) -> None:
    """
    Run the Monte Carlo simulation.

    Builds the contribution schedule, simulates the asset-path ensemble
    and prints the distribution of the final value.

    Example:
        finmc simulate -T 240 --initial 0 --monthly 5 --cap 1200 -n 5000 --seed 7
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]
    settings: AppSettings = ctx.obj["settings"]

    from .serialization import load_scenario, save_result
    from .simulation import SimulationEngine

    try:
        if config is not None:
            data = load_scenario(config).model_dump()
        else:
            data = ScenarioConfig().model_dump()
            data["simulation"]["n_sims"] = settings.default_n_sims
            data["simulation"]["seed"] = settings.default_seed

        overrides = {
            ("plan", "total_month"): months,
            ("plan", "initial_investment"): initial,
            ("plan", "monthly_investment"): monthly,
            ("plan", "total_investment"): cap,
            ("simulation", "n_sims"): simulations,
            ("simulation", "seed"): seed,
            ("simulation", "parallel"): parallel,
            ("simulation", "max_workers"): workers,
        }
        for (section, key), value in overrides.items():
            if value is not None:
                data[section][key] = value
        if quantiles:
            data["simulation"]["quantiles"] = tuple(data["simulation"]["quantiles"]) + quantiles

        scenario = validate_config(ScenarioConfig, data)
        engine = SimulationEngine(scenario, settings=settings)

        if not quiet:
            console.print(
                f"[bold]Running {scenario.simulation.n_sims:,} simulations over "
                f"{scenario.plan.total_month} months...[/bold]"
            )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DegenerateInputWarning)
            result = engine.run()
    except FinMCError as e:
        _fail(e)
    except (json.JSONDecodeError, KeyError) as e:
        _fail_unreadable(config, e)

    if result.is_degenerate:
        click.echo(
            f"No statistics: degenerate request "
            f"(T={result.total_month}, n_sims={result.n_sims})."
        )
    else:
        _print_rows(
            ctx,
            "Simulation Results",
            _terminal_rows(result.terminal_statistics, result.total_month, result.n_sims),
        )

    if output:
        output = _resolve_output(settings, output)
        save_result(result, output, include_paths=include_paths)
        if not quiet:
            click.echo(f"Results saved to {output}")


@main.group()
def config() -> None:
    """Scenario file management commands."""
    pass


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, config_file: Path) -> None:
    """
    Validate a scenario file.

    Checks that every parameter lies in its allowed range.

    Example:
        finmc config validate nisa.json
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    from .serialization import load_scenario

    try:
        scenario = load_scenario(config_file)
    except FinMCError as e:
        _fail(e)
    except (json.JSONDecodeError, KeyError) as e:
        _fail_unreadable(config_file, e)

    plan = scenario.plan
    if quiet:
        click.echo("Configuration is valid")
        return
    summary = (
        f"[green]✓ Configuration is valid[/green]\n\n"
        f"Scenario: {scenario.name}\n"
        f"Horizon: {plan.total_month} months\n"
        f"Initial: {plan.initial_investment:g}, monthly: {plan.monthly_investment:g}, "
        f"cap: {plan.total_investment:g}\n"
        f"Simulations: {scenario.simulation.n_sims:,} (seed: {scenario.simulation.seed})"
    )
    console.print(Panel(summary, title="Configuration Summary", border_style="green"))


@config.command("show")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def config_show(ctx: click.Context, config_file: Path, format: str) -> None:
    """
    Display scenario details.

    Example:
        finmc config show nisa.json --format table
    """
    console: Console = ctx.obj["console"]

    from .serialization import load_scenario

    try:
        scenario = load_scenario(config_file)
    except FinMCError as e:
        _fail(e)

    if format == "json":
        click.echo(scenario.model_dump_json(indent=2))
        return

    for section, title in (("plan", "Investment Plan"), ("simulation", "Simulation"), ("model", "EGARCH Model")):
        table = Table(title=title)
        table.add_column("Parameter", style="cyan")
        table.add_column("Value", justify="right")
        for key, value in getattr(scenario, section).model_dump().items():
            table.add_row(key, str(value))
        console.print(table)


@config.command("create")
@click.argument("output_file", type=click.Path(path_type=Path))
@click.option(
    "--template", "-t",
    type=click.Choice(["basic", "long-horizon"]),
    default="basic",
    help="basic: 10-year plan; long-horizon: 40-year plan with tail quantiles"
)
@click.pass_context
def config_create(ctx: click.Context, output_file: Path, template: str) -> None:
    """
    Create a new scenario file from a template.

    Example:
        finmc config create my_plan.json --template basic
    """
    quiet = ctx.obj["quiet"]

    from .serialization import save_scenario

    if template == "basic":
        scenario = ScenarioConfig(
            name="basic",
            description="10-year plan: 100 up front, 3 per month, capped at 500",
            plan={"total_month": 120, "initial_investment": 100, "monthly_investment": 3, "total_investment": 500},
            simulation={"n_sims": 1000, "seed": DEFAULT_SEED},
        )
    else:
        scenario = ScenarioConfig(
            name="long-horizon",
            description="40-year plan: 10 per month up to the 1800 cap",
            plan={"total_month": 480, "initial_investment": 0, "monthly_investment": 10, "total_investment": 1800},
            simulation={"n_sims": 5000, "seed": DEFAULT_SEED, "parallel": True, "quantiles": (0.05, 0.25, 0.5, 0.75, 0.95)},
        )

    save_scenario(scenario, output_file)
    if not quiet:
        click.echo(f"Configuration created: {output_file}")


@main.command()
@click.option(
    "--result", "-r",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Saved result file (JSON)"
)
@click.option(
    "--format", "-f",
    type=click.Choice(["summary", "detailed", "csv"]),
    default="summary",
    help="Output format (default: summary)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file for csv format (default: report.csv under FINMC_OUTPUT_DIR)"
)
@click.pass_context
def report(
    ctx: click.Context,
    result: Path,
    format: str,
    output: Optional[Path],
) -> None:
    """
    Generate reports from a saved simulation result.

    summary prints the final-value distribution, detailed adds the
    quartile bands at the end of every year, csv writes the monthly
    bands to a file.

    Example:
        finmc report -r results/nisa.json --format detailed
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]
    settings: AppSettings = ctx.obj["settings"]

    from .serialization import load_result

    try:
        data = load_result(result)
    except FinMCError as e:
        _fail(e)
    except (json.JSONDecodeError, KeyError) as e:
        _fail_unreadable(result, e)

    scenario: ScenarioConfig = data["config"]
    terminal = data["terminal_statistics"]
    period = data["period_statistics"]
    if terminal is None or period is None:
        click.echo(f"No statistics in {result}: degenerate request.")
        return

    frame = period.to_frame(invested=data["schedule"])

    if format == "csv":
        output = _resolve_output(settings, output or Path("report.csv"))
        output.parent.mkdir(parents=True, exist_ok=True)
        frame.round(VALUE_DECIMALS).to_csv(output)
        if not quiet:
            click.echo(f"CSV report saved to {output}")
        return

    _print_rows(
        ctx,
        f"Simulation Summary: {scenario.name}",
        _terminal_rows(terminal, scenario.plan.total_month, scenario.simulation.n_sims),
    )

    if format == "detailed":
        yearly = frame.iloc[MONTHS_PER_YEAR - 1::MONTHS_PER_YEAR]
        if quiet:
            click.echo(yearly.round(VALUE_DECIMALS).to_string())
            return
        table = Table(title="Quartile Bands by Year")
        table.add_column("Month", style="cyan", justify="right")
        for column in yearly.columns:
            table.add_column(column, justify="right")
        for month, row in yearly.iterrows():
            table.add_row(str(month), *[_fmt(v) for v in row])
        console.print(table)


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display system and package information.

    Shows version numbers, installed dependencies, and
    the active settings.
    """
    console: Console = ctx.obj["console"]
    settings: AppSettings = ctx.obj["settings"]

    info_lines = [
        f"FinMC Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]

    dependencies = {
        "numpy": "numpy",
        "pandas": "pandas",
        "pydantic": "pydantic",
        "rich": "rich",
        "click": "click",
    }

    for name, module in dependencies.items():
        try:
            mod = __import__(module)
            version = getattr(mod, "__version__", "installed")
            info_lines.append(f"{name}: {version}")
        except ImportError:
            info_lines.append(f"{name}: not installed")

    info_lines.append(f"Default simulations: {settings.default_n_sims:,}")
    info_lines.append(f"Max workers: {settings.max_workers or 'cpu count'}")
    info_lines.append(f"Output directory: {settings.output_dir}")

    if ctx.obj["quiet"]:
        for line in info_lines:
            click.echo(line)
    else:
        console.print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()

"""
Allocate command for the bonus engine CLI

Scores the dataset, then allocates a pool under a rule and prints the
per-employee breakdown with a distribution summary.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bonus_engine.allocation.strategies import AllocationOptions
from bonus_engine.allocation_service import AllocationRun
from bonus_engine.exceptions import BonusEngineError
from bonus_engine.logger import configure_logging
from bonus_engine.memory_store import load_dataset

from ..utils.config_helpers import build_services, load_settings, resolve_weight_config_id

console = Console()


def render_allocation(run: AllocationRun) -> Table:
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Employee")
    table.add_column("Name")
    table.add_column("Department")
    table.add_column("Tier")
    table.add_column("Score", justify="right")
    table.add_column("Coeff", justify="right")
    table.add_column("Base", justify="right")
    table.add_column("Performance", justify="right")
    table.add_column("Adjustment", justify="right")
    table.add_column("Total", justify="right", style="bold green")
    table.add_column("Guard", justify="center")

    for r in sorted(run.results, key=lambda r: (-r.total_amount, r.employee_id)):
        guard = "min" if r.min_amount_applied else ("max" if r.max_amount_applied else "")
        table.add_row(
            r.employee_id,
            r.snapshot.name,
            r.snapshot.department_name or r.snapshot.department_id or "-",
            r.tier_level or "-",
            f"{r.final_score:.4f}",
            f"{r.coefficients.final:.3f}",
            f"{r.base_amount:,.2f}",
            f"{r.performance_amount:,.2f}",
            f"{r.adjustment_amount:,.2f}",
            f"{r.total_amount:,.2f}",
            guard,
        )
    return table


def render_summary(run: AllocationRun) -> Panel:
    s = run.summary
    lines = [
        f"Employees: {s.employee_count}",
        f"Allocated: {s.total_allocated:,.2f} of {s.pool_amount:,.2f} ({s.allocation_ratio:.1%})",
        f"Remaining: {s.remaining_amount:,.2f}",
        f"Mean / median: {s.mean_amount:,.2f} / {s.median_amount:,.2f}",
        f"Gini: {s.gini_coefficient:.3f} | CV: {s.variation_coefficient:.3f}",
        f"Guards: {s.min_guard_count} min, {s.max_guard_count} max",
    ]
    if s.outliers:
        lines.append(f"Outliers: {', '.join(s.outliers)}")
    title = "Simulated allocation" if run.simulated else f"Allocation {run.run_id}"
    return Panel("\n".join(lines), title=title, border_style="blue")


def run_allocation(
    dataset: str,
    pool: str,
    rule: str,
    weight_config: Optional[str] = None,
    simulate: bool = False,
    fixed_amount: Optional[float] = None,
    exponential_factor: Optional[float] = None,
    config: Optional[str] = None,
    verbose: bool = False,
) -> None:
    try:
        settings = load_settings(config)
        configure_logging("DEBUG" if verbose else settings.logging.level)
        data = load_dataset(Path(dataset))
        scoring, allocation = build_services(data, settings)
        weight_config_id = resolve_weight_config_id(data, weight_config)

        pool_record = data.config_store.get_pool(pool)
        outcome = scoring.batch_score_employees(
            data.directory.list_employee_ids(), pool_record.period, weight_config_id
        )
        if outcome.errors:
            console.print(f"⚠️  [yellow]{outcome.error_count} employees could not be scored[/yellow]")

        run = allocation.allocate_pool(
            pool,
            rule,
            AllocationOptions(
                simulate=simulate,
                fixed_amount=fixed_amount,
                exponential_factor=exponential_factor,
                weight_config_id=weight_config_id,
            ),
        )
    except BonusEngineError as e:
        console.print(f"❌ [red]{e.message}[/red]")
        if verbose:
            console.print(e.format_diagnostic_message())
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ [red]{e}[/red]")
        raise typer.Exit(1)

    console.print(render_allocation(run))
    console.print(render_summary(run))
    if run.simulated:
        console.print("💡 [dim]Simulation only: nothing was committed[/dim]")
    else:
        console.print(f"✅ [green]Pool {run.pool.id} marked {run.pool.status.value}[/green]")

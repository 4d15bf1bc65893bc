"""
Score command for the bonus engine CLI

Batch-scores every employee in a dataset and prints the ranked cohort.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from bonus_engine.exceptions import BonusEngineError
from bonus_engine.logger import configure_logging
from bonus_engine.memory_store import load_dataset

from ..utils.config_helpers import build_services, load_settings, resolve_weight_config_id

console = Console()


def render_ranking(results, limit: Optional[int] = None) -> Table:
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Rank", justify="right")
    table.add_column("Employee")
    table.add_column("Department")
    table.add_column("Level")
    table.add_column("Profit", justify="right")
    table.add_column("Position", justify="right")
    table.add_column("Performance", justify="right")
    table.add_column("Final", justify="right", style="bold")
    table.add_column("Pctl", justify="right", style="dim")

    ordered = sorted(results, key=lambda r: (r.score_rank or 0, r.employee_id))
    for r in ordered[:limit] if limit else ordered:
        table.add_row(
            str(r.score_rank or "-"),
            r.employee_id,
            r.department_id or "-",
            r.position_level or "-",
            f"{r.raw_scores.profit_contribution:.3f}",
            f"{r.raw_scores.position_value:.3f}",
            f"{r.raw_scores.performance:.3f}",
            f"{r.final_score:.4f}",
            f"{r.percentile_rank:.1f}" if r.percentile_rank is not None else "-",
        )
    return table


def run_scoring(
    dataset: str,
    period: Optional[str] = None,
    weight_config: Optional[str] = None,
    config: Optional[str] = None,
    limit: Optional[int] = None,
    verbose: bool = False,
) -> None:
    try:
        settings = load_settings(config)
        configure_logging("DEBUG" if verbose else settings.logging.level)
        data = load_dataset(Path(dataset))
        scoring, _ = build_services(data, settings)
        period = period or data.period
        weight_config_id = resolve_weight_config_id(data, weight_config)
        employee_ids = data.directory.list_employee_ids()

        console.print(
            f"🧮 [bold blue]Scoring {len(employee_ids)} employees[/bold blue] "
            f"for [cyan]{period}[/cyan] with weight config [cyan]{weight_config_id}[/cyan]"
        )
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Scoring", total=100)
            outcome = scoring.batch_score_employees(
                employee_ids,
                period,
                weight_config_id,
                on_progress=lambda p: progress.update(task, completed=p.percent),
            )
    except BonusEngineError as e:
        console.print(f"❌ [red]{e.message}[/red]")
        if verbose:
            console.print(e.format_diagnostic_message())
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ [red]{e}[/red]")
        raise typer.Exit(1)

    console.print(render_ranking(outcome.results, limit))

    if outcome.errors:
        errors = Table(show_header=True, header_style="bold yellow", title="Scoring errors")
        errors.add_column("Employee")
        errors.add_column("Type")
        errors.add_column("Message")
        for err in outcome.errors:
            errors.add_row(err.employee_id, err.error_type, err.message)
        console.print(errors)

    stats = scoring.get_statistics(period, weight_config_id)
    console.print(
        f"✅ [green]{outcome.success_count} scored[/green], "
        f"[yellow]{outcome.error_count} failed[/yellow] | "
        f"mean {stats.mean_score:.4f} | std {stats.std_dev:.4f}"
    )

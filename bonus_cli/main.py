#!/usr/bin/env python3
"""
Bonus Engine CLI

Rich-based CLI wrapper for the bonus_engine scoring and allocation services.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from .commands.allocate import run_allocation
from .commands.score import run_scoring
from .commands.validate import validate_dataset

# Initialize Rich console
console = Console()

# Main app
app = typer.Typer(
    name="bonus-engine",
    help="Bonus Engine CLI - multi-dimensional scoring and bonus pool allocation",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


def version_callback(value: bool):
    if value:
        from _version import get_full_version
        console.print(get_full_version())
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version information"
    ),
):
    """
    [bold blue]Bonus Engine CLI[/bold blue]

    Score employees across profit contribution, position value and performance,
    then allocate a bonus pool under a configurable rule.

    [dim]Examples:[/dim]
        bonus-engine score data/sample_dataset.yaml
        bonus-engine allocate data/sample_dataset.yaml --pool pool-2024 --rule rule-score --simulate
        bonus-engine validate data/sample_dataset.yaml
    """
    pass


@app.command("score")
def score(
    dataset: str = typer.Argument(..., help="Path to a dataset YAML file"),
    period: Optional[str] = typer.Option(None, "--period", "-p", help="Scoring period (defaults to the dataset period)"),
    weight_config: Optional[str] = typer.Option(None, "--weight-config", "-w", help="Weight config id"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to engine config YAML"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Only show the top N employees"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """🧮 Score every employee in a dataset and show the ranking."""
    run_scoring(
        dataset=dataset,
        period=period,
        weight_config=weight_config,
        config=config,
        limit=limit,
        verbose=verbose,
    )


@app.command("allocate")
def allocate(
    dataset: str = typer.Argument(..., help="Path to a dataset YAML file"),
    pool: str = typer.Option(..., "--pool", help="Bonus pool id"),
    rule: str = typer.Option(..., "--rule", help="Allocation rule id"),
    weight_config: Optional[str] = typer.Option(None, "--weight-config", "-w", help="Weight config id"),
    simulate: bool = typer.Option(False, "--simulate", help="Compute the allocation without committing it"),
    fixed_amount: Optional[float] = typer.Option(None, "--fixed-amount", help="Override the rule's fixed amount"),
    exponential_factor: Optional[float] = typer.Option(None, "--exponential-factor", help="Override the rule's exponential factor"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to engine config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """💰 Allocate a bonus pool under an allocation rule."""
    run_allocation(
        dataset=dataset,
        pool=pool,
        rule=rule,
        weight_config=weight_config,
        simulate=simulate,
        fixed_amount=fixed_amount,
        exponential_factor=exponential_factor,
        config=config,
        verbose=verbose,
    )


@app.command("validate")
def validate(
    dataset: str = typer.Argument(..., help="Path to a dataset YAML file"),
):
    """✅ Validate the pools, rules and weight configs of a dataset."""
    validate_dataset(dataset)


if __name__ == "__main__":
    app()

"""
Validate command for the bonus engine CLI

Reports structural problems in every pool, rule and weight config of a dataset.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import typer
from rich.console import Console
from rich.table import Table

from bonus_engine.exceptions import BonusEngineError
from bonus_engine.memory_store import load_dataset
from bonus_engine.validation import validate_pool, validate_rule, validate_weight_config

console = Console()


def collect_violations(raw: Dict) -> List[tuple]:
    """(kind, id, violation) rows for every record in a raw dataset mapping."""
    rows = []
    checks = (
        ("pool", "pools", validate_pool),
        ("rule", "rules", validate_rule),
        ("weight_config", "weight_configs", validate_weight_config),
    )
    for kind, key, validator in checks:
        for record in raw.get(key, []) or []:
            for violation in validator(record):
                rows.append((kind, str(record.get("id", "?")), violation))
    return rows


def validate_dataset(dataset: str) -> None:
    try:
        data = load_dataset(Path(dataset), strict=False)
    except (BonusEngineError, FileNotFoundError) as e:
        console.print(f"❌ [red]{e}[/red]")
        raise typer.Exit(1)

    rows = collect_violations(data.raw)
    if not rows:
        console.print("✅ [green]All pools, rules and weight configs are valid[/green]")
        return

    table = Table(show_header=True, header_style="bold red")
    table.add_column("Kind")
    table.add_column("Id")
    table.add_column("Violation")
    for kind, record_id, violation in rows:
        table.add_row(kind, record_id, violation)
    console.print(table)
    console.print(f"❌ [red]{len(rows)} violation(s) found[/red]")
    raise typer.Exit(1)

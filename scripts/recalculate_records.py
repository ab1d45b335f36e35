#!/usr/bin/env python
"""
Recompute every fighter's counters from the stored fight ledger.

Stored counters drift when a command's follow-up writes fail part way. The API
always re-aggregates on load, so this only repairs what other readers of the
database see.

Usage:
    python scripts/recalculate_records.py --dry-run
    python scripts/recalculate_records.py --division "UFL PC"
"""

import asyncio

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

load_dotenv()

from ufl_records.db.connection import dispose_engine, get_session_factory
from ufl_records.db.repositories import PersistenceError, SQLAlchemyCanonicalStore
from ufl_records.schemas.fight import Fight
from ufl_records.schemas.fighter import Division, Fighter
from ufl_records.services.aggregation import aggregate
from ufl_records.services.sync_coordinator import counter_values

console = Console()


def find_drift(
    stored: list[Fighter], fights: list[Fight], division: Division | None = None
) -> list[tuple[Fighter, Fighter]]:
    """Return ``(stored, recomputed)`` pairs whose counters disagree."""
    recomputed = aggregate(fights, stored)
    return [
        (old, new)
        for old, new in zip(stored, recomputed, strict=True)
        if (division is None or old.division == division)
        and counter_values(old) != counter_values(new)
    ]


def render_drift(drift: list[tuple[Fighter, Fighter]]) -> Table:
    table = Table(title="Counter drift")
    table.add_column("Fighter")
    table.add_column("Division")
    table.add_column("Stored")
    table.add_column("Recomputed")
    table.add_column("KO wins")
    for old, new in drift:
        table.add_row(
            old.name,
            old.division.value,
            old.record,
            new.record,
            f"{old.ko_wins} -> {new.ko_wins}",
        )
    return table


async def recalculate(division: Division | None, dry_run: bool) -> int:
    store = SQLAlchemyCanonicalStore(get_session_factory())
    try:
        fighters = [Fighter.model_validate(row) for row in await store.select_all("fighters")]
        fights = [Fight.model_validate(row) for row in await store.select_all("fights")]

        drift = find_drift(fighters, fights, division)
        if not drift:
            console.print("[green]✓ Stored counters already match the fight ledger[/green]")
            return 0

        console.print(render_drift(drift))
        if dry_run:
            console.print(f"[yellow]DRY RUN: {len(drift)} fighter(s) would be updated[/yellow]")
            return len(drift)

        updated = 0
        for _, fighter in drift:
            try:
                updated += await store.update(
                    "fighters",
                    counter_values(fighter),
                    {"name": fighter.name, "division": fighter.division},
                )
            except PersistenceError as exc:
                console.print(f"[red]Failed to update {fighter.name}: {exc}[/red]")
        console.print(f"[green]✓ Updated {updated} fighter row(s)[/green]")
        return updated
    finally:
        await dispose_engine()


@click.command()
@click.option(
    "--division",
    type=click.Choice([division.value for division in Division]),
    default=None,
    help="Only repair fighters of this division.",
)
@click.option("--dry-run", is_flag=True, help="Report drift without writing.")
def main(division: str | None, dry_run: bool) -> None:
    console.print("[bold blue]UFL Record Recalculation[/bold blue]\n")
    asyncio.run(recalculate(Division(division) if division else None, dry_run))


if __name__ == "__main__":
    main()

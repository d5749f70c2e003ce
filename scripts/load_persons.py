"""
Bulk loading script for the passport ledger.

Reads person records from a CSV file and submits one CreatePerson transaction
per row through the gateway.
"""

from __future__ import annotations

import csv
import sys
import time
from pathlib import Path
from typing import Iterator, List, Tuple

import typer

from passport.config import get_settings
from passport.domain.errors import ContractError
from passport.domain.models import Person, parse_bool
from passport.gateway.errors import GatewayError
from passport.gateway.persons import PersonClient
from passport.gateway.session import open_person_client
from passport.reporter import print_error
from passport.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Load person records from CSV into the ledger (CreatePerson per row).")

log = get_logger(__name__)

COLUMNS = ["id", "passport", "name", "surname", "city", "address", "phone", "married"]


def _read_persons_csv(csv_path: Path) -> Iterator[Person]:
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{csv_path}: missing columns {', '.join(missing)}")
        for line, row in enumerate(reader, start=2):
            try:
                married = parse_bool(row["married"].strip())
            except ValueError as exc:
                raise ValueError(f"{csv_path}:{line}: {exc}") from exc
            yield Person(
                id=row["id"].strip(),
                passport=row["passport"].strip(),
                name=row["name"].strip(),
                surname=row["surname"].strip(),
                city=row["city"].strip(),
                address=row["address"].strip(),
                phone=row["phone"].strip(),
                married=married,
            )


def _load(client: PersonClient, persons: List[Person], skip_existing: bool) -> Tuple[int, int]:
    """
    Submit one CreatePerson per record; returns (created, skipped).
    """
    created = skipped = 0
    for person in persons:
        if skip_existing and client.exists(person.id):
            log.info(f"Skipping existing person {person.id}", extra={"person_id": person.id})
            skipped += 1
            continue
        client.create(person)
        created += 1
    return created, skipped


@app.command()
def main(
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV with a header row."),
    skip_existing: bool = typer.Option(
        False,
        "--skip-existing",
        help="Skip records whose id is already on the ledger instead of failing.",
    ),
) -> None:
    """
    Load person records into the ledger.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    if settings.ledger_backend == "memory":
        typer.echo("Warning: LEDGER_BACKEND=memory, records will not outlive this run.", err=True)

    start = time.perf_counter()
    try:
        persons = list(_read_persons_csv(csv_path))
    except ValueError as exc:
        typer.echo(f"Invalid input: {exc}", err=True)
        raise typer.Exit(code=2)

    typer.echo(f"Loading {len(persons):,} persons from {csv_path}")
    try:
        with open_person_client(settings) as client:
            created, skipped = _load(client, persons, skip_existing)
    except (GatewayError, ContractError) as exc:
        print_error(exc)
        raise typer.Exit(code=1)

    duration = time.perf_counter() - start
    typer.echo(f"Load completed in {duration:.2f}s: created={created} skipped={skipped}")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from passport.domain.errors import ContractError
from passport.domain.models import Person, encode
from passport.gateway.errors import (
    CommitError,
    CommitStatusError,
    EndorseError,
    GatewayError,
    SubmitError,
)
from passport.network.errors import StatusCode


def _code_name(code: int) -> str:
    try:
        return StatusCode(code).name
    except ValueError:
        return str(code)


def print_json(value: Any, console: Optional[Console] = None) -> None:
    """
    Pretty-print a model, a list of models, or a raw JSON payload.
    """
    console = console or Console()
    text = value.decode("utf-8") if isinstance(value, bytes) else encode(value).decode("utf-8")
    console.print_json(text)


def print_persons(persons: Sequence[Person], console: Optional[Console] = None) -> None:
    """
    Render persons as a rich table, in the order given.
    """
    console = console or Console()

    if not persons:
        console.print("[yellow]database is empty![/yellow]")
        return

    table = Table(title="Persons", box=box.ROUNDED, caption=f"{len(persons)} record(s)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Passport", style="magenta")
    table.add_column("Name")
    table.add_column("Surname")
    table.add_column("City", style="green")
    table.add_column("Address")
    table.add_column("Phone", style="yellow")
    table.add_column("Married", justify="center")

    for person in persons:
        table.add_row(
            escape(person.id),
            escape(person.serial),
            escape(person.name),
            escape(person.surname),
            escape(person.city),
            escape(person.address),
            escape(person.phone),
            "yes" if person.married else "no",
        )

    console.print(table)


def describe_error(exc: Exception) -> List[str]:
    """
    Human-readable lines for a failure, specific to its kind.

    Gateway errors list every endpoint detail with its address and MSP id.
    """
    lines: List[str] = []
    if isinstance(exc, CommitError):
        lines.append(
            f"Transaction {exc.transaction_id} failed to commit with status "
            f"{int(exc.code)}: {exc.message}"
        )
    elif isinstance(exc, CommitStatusError):
        if exc.is_timeout():
            lines.append(
                f"Timeout waiting for transaction {exc.transaction_id} commit status: {exc.message}"
            )
        else:
            lines.append(
                f"Error obtaining commit status for transaction {exc.transaction_id} "
                f"with status {_code_name(exc.code)}: {exc.message}"
            )
    elif isinstance(exc, EndorseError):
        lines.append(
            f"Endorse error for transaction {exc.transaction_id} "
            f"with status {_code_name(exc.code)}: {exc.message}"
        )
    elif isinstance(exc, SubmitError):
        lines.append(
            f"Submit error for transaction {exc.transaction_id} "
            f"with status {_code_name(exc.code)}: {exc.message}"
        )
    elif isinstance(exc, GatewayError):
        lines.append(f"Evaluate error with status {_code_name(exc.code)}: {exc.message}")
    elif isinstance(exc, ContractError):
        lines.append(f"{exc.kind}: {exc.message}")
    else:
        lines.append(f"{type(exc).__name__}: {exc}")

    if isinstance(exc, GatewayError):
        for detail in exc.details:
            lines.append(
                f"Error from endpoint: {detail.address}, mspId: {detail.msp_id}, "
                f"message: {detail.message}"
            )
    return lines


def print_error(exc: Exception, console: Optional[Console] = None) -> None:
    console = console or Console(stderr=True)
    for line in describe_error(exc):
        console.print(f"[red]{escape(line)}[/red]", soft_wrap=True)


__all__ = ["print_json", "print_persons", "describe_error", "print_error"]

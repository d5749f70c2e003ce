from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Generator, Optional

import typer
from rich.console import Console

from passport.config import get_settings
from passport.domain.errors import ContractError
from passport.domain.models import Person
from passport.gateway.errors import GatewayError
from passport.gateway.persons import PersonClient
from passport.gateway.session import open_person_client
from passport.reporter import print_error, print_json, print_persons
from passport.shell import PassportShell
from passport.utils.logging import configure_logging

app = typer.Typer(help="Passport ledger CLI.")

console = Console()
err_console = Console(stderr=True)


@contextmanager
def _client() -> Generator[PersonClient, None, None]:
    """
    Open a person client from settings; render contract and gateway failures
    and exit with status 1.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        with open_person_client(settings) as client:
            yield client
    except (GatewayError, ContractError) as exc:
        print_error(exc, err_console)
        raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"MSP={settings.msp_id} peer={settings.gateway_peer}@{settings.peer_endpoint} | "
        f"channel={settings.channel_name} chaincode={settings.chaincode_name} | "
        f"backend={settings.ledger_backend}"
    )
    if settings.ledger_backend == "postgres":
        typer.echo(f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}")
    typer.echo(
        f"timeouts: evaluate={settings.evaluate_timeout}s endorse={settings.endorse_timeout}s "
        f"submit={settings.submit_timeout}s commit_status={settings.commit_status_timeout}s"
    )


@app.command()
def init() -> None:
    """
    Seed the ledger with the default persons (InitLedger).
    """
    with _client() as client:
        client.init_ledger()
    typer.echo("*** Transaction committed successfully")


@app.command()
def create(
    person_id: str = typer.Argument(..., help="Record id (ledger key)."),
    serial: str = typer.Option(..., "--passport", "-p", help="Passport serial."),
    name: str = typer.Option(..., "--name"),
    surname: str = typer.Option(..., "--surname"),
    city: str = typer.Option(..., "--city"),
    address: str = typer.Option(..., "--address"),
    phone: str = typer.Option(..., "--phone"),
    married: bool = typer.Option(False, "--married/--single"),
) -> None:
    """
    Create a new person record (CreatePerson).
    """
    person = Person(
        id=person_id,
        serial=serial,
        name=name,
        surname=surname,
        city=city,
        address=address,
        phone=phone,
        married=married,
    )
    with _client() as client:
        client.create(person)
    typer.echo("*** Transaction committed successfully")


@app.command()
def read(person_id: str = typer.Argument(...)) -> None:
    """
    Print one person record as JSON (ReadPerson).
    """
    with _client() as client:
        person = client.read(person_id)
    print_json(person, console)


@app.command()
def update(
    person_id: str = typer.Argument(...),
    serial: Optional[str] = typer.Option(None, "--passport", "-p"),
    name: Optional[str] = typer.Option(None, "--name"),
    surname: Optional[str] = typer.Option(None, "--surname"),
    city: Optional[str] = typer.Option(None, "--city"),
    address: Optional[str] = typer.Option(None, "--address"),
    phone: Optional[str] = typer.Option(None, "--phone"),
    married: Optional[bool] = typer.Option(None, "--married/--single"),
) -> None:
    """
    Update a person record (UpdatePerson). Omitted options keep current values.
    """
    supplied = {
        "serial": serial,
        "name": name,
        "surname": surname,
        "city": city,
        "address": address,
        "phone": phone,
        "married": married,
    }
    changes = {field: value for field, value in supplied.items() if value is not None}
    with _client() as client:
        current = client.read(person_id)
        client.update(current.model_copy(update=changes))
    typer.echo("*** Transaction committed successfully")


@app.command()
def delete(person_id: str = typer.Argument(...)) -> None:
    """
    Delete a person record (DeletePerson).
    """
    with _client() as client:
        client.delete(person_id)
    typer.echo("*** Transaction committed successfully")


@app.command()
def exists(person_id: str = typer.Argument(...)) -> None:
    """
    Print whether a person record exists (PersonExists).
    """
    with _client() as client:
        found = client.exists(person_id)
    typer.echo("true" if found else "false")


@app.command("list")
def list_persons(
    table: bool = typer.Option(False, "--table", "-t", help="Render as a table instead of JSON."),
) -> None:
    """
    List every person record in key order (GetAllPersons).
    """
    with _client() as client:
        persons = client.list_all()
    if table:
        print_persons(persons, console)
    elif not persons:
        typer.echo("database is empty!")
    else:
        print_json(persons, console)


@app.command()
def history(person_id: str = typer.Argument(...)) -> None:
    """
    Print the modification history of a record (GetPersonHistory).
    """
    with _client() as client:
        entries = client.history(person_id)
    print_json(entries, console)


@app.command()
def shell() -> None:
    """
    Start the interactive menu.
    """
    with _client() as client:
        PassportShell(client, console).run()


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

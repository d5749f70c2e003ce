"""
Interactive menu over the person contract.

Each menu action runs one or two gateway calls. Failures are rendered and the
shell returns to the menu; end of input leaves the shell.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

import typer
from rich.console import Console

from passport.domain.errors import ContractError
from passport.domain.models import Person, format_bool, parse_bool
from passport.gateway.errors import GatewayError
from passport.gateway.persons import PersonClient
from passport.reporter import print_error, print_json
from passport.utils.logging import get_logger

log = get_logger(__name__)

MENU = (
    ("1", "create"),
    ("2", "list"),
    ("3", "read by id"),
    ("4", "update"),
    ("5", "history"),
    ("9", "exit"),
)

# Prompt label per Person field, in argument order after the id.
FIELDS = (
    ("serial", "Serial"),
    ("name", "Name"),
    ("surname", "Surname"),
    ("city", "City"),
    ("address", "Address"),
    ("phone", "Phone"),
)


def _ask(label: str) -> str:
    return typer.prompt(label, default="", show_default=False).strip()


class PassportShell:
    def __init__(self, client: PersonClient, console: Optional[Console] = None) -> None:
        self.client = client
        self.console = console or Console()
        self._actions: Dict[str, Callable[[], None]] = {
            "1": self.create,
            "2": self.list_persons,
            "3": self.read,
            "4": self.update,
            "5": self.history,
        }

    def print_help(self) -> None:
        for key, label in MENU:
            typer.echo(f"{key} - {label}")

    def run(self) -> None:
        """Loop until `9` or end of input."""
        self.print_help()
        while True:
            try:
                cmd = _ask("\ncmd")
            except typer.Abort:
                return
            if cmd == "9":
                return
            action = self._actions.get(cmd)
            if action is None:
                typer.echo("Unknown cmd! Try one more time")
                self.print_help()
                continue
            try:
                action()
            except typer.Abort:
                return
            except (GatewayError, ContractError) as exc:
                log.debug(f"Shell action {cmd} failed: {exc}")
                print_error(exc, self.console)

    def _required(self, label: str) -> str:
        while True:
            value = _ask(label)
            if value:
                return value
            typer.echo("required field!")

    def _married(self, label: str, current: Optional[bool] = None) -> bool:
        while True:
            value = _ask(label)
            if not value:
                if current is not None:
                    return current
                typer.echo("required field!")
                continue
            try:
                return parse_bool(value)
            except ValueError:
                typer.echo("Invalid input! Try one more time")

    def create(self) -> None:
        typer.echo("Input Person Data to Create.")
        while True:
            person_id = self._required("Id")
            if not self.client.exists(person_id):
                break
            typer.echo("Person with this ID already exists! Try another")

        values = {field: self._required(label) for field, label in FIELDS}
        married = self._married("Married?")
        person = Person(id=person_id, married=married, **values)

        typer.echo("Committing to ledger...")
        self.client.create(person)
        typer.echo("*** Transaction committed successfully")

    def list_persons(self) -> None:
        persons = self.client.list_all()
        if not persons:
            typer.echo("database is empty!")
            return
        print_json(persons, self.console)

    def read(self) -> None:
        person = self.client.read(_ask("Enter id"))
        print_json(person, self.console)

    def update(self) -> None:
        current = self.client.read(_ask("Enter id"))
        typer.echo("Input Person Data to Update.")
        typer.echo("To keep current value leave blank input")

        changes = {}
        for field, label in FIELDS:
            value = _ask(f"{label} ({getattr(current, field)}) new value")
            if value:
                changes[field] = value
        changes["married"] = self._married(
            f"Married? ({format_bool(current.married)}) new value", current.married
        )

        typer.echo("Committing to ledger...")
        self.client.update(current.model_copy(update=changes))
        typer.echo("*** Transaction committed successfully")

    def history(self) -> None:
        entries = self.client.history(_ask("Enter id"))
        print_json(entries, self.console)


__all__ = ["PassportShell", "MENU"]

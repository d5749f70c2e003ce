"""
Typed client for the person contract.

Converts `Person` values to the contract's positional string arguments and
decodes result payloads back into models, so untyped strings never travel
past this boundary. Whether a call is evaluated or submitted follows the kind
`PersonContract` declares for the transaction.
"""

from __future__ import annotations

from typing import List

from passport.domain.models import (
    HistoryEntry,
    Person,
    decode_bool,
    decode_history,
    decode_person,
    decode_persons,
    format_bool,
)
from passport.contract.person import PersonContract
from passport.gateway.client import Contract


def person_args(person: Person) -> List[str]:
    """Positional arguments of CreatePerson/UpdatePerson, in contract order."""
    return [
        person.id,
        person.serial,
        person.name,
        person.surname,
        person.city,
        person.address,
        person.phone,
        format_bool(person.married),
    ]


class PersonClient:
    def __init__(self, contract: Contract) -> None:
        self.contract = contract

    def _call(self, function: str, *args: str) -> bytes:
        if PersonContract.describe(function).submit:
            return self.contract.submit_transaction(function, *args)
        return self.contract.evaluate_transaction(function, *args)

    def init_ledger(self) -> None:
        self._call("InitLedger")

    def create(self, person: Person) -> None:
        self._call("CreatePerson", *person_args(person))

    def read(self, person_id: str) -> Person:
        return decode_person(self._call("ReadPerson", person_id))

    def update(self, person: Person) -> None:
        """Overwrite every field of an existing record with `person`."""
        self._call("UpdatePerson", *person_args(person))

    def delete(self, person_id: str) -> None:
        self._call("DeletePerson", person_id)

    def exists(self, person_id: str) -> bool:
        return decode_bool(self._call("PersonExists", person_id))

    def list_all(self) -> List[Person]:
        return decode_persons(self._call("GetAllPersons"))

    def history(self, person_id: str) -> List[HistoryEntry]:
        return decode_history(self._call("GetPersonHistory", person_id))


__all__ = ["PersonClient", "person_args"]

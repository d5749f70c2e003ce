"""
Record contract managing person/passport records in the world state.

The contract is a stateless function of world state to world state: it keeps
no caches, and every precondition failure raises before any write is issued.
"""

from __future__ import annotations

from typing import List

from passport.contract.abstract import Contract, transaction
from passport.contract.stub import TransactionContext
from passport.domain.errors import AlreadyExists, NotFound
from passport.domain.models import HistoryEntry, Person, decode_person, encode
from passport.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_PERSONS = (
    Person(
        id="person0",
        serial="0510 228148",
        name="Igor",
        surname="Nikolaev",
        city="Moscow",
        address="Likhachevsky proezd 2",
        phone="88005553535",
        married=True,
    ),
    Person(
        id="person1",
        serial="1020 123654",
        name="Matvei",
        surname="Stepanov",
        city="Dolgoprudny",
        address="Universitetskaya 11",
        phone="88005553535",
        married=False,
    ),
)


class PersonContract(Contract):
    """
    CRUD, range and history queries over `Person` records keyed by id.
    """

    name: str = "passport"

    @transaction("InitLedger")
    def initialize_defaults(self, ctx: TransactionContext) -> None:
        """
        Seed the example records.

        Seeding is not idempotent: it fails with AlreadyExists when any seed
        id is already present, and then writes nothing.
        """
        for person in DEFAULT_PERSONS:
            if self.exists(ctx, person.id):
                raise AlreadyExists(person.id)
        for person in DEFAULT_PERSONS:
            ctx.stub.put_state(person.id, encode(person))
        log.info("Seeded default persons", extra={"tx_id": ctx.stub.tx_id})

    @transaction("CreatePerson")
    def create(
        self,
        ctx: TransactionContext,
        id: str,
        serial: str,
        name: str,
        surname: str,
        city: str,
        address: str,
        phone: str,
        married: bool,
    ) -> None:
        if self.exists(ctx, id):
            raise AlreadyExists(id)
        person = Person(
            id=id,
            serial=serial,
            name=name,
            surname=surname,
            city=city,
            address=address,
            phone=phone,
            married=married,
        )
        ctx.stub.put_state(id, encode(person))

    @transaction("ReadPerson", submit=False)
    def read(self, ctx: TransactionContext, id: str) -> Person:
        raw = ctx.stub.get_state(id)
        if raw is None:
            raise NotFound(id)
        return decode_person(raw)

    @transaction("UpdatePerson")
    def update(
        self,
        ctx: TransactionContext,
        id: str,
        serial: str,
        name: str,
        surname: str,
        city: str,
        address: str,
        phone: str,
        married: bool,
    ) -> None:
        """Replace every field of an existing record; no partial patching."""
        if not self.exists(ctx, id):
            raise NotFound(id)
        person = Person(
            id=id,
            serial=serial,
            name=name,
            surname=surname,
            city=city,
            address=address,
            phone=phone,
            married=married,
        )
        ctx.stub.put_state(id, encode(person))

    @transaction("DeletePerson")
    def delete(self, ctx: TransactionContext, id: str) -> None:
        if not self.exists(ctx, id):
            raise NotFound(id)
        ctx.stub.del_state(id)

    @transaction("PersonExists", submit=False)
    def exists(self, ctx: TransactionContext, id: str) -> bool:
        return ctx.stub.get_state(id) is not None

    @transaction("GetAllPersons", submit=False)
    def list_all(self, ctx: TransactionContext) -> List[Person]:
        # Empty bounds scan the whole namespace.
        with ctx.stub.get_state_by_range("", "") as results:
            return [decode_person(kv.value) for kv in results]

    @transaction("GetPersonHistory", submit=False)
    def history(self, ctx: TransactionContext, id: str) -> List[HistoryEntry]:
        """
        Change log of a record, oldest first.

        Only reachable while the record exists: the history of a deleted id
        stays on the ledger but this query refuses it with NotFound.
        """
        if not self.exists(ctx, id):
            raise NotFound(id)
        with ctx.stub.get_history_for_key(id) as results:
            return [
                HistoryEntry(
                    transaction_id=mod.tx_id,
                    timestamp=mod.timestamp,
                    record=None if mod.is_delete else decode_person(mod.value),
                )
                for mod in results
            ]


__all__ = ["PersonContract", "DEFAULT_PERSONS"]

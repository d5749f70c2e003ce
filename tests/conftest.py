"""
Pytest configuration for the passport ledger.

Provides fixtures for:
- A client identity (ephemeral, self-signed)
- An in-memory ledger: world state, peer, orderer, connection
- Gateway, contract and typed person client on top of it
- Direct contract invocation against the world state
- Settings and database access for integration tests
"""

from __future__ import annotations

import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Generator, Tuple

import psycopg
import pytest

from passport import main
from passport.config import Settings
from passport.contract import PersonContract, TransactionContext
from passport.gateway import Gateway, PersonClient
from passport.gateway.client import Contract
from passport.gateway.identity import Identity, Signer, ephemeral_identity
from passport.infrastructure.world_state import MemoryWorldState, ValidationCode
from passport.network import LocalConnection, Orderer, Peer, TxSimulator

MSP_ID = "Org1MSP"
PEER_ADDRESS = "localhost:7051"
CHANNEL = "mychannel"
CHAINCODE = "passport"


@pytest.fixture(scope="session")
def client_identity() -> Tuple[Identity, Signer]:
    """Self-signed identity for the trusted organization."""
    return ephemeral_identity(MSP_ID)


@pytest.fixture
def world_state() -> MemoryWorldState:
    return MemoryWorldState(namespace=CHAINCODE)


@pytest.fixture
def peer(world_state: MemoryWorldState) -> Peer:
    peer = Peer(address=PEER_ADDRESS, msp_id=MSP_ID)
    peer.deploy(CHANNEL, PersonContract(), world_state, name=CHAINCODE)
    return peer


@pytest.fixture
def orderer(peer: Peer) -> Generator[Orderer, None, None]:
    orderer = Orderer(peer.commit, queue_size=10)
    orderer.start()
    yield orderer
    orderer.close()


@pytest.fixture
def lost_database(monkeypatch: pytest.MonkeyPatch, world_state: MemoryWorldState) -> None:
    """Make point reads of the world state fail the way a dropped database link does."""

    def _get_state(key: str):
        raise psycopg.OperationalError("connection to server lost")

    monkeypatch.setattr(world_state, "get_state", _get_state)


@pytest.fixture
def connection(peer: Peer, orderer: Orderer) -> LocalConnection:
    return LocalConnection(peer, orderer)


@pytest.fixture
def gateway(
    client_identity: Tuple[Identity, Signer], connection: LocalConnection
) -> Generator[Gateway, None, None]:
    identity, signer = client_identity
    with Gateway.connect(identity, signer, connection) as gw:
        yield gw


@pytest.fixture
def contract(gateway: Gateway) -> Contract:
    return gateway.get_network(CHANNEL).get_contract(CHAINCODE)


@pytest.fixture
def person_client(contract: Contract) -> PersonClient:
    return PersonClient(contract)


@pytest.fixture
def invoke(world_state: MemoryWorldState) -> Callable[..., bytes]:
    """
    Run one contract transaction directly against the world state.

    The write set is committed unless `commit=False`; a failing transaction
    raises before anything is committed.
    """
    contract = PersonContract()

    def _invoke(function: str, *args: str, commit: bool = True) -> bytes:
        simulator = TxSimulator(
            world_state,
            tx_id=uuid.uuid4().hex,
            tx_timestamp=datetime.now(timezone.utc),
            channel_id=CHANNEL,
        )
        ctx = TransactionContext(stub=simulator, client_msp_id=MSP_ID)
        payload = contract.invoke(ctx, function, list(args))
        if commit:
            code = world_state.commit(simulator.tx_id, simulator.tx_timestamp, simulator.rwset)
            assert code == ValidationCode.VALID
        return payload

    return _invoke


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Database parameters can be overridden via environment variables in CI or
    local testing.
    """
    return Settings(
        msp_id=MSP_ID,
        peer_endpoint=PEER_ADDRESS,
        channel_name=CHANNEL,
        chaincode_name=CHAINCODE,
        ledger_backend="memory",
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "passport_ledger"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def cli_settings(monkeypatch: pytest.MonkeyPatch, test_settings: Settings) -> Settings:
    """Point the CLI at test settings."""
    monkeypatch.setattr(main, "get_settings", lambda: test_settings)
    # Root handlers would otherwise bind to the runner's short-lived streams.
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    return test_settings


@pytest.fixture
def shared_client(
    monkeypatch: pytest.MonkeyPatch, cli_settings: Settings, person_client: PersonClient
) -> PersonClient:
    """Route every CLI command to one in-memory ledger."""

    @contextmanager
    def _open(settings=None):
        yield person_client

    monkeypatch.setattr(main, "open_person_client", _open)
    return person_client

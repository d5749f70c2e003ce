"""
Settings-driven gateway session.

Establishes the long-lived pieces once (identity, signer, platform connection,
gateway) and tears them down once when the block exits.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from passport.config import Settings, get_settings
from passport.gateway.client import Gateway
from passport.gateway.identity import resolve_identity
from passport.gateway.persons import PersonClient
from passport.network.local import open_local_connection


@contextmanager
def open_gateway(settings: Optional[Settings] = None) -> Generator[Gateway, None, None]:
    settings = settings or get_settings()
    identity, signer = resolve_identity(settings.msp_id, settings.cert_path, settings.key_path)
    connection = open_local_connection(settings)
    try:
        with Gateway.connect(
            identity,
            signer,
            connection,
            evaluate_timeout=settings.evaluate_timeout,
            endorse_timeout=settings.endorse_timeout,
            submit_timeout=settings.submit_timeout,
            commit_status_timeout=settings.commit_status_timeout,
        ) as gateway:
            yield gateway
    finally:
        connection.close()


@contextmanager
def open_person_client(settings: Optional[Settings] = None) -> Generator[PersonClient, None, None]:
    """Gateway session resolved to the configured channel and person contract."""
    settings = settings or get_settings()
    with open_gateway(settings) as gateway:
        contract = gateway.get_network(settings.channel_name).get_contract(settings.chaincode_name)
        yield PersonClient(contract)


__all__ = ["open_gateway", "open_person_client"]

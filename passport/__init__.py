"""
Passport ledger - a permissioned ledger of citizen passport records.

The package bundles:

- the record contract (create/read/update/delete, listing and history)
- a local platform rendition: peer, orderer and a versioned world state
  held in memory or in PostgreSQL
- a gateway client that signs proposals and surfaces endorse, submit,
  commit-status and commit failures as distinct errors
- an interactive shell and a one-shot CLI on top of the gateway
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from passport.config import Settings, get_settings
from passport.contract import PersonContract
from passport.domain import HistoryEntry, Person
from passport.gateway import Gateway, PersonClient, open_gateway, open_person_client
from passport.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Person",
    "HistoryEntry",
    "PersonContract",
    # Gateway
    "Gateway",
    "PersonClient",
    "open_gateway",
    "open_person_client",
    # Logging
    "configure_logging",
    "get_logger",
]

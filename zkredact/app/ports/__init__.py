"""Port interfaces for the zkredact application layer.

These protocol interfaces define contracts for adapters.
Domain logic depends on these ports, never on concrete implementations.
"""

__all__ = [
    "LedgerPort",
    "ProverPort",
    "StoragePort",
]

from zkredact.app.ports.ledger import LedgerPort
from zkredact.app.ports.prover import ProverPort
from zkredact.app.ports.storage import StoragePort

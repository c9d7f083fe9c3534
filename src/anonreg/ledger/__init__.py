"""Ledger access — registry client interface and its web3 implementation."""

from anonreg.ledger.client import (
    LedgerClient,
    LedgerError,
    LedgerRejectedError,
    LedgerRevertError,
    LedgerTimeoutError,
    LedgerUnavailableError,
)

__all__ = [
    "LedgerClient",
    "LedgerError",
    "LedgerRejectedError",
    "LedgerRevertError",
    "LedgerTimeoutError",
    "LedgerUnavailableError",
]

"""Ledger client interface — the two registry transactions the core needs.

Implementations block until the transaction is confirmed or fails, and
signal failure by raising a LedgerError subclass. A transaction whose
state is unknown (no receipt within the window) is a failure, never a
success.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from anonreg.models.registration import FailureCause, LedgerReceipt, Tag


class LedgerError(Exception):
    """Base class for ledger transaction failures."""

    cause: FailureCause = FailureCause.REJECTED

    def __init__(self, message: str, tx_hash: Optional[str] = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class LedgerRevertError(LedgerError):
    """The transaction was mined or simulated and reverted."""
    cause = FailureCause.REVERTED


class LedgerTimeoutError(LedgerError):
    """No receipt was seen within the confirmation window."""
    cause = FailureCause.TIMEOUT


class LedgerUnavailableError(LedgerError):
    """The endpoint could not be reached or did not answer."""
    cause = FailureCause.UNAVAILABLE


class LedgerRejectedError(LedgerError):
    """The node refused the transaction before inclusion."""
    cause = FailureCause.REJECTED


class LedgerClient(Protocol):
    """Registry operations consumed by the orchestrator."""

    endpoint: str

    def commit_to_list(
        self, list_id: str, commit_hash: str, sender: str
    ) -> LedgerReceipt:
        ...

    def add_to_list(
        self,
        list_id: str,
        entry: str,
        tag: Tag,
        tees: Sequence[Any],
        seed: Any,
        sender: str,
        gas: int,
    ) -> LedgerReceipt:
        ...

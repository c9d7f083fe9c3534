"""Registration data model — the values one commit-reveal run works with.

A registration binds a Tag (taken from the signature bundle) to an entry
address by committing keccak256(tag, entry) to a list first, then revealing
the entry together with the bundle's signature material.

All records here are immutable for the duration of a run. Nothing is
cached or persisted by the core.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


Tag = tuple[int, int]
CommitHash = str  # 0x-prefixed, 64 hex chars


class RegistrationState(str, enum.Enum):
    """States of a single registration run."""
    IDLE = "idle"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ADDING = "adding"
    ADDED = "added"  # Terminal success
    ABORTED = "aborted"  # Terminal failure


class RegistrationPhase(str, enum.Enum):
    """The two ledger transactions of a registration."""
    COMMIT = "commit"
    ADD = "add"


class FailureKind(str, enum.Enum):
    """Why a run ended in ABORTED."""
    VALIDATION_FAILED = "validation_failed"
    COMMIT_FAILED = "commit_failed"
    ADD_FAILED = "add_failed"


class FailureCause(str, enum.Enum):
    """Underlying cause of a phase failure."""
    REVERTED = "reverted"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    REJECTED = "rejected"
    COMMITMENT_MISMATCH = "commitment_mismatch"


@dataclass(frozen=True)
class SignatureBundle:
    """Signature material produced out-of-band for one entry.

    Field order inside pkeys and tees is significant to the reveal call
    and is kept exactly as loaded.
    """
    pkeys: tuple[Any, ...]
    tag: Tag
    tees: tuple[Any, ...]
    seed: Any


@dataclass(frozen=True)
class LedgerReceipt:
    """Confirmation of a mined ledger transaction."""
    tx_hash: str
    block_number: Optional[int] = None


@dataclass(frozen=True)
class RegistrationOutcome:
    """Terminal result of one registration run.

    commit_hash is set whenever it was computed, including on failures,
    so an ADD_FAILED outcome tells the caller which hash is left
    committed on the ledger without a reveal.
    """
    state: RegistrationState
    list_id: str
    entry: str
    commit_hash: Optional[CommitHash] = None
    failure_kind: Optional[FailureKind] = None
    failed_phase: Optional[RegistrationPhase] = None
    cause: Optional[FailureCause] = None
    errors: list[str] = field(default_factory=list)
    commit_receipt: Optional[LedgerReceipt] = None
    add_receipt: Optional[LedgerReceipt] = None
    history: tuple[RegistrationState, ...] = ()

    @property
    def success(self) -> bool:
        return self.state == RegistrationState.ADDED

    @property
    def hash_left_committed(self) -> bool:
        """True when the commit landed but the reveal did not."""
        return (
            self.failure_kind == FailureKind.ADD_FAILED
            and self.commit_hash is not None
        )

    def payload(self) -> tuple[CommitHash, str]:
        """Return (commit_hash, entry) of a successful registration.

        Raises ValueError for failed outcomes.
        """
        if not self.success or self.commit_hash is None:
            raise ValueError(
                f"Registration of {self.entry} did not succeed "
                f"({self.failure_kind.value if self.failure_kind else self.state.value})"
            )
        return self.commit_hash, self.entry

"""Core data models for anonymous list registration."""

from anonreg.models.registration import (
    CommitHash,
    FailureCause,
    FailureKind,
    LedgerReceipt,
    RegistrationOutcome,
    RegistrationPhase,
    RegistrationState,
    SignatureBundle,
    Tag,
)

__all__ = [
    "CommitHash",
    "FailureCause",
    "FailureKind",
    "LedgerReceipt",
    "RegistrationOutcome",
    "RegistrationPhase",
    "RegistrationState",
    "SignatureBundle",
    "Tag",
]

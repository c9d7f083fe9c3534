"""Workflow — the commit-reveal registration state machine."""

from anonreg.workflow.orchestrator import (
    DEFAULT_ADD_GAS,
    RegistrationOrchestrator,
    TransitionError,
    register,
)

__all__ = ["DEFAULT_ADD_GAS", "RegistrationOrchestrator", "TransitionError", "register"]

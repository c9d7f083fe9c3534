"""Registration orchestrator — drives the commit-reveal workflow.

A run moves through:

    IDLE → COMMITTING → COMMITTED → ADDING → ADDED
      └────────┴────────────┴─────────┴──→ ABORTED

Rules:
- Input is validated before any ledger call. Bad input aborts from IDLE.
- The add (reveal) transaction is only sent after the commit transaction
  in the same run has been confirmed. The two are never reordered or
  sent concurrently.
- Before revealing, the committed hash is recomputed from the bundle's
  tag and the entry. A mismatch aborts without sending the add.
- A failed add does NOT roll back the commit. The outcome reports the
  hash left committed so the caller can resume the add phase with
  resume_add() instead of committing a fresh hash.
- No retries. Every exit path returns a RegistrationOutcome.
"""

from __future__ import annotations

import logging
from typing import Optional

from anonreg.crypto.commit_hash import commitment_matches, compute_commit_hash
from anonreg.engine.input_validator import (
    RegistrationRequest,
    ValidationError,
    validate_tag,
)
from anonreg.ledger.client import LedgerClient, LedgerError
from anonreg.models.registration import (
    FailureCause,
    FailureKind,
    LedgerReceipt,
    RegistrationOutcome,
    RegistrationPhase,
    RegistrationState,
    SignatureBundle,
)

logger = logging.getLogger(__name__)


DEFAULT_ADD_GAS = 2_000_000

# Legal transitions: (from_state, to_state)
_TRANSITIONS: set[tuple[RegistrationState, RegistrationState]] = {
    (RegistrationState.IDLE, RegistrationState.COMMITTING),
    (RegistrationState.COMMITTING, RegistrationState.COMMITTED),
    (RegistrationState.COMMITTED, RegistrationState.ADDING),
    (RegistrationState.ADDING, RegistrationState.ADDED),
    # Abort from any non-terminal state
    (RegistrationState.IDLE, RegistrationState.ABORTED),
    (RegistrationState.COMMITTING, RegistrationState.ABORTED),
    (RegistrationState.COMMITTED, RegistrationState.ABORTED),
    (RegistrationState.ADDING, RegistrationState.ABORTED),
}


class TransitionError(Exception):
    """Raised when a registration state transition is not allowed."""


class _Run:
    """Mutable bookkeeping for one register() call. Never shared."""

    def __init__(self, list_id: str, entry: str, start: RegistrationState) -> None:
        self.list_id = list_id
        self.entry = entry
        self.state = start
        self.history: list[RegistrationState] = [start]
        self.commit_hash: Optional[str] = None
        self.commit_receipt: Optional[LedgerReceipt] = None
        self.add_receipt: Optional[LedgerReceipt] = None

    def move(self, target: RegistrationState) -> None:
        if (self.state, target) not in _TRANSITIONS:
            raise TransitionError(
                f"Illegal transition: {self.state.value} → {target.value}"
            )
        self.state = target
        self.history.append(target)

    def finish(self) -> RegistrationOutcome:
        return RegistrationOutcome(
            state=self.state,
            list_id=self.list_id,
            entry=self.entry,
            commit_hash=self.commit_hash,
            commit_receipt=self.commit_receipt,
            add_receipt=self.add_receipt,
            history=tuple(self.history),
        )

    def abort(
        self,
        kind: FailureKind,
        phase: Optional[RegistrationPhase],
        cause: Optional[FailureCause],
        errors: list[str],
    ) -> RegistrationOutcome:
        self.move(RegistrationState.ABORTED)
        return RegistrationOutcome(
            state=self.state,
            list_id=self.list_id,
            entry=self.entry,
            commit_hash=self.commit_hash,
            failure_kind=kind,
            failed_phase=phase,
            cause=cause,
            errors=errors,
            commit_receipt=self.commit_receipt,
            add_receipt=None,
            history=tuple(self.history),
        )


class RegistrationOrchestrator:
    """Runs commit-reveal registrations against one ledger client.

    Holds no state between runs; concurrent runs against the same client
    are independent and their relative order is decided by the ledger.

    Usage:
        orch = RegistrationOrchestrator(ledger)
        outcome = orch.register("list-A", entry, sender, bundle)
        if outcome.hash_left_committed:
            outcome = orch.resume_add("list-A", entry, sender, bundle,
                                      outcome.commit_hash)
    """

    def __init__(self, ledger: LedgerClient, add_gas: int = DEFAULT_ADD_GAS) -> None:
        if add_gas <= 0:
            raise ValueError(f"add_gas must be positive, got {add_gas}")
        self._ledger = ledger
        self._add_gas = add_gas

    @property
    def _endpoint(self) -> str:
        return getattr(self._ledger, "endpoint", "<unknown>")

    def register(
        self,
        list_id: str,
        entry: str,
        sender: str,
        bundle: SignatureBundle,
    ) -> RegistrationOutcome:
        """Commit the (tag, entry) binding, then reveal it."""
        run = _Run(list_id, entry, RegistrationState.IDLE)

        try:
            request = RegistrationRequest.create(list_id, entry, sender)
            tag = validate_tag(bundle.tag)
        except ValidationError as exc:
            logger.warning("Registration refused before commit: %s", exc)
            return run.abort(
                FailureKind.VALIDATION_FAILED, None, None, list(exc.errors)
            )

        run.list_id = request.list_id
        run.entry = request.entry
        run.commit_hash = compute_commit_hash(tag, request.entry)

        run.move(RegistrationState.COMMITTING)
        logger.info(
            "Committing hash %s to list %s", run.commit_hash, request.list_id
        )
        try:
            run.commit_receipt = self._ledger.commit_to_list(
                request.list_id, run.commit_hash, request.sender
            )
        except LedgerError as exc:
            return self._phase_failed(run, RegistrationPhase.COMMIT, exc, exc.cause)
        except Exception as exc:
            return self._phase_failed(
                run, RegistrationPhase.COMMIT, exc, _unexpected_cause(exc)
            )
        run.move(RegistrationState.COMMITTED)
        logger.info(
            "Committed hash %s to list %s (tx %s)",
            run.commit_hash, request.list_id, run.commit_receipt.tx_hash,
        )

        return self._add(run, request, bundle, tag)

    def resume_add(
        self,
        list_id: str,
        entry: str,
        sender: str,
        bundle: SignatureBundle,
        committed_hash: str,
    ) -> RegistrationOutcome:
        """Run only the add phase for a hash committed by an earlier run.

        The caller asserts committed_hash is already on the ledger. It is
        checked against the bundle tag and entry before anything is sent.
        """
        run = _Run(list_id, entry, RegistrationState.COMMITTED)

        try:
            request = RegistrationRequest.create(list_id, entry, sender)
            tag = validate_tag(bundle.tag)
        except ValidationError as exc:
            logger.warning("Add phase refused: %s", exc)
            return run.abort(
                FailureKind.VALIDATION_FAILED, None, None, list(exc.errors)
            )

        run.list_id = request.list_id
        run.entry = request.entry
        run.commit_hash = committed_hash
        return self._add(run, request, bundle, tag)

    def _add(
        self,
        run: _Run,
        request: RegistrationRequest,
        bundle: SignatureBundle,
        tag: tuple[int, int],
    ) -> RegistrationOutcome:
        if run.commit_hash is None:
            raise TransitionError("add phase reached without a committed hash")

        if not commitment_matches(run.commit_hash, tag, request.entry):
            logger.error(
                "Committed hash %s does not bind tag and entry %s; add not sent",
                run.commit_hash, request.entry,
            )
            return run.abort(
                FailureKind.ADD_FAILED,
                RegistrationPhase.ADD,
                FailureCause.COMMITMENT_MISMATCH,
                [
                    f"committed hash {run.commit_hash} does not match "
                    f"tag and entry {request.entry}"
                ],
            )

        run.move(RegistrationState.ADDING)
        logger.info("Adding %s to list %s", request.entry, request.list_id)
        try:
            run.add_receipt = self._ledger.add_to_list(
                request.list_id,
                request.entry,
                tag,
                bundle.tees,
                bundle.seed,
                request.sender,
                self._add_gas,
            )
        except LedgerError as exc:
            return self._phase_failed(run, RegistrationPhase.ADD, exc, exc.cause)
        except Exception as exc:
            return self._phase_failed(
                run, RegistrationPhase.ADD, exc, _unexpected_cause(exc)
            )

        run.move(RegistrationState.ADDED)
        logger.info(
            "Added anonymous ID %s to list %s (tx %s)",
            request.entry, request.list_id, run.add_receipt.tx_hash,
        )
        return run.finish()

    def _phase_failed(
        self,
        run: _Run,
        phase: RegistrationPhase,
        exc: Exception,
        cause: FailureCause,
    ) -> RegistrationOutcome:
        kind = (
            FailureKind.COMMIT_FAILED
            if phase == RegistrationPhase.COMMIT
            else FailureKind.ADD_FAILED
        )
        errors = [str(exc) or type(exc).__name__]
        if not isinstance(exc, LedgerError):
            logger.error(
                "Unexpected %s during %s phase (endpoint %s, list %s): %s",
                type(exc).__name__, phase.value, self._endpoint, run.list_id, exc,
            )
        elif cause == FailureCause.UNAVAILABLE:
            logger.error(
                "Ledger unavailable during %s phase (endpoint %s, list %s): %s",
                phase.value, self._endpoint, run.list_id, exc,
            )
        else:
            logger.error(
                "%s phase failed (%s) for list %s: %s",
                phase.value, cause.value, run.list_id, exc,
            )
        if phase == RegistrationPhase.ADD:
            warning = (
                f"hash {run.commit_hash} remains committed to list {run.list_id} "
                f"without a reveal; resume the add phase rather than committing again"
            )
            logger.warning(warning)
            errors.append(warning)
        return run.abort(kind, phase, cause, errors)


def _unexpected_cause(exc: Exception) -> FailureCause:
    # Transport errors leave the ledger state unknown; anything else is a refusal
    if isinstance(exc, OSError):
        return FailureCause.UNAVAILABLE
    return FailureCause.REJECTED


def register(
    list_id: str,
    entry: str,
    sender: str,
    bundle: SignatureBundle,
    ledger: LedgerClient,
    add_gas: int = DEFAULT_ADD_GAS,
) -> RegistrationOutcome:
    """One-shot registration with a fresh orchestrator."""
    return RegistrationOrchestrator(ledger, add_gas=add_gas).register(
        list_id, entry, sender, bundle
    )

"""Registration service — facade between operators and the core.

Wires together:
- Configuration (RegistrationConfig)
- Signature bundle loading and validation
- Ledger client construction (Web3LedgerClient by default)
- The commit-reveal orchestrator
- Remembered defaults (DefaultsStore)

All operations return a ServiceResult. Validation problems are reported
before any ledger client is created or any transaction is sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from anonreg.config import RegistrationConfig
from anonreg.crypto.commit_hash import compute_commit_hash
from anonreg.engine.bundle_validator import SignatureBundleValidator
from anonreg.engine.input_validator import (
    RegistrationRequest,
    ValidationError,
    validate_address,
    validate_provider_url,
    validate_tag,
)
from anonreg.ledger.client import LedgerClient
from anonreg.models.registration import FailureKind, RegistrationOutcome
from anonreg.persistence.defaults_store import DefaultsStore
from anonreg.workflow.orchestrator import RegistrationOrchestrator

logger = logging.getLogger(__name__)


LedgerFactory = Callable[[RegistrationConfig], LedgerClient]


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


def web3_ledger_factory(config: RegistrationConfig) -> LedgerClient:
    """Default factory: a Web3LedgerClient for the configured registry."""
    from anonreg.ledger.web3_client import Web3LedgerClient, load_abi

    abi = load_abi(config.abi_path) if config.abi_path else None
    return Web3LedgerClient(
        provider_url=config.provider_url,
        contract_address=config.contract_address,
        abi=abi,
        private_key=config.private_key,
        receipt_timeout=config.receipt_timeout,
    )


def _outcome_data(outcome: RegistrationOutcome) -> dict[str, Any]:
    data: dict[str, Any] = {
        "state": outcome.state.value,
        "list_id": outcome.list_id,
        "entry": outcome.entry,
        "commit_hash": outcome.commit_hash,
        "history": [s.value for s in outcome.history],
    }
    if outcome.failure_kind is not None:
        data["failure_kind"] = outcome.failure_kind.value
    if outcome.failed_phase is not None:
        data["failed_phase"] = outcome.failed_phase.value
    if outcome.cause is not None:
        data["cause"] = outcome.cause.value
    if outcome.commit_receipt is not None:
        data["commit_tx"] = outcome.commit_receipt.tx_hash
    if outcome.add_receipt is not None:
        data["add_tx"] = outcome.add_receipt.tx_hash
    return data


class RegistrationService:
    """Operator-facing entry point for list registration.

    Usage:
        config = RegistrationConfig.from_env(Path(".env"))
        service = RegistrationService(config, defaults=DefaultsStore(path))
        result = service.register_from_file()
    """

    def __init__(
        self,
        config: RegistrationConfig,
        ledger_factory: LedgerFactory = web3_ledger_factory,
        defaults: Optional[DefaultsStore] = None,
    ) -> None:
        self._config = config
        self._ledger_factory = ledger_factory
        self._defaults = defaults
        self._validator = SignatureBundleValidator()

    @property
    def config(self) -> RegistrationConfig:
        return self._config

    def register_from_file(self, signature_path: Optional[Path] = None) -> ServiceResult:
        """Load the signature bundle, then commit and reveal the entry."""
        config = self._config
        path = Path(signature_path or config.signature_path)

        try:
            validate_provider_url(config.provider_url)
            validate_address(config.contract_address, "contract_address")
            request = RegistrationRequest.create(
                config.list_id, config.entry_address, config.sender_address,
            )
            bundle = self._validator.load(path)
        except ValidationError as exc:
            logger.warning("Registration input rejected: %s", exc)
            return ServiceResult(
                success=False,
                errors=list(exc.errors),
                data={
                    "failure_kind": FailureKind.VALIDATION_FAILED.value,
                    "field": exc.field_name,
                },
            )

        self._remember(config, path)

        ledger, failure = self._build_ledger()
        if failure is not None:
            return failure
        orchestrator = RegistrationOrchestrator(ledger, add_gas=config.gas_limit)
        outcome = orchestrator.register(
            request.list_id, request.entry, request.sender, bundle,
        )
        return ServiceResult(
            success=outcome.success,
            errors=list(outcome.errors),
            data=_outcome_data(outcome),
        )

    def resume_add_from_file(
        self, committed_hash: str, signature_path: Optional[Path] = None
    ) -> ServiceResult:
        """Send only the reveal for a hash an earlier run committed."""
        config = self._config
        path = Path(signature_path or config.signature_path)
        try:
            validate_provider_url(config.provider_url)
            validate_address(config.contract_address, "contract_address")
            bundle = self._validator.load(path)
        except ValidationError as exc:
            return ServiceResult(
                success=False,
                errors=list(exc.errors),
                data={
                    "failure_kind": FailureKind.VALIDATION_FAILED.value,
                    "field": exc.field_name,
                },
            )

        ledger, failure = self._build_ledger()
        if failure is not None:
            return failure
        orchestrator = RegistrationOrchestrator(ledger, add_gas=config.gas_limit)
        outcome = orchestrator.resume_add(
            config.list_id, config.entry_address, config.sender_address,
            bundle, committed_hash,
        )
        return ServiceResult(
            success=outcome.success,
            errors=list(outcome.errors),
            data=_outcome_data(outcome),
        )

    def commit_hash(self, tag: Any, entry: str) -> ServiceResult:
        """Compute the commit hash offline, without touching the ledger."""
        try:
            checked_tag = validate_tag(tag)
            checked_entry = validate_address(entry, "entry")
        except ValidationError as exc:
            return ServiceResult(success=False, errors=list(exc.errors))
        return ServiceResult(
            success=True,
            data={
                "commit_hash": compute_commit_hash(checked_tag, checked_entry),
                "tag": list(checked_tag),
                "entry": checked_entry,
            },
        )

    def validate_bundle(self, signature_path: Optional[Path] = None) -> ServiceResult:
        path = Path(signature_path or self._config.signature_path)
        try:
            bundle = self._validator.load(path)
        except ValidationError as exc:
            return ServiceResult(
                success=False,
                errors=list(exc.errors),
                data={"field": exc.field_name},
            )
        return ServiceResult(
            success=True,
            data={
                "path": str(path),
                "tag": list(bundle.tag),
                "pkeys": len(bundle.pkeys),
                "tees": len(bundle.tees),
            },
        )

    def _build_ledger(self) -> tuple[Optional[LedgerClient], Optional[ServiceResult]]:
        try:
            return self._ledger_factory(self._config), None
        except (OSError, ValueError) as exc:
            logger.error(
                "Cannot set up ledger client for %s: %s", self._config.provider_url, exc,
            )
            return None, ServiceResult(
                success=False,
                errors=[f"cannot set up ledger client: {exc}"],
                data={"failure_kind": FailureKind.VALIDATION_FAILED.value},
            )

    def _remember(self, config: RegistrationConfig, path: Path) -> None:
        if self._defaults is None:
            return
        values = config.remembered_values()
        values["signature_path"] = str(path)
        self._defaults.remember(**values)
        try:
            self._defaults.save()
        except OSError as exc:
            logger.warning("Could not save remembered defaults: %s", exc)

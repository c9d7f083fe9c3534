"""Tests for the registration service facade."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from anonreg.config import RegistrationConfig
from anonreg.crypto.commit_hash import compute_commit_hash
from anonreg.ledger.client import LedgerRevertError
from anonreg.persistence.defaults_store import DefaultsStore
from anonreg.service import RegistrationService


ENTRY = "0x00Ea169ce7e0992960D3BdE6F5D539C955316432"


def _config(bundle_file: Path, **overrides) -> RegistrationConfig:
    values = {
        "provider_url": "http://ledger.test:8545",
        "list_id": "list-A",
        "entry_address": ENTRY,
        "sender_address": ENTRY,
        "signature_path": str(bundle_file),
    }
    values.update(overrides)
    return RegistrationConfig().with_overrides(**values)


class TestRegisterFromFile:
    def test_success(self, ledger, bundle_file) -> None:
        service = RegistrationService(_config(bundle_file), ledger_factory=lambda c: ledger)
        result = service.register_from_file()

        assert result.success
        assert result.data["state"] == "added"
        assert result.data["commit_hash"] == compute_commit_hash([123, 456], ENTRY)
        assert result.data["commit_tx"] == "0x" + "c1" * 32
        assert result.data["add_tx"] == "0x" + "a2" * 32

    def test_gas_limit_from_config(self, ledger, bundle_file) -> None:
        service = RegistrationService(
            _config(bundle_file, gas_limit=750_000), ledger_factory=lambda c: ledger,
        )
        service.register_from_file()
        assert ledger.calls[1][-1] == 750_000

    def test_missing_field_stops_before_ledger(self, tmp_path, raw_bundle) -> None:
        del raw_bundle["tees"]
        path = tmp_path / "signature.json"
        path.write_text(json.dumps(raw_bundle), encoding="utf-8")

        def factory(config):
            pytest.fail("ledger client must not be created for invalid input")

        result = RegistrationService(_config(path), ledger_factory=factory).register_from_file()
        assert not result.success
        assert result.data["failure_kind"] == "validation_failed"
        assert result.data["field"] == "tees"

    def test_bad_provider(self, ledger, bundle_file) -> None:
        service = RegistrationService(
            _config(bundle_file, provider_url="localhost:8545"),
            ledger_factory=lambda c: ledger,
        )
        result = service.register_from_file()
        assert result.data["field"] == "provider_url"
        assert ledger.calls == []

    def test_add_failure_reported(self, make_ledger, bundle_file) -> None:
        ledger = make_ledger(add_error=LedgerRevertError("revert"))
        service = RegistrationService(_config(bundle_file), ledger_factory=lambda c: ledger)
        result = service.register_from_file()
        assert not result.success
        assert result.data["failure_kind"] == "add_failed"
        assert result.data["failed_phase"] == "add"
        assert "commit_tx" in result.data

    def test_factory_error(self, bundle_file) -> None:
        def factory(config):
            raise OSError("abi file missing")

        result = RegistrationService(_config(bundle_file), ledger_factory=factory).register_from_file()
        assert not result.success
        assert "abi file missing" in result.errors[0]

    def test_remembers_answers(self, ledger, bundle_file, tmp_path) -> None:
        store_path = tmp_path / "defaults.json"
        service = RegistrationService(
            _config(bundle_file, private_key="0x" + "22" * 32),
            ledger_factory=lambda c: ledger,
            defaults=DefaultsStore(store_path),
        )
        service.register_from_file()

        saved = json.loads(store_path.read_text(encoding="utf-8"))
        assert saved["list_id"] == "list-A"
        assert saved["signature_path"] == str(bundle_file)
        assert "private_key" not in saved


class TestResumeAdd:
    def test_resume(self, make_ledger, bundle_file) -> None:
        ledger = make_ledger(expect_commit=False)
        service = RegistrationService(_config(bundle_file), ledger_factory=lambda c: ledger)
        result = service.resume_add_from_file(compute_commit_hash([123, 456], ENTRY))
        assert result.success
        assert ledger.kinds == ["add"]


class TestOfflineHelpers:
    def test_commit_hash(self, bundle_file) -> None:
        service = RegistrationService(_config(bundle_file))
        result = service.commit_hash(["123", "456"], ENTRY)
        assert result.success
        assert result.data["commit_hash"] == compute_commit_hash([123, 456], ENTRY)

    def test_commit_hash_bad_tag(self, bundle_file) -> None:
        result = RegistrationService(_config(bundle_file)).commit_hash([1], ENTRY)
        assert not result.success

    def test_validate_bundle(self, bundle_file) -> None:
        result = RegistrationService(_config(bundle_file)).validate_bundle()
        assert result.success
        assert result.data["tag"] == [123, 456]
        assert result.data["tees"] == 1

"""Shared fixtures — a recording ledger double and sample bundles."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pytest

from anonreg.models.registration import LedgerReceipt, SignatureBundle


ENTRY = "0x00Ea169ce7e0992960D3BdE6F5D539C955316432"
SENDER = "0x00Ea169ce7e0992960D3BdE6F5D539C955316432"


class RecordingLedger:
    """LedgerClient double that records call order.

    Fails the test if add is sent before a confirmed commit in the same
    run, or after the commit failed.
    """

    endpoint = "http://ledger.test:8545"

    def __init__(
        self,
        commit_error: Optional[Exception] = None,
        add_error: Optional[Exception] = None,
        expect_commit: bool = True,
    ) -> None:
        self.commit_error = commit_error
        self.add_error = add_error
        self.expect_commit = expect_commit
        self.calls: list[tuple[Any, ...]] = []
        self._commit_confirmed = False

    def commit_to_list(self, list_id: str, commit_hash: str, sender: str) -> LedgerReceipt:
        self.calls.append(("commit", list_id, commit_hash, sender))
        if self.commit_error is not None:
            raise self.commit_error
        self._commit_confirmed = True
        return LedgerReceipt(tx_hash="0x" + "c1" * 32, block_number=10)

    def add_to_list(self, list_id, entry, tag, tees, seed, sender, gas) -> LedgerReceipt:
        if self.expect_commit and not self._commit_confirmed:
            pytest.fail("add_to_list sent without a confirmed commit")
        self.calls.append(("add", list_id, entry, list(tag), list(tees), seed, sender, gas))
        if self.add_error is not None:
            raise self.add_error
        return LedgerReceipt(tx_hash="0x" + "a2" * 32, block_number=11)

    @property
    def kinds(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def ledger() -> RecordingLedger:
    return RecordingLedger()


@pytest.fixture
def make_ledger():
    return RecordingLedger


@pytest.fixture
def raw_bundle() -> dict[str, Any]:
    return {
        "pkeys": ["0xAA"],
        "tag": [123, 456],
        "tees": ["share1"],
        "seed": "seed-value",
    }


@pytest.fixture
def bundle() -> SignatureBundle:
    return SignatureBundle(
        pkeys=("0xAA",),
        tag=(123, 456),
        tees=("share1",),
        seed="seed-value",
    )


@pytest.fixture
def bundle_file(tmp_path: Path, raw_bundle: dict[str, Any]) -> Path:
    path = tmp_path / "signature.json"
    path.write_text(json.dumps(raw_bundle), encoding="utf-8")
    return path

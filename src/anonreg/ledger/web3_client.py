"""Web3 ledger client — sends registry transactions to an Ethereum node.

Two signing modes:
1. Local signing: a private key is supplied, transactions are built,
   signed with eth_account and sent raw.
2. Node signing: no key, the node sends from the (unlocked) sender account.

Each call waits for the receipt. A status-0 receipt is a revert; no
receipt within receipt_timeout is a timeout. Both raise LedgerError
subclasses, never return.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from eth_account import Account
from web3 import HTTPProvider, LegacyWebSocketProvider, Web3
from web3.exceptions import (
    ABIFunctionNotFound,
    ContractLogicError,
    MismatchedABI,
    ProviderConnectionError,
    TimeExhausted,
    Web3Exception,
    Web3RPCError,
    Web3ValidationError,
)

from anonreg.ledger.client import (
    LedgerError,
    LedgerRejectedError,
    LedgerRevertError,
    LedgerTimeoutError,
    LedgerUnavailableError,
)
from anonreg.models.registration import LedgerReceipt, Tag

logger = logging.getLogger(__name__)


# Minimal AnonymousIdentityRegistry interface used by the client.
REGISTRY_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "commitToList",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_listId", "type": "string"},
            {"name": "_hash", "type": "bytes32"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "addToList",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_listId", "type": "string"},
            {"name": "_anonymousId", "type": "address"},
            {"name": "_tag", "type": "uint256[2]"},
            {"name": "_tees", "type": "uint256[]"},
            {"name": "_seed", "type": "uint256"},
        ],
        "outputs": [],
    },
]


def load_abi(path: Union[str, Path]) -> list[dict[str, Any]]:
    """Load a contract ABI from a build artifact or a bare ABI file.

    Truffle and Hardhat artifacts keep the ABI under an "abi" key.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise ValueError(f"No ABI array found in {path}")
    return data


def _coerce_uint(value: Any) -> Any:
    """Turn decimal or 0x strings into ints for uint parameters."""
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            return value
    return value


def _input_types(abi: Sequence[dict[str, Any]], name: str) -> list[str]:
    for item in abi:
        if item.get("type") == "function" and item.get("name") == name:
            return [inp.get("type", "") for inp in item.get("inputs", [])]
    return []


def _make_provider(provider_url: str, request_timeout: float) -> Any:
    if provider_url.startswith(("ws://", "wss://")):
        return LegacyWebSocketProvider(
            provider_url, websocket_timeout=int(request_timeout)
        )
    return HTTPProvider(provider_url, request_kwargs={"timeout": request_timeout})


class Web3LedgerClient:
    """LedgerClient backed by a web3 contract instance.

    Usage:
        client = Web3LedgerClient("ws://localhost:8546", "0x5A96...")
        receipt = client.commit_to_list("list-A", commit_hash, sender)
    """

    def __init__(
        self,
        provider_url: str,
        contract_address: str,
        abi: Optional[Sequence[dict[str, Any]]] = None,
        private_key: Optional[str] = None,
        receipt_timeout: float = 120.0,
        request_timeout: float = 30.0,
        w3: Optional[Web3] = None,
    ) -> None:
        self.endpoint = provider_url
        self._abi = list(abi) if abi is not None else REGISTRY_ABI
        self._w3 = w3 or Web3(_make_provider(provider_url, request_timeout))
        self._contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=self._abi,
        )
        self._account = Account.from_key(private_key) if private_key else None
        self._receipt_timeout = receipt_timeout

    @property
    def contract_address(self) -> str:
        return self._contract.address

    def commit_to_list(
        self, list_id: str, commit_hash: str, sender: str
    ) -> LedgerReceipt:
        try:
            fn = self._contract.functions.commitToList(
                list_id, Web3.to_bytes(hexstr=commit_hash)
            )
        except (ABIFunctionNotFound, MismatchedABI, Web3ValidationError) as exc:
            raise LedgerRejectedError(
                f"commitToList does not match the contract ABI: {exc}"
            ) from exc
        return self._send(fn, sender, gas=None, label="commitToList")

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
        types = _input_types(self._abi, "addToList")
        tees_arg = list(tees)
        seed_arg = seed
        if len(types) == 5:
            if types[3].startswith("uint"):
                tees_arg = [_coerce_uint(t) for t in tees_arg]
            if types[4].startswith("uint"):
                seed_arg = _coerce_uint(seed)
        try:
            fn = self._contract.functions.addToList(
                list_id,
                Web3.to_checksum_address(entry),
                [int(tag[0]), int(tag[1])],
                tees_arg,
                seed_arg,
            )
        except (ABIFunctionNotFound, MismatchedABI, Web3ValidationError) as exc:
            raise LedgerRejectedError(
                f"addToList arguments do not match the contract ABI: {exc}"
            ) from exc
        return self._send(fn, sender, gas=gas, label="addToList")

    def _send(self, fn: Any, sender: str, gas: Optional[int], label: str) -> LedgerReceipt:
        sender = Web3.to_checksum_address(sender)
        tx_hash: Optional[str] = None
        try:
            if self._account is not None:
                if self._account.address != sender:
                    raise LedgerRejectedError(
                        f"{label}: private key controls {self._account.address}, "
                        f"not sender {sender}"
                    )
                params: dict[str, Any] = {
                    "from": sender,
                    "nonce": self._w3.eth.get_transaction_count(sender),
                }
                if gas is not None:
                    params["gas"] = gas
                tx = fn.build_transaction(params)
                signed = self._account.sign_transaction(tx)
                raw_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
            else:
                params = {"from": sender}
                if gas is not None:
                    params["gas"] = gas
                raw_hash = fn.transact(params)

            tx_hash = Web3.to_hex(raw_hash)
            logger.debug("%s sent as %s, waiting for receipt", label, tx_hash)
            receipt = self._w3.eth.wait_for_transaction_receipt(
                raw_hash, timeout=self._receipt_timeout
            )
        except LedgerError:
            raise
        except ContractLogicError as exc:
            raise LedgerRevertError(f"{label} reverted: {exc}", tx_hash) from exc
        except TimeExhausted as exc:
            raise LedgerTimeoutError(
                f"{label} not confirmed within {self._receipt_timeout}s", tx_hash
            ) from exc
        except Web3RPCError as exc:
            raise LedgerRejectedError(f"{label} rejected by node: {exc}", tx_hash) from exc
        except (ProviderConnectionError, OSError) as exc:
            raise LedgerUnavailableError(
                f"{label}: endpoint {self.endpoint} unavailable: {exc}", tx_hash
            ) from exc
        except Web3Exception as exc:
            raise LedgerRejectedError(f"{label} failed: {exc}", tx_hash) from exc

        if receipt["status"] == 0:
            raise LedgerRevertError(f"{label} reverted in transaction {tx_hash}", tx_hash)

        return LedgerReceipt(tx_hash=tx_hash, block_number=receipt.get("blockNumber"))

"""Registration configuration — endpoint, contract, addresses, limits.

Values are resolved in layers, later layers winning:
1. Built-in defaults (local development node and registry).
2. Remembered defaults from the previous run.
3. Environment variables, optionally loaded from a .env file.
4. Explicit overrides (CLI flags).

The resulting RegistrationConfig is immutable and is passed explicitly
to whatever needs it; there is no module-level configuration state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from anonreg.workflow.orchestrator import DEFAULT_ADD_GAS


DEFAULT_PROVIDER_URL = "ws://localhost:8546"
DEFAULT_CONTRACT_ADDRESS = "0x5A96700CE6C818Aca4706AfcDEe00F94AEb07Ebc"
DEFAULT_LIST_ID = "a5dcc693-5304-418c-ae91-2733c11c60e7"
DEFAULT_ADDRESS = "0x00Ea169ce7e0992960D3BdE6F5D539C955316432"
DEFAULT_SIGNATURE_PATH = "out/signature.json"
DEFAULT_RECEIPT_TIMEOUT = 120.0

ENV_PREFIX = "ANONREG_"

_INT_FIELDS = {"gas_limit"}
_FLOAT_FIELDS = {"receipt_timeout"}


@dataclass(frozen=True)
class RegistrationConfig:
    """Everything a registration run needs apart from the bundle itself."""
    provider_url: str = DEFAULT_PROVIDER_URL
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    list_id: str = DEFAULT_LIST_ID
    entry_address: str = DEFAULT_ADDRESS
    sender_address: str = DEFAULT_ADDRESS
    signature_path: str = DEFAULT_SIGNATURE_PATH
    private_key: Optional[str] = None
    abi_path: Optional[str] = None
    gas_limit: int = DEFAULT_ADD_GAS
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT

    @staticmethod
    def from_env(
        env_file: Optional[Path] = None,
        remembered: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> RegistrationConfig:
        """Build a config from remembered values and ANONREG_* variables.

        If env_file is given and exists it is loaded first; variables
        already set in the process environment take precedence over it.
        """
        if env_file is not None and env_file.exists():
            load_dotenv(env_file, override=False)
        env = os.environ if environ is None else environ

        config = RegistrationConfig().with_overrides(**dict(remembered or {}))

        from_env: dict[str, Any] = {}
        for f in fields(RegistrationConfig):
            value = env.get(ENV_PREFIX + f.name.upper())
            if value:
                from_env[f.name] = value
        return config.with_overrides(**from_env)

    def with_overrides(self, **overrides: Any) -> RegistrationConfig:
        """Return a copy with non-empty overrides applied.

        Unknown keys are ignored. Numeric fields are parsed from strings.
        """
        known = {f.name for f in fields(self)}
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known or value is None or value == "":
                continue
            if key in _INT_FIELDS:
                value = _parse_number(key, value, int)
            elif key in _FLOAT_FIELDS:
                value = _parse_number(key, value, float)
            changes[key] = value
        return replace(self, **changes) if changes else self

    def remembered_values(self) -> dict[str, str]:
        """Values worth offering as defaults next time. Never secrets."""
        return {
            "provider_url": self.provider_url,
            "contract_address": self.contract_address,
            "list_id": self.list_id,
            "entry_address": self.entry_address,
            "sender_address": self.sender_address,
            "signature_path": self.signature_path,
        }


def _parse_number(key: str, value: Any, kind: type) -> Any:
    try:
        number = kind(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {value!r}") from None
    if number <= 0:
        raise ValueError(f"{key} must be positive, got {value!r}")
    return number

"""Defaults store — remembers the operator's previous answers.

The CLI offers the last used provider, contract, list and addresses as
defaults on the next run. Values live in a small JSON file; the store
is only touched by the outer layers (CLI, service), never by the core.

Secrets are never stored: only keys in REMEMBERED_KEYS are written.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional


DEFAULT_STORE_PATH = Path.home() / ".anonreg" / "defaults.json"

REMEMBERED_KEYS: frozenset[str] = frozenset({
    "provider_url",
    "contract_address",
    "list_id",
    "entry_address",
    "sender_address",
    "signature_path",
})


class DefaultsStore:
    """Key/value defaults with optional file persistence."""

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._storage_path = storage_path
        self._values: dict[str, str] = {}

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key, default)

    def values(self) -> dict[str, str]:
        return dict(self._values)

    def remember(self, **answers: Any) -> None:
        """Record answers. Unknown keys and empty values are ignored."""
        for key, value in answers.items():
            if key in REMEMBERED_KEYS and value not in (None, ""):
                self._values[key] = str(value)

    def save(self) -> None:
        """Write remembered values to the storage file, if any."""
        if not self._storage_path:
            return
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._storage_path.with_suffix(".tmp")
        tmp.write_text(
            json.dumps(self._values, sort_keys=True, indent=2),
            encoding="utf-8",
        )
        tmp.replace(self._storage_path)

    def _load_from_file(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Corrupt defaults file {path}: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Corrupt defaults file {path}: expected an object")
        self.remember(**{str(k): v for k, v in data.items()})

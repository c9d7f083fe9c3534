"""Signature bundle validator — structural checks before any reveal.

A signature bundle must carry four fields:
- pkeys: ordered public keys of the ring.
- tag: two-element integer array.
- tees: trustee share values.
- seed: randomness value.

Only presence and shape are checked here. Cryptographic validity of keys
and shares is enforced by the registry contract at reveal time.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from anonreg.engine.input_validator import (
    MalformedTagError,
    MissingFieldError,
    ValidationError,
    validate_tag,
)
from anonreg.models.registration import SignatureBundle


REQUIRED_FIELDS: tuple[str, ...] = ("pkeys", "tag", "tees", "seed")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict)) and len(value) == 0:
        return True
    return False


def _as_tuple(value: Any) -> tuple[Any, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


class SignatureBundleValidator:
    """Validates decoded signature bundles."""

    def missing_fields(self, raw: Mapping[str, Any]) -> list[str]:
        """Return required fields that are absent or empty, in schema order."""
        return [name for name in REQUIRED_FIELDS if _is_missing(raw.get(name))]

    def validate(self, raw: Any) -> SignatureBundle:
        """Check a decoded bundle and return it as a SignatureBundle.

        Raises MissingFieldError naming the first missing field, or
        MalformedTagError if the tag is not two unsigned integers.
        """
        if not isinstance(raw, Mapping):
            raise ValidationError(
                "signature",
                f"signature bundle must be a JSON object, got {type(raw).__name__}",
            )

        missing = self.missing_fields(raw)
        if missing:
            raise MissingFieldError(
                missing[0],
                errors=[f"missing required field: {name}" for name in missing],
            )

        tag = validate_tag(raw["tag"])

        return SignatureBundle(
            pkeys=_as_tuple(raw["pkeys"]),
            tag=tag,
            tees=_as_tuple(raw["tees"]),
            seed=raw["seed"],
        )

    def load(self, path: Union[str, Path]) -> SignatureBundle:
        """Read a signature bundle JSON file and validate it."""
        return self.validate(read_bundle_json(Path(path)))


def read_bundle_json(path: Path) -> Any:
    """Parse a bundle file. Raises ValidationError if unreadable."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(
            "signature", f"cannot read signature file {path}: {exc.strerror or exc}"
        ) from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "signature", f"signature file {path} is not valid JSON: {exc.msg}"
        ) from exc


def load_bundle(path: Union[str, Path]) -> SignatureBundle:
    """Convenience wrapper: read and validate a bundle file."""
    return SignatureBundleValidator().load(path)


__all__ = [
    "REQUIRED_FIELDS",
    "MalformedTagError",
    "MissingFieldError",
    "SignatureBundleValidator",
    "ValidationError",
    "load_bundle",
    "read_bundle_json",
]

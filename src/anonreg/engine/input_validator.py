"""Input validator — checks operator input once, at the boundary.

Every value that reaches the orchestrator has passed through here:
- list_id: non-empty token.
- entry / sender: 20-byte address, any letter case, normalised to EIP-55.
- tag: exactly two unsigned 256-bit integers.
- provider_url: http(s):// or ws(s):// endpoint.

Failures raise a ValidationError subclass naming the offending field.
No ledger interaction may start until these checks pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence

from web3 import Web3

from anonreg.models.registration import Tag


_ADDRESS_PATTERN = re.compile(r"^(?:0x)?[0-9a-fA-F]{40}$")
_PROVIDER_PATTERN = re.compile(r"^(?:https?|wss?)://.+")
_UINT256_MAX = 2**256 - 1


class ValidationError(Exception):
    """Raised when input fails a pre-flight check."""

    def __init__(self, field_name: str, message: str, errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.errors: list[str] = list(errors) or [message]


class MissingFieldError(ValidationError):
    """A required field is absent, null, or empty."""

    def __init__(self, field_name: str, errors: Sequence[str] = ()) -> None:
        super().__init__(field_name, f"missing required field: {field_name}", errors)


class MalformedTagError(ValidationError):
    """The tag is not two unsigned 256-bit integers."""

    def __init__(self, message: str) -> None:
        super().__init__("tag", message)


class MalformedAddressError(ValidationError):
    """An address is not 20 bytes of hex."""

    def __init__(self, field_name: str, value: Any) -> None:
        super().__init__(
            field_name,
            f"{field_name} is not a valid 20-byte address: {str(value)[:48]!r}",
        )


def validate_address(value: Any, field_name: str = "address") -> str:
    """Validate an address and return its checksummed form."""
    if not isinstance(value, str) or not _ADDRESS_PATTERN.match(value.strip()):
        raise MalformedAddressError(field_name, value)
    raw = value.strip()
    if not raw.startswith("0x"):
        raw = "0x" + raw
    return Web3.to_checksum_address(raw.lower())


def _as_uint256(value: Any) -> int:
    # bool is an int subclass; JSON true/false is never a tag component
    if isinstance(value, bool):
        raise MalformedTagError(f"tag component must be an integer, got {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip():
        try:
            number = int(value.strip(), 0)
        except ValueError:
            raise MalformedTagError(
                f"tag component is not an integer: {value[:48]!r}"
            ) from None
    else:
        raise MalformedTagError(f"tag component must be an integer, got {value!r}")
    if number < 0 or number > _UINT256_MAX:
        raise MalformedTagError(f"tag component out of uint256 range: {number}")
    return number


def validate_tag(value: Any) -> Tag:
    """Validate a tag and return it as a tuple of two ints."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MalformedTagError(f"tag must be a two-element array, got {type(value).__name__}")
    if len(value) != 2:
        raise MalformedTagError(f"tag must have exactly 2 elements, got {len(value)}")
    return (_as_uint256(value[0]), _as_uint256(value[1]))


def validate_list_id(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MissingFieldError("list_id")
    return value.strip()


def validate_provider_url(value: Any) -> str:
    if not isinstance(value, str) or not _PROVIDER_PATTERN.match(value.strip()):
        raise ValidationError("provider_url", f"invalid provider endpoint: {value!r}")
    return value.strip()


@dataclass(frozen=True)
class RegistrationRequest:
    """Typed, already-validated input for one registration run.

    Build with RegistrationRequest.create() so raw operator input is
    normalised and checked in one place.
    """
    list_id: str
    entry: str
    sender: str

    @staticmethod
    def create(list_id: Any, entry: Any, sender: Any) -> RegistrationRequest:
        return RegistrationRequest(
            list_id=validate_list_id(list_id),
            entry=validate_address(entry, "entry"),
            sender=validate_address(sender, "sender"),
        )

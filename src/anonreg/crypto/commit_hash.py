"""Commit hash — the binding published in the commit phase.

The hash matches the registry contract's own computation:

    keccak256(abi.encodePacked(uint256[2] tag, address entry))

Packed encoding writes each tag element as a 32-byte big-endian word and
the address as its 20 raw bytes. Because the types fix every width, a
(tag, entry) pair cannot collide with a differently-typed input of the
same bytes.

The function is pure: same inputs, same digest, on every machine.
"""

from __future__ import annotations

from typing import Sequence

from web3 import Web3

from anonreg.models.registration import CommitHash


COMMIT_HASH_TYPES: tuple[str, str] = ("uint256[2]", "address")


def compute_commit_hash(tag: Sequence[int], entry: str) -> CommitHash:
    """Compute the commit hash for a (tag, entry) pair.

    Args:
        tag: Two unsigned 256-bit integers.
        entry: 20-byte address as a hex string (any letter case).

    Returns:
        0x-prefixed hex string of the 32-byte Keccak-256 digest.

    Raises:
        ValueError: If tag does not have two elements or entry is not
            an address. Callers validate input before getting here.
    """
    if len(tag) != 2:
        raise ValueError(f"tag must have exactly 2 elements, got {len(tag)}")
    # Letter case carries only the EIP-55 checksum, not the address bytes
    if not isinstance(entry, str) or not Web3.is_address(entry.lower()):
        raise ValueError(f"not an address: {entry!r}")

    digest = Web3.solidity_keccak(
        list(COMMIT_HASH_TYPES),
        [[int(tag[0]), int(tag[1])], Web3.to_checksum_address(entry.lower())],
    )
    return Web3.to_hex(digest)


def commitment_matches(commit_hash: str, tag: Sequence[int], entry: str) -> bool:
    """True if commit_hash is the binding of (tag, entry)."""
    return compute_commit_hash(tag, entry).lower() == commit_hash.lower()

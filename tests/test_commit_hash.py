"""Tests for the commit hash — determinism, binding, and packed encoding."""

import itertools

import pytest
from web3 import Web3

from anonreg.crypto.commit_hash import commitment_matches, compute_commit_hash


ENTRY = "0x00Ea169ce7e0992960D3BdE6F5D539C955316432"
ZERO_ADDRESS = "0x" + "00" * 20

# Digests as the registry contract computes them
ZERO_VECTOR_HASH = "0x7733ef1f65c467ebbbb75072ade6f3677cc49a146089f0a95abd1e4015c837b9"
SCENARIO_HASH = "0xccf549680b5dbcf11aaa0b7360a41c4998260c8001e4146b8164cdc6ff4a33d4"


def _packed(tag, entry: str) -> bytes:
    """abi.encodePacked(uint256[2], address) built by hand."""
    return (
        tag[0].to_bytes(32, "big")
        + tag[1].to_bytes(32, "big")
        + bytes.fromhex(entry[2:])
    )


class TestDeterminism:
    def test_same_inputs_same_hash(self) -> None:
        h1 = compute_commit_hash([123, 456], ENTRY)
        h2 = compute_commit_hash([123, 456], ENTRY)
        assert h1 == h2

    def test_hash_format(self) -> None:
        h = compute_commit_hash([123, 456], ENTRY)
        assert h.startswith("0x")
        assert len(h) == 66

    def test_tuple_and_list_tag_agree(self) -> None:
        assert compute_commit_hash((1, 2), ENTRY) == compute_commit_hash([1, 2], ENTRY)

    def test_address_case_does_not_matter(self) -> None:
        assert compute_commit_hash([1, 2], ENTRY) == compute_commit_hash([1, 2], ENTRY.lower())


class TestEncoding:
    def test_zero_vector_known_digest(self) -> None:
        assert compute_commit_hash([0, 0], ZERO_ADDRESS) == ZERO_VECTOR_HASH

    def test_scenario_known_digest(self) -> None:
        assert compute_commit_hash([123, 456], ENTRY) == SCENARIO_HASH
        assert compute_commit_hash([123, 456], ENTRY.lower()) == SCENARIO_HASH

    def test_zero_vector(self) -> None:
        """tag=[0,0], zero address hashes 84 zero bytes."""
        expected = Web3.to_hex(Web3.keccak(bytes(84)))
        assert compute_commit_hash([0, 0], ZERO_ADDRESS) == expected

    def test_zero_vector_is_not_naive_concatenation(self) -> None:
        naive = Web3.to_hex(Web3.keccak(bytes([0, 0]) + bytes(20)))
        assert compute_commit_hash([0, 0], ZERO_ADDRESS) != naive

    def test_matches_packed_encoding(self) -> None:
        expected = Web3.to_hex(Web3.keccak(_packed((123, 456), ENTRY)))
        assert compute_commit_hash([123, 456], ENTRY) == expected

    def test_large_tag_components(self) -> None:
        top = 2**256 - 1
        expected = Web3.to_hex(Web3.keccak(_packed((top, 1), ENTRY)))
        assert compute_commit_hash([top, 1], ENTRY) == expected


class TestBinding:
    def test_distinct_inputs_distinct_hashes(self) -> None:
        tags = [(0, 0), (0, 1), (1, 0), (1, 2), (2, 1), (123, 456), (456, 123)]
        entries = [
            ZERO_ADDRESS,
            ENTRY,
            "0x" + "11" * 20,
            "0x5A96700CE6C818Aca4706AfcDEe00F94AEb07Ebc",
        ]
        pairs = list(itertools.product(tags, entries))
        assert len(pairs) >= 20
        hashes = {compute_commit_hash(t, e) for t, e in pairs}
        assert len(hashes) == len(pairs)

    def test_commitment_matches(self) -> None:
        h = compute_commit_hash([123, 456], ENTRY)
        assert commitment_matches(h, (123, 456), ENTRY)
        assert commitment_matches(h.upper().replace("0X", "0x"), (123, 456), ENTRY)
        assert not commitment_matches(h, (123, 457), ENTRY)


class TestCallerErrors:
    def test_wrong_tag_length(self) -> None:
        with pytest.raises(ValueError):
            compute_commit_hash([1, 2, 3], ENTRY)

    def test_not_an_address(self) -> None:
        with pytest.raises(ValueError):
            compute_commit_hash([1, 2], "0x1234")

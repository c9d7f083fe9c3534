"""Cryptographic primitives — commit hash construction."""

from anonreg.crypto.commit_hash import compute_commit_hash, commitment_matches

__all__ = ["compute_commit_hash", "commitment_matches"]

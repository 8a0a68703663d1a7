"""
Allowlist Proof Verification
Re-derive a root from a leaf and its sibling path and compare.

This module provides:
- process_proof: fold the sorted-pair rule over a proof
- verify_merkle_proof: compare the derived root to a trusted root, with a
  maximum-depth guard against attacker-supplied oversized proofs
- MerkleProver / MerkleVerifier: identity-level convenience wrappers

The depth guard raises ProofTooLongException, which callers must keep
distinct from a cryptographic mismatch (a plain False here, mapped to
InvalidProofException by the admission path).
"""
from __future__ import annotations

from typing import Iterable, Sequence

from claimcore.crypto.hashing import HashingScheme
from claimcore.merkle.merkle_tree import MerkleTree, build_allowlist, merkle_parent
from claimcore.schemas.errors import ProofTooLongException
from claimcore.schemas.identity import IdentityLike, parse_identity


# Default cap on proof length; 2**32 leaves is far beyond any allowlist
DEFAULT_MAX_PROOF_DEPTH = 32


def check_proof_length(proof: Sequence[bytes], max_depth: int | None) -> None:
    """
    Raise ProofTooLongException if the proof exceeds ``max_depth``.

    ``None`` disables the guard.
    """
    if max_depth is not None and len(proof) > max_depth:
        raise ProofTooLongException(len(proof), max_depth)


def process_proof(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    """
    Derive the root implied by ``leaf`` and ``proof``.

    Only sibling values are needed: the pair rule sorts each pair, so no
    left/right position is recorded.
    """
    current_hash = leaf
    for sibling in proof:
        current_hash = merkle_parent(current_hash, sibling)
    return current_hash


def verify_merkle_proof(
    leaf: bytes,
    proof: Sequence[bytes],
    root: bytes,
    max_depth: int | None = DEFAULT_MAX_PROOF_DEPTH,
) -> bool:
    """
    Verify that ``leaf`` is included under ``root``.

    Args:
        leaf: The leaf hash being proven
        proof: Sibling hashes, leaf to root
        root: Trusted root
        max_depth: Maximum accepted proof length (None disables the check)

    Returns:
        True if the derived root equals ``root``

    Raises:
        ProofTooLongException: If the proof is longer than max_depth
    """
    check_proof_length(proof, max_depth)
    return process_proof(leaf, proof) == root


class MerkleProver:
    """
    Convenience class for generating allowlist proofs.

    Example:
        >>> tree = MerkleProver.build(["0x...01", "0x...02"])
        >>> MerkleProver.prove(tree, "0x...01")
        [b'...']
    """

    @staticmethod
    def build(
        identities: Iterable[IdentityLike],
        scheme: HashingScheme | None = None,
        dedupe: bool = False,
    ) -> MerkleTree:
        """Build an allowlist tree (see build_allowlist)."""
        return build_allowlist(identities, scheme, dedupe=dedupe)

    @staticmethod
    def prove(tree: MerkleTree, identity: IdentityLike) -> list[bytes]:
        """
        Get the proof for an identity.

        Raises:
            KeyError: If the identity is not in the tree
        """
        proof = tree.proof_for(identity)
        if proof is None:
            raise KeyError(f"Identity not in allowlist: {identity!r}")
        return proof


class MerkleVerifier:
    """
    Verifies identity membership against a trusted root.

    Holds the hashing scheme and depth cap so every check uses the same
    rules as the builder.
    """

    def __init__(
        self,
        scheme: HashingScheme | None = None,
        max_depth: int | None = DEFAULT_MAX_PROOF_DEPTH,
    ) -> None:
        self.scheme = scheme or HashingScheme()
        self.max_depth = max_depth

    def verify(self, leaf: bytes, proof: Sequence[bytes], root: bytes) -> bool:
        """Verify a precomputed leaf. Raises ProofTooLongException."""
        return verify_merkle_proof(leaf, proof, root, self.max_depth)

    def verify_identity(
        self,
        identity: IdentityLike,
        proof: Sequence[bytes],
        root: bytes,
    ) -> bool:
        """Hash the identity with this verifier's scheme, then verify."""
        leaf = self.scheme.leaf(parse_identity(identity))
        return self.verify(leaf, proof, root)


__all__ = [
    "DEFAULT_MAX_PROOF_DEPTH",
    "check_proof_length",
    "process_proof",
    "verify_merkle_proof",
    "MerkleProver",
    "MerkleVerifier",
]

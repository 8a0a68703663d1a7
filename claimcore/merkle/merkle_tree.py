"""
Allowlist Merkle Tree
Deterministic sorted-pair Merkle tree construction and proof generation.

This module provides:
- Level-by-level tree construction over leaf hashes
- Proof (sibling path) generation for any leaf index
- build_allowlist: identities in, root plus proof-per-identity out

Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = keccak256(encode(identity))
   - Implemented via claimcore.crypto.hashing.HashingScheme.leaf()
2. Parent hashing: parent = keccak256(min(a, b) + max(a, b))
3. Odd node out at any level is carried to the next level unchanged.
   It is never duplicated, and its proof gets no entry for that level.
4. Empty leaves: build_merkle_root([]) returns ZERO_HASH, which the
   campaign registry rejects as a root.
5. Single leaf: root = leaf, proof = []

Determinism Notes:
- No randomness, no dependency on dict/set iteration order
- Leaf ordering is the input ordering; this module never sorts leaves
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from claimcore.crypto.hashing import ZERO_HASH, HashingScheme, hash_pair
from claimcore.schemas.errors import InvalidInputException
from claimcore.schemas.identity import IdentityLike, format_identity, parse_identity


logger = logging.getLogger(__name__)


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes.

    Order of the arguments does not matter: the pair is sorted first.
    """
    return hash_pair(left, right)


def build_levels(leaves: Sequence[bytes]) -> list[list[bytes]]:
    """
    Build every level of the tree, leaves first.

    Example: [a, b, c] -> [[a, b, c], [parent(a,b), c], [parent(parent(a,b), c)]]

    Returns:
        levels[0] = leaves, levels[-1] = [root]

    Raises:
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot build levels for empty leaf list")

    levels: list[list[bytes]] = [list(leaves)]
    current_level = levels[0]

    while len(current_level) > 1:
        next_level: list[bytes] = []
        for i in range(0, len(current_level) - 1, 2):
            next_level.append(merkle_parent(current_level[i], current_level[i + 1]))

        # Carry the unpaired last node up unchanged
        if len(current_level) % 2 == 1:
            next_level.append(current_level[-1])

        levels.append(next_level)
        current_level = next_level

    return levels


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Example:
        >>> build_merkle_root([a, b, c]) == merkle_parent(merkle_parent(a, b), c)
        True
    """
    if len(leaves) == 0:
        return ZERO_HASH
    return build_levels(leaves)[-1][0]


def build_merkle_proof(levels: Sequence[Sequence[bytes]], index: int) -> list[bytes]:
    """
    Collect the sibling hashes for the leaf at ``index``.

    A level where the node was the carried odd one out contributes nothing.

    Raises:
        IndexError: If index is out of range
    """
    if index < 0 or index >= len(levels[0]):
        raise IndexError(
            f"Leaf index {index} out of range for {len(levels[0])} leaves"
        )

    siblings: list[bytes] = []
    current_index = index

    for level in levels[:-1]:
        sibling_index = current_index ^ 1
        if sibling_index < len(level):
            siblings.append(level[sibling_index])
        current_index //= 2

    return siblings


def compute_tree_depth(num_leaves: int) -> int:
    """
    Number of levels above the leaves, i.e. the longest possible proof.

    A single leaf has depth 0, two or three leaves have depth 1 and 2
    respectively under the carry rule, and in general depth is
    ceil(log2(num_leaves)).
    """
    if num_leaves <= 1:
        return 0

    depth = 0
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1
    return depth


@dataclass
class MerkleTree:
    """
    A built allowlist: root, levels and a proof per identity.

    Usage:
        tree = build_allowlist(["0xabc...", "0xdef..."])
        tree.root
        tree.proof_for("0xabc...")
    """
    scheme: HashingScheme
    identities: list[bytes]
    levels: list[list[bytes]]
    proofs: dict[bytes, list[bytes]] = field(default_factory=dict)

    @property
    def root(self) -> bytes:
        return self.levels[-1][0]

    @property
    def leaves(self) -> list[bytes]:
        return self.levels[0]

    @property
    def leaf_count(self) -> int:
        return len(self.identities)

    @property
    def depth(self) -> int:
        return len(self.levels) - 1

    def proof_for(self, identity: IdentityLike) -> list[bytes] | None:
        """Return the identity's proof, or None if it is not in the tree."""
        proof = self.proofs.get(parse_identity(identity))
        return list(proof) if proof is not None else None

    def __contains__(self, identity: object) -> bool:
        try:
            return parse_identity(identity) in self.proofs  # type: ignore[arg-type]
        except InvalidInputException:
            return False


def build_allowlist(
    identities: Iterable[IdentityLike],
    scheme: HashingScheme | None = None,
    *,
    dedupe: bool = False,
) -> MerkleTree:
    """
    Build a Merkle tree over an ordered collection of distinct identities.

    Args:
        identities: Addresses (0x hex, any case) or raw 20-byte identities
        scheme: Leaf encoding to use (defaults to the padded encoding)
        dedupe: Drop repeated identities (keeping the first) instead of
                rejecting the whole input

    Returns:
        MerkleTree with root and one proof per identity

    Raises:
        InvalidInputException: Empty input, a malformed or zero identity,
            or a duplicate identity when dedupe is False
    """
    scheme = scheme or HashingScheme()

    unique: list[bytes] = []
    seen: set[bytes] = set()
    for position, value in enumerate(identities):
        identity = parse_identity(value, field_path=f"identities[{position}]")
        if identity in seen:
            if not dedupe:
                raise InvalidInputException(
                    f"Duplicate identity: {format_identity(identity)}",
                    field_path=f"identities[{position}]",
                )
            logger.warning(f"Skipping duplicate identity {format_identity(identity)} at row {position}")
            continue
        seen.add(identity)
        unique.append(identity)

    if not unique:
        raise InvalidInputException("Allowlist must contain at least one identity", field_path="identities")

    leaves = [scheme.leaf(identity) for identity in unique]
    levels = build_levels(leaves)

    proofs = {
        identity: build_merkle_proof(levels, index)
        for index, identity in enumerate(unique)
    }

    logger.debug(
        f"Built allowlist tree: {len(unique)} leaves, depth {len(levels) - 1}, "
        f"encoding={scheme.encoding}"
    )

    return MerkleTree(
        scheme=scheme,
        identities=unique,
        levels=levels,
        proofs=proofs,
    )


__all__ = [
    "MerkleTree",
    "merkle_parent",
    "build_levels",
    "build_merkle_root",
    "build_merkle_proof",
    "build_allowlist",
    "compute_tree_depth",
]

"""
Allowlist Merkle Tree and Proofs
Deterministic sorted-pair Merkle tree construction + proof generation/verification.

This module provides:
- build_allowlist: identities -> MerkleTree (root + proof per identity)
- verify_merkle_proof: check a leaf and proof against a trusted root
- MerkleProver / MerkleVerifier: convenience classes
- Allowlist artifact conversion and IO

Canonical Commitment Rules:
1. Leaf hashing: keccak256(encode(identity)), padded encoding by default
2. Parent hashing: keccak256(min(a, b) + max(a, b))
3. Odd node out: carried to the next level unchanged
4. Single leaf: root = leaf

Usage:
    from claimcore.merkle import build_allowlist, MerkleVerifier

    tree = build_allowlist(addresses)
    proof = tree.proof_for(addresses[0])
    assert MerkleVerifier().verify_identity(addresses[0], proof, tree.root)
"""
from .merkle_tree import (
    MerkleTree,
    build_allowlist,
    build_levels,
    build_merkle_proof,
    build_merkle_root,
    compute_tree_depth,
    merkle_parent,
)

from .merkle_proofs import (
    DEFAULT_MAX_PROOF_DEPTH,
    MerkleProver,
    MerkleVerifier,
    check_proof_length,
    process_proof,
    verify_merkle_proof,
)

from .artifact import (
    AllowlistIOError,
    dump_artifact,
    load_artifact,
    save_artifact,
    to_artifact,
    verify_artifact,
)


__all__ = [
    # Tree building
    "MerkleTree",
    "build_allowlist",
    "build_levels",
    "build_merkle_proof",
    "build_merkle_root",
    "compute_tree_depth",
    "merkle_parent",
    # Verification
    "DEFAULT_MAX_PROOF_DEPTH",
    "check_proof_length",
    "process_proof",
    "verify_merkle_proof",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
    # Artifact IO
    "AllowlistIOError",
    "dump_artifact",
    "load_artifact",
    "save_artifact",
    "to_artifact",
    "verify_artifact",
]

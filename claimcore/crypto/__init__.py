"""
Core cryptographic utilities.

Keccak-256 hashing, identity leaf encoding and the sorted-pair rule
shared by the allowlist builder and verifier.
"""
from .hashing import (
    DEFAULT_ENCODING,
    HASH_LENGTH,
    IDENTITY_LENGTH,
    SUPPORTED_ENCODINGS,
    ZERO_HASH,
    HashingScheme,
    LeafEncoding,
    encode_identity,
    from_hex,
    hash_from_hex,
    hash_pair,
    keccak256,
    leaf_hash,
    to_hex,
)

__all__ = [
    "DEFAULT_ENCODING",
    "HASH_LENGTH",
    "IDENTITY_LENGTH",
    "SUPPORTED_ENCODINGS",
    "ZERO_HASH",
    "HashingScheme",
    "LeafEncoding",
    "encode_identity",
    "from_hex",
    "hash_from_hex",
    "hash_pair",
    "keccak256",
    "leaf_hash",
    "to_hex",
]

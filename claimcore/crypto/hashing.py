"""
Allowlist Hashing Scheme
Leaf hashing and canonical pair ordering shared by tree builder and verifier.

This module provides:
- Keccak-256 hashing for raw bytes
- Identity encoding (ABI "padded" or "packed" address encoding)
- Leaf hashing: leaf = keccak256(encode(identity))
- Sorted pair hashing: node = keccak256(min(a, b) + max(a, b))
- Hex encoding/decoding with 0x prefix

Hard Contracts:
1. The same encoding MUST be used when building the tree and when verifying
   proofs against its root. A mismatch silently yields a root that never
   validates any proof.
2. Pair ordering is unsigned byte-lexicographic. Python ``bytes`` comparison
   is exactly that, so ``min``/``max`` on two digests is the rule.
3. All functions here are pure.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from eth_utils import keccak


HASH_LENGTH = 32
IDENTITY_LENGTH = 20

ZERO_HASH: bytes = b"\x00" * HASH_LENGTH

LeafEncoding = Literal["padded", "packed"]

SUPPORTED_ENCODINGS: frozenset[str] = frozenset({"padded", "packed"})

DEFAULT_ENCODING: LeafEncoding = "padded"


def keccak256(data: bytes) -> bytes:
    """
    Compute the Ethereum Keccak-256 digest of raw bytes.

    Note this is NOT hashlib.sha3_256 (FIPS-202 padding differs).

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak(primitive=data)


def encode_identity(identity: bytes, encoding: LeafEncoding = DEFAULT_ENCODING) -> bytes:
    """
    Encode a 20-byte identity for leaf hashing.

    Args:
        identity: Raw 20-byte account handle
        encoding: "padded" left-pads to a 32-byte word (abi.encode(address));
                  "packed" uses the raw 20 bytes (abi.encodePacked(address))

    Raises:
        ValueError: If the identity is not 20 bytes or encoding is unknown
    """
    if len(identity) != IDENTITY_LENGTH:
        raise ValueError(
            f"Identity must be {IDENTITY_LENGTH} bytes, got {len(identity)}"
        )
    if encoding == "padded":
        return b"\x00" * (HASH_LENGTH - IDENTITY_LENGTH) + identity
    if encoding == "packed":
        return bytes(identity)
    raise ValueError(
        f"Unsupported leaf encoding: {encoding!r}. "
        f"Supported: {sorted(SUPPORTED_ENCODINGS)}"
    )


def leaf_hash(identity: bytes, encoding: LeafEncoding = DEFAULT_ENCODING) -> bytes:
    """Leaf rule: keccak256(encode_identity(identity, encoding))."""
    return keccak256(encode_identity(identity, encoding))


def hash_pair(a: bytes, b: bytes) -> bytes:
    """
    Hash two nodes in canonical (sorted) order.

    The smaller digest goes first, so a verifier only needs the sibling
    value and never its left/right position.

    Args:
        a: First child hash
        b: Second child hash

    Returns:
        32-byte parent hash
    """
    if a <= b:
        return keccak256(a + b)
    return keccak256(b + a)


@dataclass(frozen=True)
class HashingScheme:
    """
    A leaf encoding bound to the keccak256 sorted-pair rules.

    Builder and verifier should share one instance so that the encoding
    cannot drift between the two sides.
    """
    encoding: LeafEncoding = DEFAULT_ENCODING
    hash_function: str = "keccak256"

    def __post_init__(self) -> None:
        if self.encoding not in SUPPORTED_ENCODINGS:
            raise ValueError(
                f"Unsupported leaf encoding: {self.encoding!r}. "
                f"Supported: {sorted(SUPPORTED_ENCODINGS)}"
            )

    def leaf(self, identity: bytes) -> bytes:
        return leaf_hash(identity, self.encoding)

    def pair(self, a: bytes, b: bytes) -> bytes:
        return hash_pair(a, b)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def hash_from_hex(hex_string: str) -> bytes:
    """Decode a 0x-prefixed 32-byte hash, rejecting any other length."""
    value = from_hex(hex_string)
    if len(value) != HASH_LENGTH:
        raise ValueError(
            f"Hash must be {HASH_LENGTH} bytes, got {len(value)}"
        )
    return value


__all__ = [
    "HASH_LENGTH",
    "IDENTITY_LENGTH",
    "ZERO_HASH",
    "LeafEncoding",
    "SUPPORTED_ENCODINGS",
    "DEFAULT_ENCODING",
    "keccak256",
    "encode_identity",
    "leaf_hash",
    "hash_pair",
    "HashingScheme",
    "to_hex",
    "from_hex",
    "hash_from_hex",
]

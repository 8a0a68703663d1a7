"""
Schemas & Canonicalization
File: identity.py

Purpose: Parse and render identities (20-byte account handles).

Identities are carried internally as raw 20-byte ``bytes``. Hex input is
accepted in any letter case; rendering uses EIP-55 checksum form.
"""

from typing import Union

from eth_utils import is_hex_address, to_canonical_address, to_checksum_address

from claimcore.crypto.hashing import IDENTITY_LENGTH

from .errors import InvalidInputException

IdentityLike = Union[str, bytes, bytearray]

ZERO_IDENTITY: bytes = b"\x00" * IDENTITY_LENGTH


def parse_identity(
    value: IdentityLike | None,
    *,
    allow_zero: bool = False,
    field_path: str = "identity",
) -> bytes:
    """
    Normalise an identity to raw 20 bytes.

    Args:
        value: 0x-prefixed 40-hex-digit string or raw 20 bytes
        allow_zero: Accept the all-zero identity
        field_path: Name reported in the error details

    Raises:
        InvalidInputException: On null, malformed or (unless allowed) zero input
    """
    if value is None:
        raise InvalidInputException("Identity is required", field_path=field_path)

    if isinstance(value, (bytes, bytearray)):
        if len(value) != IDENTITY_LENGTH:
            raise InvalidInputException(
                f"Identity must be {IDENTITY_LENGTH} bytes, got {len(value)}",
                field_path=field_path,
            )
        raw = bytes(value)
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate.startswith("0x") or not is_hex_address(candidate):
            raise InvalidInputException(
                f"Invalid address format: {value!r}",
                field_path=field_path,
            )
        raw = bytes(to_canonical_address(candidate))
    else:
        raise InvalidInputException(
            f"Unsupported identity type: {type(value).__name__}",
            field_path=field_path,
        )

    if not allow_zero and raw == ZERO_IDENTITY:
        raise InvalidInputException(
            "Identity must not be the zero address",
            field_path=field_path,
        )
    return raw


def format_identity(identity: bytes) -> str:
    """Render raw identity bytes as an EIP-55 checksum address."""
    return to_checksum_address(identity)


def identity_key(identity: bytes) -> str:
    """Lowercase 0x-hex form, used for metadata paths and lookups."""
    return "0x" + identity.hex()

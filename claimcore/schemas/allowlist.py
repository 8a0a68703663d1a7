"""
Schemas & Canonicalization
File: allowlist.py

Purpose: The allowlist artifact, the single contract between offline tree
generation and the admission path: a root plus, for every identity, its
ordered proof.

Any change to identity encoding or pairing rule invalidates every proof
previously distributed from an artifact, so the encoding is recorded
alongside the root.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from claimcore.crypto.hashing import HashingScheme, LeafEncoding, hash_from_hex

from .errors import InvalidInputException
from .identity import IdentityLike, format_identity, parse_identity
from .versioning import SCHEMA_VERSION, assert_supported_schema_version


class AllowlistArtifact(BaseModel):
    """Root and per-identity proofs, keyed by checksum address."""

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(
        default=SCHEMA_VERSION,
        description="Artifact schema version",
    )
    hash_function: Literal["keccak256"] = Field(
        default="keccak256",
        description="Hash primitive for leaves and nodes",
    )
    encoding: LeafEncoding = Field(
        ...,
        description="Identity encoding applied before leaf hashing",
    )
    merkle_root: str = Field(
        ...,
        description="Allowlist root (0x-prefixed, 32 bytes)",
    )
    leaf_count: int = Field(
        ...,
        description="Number of identities in the tree",
        ge=1,
    )
    proofs: dict[str, list[str]] = Field(
        ...,
        description="Checksum address -> ordered sibling hashes (leaf to root)",
    )

    @field_validator("schema_version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        assert_supported_schema_version(value)
        return value

    @field_validator("merkle_root")
    @classmethod
    def _check_root(cls, value: str) -> str:
        hash_from_hex(value)
        return value.lower()

    @field_validator("proofs")
    @classmethod
    def _check_proofs(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        normalized: dict[str, list[str]] = {}
        for address, proof in value.items():
            try:
                key = format_identity(parse_identity(address, field_path="proofs"))
            except InvalidInputException as e:
                raise ValueError(e.message) from e
            if key in normalized:
                raise ValueError(f"Duplicate identity in artifact: {key}")
            for node in proof:
                hash_from_hex(node)
            normalized[key] = [node.lower() for node in proof]
        return normalized

    @property
    def root(self) -> bytes:
        return hash_from_hex(self.merkle_root)

    @property
    def scheme(self) -> HashingScheme:
        return HashingScheme(encoding=self.encoding)

    def identities(self) -> list[bytes]:
        """Identities in artifact order."""
        return [parse_identity(address) for address in self.proofs]

    def proof_for(self, identity: IdentityLike) -> list[bytes] | None:
        """
        Look up the proof for an identity.

        Matching is case-insensitive for string input since keys are stored
        in checksum form. Returns None if the identity is not listed.
        """
        key = format_identity(parse_identity(identity))
        proof = self.proofs.get(key)
        if proof is None:
            return None
        return [hash_from_hex(node) for node in proof]

"""
Schemas & Canonicalization
File: campaign.py

Purpose: Campaign configuration and counters, and the issued credential
record. Instances handed out by the registry and ledger are snapshots;
mutation happens only through their transition methods.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from claimcore.crypto.hashing import HASH_LENGTH, IDENTITY_LENGTH, to_hex

from .canonical import ensure_utc
from .identity import format_identity


class Campaign(BaseModel):
    """
    A time-boxed, capacity-bounded admission window bound to one
    allowlist root.

    Scheduling fields (merkle_root, start_time, end_time) become immutable
    once the campaign has started.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    campaign_id: int = Field(
        ...,
        description="Registry-assigned identifier (monotonic from 1)",
        ge=1,
    )
    merkle_root: bytes = Field(
        ...,
        description="Allowlist root (32 bytes, non-zero)",
        min_length=HASH_LENGTH,
        max_length=HASH_LENGTH,
    )
    start_time: datetime = Field(
        ...,
        description="Start of the minting window (UTC, inclusive)",
    )
    end_time: datetime = Field(
        ...,
        description="End of the minting window (UTC, inclusive)",
    )
    capacity: int = Field(
        ...,
        description="Maximum number of credentials issued by this campaign",
        ge=1,
    )
    minted_count: int = Field(
        default=0,
        description="Credentials currently issued by this campaign",
        ge=0,
    )
    is_active: bool = Field(
        default=False,
        description="Administrative activation flag",
    )
    metadata_locator: str = Field(
        ...,
        description="Base locator for credential metadata (e.g. ipfs://CID/)",
        min_length=1,
    )

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_serializer("merkle_root")
    def _serialize_root(self, value: bytes) -> str:
        return to_hex(value)

    @property
    def remaining(self) -> int:
        """Slots still available."""
        return self.capacity - self.minted_count

    def has_started(self, now: datetime) -> bool:
        return ensure_utc(now) >= self.start_time

    def has_ended(self, now: datetime) -> bool:
        return ensure_utc(now) > self.end_time

    def is_open(self, now: datetime) -> bool:
        """Whether ``now`` lies within [start_time, end_time]."""
        now = ensure_utc(now)
        return self.start_time <= now <= self.end_time


class Credential(BaseModel):
    """One-per-identity-per-campaign non-transferable record."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    credential_id: int = Field(
        ...,
        description="Global monotonic identifier",
        ge=1,
    )
    owner: bytes = Field(
        ...,
        description="Owning identity (20 bytes); fixed at issuance",
        min_length=IDENTITY_LENGTH,
        max_length=IDENTITY_LENGTH,
    )
    campaign_id: int = Field(
        ...,
        description="Campaign the credential was issued under",
        ge=1,
    )

    @field_serializer("owner")
    def _serialize_owner(self, value: bytes) -> str:
        return format_identity(value)

"""
Common test fixtures shared by all modules.

Provides factory functions for core claims structures:
- Identities (deterministic addresses)
- Allowlist trees
- A controllable clock
- Admission controllers with one ready campaign

These are the foundational building blocks used by higher-level fixtures.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from claimcore.admission import AdmissionController
from claimcore.campaigns import CampaignRegistry
from claimcore.crypto.hashing import HashingScheme
from claimcore.ledger import CredentialLedger
from claimcore.merkle import MerkleTree, build_allowlist
from claimcore.schemas import Campaign
from claimcore.schemas.identity import format_identity


# Fixed reference instant used throughout the tests
T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

SUBMITTER = "0x00000000000000000000000000000000000000aa"
METADATA_LOCATOR = "ipfs://bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi/"


class FixedClock:
    """Manually advanced clock; call it to read the current instant."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> datetime:
        self.current = self.current + delta
        return self.current

    def set(self, instant: datetime) -> datetime:
        self.current = instant
        return self.current


# =============================================================================
# Identity Factories
# =============================================================================

def make_address(n: int) -> str:
    """
    Deterministic checksum address for a positive integer.

    make_address(1) == "0x0000000000000000000000000000000000000001"
    (checksummed where letters are present).
    """
    return format_identity(n.to_bytes(20, "big"))


def make_addresses(count: int, start: int = 1) -> list[str]:
    """``count`` distinct addresses starting at ``start``."""
    return [make_address(0x1000 + i) for i in range(start, start + count)]


# =============================================================================
# Tree Factories
# =============================================================================

def make_tree(
    addresses: Optional[list[str]] = None,
    encoding: str = "padded",
) -> MerkleTree:
    """Build an allowlist tree (default: five addresses)."""
    if addresses is None:
        addresses = make_addresses(5)
    return build_allowlist(addresses, HashingScheme(encoding=encoding))


# =============================================================================
# Controller Factories
# =============================================================================

def make_controller(
    clock: Optional[FixedClock] = None,
    submitter: Optional[str] = SUBMITTER,
    encoding: str = "padded",
    max_proof_depth: int = 32,
    max_duration: timedelta = timedelta(days=30),
) -> AdmissionController:
    """Controller with an empty registry and ledger."""
    clock = clock or FixedClock()
    registry = CampaignRegistry(max_campaign_duration=max_duration, clock=clock)
    return AdmissionController(
        registry=registry,
        ledger=CredentialLedger(registry),
        scheme=HashingScheme(encoding=encoding),
        authorized_submitter=submitter,
        max_proof_depth=max_proof_depth,
    )


def make_campaign(
    controller: AdmissionController,
    tree: MerkleTree,
    capacity: int = 10,
    start_in: timedelta = timedelta(hours=1),
    duration: timedelta = timedelta(hours=1),
    activate: bool = True,
    metadata_locator: str = METADATA_LOCATOR,
) -> Campaign:
    """
    Create (and by default activate) a campaign relative to the
    controller's clock.
    """
    now = controller.registry.now()
    start = now + start_in
    campaign = controller.create_campaign(
        merkle_root=tree.root,
        start_time=start,
        end_time=start + duration,
        capacity=capacity,
        metadata_locator=metadata_locator,
    )
    if activate:
        campaign = controller.activate_campaign(campaign.campaign_id)
    return campaign

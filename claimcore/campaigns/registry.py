"""
Campaign Registry

Owns every campaign and every per-(campaign, identity) claim flag. All
mutation goes through the transition methods below; callers only ever see
snapshot copies.

State machine per campaign:
    NonExistent -> Created(inactive)      create()
    Created     -> Created(active/not)    set_active()
    Created     -> Created(updated)       update_before_start()  (now < start)
    Created     -> Deleted                delete()  (inactive, not started, no mints)

Expiry is never applied by a background sweep. It is checked against
``now`` at the point of use.

Locking:
    Each campaign has a re-entrant lock (campaign_lock). The admission
    path holds it across its checks and commit. Lock order is always
    campaign lock first, then the registry lock.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from claimcore.config.runtime import DEFAULT_MAX_CAMPAIGN_DURATION_S
from claimcore.crypto.hashing import HASH_LENGTH, ZERO_HASH, to_hex
from claimcore.schemas.campaign import Campaign
from claimcore.schemas.canonical import ensure_utc
from claimcore.schemas.errors import (
    AlreadyClaimedException,
    CampaignActiveException,
    CampaignDoesNotExistException,
    CampaignExpiredException,
    CampaignHasMintsException,
    CannotModifyStartedCampaignException,
    CapacityReachedException,
    InvalidInputException,
)
from claimcore.schemas.identity import format_identity


logger = logging.getLogger(__name__)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CampaignRegistry:
    """
    In-memory registry of campaigns keyed by id.

    Args:
        max_campaign_duration: Upper bound on end_time - start_time
        clock: Source of "now" when a caller does not pass one
    """

    def __init__(
        self,
        max_campaign_duration: timedelta = timedelta(seconds=DEFAULT_MAX_CAMPAIGN_DURATION_S),
        clock: Optional[Clock] = None,
    ) -> None:
        self.max_campaign_duration = max_campaign_duration
        self._clock = clock or utc_now
        self._campaigns: dict[int, Campaign] = {}
        self._claims: set[tuple[int, bytes]] = set()
        self._locks: dict[int, threading.RLock] = {}
        self._registry_lock = threading.RLock()
        self._next_id = 1

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def now(self, now: Optional[datetime] = None) -> datetime:
        """Resolve the effective current time (caller-supplied or clock)."""
        return ensure_utc(now) if now is not None else ensure_utc(self._clock())

    def campaign_lock(self, campaign_id: int) -> threading.RLock:
        """
        Lock serialising all mutation of one campaign.

        Unknown ids share the registry lock, so lookups for campaigns that
        do not exist never allocate per-id state.
        """
        with self._registry_lock:
            return self._locks.get(campaign_id, self._registry_lock)

    def _require(self, campaign_id: int) -> Campaign:
        campaign = self._campaigns.get(campaign_id)
        if campaign is None:
            raise CampaignDoesNotExistException(campaign_id)
        return campaign

    def _validate_schedule(
        self,
        merkle_root: bytes,
        start_time: datetime,
        end_time: datetime,
        capacity: int,
        now: datetime,
    ) -> None:
        if not isinstance(merkle_root, (bytes, bytearray)) or len(merkle_root) != HASH_LENGTH:
            raise InvalidInputException(
                f"Merkle root must be {HASH_LENGTH} bytes",
                field_path="merkle_root",
            )
        if bytes(merkle_root) == ZERO_HASH:
            raise InvalidInputException("Merkle root must be non-zero", field_path="merkle_root")
        if start_time <= now:
            raise InvalidInputException(
                "Start time must be in the future",
                field_path="start_time",
                details={"start_time": start_time.isoformat(), "now": now.isoformat()},
            )
        if start_time >= end_time:
            raise InvalidInputException("Start time must be before end time", field_path="end_time")
        if end_time - start_time > self.max_campaign_duration:
            raise InvalidInputException(
                f"Campaign duration exceeds maximum of {self.max_campaign_duration}",
                field_path="end_time",
            )
        if capacity < 1:
            raise InvalidInputException("Capacity must be at least 1", field_path="capacity")

    @staticmethod
    def _validate_locator(metadata_locator: str) -> None:
        if not metadata_locator or not metadata_locator.strip():
            raise InvalidInputException("Metadata locator must not be empty", field_path="metadata_locator")

    # ------------------------------------------------------------------
    # Administrative transitions
    # ------------------------------------------------------------------

    def create(
        self,
        merkle_root: bytes,
        start_time: datetime,
        end_time: datetime,
        capacity: int,
        metadata_locator: str,
        now: Optional[datetime] = None,
    ) -> Campaign:
        """
        Create a new, inactive campaign.

        Raises:
            InvalidInputException: zero root, start not strictly in the
                future, start >= end, duration over the maximum, capacity
                below 1 or an empty metadata locator
        """
        now = self.now(now)
        start_time = ensure_utc(start_time)
        end_time = ensure_utc(end_time)
        self._validate_schedule(merkle_root, start_time, end_time, capacity, now)
        self._validate_locator(metadata_locator)

        with self._registry_lock:
            campaign_id = self._next_id
            self._next_id += 1
            campaign = Campaign(
                campaign_id=campaign_id,
                merkle_root=bytes(merkle_root),
                start_time=start_time,
                end_time=end_time,
                capacity=capacity,
                metadata_locator=metadata_locator,
            )
            self._campaigns[campaign_id] = campaign
            self._locks[campaign_id] = threading.RLock()

        logger.info(
            f"Created campaign #{campaign_id}: root={to_hex(campaign.merkle_root)} "
            f"window=[{start_time.isoformat()}, {end_time.isoformat()}] capacity={capacity}"
        )
        return campaign.model_copy()

    def update_before_start(
        self,
        campaign_id: int,
        merkle_root: bytes,
        start_time: datetime,
        end_time: datetime,
        capacity: int,
        now: Optional[datetime] = None,
    ) -> Campaign:
        """
        Replace the scheduling fields of a campaign that has not started.

        Raises:
            CampaignDoesNotExistException: Unknown campaign
            CannotModifyStartedCampaignException: now >= current start time
            InvalidInputException: Same validation as create()
        """
        now = self.now(now)
        start_time = ensure_utc(start_time)
        end_time = ensure_utc(end_time)

        with self.campaign_lock(campaign_id):
            campaign = self._require(campaign_id)
            if campaign.has_started(now):
                raise CannotModifyStartedCampaignException(campaign_id)
            self._validate_schedule(merkle_root, start_time, end_time, capacity, now)
            if capacity < campaign.minted_count:
                raise InvalidInputException(
                    f"Capacity cannot drop below {campaign.minted_count} issued credential(s)",
                    field_path="capacity",
                )

            campaign.merkle_root = bytes(merkle_root)
            campaign.start_time = start_time
            campaign.end_time = end_time
            campaign.capacity = capacity

            logger.info(f"Updated campaign #{campaign_id} before start")
            return campaign.model_copy()

    def delete(self, campaign_id: int, now: Optional[datetime] = None) -> None:
        """
        Remove a campaign that never accepted a claim.

        Raises:
            CampaignDoesNotExistException: Unknown campaign
            CampaignActiveException: Campaign is active
            CannotModifyStartedCampaignException: now >= start time
            CampaignHasMintsException: minted_count > 0
        """
        now = self.now(now)
        with self.campaign_lock(campaign_id):
            campaign = self._require(campaign_id)
            if campaign.is_active:
                raise CampaignActiveException(campaign_id)
            if campaign.has_started(now):
                raise CannotModifyStartedCampaignException(campaign_id)
            if campaign.minted_count > 0:
                raise CampaignHasMintsException(campaign_id, campaign.minted_count)

            with self._registry_lock:
                del self._campaigns[campaign_id]
                del self._locks[campaign_id]

        logger.info(f"Deleted campaign #{campaign_id}")

    def set_active(self, campaign_id: int, active: bool, now: Optional[datetime] = None) -> Campaign:
        """
        Activate or deactivate a campaign.

        Activation is refused once the campaign has ended. Deactivation is
        always permitted.

        Raises:
            CampaignDoesNotExistException: Unknown campaign
            CampaignExpiredException: Activating after end time
        """
        now = self.now(now)
        with self.campaign_lock(campaign_id):
            campaign = self._require(campaign_id)
            if active and campaign.has_ended(now):
                raise CampaignExpiredException(campaign_id)
            campaign.is_active = active
            logger.info(f"Campaign #{campaign_id} {'activated' if active else 'deactivated'}")
            return campaign.model_copy()

    def set_metadata_locator(self, campaign_id: int, metadata_locator: str) -> Campaign:
        """Replace the metadata locator; allowed at any time."""
        self._validate_locator(metadata_locator)
        with self.campaign_lock(campaign_id):
            campaign = self._require(campaign_id)
            campaign.metadata_locator = metadata_locator
            logger.info(f"Campaign #{campaign_id} metadata locator set to {metadata_locator}")
            return campaign.model_copy()

    # ------------------------------------------------------------------
    # Claim flags (driven by the admission controller)
    # ------------------------------------------------------------------

    def has_claimed(self, campaign_id: int, identity: bytes) -> bool:
        return (campaign_id, identity) in self._claims

    def record_claim(self, campaign_id: int, identity: bytes) -> Campaign:
        """
        Mark ``identity`` as claimed and bump minted_count.

        Callers must hold campaign_lock(campaign_id) across their checks
        and this call.

        Raises:
            CampaignDoesNotExistException: Unknown campaign
            AlreadyClaimedException: Identity already claimed
            CapacityReachedException: minted_count already at capacity
        """
        with self.campaign_lock(campaign_id):
            campaign = self._require(campaign_id)
            if (campaign_id, identity) in self._claims:
                raise AlreadyClaimedException(campaign_id, format_identity(identity))
            if campaign.minted_count >= campaign.capacity:
                raise CapacityReachedException(campaign_id, campaign.capacity)
            self._claims.add((campaign_id, identity))
            campaign.minted_count += 1
            return campaign.model_copy()

    def release_claim(self, campaign_id: int, identity: bytes) -> Campaign:
        """
        Clear a claim flag and free its slot (administrative revoke).

        Raises:
            CampaignDoesNotExistException: Unknown campaign
            InvalidInputException: Identity holds no claim in this campaign
        """
        with self.campaign_lock(campaign_id):
            campaign = self._require(campaign_id)
            if (campaign_id, identity) not in self._claims:
                raise InvalidInputException(
                    f"{format_identity(identity)} holds no claim in campaign #{campaign_id}",
                    field_path="identity",
                )
            self._claims.discard((campaign_id, identity))
            campaign.minted_count -= 1
            return campaign.model_copy()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, campaign_id: int) -> Campaign:
        """Snapshot of a campaign. Raises CampaignDoesNotExistException."""
        return self._require(campaign_id).model_copy()

    def find(self, campaign_id: int) -> Campaign | None:
        campaign = self._campaigns.get(campaign_id)
        return campaign.model_copy() if campaign is not None else None

    def exists(self, campaign_id: int) -> bool:
        return campaign_id in self._campaigns

    def list_campaigns(self) -> list[Campaign]:
        """Snapshots of all campaigns ordered by id."""
        with self._registry_lock:
            return [self._campaigns[cid].model_copy() for cid in sorted(self._campaigns)]

    def metadata_locator(self, campaign_id: int) -> str:
        return self._require(campaign_id).metadata_locator

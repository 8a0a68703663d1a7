"""
Credential Ledger
File: credentials.py

Purpose: Record issued credentials and enforce non-transferability.

Ownership moves only from nobody to an owner (issue) and from an owner to
nobody (revoke). Any other ownership change is refused.

Metadata is derived from the owner's identity and the owning campaign's
locator, never from the credential id, so it does not depend on mint order.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from claimcore.campaigns.registry import CampaignRegistry
from claimcore.schemas.campaign import Credential
from claimcore.schemas.errors import (
    CredentialNotFoundException,
    InvalidInputException,
    NonTransferableException,
)
from claimcore.schemas.identity import IdentityLike, format_identity, identity_key, parse_identity


logger = logging.getLogger(__name__)


def metadata_path(locator: str, owner: bytes) -> str:
    """
    Join a campaign locator and an owner into a metadata path.

    ``ipfs://CID/`` and ``ipfs://CID`` both yield ``ipfs://CID/0xabc...json``.
    """
    return f"{locator.rstrip('/')}/{identity_key(owner)}.json"


class CredentialLedger:
    """
    Global store of credentials keyed by id.

    Ids are allocated from a single monotonic counter shared by every
    campaign and are never reused, even after revocation.
    """

    def __init__(self, registry: CampaignRegistry) -> None:
        self.registry = registry
        self._credentials: dict[int, Credential] = {}
        self._by_claim: dict[tuple[int, bytes], int] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    def allocate_id(self) -> int:
        """Reserve the next credential id."""
        with self._lock:
            credential_id = self._next_id
            self._next_id += 1
            return credential_id

    def issue(self, owner: bytes, credential_id: int, campaign_id: int) -> Credential:
        """
        Create a credential owned by ``owner``.

        Raises:
            InvalidInputException: Id already in use, or the owner already
                holds a credential for this campaign
        """
        owner = parse_identity(owner, field_path="owner")
        with self._lock:
            if credential_id in self._credentials:
                raise InvalidInputException(
                    f"Credential #{credential_id} already exists",
                    field_path="credential_id",
                )
            if (campaign_id, owner) in self._by_claim:
                raise InvalidInputException(
                    f"{format_identity(owner)} already holds a credential for campaign #{campaign_id}",
                    field_path="owner",
                )
            credential = Credential(credential_id=credential_id, owner=owner, campaign_id=campaign_id)
            self._credentials[credential_id] = credential
            self._by_claim[(campaign_id, owner)] = credential_id

        logger.info(
            f"Issued credential #{credential_id} to {format_identity(owner)} for campaign #{campaign_id}"
        )
        return credential

    def transfer(self, credential_id: int, new_owner: IdentityLike) -> None:
        """
        Refuse every owner-to-owner move.

        Raises:
            CredentialNotFoundException: Unknown credential
            NonTransferableException: Always, for an existing credential
        """
        credential = self.get(credential_id)
        logger.warning(
            f"Rejected transfer of credential #{credential_id} "
            f"from {format_identity(credential.owner)} to {new_owner}"
        )
        raise NonTransferableException(credential_id)

    def revoke(self, credential_id: int) -> Credential:
        """
        Destroy a credential.

        The caller is responsible for releasing the matching claim slot.

        Raises:
            CredentialNotFoundException: Unknown credential
        """
        with self._lock:
            credential = self._credentials.pop(credential_id, None)
            if credential is None:
                raise CredentialNotFoundException(credential_id)
            self._by_claim.pop((credential.campaign_id, credential.owner), None)

        logger.info(f"Revoked credential #{credential_id} held by {format_identity(credential.owner)}")
        return credential

    def get(self, credential_id: int) -> Credential:
        credential = self._credentials.get(credential_id)
        if credential is None:
            raise CredentialNotFoundException(credential_id)
        return credential

    def owner_of(self, credential_id: int) -> bytes:
        return self.get(credential_id).owner

    def credentials_of(self, owner: IdentityLike) -> list[Credential]:
        """All credentials held by ``owner``, ordered by id."""
        owner = parse_identity(owner, field_path="owner")
        with self._lock:
            return sorted(
                (c for c in self._credentials.values() if c.owner == owner),
                key=lambda c: c.credential_id,
            )

    def find(self, owner: IdentityLike, campaign_id: int) -> Optional[Credential]:
        """Credential ``owner`` holds in ``campaign_id``, if any."""
        owner = parse_identity(owner, field_path="owner")
        credential_id = self._by_claim.get((campaign_id, owner))
        if credential_id is None:
            return None
        return self._credentials.get(credential_id)

    @property
    def total_issued(self) -> int:
        """Credentials currently in existence."""
        return len(self._credentials)

    def resolve_metadata(self, credential_id: int) -> str:
        """
        Metadata locator for a credential.

        Raises:
            CredentialNotFoundException: Unknown credential
            CampaignDoesNotExistException: Owning campaign was removed
        """
        credential = self.get(credential_id)
        locator = self.registry.metadata_locator(credential.campaign_id)
        return metadata_path(locator, credential.owner)

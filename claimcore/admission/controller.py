"""
Admission Controller

Orchestrates a claim: pause switch, identity and submitter checks, proof
length guard, campaign lookup, window/duplicate/capacity checks, proof
verification and the commit that issues the credential.

Check order (first failure wins):
    0. Admission paused              -> AdmissionPausedException
    1. Identity null/malformed/zero  -> InvalidInputException
    2. Caller is not the submitter   -> NotAuthorizedSubmitterException
    3. Proof longer than max depth   -> ProofTooLongException
    4. Campaign missing              -> CampaignDoesNotExistException
    5. Campaign inactive             -> CampaignNotActiveException
    6. now outside [start, end]      -> MintingWindowNotOpenException
    7. Identity already claimed      -> AlreadyClaimedException
    8. minted_count >= capacity      -> CapacityReachedException
    9. Proof does not verify         -> InvalidProofException

Checks 4-9 and the commit run under the campaign's lock, so concurrent
callers observe each claim as one indivisible step.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional, Sequence, Union

from claimcore.campaigns.registry import CampaignRegistry, Clock
from claimcore.config.runtime import RuntimeConfig
from claimcore.crypto.hashing import HashingScheme, hash_from_hex
from claimcore.ledger.credentials import CredentialLedger
from claimcore.merkle.merkle_proofs import DEFAULT_MAX_PROOF_DEPTH, MerkleVerifier, check_proof_length
from claimcore.schemas.campaign import Campaign, Credential
from claimcore.schemas.errors import (
    AdmissionPausedException,
    AlreadyClaimedException,
    CampaignDoesNotExistException,
    CampaignNotActiveException,
    CapacityReachedException,
    ClaimException,
    InvalidInputException,
    InvalidProofException,
    MintingWindowNotOpenException,
    NotAuthorizedSubmitterException,
)
from claimcore.schemas.identity import IdentityLike, format_identity, parse_identity
from claimcore.schemas.verification import CheckResult, EligibilityResult


logger = logging.getLogger(__name__)


ProofLike = Sequence[Union[bytes, str]]


def _require_sequence(proof: ProofLike | None) -> None:
    # A lone hex string or hash would otherwise iterate as single characters
    if isinstance(proof, (str, bytes, bytearray)):
        raise InvalidInputException(
            "Proof must be a sequence of 32-byte hashes",
            field_path="proof",
        )


def normalize_proof(proof: ProofLike | None) -> list[bytes]:
    """
    Coerce proof elements to 32-byte hashes.

    Accepts raw bytes or 0x-prefixed hex strings, as distributed in the
    allowlist artifact.

    Raises:
        InvalidInputException: On a malformed element
    """
    if proof is None:
        return []
    _require_sequence(proof)
    nodes: list[bytes] = []
    for position, node in enumerate(proof):
        if isinstance(node, str):
            try:
                nodes.append(hash_from_hex(node))
            except ValueError as e:
                raise InvalidInputException(str(e), field_path=f"proof[{position}]") from e
        elif isinstance(node, (bytes, bytearray)) and len(node) == 32:
            nodes.append(bytes(node))
        else:
            raise InvalidInputException(
                "Proof elements must be 32-byte hashes",
                field_path=f"proof[{position}]",
            )
    return nodes


class AdmissionController:
    """
    Single entry point for claims, campaign administration and queries.

    Administrative methods are not role-checked here; the operator surface
    that calls them owns that concern.

    Args:
        registry: Campaign store
        ledger: Credential store (must share ``registry``)
        scheme: Leaf encoding; must match the one used to build allowlists
        authorized_submitter: The only caller accepted by claim()
        max_proof_depth: Longest proof accepted by claim()
    """

    def __init__(
        self,
        registry: CampaignRegistry,
        ledger: CredentialLedger,
        scheme: HashingScheme | None = None,
        authorized_submitter: IdentityLike | None = None,
        max_proof_depth: int = DEFAULT_MAX_PROOF_DEPTH,
    ) -> None:
        self.registry = registry
        self.ledger = ledger
        self.scheme = scheme or HashingScheme()
        self.verifier = MerkleVerifier(self.scheme, max_depth=max_proof_depth)
        self.max_proof_depth = max_proof_depth
        self._authorized_submitter: Optional[bytes] = None
        if authorized_submitter is not None:
            self._authorized_submitter = parse_identity(
                authorized_submitter, field_path="authorized_submitter"
            )
        self._paused = False
        self._state_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: RuntimeConfig,
        clock: Optional[Clock] = None,
    ) -> "AdmissionController":
        """Wire registry, ledger and scheme from a RuntimeConfig."""
        registry = CampaignRegistry(
            max_campaign_duration=timedelta(seconds=config.admission.max_campaign_duration_s),
            clock=clock,
        )
        return cls(
            registry=registry,
            ledger=CredentialLedger(registry),
            scheme=HashingScheme(encoding=config.hashing.encoding),
            authorized_submitter=config.admission.authorized_submitter,
            max_proof_depth=config.admission.max_proof_depth,
        )

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    def claim(
        self,
        identity: IdentityLike | None,
        campaign_id: int,
        proof: ProofLike | None,
        *,
        caller: IdentityLike | None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Admit ``identity`` to ``campaign_id`` and issue its credential.

        Returns:
            The new credential id

        Raises:
            ClaimException: The first failing check, see module docstring
        """
        try:
            return self._claim(identity, campaign_id, proof, caller, now)
        except ClaimException as e:
            logger.warning(f"Rejected claim for campaign #{campaign_id}: {e.code}: {e.message}")
            raise

    def _claim(
        self,
        identity: IdentityLike | None,
        campaign_id: int,
        proof: ProofLike | None,
        caller: IdentityLike | None,
        now: Optional[datetime],
    ) -> int:
        if self._paused:
            raise AdmissionPausedException()

        account = parse_identity(identity)
        self._check_submitter(caller)

        _require_sequence(proof)
        proof = list(proof) if proof is not None else []
        check_proof_length(proof, self.max_proof_depth)
        nodes = normalize_proof(proof)

        now = self.registry.now(now)
        with self.registry.campaign_lock(campaign_id):
            campaign = self.registry.get(campaign_id)
            self._check_campaign(campaign, account, now)

            if not self.verifier.verify_identity(account, nodes, campaign.merkle_root):
                raise InvalidProofException(details={"identity": format_identity(account)})

            self.registry.record_claim(campaign_id, account)
            credential_id = self.ledger.allocate_id()
            try:
                self.ledger.issue(account, credential_id, campaign_id)
            except ClaimException:
                self.registry.release_claim(campaign_id, account)
                raise

        logger.info(
            f"Accepted claim: {format_identity(account)} -> credential #{credential_id} "
            f"(campaign #{campaign_id})"
        )
        return credential_id

    def _check_submitter(self, caller: IdentityLike | None) -> None:
        if self._authorized_submitter is None or caller is None:
            raise NotAuthorizedSubmitterException(str(caller) if caller is not None else None)
        try:
            submitter = parse_identity(caller, field_path="caller")
        except InvalidInputException:
            raise NotAuthorizedSubmitterException(str(caller))
        if submitter != self._authorized_submitter:
            raise NotAuthorizedSubmitterException(format_identity(submitter))

    def _check_campaign(self, campaign: Campaign, account: bytes, now: datetime) -> None:
        """Checks 5-8 against a campaign snapshot."""
        campaign_id = campaign.campaign_id
        if not campaign.is_active:
            raise CampaignNotActiveException(campaign_id)
        if not campaign.is_open(now):
            raise MintingWindowNotOpenException(
                campaign_id,
                {
                    "now": now.isoformat(),
                    "start_time": campaign.start_time.isoformat(),
                    "end_time": campaign.end_time.isoformat(),
                },
            )
        if self.registry.has_claimed(campaign_id, account):
            raise AlreadyClaimedException(campaign_id, format_identity(account))
        if campaign.minted_count >= campaign.capacity:
            raise CapacityReachedException(campaign_id, campaign.capacity)

    # ------------------------------------------------------------------
    # Administrative interface
    # ------------------------------------------------------------------

    def create_campaign(
        self,
        merkle_root: bytes,
        start_time: datetime,
        end_time: datetime,
        capacity: int,
        metadata_locator: str,
        now: Optional[datetime] = None,
    ) -> Campaign:
        return self.registry.create(merkle_root, start_time, end_time, capacity, metadata_locator, now)

    def update_campaign(
        self,
        campaign_id: int,
        merkle_root: bytes,
        start_time: datetime,
        end_time: datetime,
        capacity: int,
        now: Optional[datetime] = None,
    ) -> Campaign:
        return self.registry.update_before_start(
            campaign_id, merkle_root, start_time, end_time, capacity, now
        )

    def delete_campaign(self, campaign_id: int, now: Optional[datetime] = None) -> None:
        self.registry.delete(campaign_id, now)

    def activate_campaign(
        self,
        campaign_id: int,
        active: bool = True,
        now: Optional[datetime] = None,
    ) -> Campaign:
        return self.registry.set_active(campaign_id, active, now)

    def set_metadata_locator(self, campaign_id: int, metadata_locator: str) -> Campaign:
        return self.registry.set_metadata_locator(campaign_id, metadata_locator)

    def revoke(self, credential_id: int) -> Credential:
        """
        Destroy a credential and free its claim slot.

        The holder may claim the same campaign again afterwards.

        Raises:
            CredentialNotFoundException: Unknown credential
        """
        credential = self.ledger.get(credential_id)
        with self.registry.campaign_lock(credential.campaign_id):
            credential = self.ledger.revoke(credential_id)
            if self.registry.exists(credential.campaign_id):
                self.registry.release_claim(credential.campaign_id, credential.owner)
        return credential

    def set_authorized_submitter(self, submitter: IdentityLike) -> None:
        """Rotate the submitter role. Takes effect for the next claim."""
        account = parse_identity(submitter, field_path="authorized_submitter")
        with self._state_lock:
            self._authorized_submitter = account
        logger.info(f"Authorized submitter set to {format_identity(account)}")

    @property
    def authorized_submitter(self) -> Optional[str]:
        if self._authorized_submitter is None:
            return None
        return format_identity(self._authorized_submitter)

    def pause(self) -> None:
        """Engage the global kill switch; every claim is refused."""
        with self._state_lock:
            self._paused = True
        logger.info("Admission paused")

    def unpause(self) -> None:
        with self._state_lock:
            self._paused = False
        logger.info("Admission resumed")

    def is_paused(self) -> bool:
        return self._paused

    # ------------------------------------------------------------------
    # Query interface
    # ------------------------------------------------------------------

    def get_campaign(self, campaign_id: int) -> Campaign:
        return self.registry.get(campaign_id)

    def check_eligibility(
        self,
        identity: IdentityLike,
        campaign_id: int,
        now: Optional[datetime] = None,
    ) -> EligibilityResult:
        """
        Read-only pre-flight: would ``identity`` currently pass checks 4-8?

        The proof is not verified. Nothing is mutated.

        Raises:
            InvalidInputException: If the identity is malformed or zero
        """
        account = parse_identity(identity)
        now = self.registry.now(now)
        result = EligibilityResult(ok=True, campaign_id=campaign_id, identity=format_identity(account))

        campaign = self.registry.find(campaign_id)
        if campaign is None:
            error = CampaignDoesNotExistException(campaign_id)
            result.add_check(CheckResult.failed("campaign_exists", error.message))
            result.error = error.to_error_model()
            return result
        result.add_check(CheckResult.passed("campaign_exists", f"Campaign #{campaign_id} exists"))

        checks = [
            (
                "campaign_active",
                campaign.is_active,
                "Campaign is active",
                CampaignNotActiveException(campaign_id),
            ),
            (
                "minting_window",
                campaign.is_open(now),
                "Minting window is open",
                MintingWindowNotOpenException(campaign_id, {"now": now.isoformat()}),
            ),
            (
                "not_claimed",
                not self.registry.has_claimed(campaign_id, account),
                "Identity has not claimed",
                AlreadyClaimedException(campaign_id, format_identity(account)),
            ),
            (
                "capacity",
                campaign.minted_count < campaign.capacity,
                f"{campaign.remaining} of {campaign.capacity} slots remaining",
                CapacityReachedException(campaign_id, campaign.capacity),
            ),
        ]
        for check_id, ok, message, error in checks:
            if ok:
                result.add_check(CheckResult.passed(check_id, message))
                continue
            result.add_check(CheckResult.failed(check_id, error.message, {"code": error.code}))
            if result.error is None:
                result.error = error.to_error_model()
        return result

    def resolve_metadata(self, credential_id: int) -> str:
        return self.ledger.resolve_metadata(credential_id)

    def find_credential(self, identity: IdentityLike, campaign_id: int) -> Optional[Credential]:
        """Existing credential for (identity, campaign), if any."""
        return self.ledger.find(identity, campaign_id)

    def credential(self, credential_id: int) -> Credential:
        return self.ledger.get(credential_id)

"""
Admission Controller Unit Tests
Tests for claimcore/admission/controller.py

Tests:
- Campaign lifecycle scenario (window, capacity, duplicate claim)
- Check ordering: the first failing check decides the error
- Pause switch and authorized submitter rotation
- Eligibility pre-flight
- Revoke frees the slot and allows reissue
"""
from datetime import timedelta

import pytest

from claimcore.admission import AdmissionController, normalize_proof
from claimcore.config import RuntimeConfig
from claimcore.crypto.hashing import keccak256, to_hex
from claimcore.schemas.errors import (
    AdmissionPausedException,
    AlreadyClaimedException,
    CampaignDoesNotExistException,
    CampaignNotActiveException,
    CapacityReachedException,
    ClaimException,
    CredentialNotFoundException,
    ErrorCodes,
    InvalidInputException,
    InvalidProofException,
    MintingWindowNotOpenException,
    NonTransferableException,
    NotAuthorizedSubmitterException,
    ProofTooLongException,
)

from fixtures import SUBMITTER, T0, FixedClock, make_addresses, make_campaign, make_controller, make_tree


def _open(clock, campaign):
    clock.set(campaign.start_time)


class TestLifecycleScenario:
    """start = now+1h, end = start+1h, capacity = 1."""

    def test_lifecycle(self, clock, controller, addresses, tree):
        a, b = addresses[0], addresses[1]
        campaign = make_campaign(controller, tree, capacity=1, activate=False)
        assert controller.activate_campaign(campaign.campaign_id).is_active

        with pytest.raises(MintingWindowNotOpenException):
            controller.claim(a, campaign.campaign_id, tree.proof_for(a), caller=SUBMITTER)

        _open(clock, campaign)
        credential_id = controller.claim(a, campaign.campaign_id, tree.proof_for(a), caller=SUBMITTER)
        assert credential_id == 1

        with pytest.raises(CapacityReachedException):
            controller.claim(b, campaign.campaign_id, tree.proof_for(b), caller=SUBMITTER)

        with pytest.raises(AlreadyClaimedException):
            controller.claim(a, campaign.campaign_id, tree.proof_for(a), caller=SUBMITTER)

        assert controller.get_campaign(campaign.campaign_id).minted_count == 1


class TestClaim:
    def test_successful_claim_issues_credential(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        credential_id = controller.claim(
            addresses[2], campaign.campaign_id, tree.proof_for(addresses[2]), caller=SUBMITTER
        )

        credential = controller.credential(credential_id)
        assert credential.campaign_id == campaign.campaign_id
        assert controller.find_credential(addresses[2], campaign.campaign_id) == credential
        assert controller.get_campaign(campaign.campaign_id).minted_count == 1

    def test_credential_ids_are_global(self, clock, controller, tree, addresses):
        first = make_campaign(controller, tree)
        second = make_campaign(controller, tree)
        _open(clock, first)

        ids = [
            controller.claim(addresses[0], first.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER),
            controller.claim(addresses[0], second.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER),
            controller.claim(addresses[1], first.campaign_id, tree.proof_for(addresses[1]), caller=SUBMITTER),
        ]
        assert ids == [1, 2, 3]

    def test_hex_proof_accepted(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        hex_proof = [to_hex(node) for node in tree.proof_for(addresses[0])]
        assert controller.claim(addresses[0], campaign.campaign_id, hex_proof, caller=SUBMITTER) == 1

    def test_single_hex_string_proof_rejected(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        flat = to_hex(tree.proof_for(addresses[0])[0])

        with pytest.raises(InvalidInputException) as exc_info:
            controller.claim(addresses[0], campaign.campaign_id, flat, caller=SUBMITTER)
        assert exc_info.value.details["field_path"] == "proof"
        assert controller.get_campaign(campaign.campaign_id).minted_count == 0

    def test_single_bytes_proof_rejected(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)

        with pytest.raises(InvalidInputException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0])[0], caller=SUBMITTER)

    def test_case_insensitive_identity(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        controller.claim(addresses[0].lower(), campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

        with pytest.raises(AlreadyClaimedException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

    def test_outsider_rejected(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        (outsider,) = make_addresses(1, start=500)

        with pytest.raises(InvalidProofException):
            controller.claim(outsider, campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)
        assert controller.get_campaign(campaign.campaign_id).minted_count == 0

    def test_window_bounds(self, clock, controller, campaign, addresses, tree):
        a, b, c = addresses[:3]

        clock.set(campaign.start_time - timedelta(seconds=1))
        with pytest.raises(MintingWindowNotOpenException):
            controller.claim(a, campaign.campaign_id, tree.proof_for(a), caller=SUBMITTER)

        clock.set(campaign.end_time + timedelta(seconds=1))
        with pytest.raises(MintingWindowNotOpenException):
            controller.claim(a, campaign.campaign_id, tree.proof_for(a), caller=SUBMITTER)

        assert controller.claim(b, campaign.campaign_id, tree.proof_for(b), caller=SUBMITTER, now=campaign.end_time)
        assert controller.claim(c, campaign.campaign_id, tree.proof_for(c), caller=SUBMITTER, now=campaign.start_time)

    def test_capacity_never_exceeded(self, clock, controller, addresses, tree):
        campaign = make_campaign(controller, tree, capacity=3)
        _open(clock, campaign)

        outcomes = []
        for address in addresses:
            try:
                controller.claim(address, campaign.campaign_id, tree.proof_for(address), caller=SUBMITTER)
                outcomes.append("ok")
            except CapacityReachedException:
                outcomes.append("full")

        assert outcomes == ["ok", "ok", "ok", "full", "full"]
        assert controller.get_campaign(campaign.campaign_id).minted_count == 3


class TestCheckOrdering:
    """Each test violates two checks; the earlier one must win."""

    def test_paused_before_invalid_identity(self, controller, campaign):
        controller.pause()
        with pytest.raises(AdmissionPausedException):
            controller.claim(None, campaign.campaign_id, [], caller=None)

    def test_invalid_identity_before_submitter(self, controller, campaign):
        with pytest.raises(InvalidInputException):
            controller.claim("0x" + "00" * 20, campaign.campaign_id, [], caller="0x" + "11" * 20)

    def test_submitter_before_proof_length(self, controller, campaign, addresses):
        with pytest.raises(NotAuthorizedSubmitterException):
            controller.claim(addresses[0], campaign.campaign_id, [keccak256(b"x")] * 40, caller=addresses[0])

    def test_proof_length_before_campaign_lookup(self, controller, addresses):
        with pytest.raises(ProofTooLongException):
            controller.claim(addresses[0], 404, [keccak256(b"x")] * 33, caller=SUBMITTER)

    def test_campaign_lookup_before_active(self, controller, addresses, tree):
        with pytest.raises(CampaignDoesNotExistException):
            controller.claim(addresses[0], 404, tree.proof_for(addresses[0]), caller=SUBMITTER)

    def test_active_before_window(self, controller, tree, addresses):
        campaign = make_campaign(controller, tree, activate=False)
        with pytest.raises(CampaignNotActiveException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

    def test_window_before_duplicate(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

        clock.set(campaign.end_time + timedelta(minutes=1))
        with pytest.raises(MintingWindowNotOpenException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

    def test_duplicate_before_capacity(self, clock, controller, tree, addresses):
        campaign = make_campaign(controller, tree, capacity=1)
        _open(clock, campaign)
        controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

        with pytest.raises(AlreadyClaimedException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

    def test_capacity_before_proof(self, clock, controller, tree, addresses):
        campaign = make_campaign(controller, tree, capacity=1)
        _open(clock, campaign)
        controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

        with pytest.raises(CapacityReachedException):
            controller.claim(addresses[1], campaign.campaign_id, [keccak256(b"junk")], caller=SUBMITTER)

    def test_invalid_proof_leaves_no_trace(self, clock, controller, campaign, addresses):
        _open(clock, campaign)
        with pytest.raises(InvalidProofException) as exc_info:
            controller.claim(addresses[0], campaign.campaign_id, [keccak256(b"junk")], caller=SUBMITTER)

        assert exc_info.value.code == ErrorCodes.INVALID_PROOF
        assert controller.find_credential(addresses[0], campaign.campaign_id) is None
        assert controller.ledger.total_issued == 0


class TestSubmitter:
    def test_unconfigured_submitter_rejects_all(self, clock, addresses, tree):
        controller = make_controller(clock=clock, submitter=None)
        campaign = make_campaign(controller, tree)
        _open(clock, campaign)

        assert controller.authorized_submitter is None
        with pytest.raises(NotAuthorizedSubmitterException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

    def test_identity_cannot_submit_for_itself(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        with pytest.raises(NotAuthorizedSubmitterException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=addresses[0])

    def test_malformed_caller(self, controller, campaign, addresses, tree):
        with pytest.raises(NotAuthorizedSubmitterException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller="relayer")

    def test_rotation(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        new_submitter = make_addresses(1, start=900)[0]
        controller.set_authorized_submitter(new_submitter)

        assert controller.authorized_submitter == new_submitter
        with pytest.raises(NotAuthorizedSubmitterException):
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)
        assert controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=new_submitter)


class TestPause:
    def test_pause_and_unpause(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        controller.pause()
        assert controller.is_paused()

        with pytest.raises(AdmissionPausedException) as exc_info:
            controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)
        assert exc_info.value.code == ErrorCodes.ADMISSION_PAUSED

        controller.unpause()
        assert not controller.is_paused()
        assert controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER) == 1

    def test_pause_does_not_touch_campaign_state(self, controller, campaign):
        controller.pause()
        assert controller.get_campaign(campaign.campaign_id).is_active


class TestEligibility:
    def test_eligible(self, clock, controller, campaign, addresses, assert_check_passed):
        _open(clock, campaign)
        result = controller.check_eligibility(addresses[0], campaign.campaign_id)

        assert result.ok
        assert result.error is None
        assert result.identity == addresses[0]
        for check_id in ["campaign_exists", "campaign_active", "minting_window", "not_claimed", "capacity"]:
            assert_check_passed(result, check_id)

    def test_missing_campaign(self, controller, addresses, assert_check_failed):
        result = controller.check_eligibility(addresses[0], 77)

        assert not result.ok
        assert_check_failed(result, "campaign_exists")
        assert result.error.code == ErrorCodes.CAMPAIGN_DOES_NOT_EXIST
        assert len(result.checks) == 1

    def test_reports_first_failure_as_error(self, controller, tree, addresses, assert_check_failed):
        campaign = make_campaign(controller, tree, activate=False)
        result = controller.check_eligibility(addresses[0], campaign.campaign_id)

        assert not result.ok
        assert_check_failed(result, "campaign_active")
        assert_check_failed(result, "minting_window")
        assert result.error.code == ErrorCodes.CAMPAIGN_NOT_ACTIVE

    def test_already_claimed(self, clock, controller, campaign, addresses, tree, assert_check_failed):
        _open(clock, campaign)
        controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)
        result = controller.check_eligibility(addresses[0], campaign.campaign_id)

        assert_check_failed(result, "not_claimed")
        assert result.error.code == ErrorCodes.ALREADY_CLAIMED

    def test_does_not_verify_proof(self, clock, controller, campaign):
        """Outsiders pass the pre-flight; membership is only checked by claim()."""
        _open(clock, campaign)
        (outsider,) = make_addresses(1, start=500)
        assert controller.check_eligibility(outsider, campaign.campaign_id).ok

    def test_does_not_mutate(self, clock, controller, campaign, addresses):
        _open(clock, campaign)
        before = controller.get_campaign(campaign.campaign_id)
        controller.check_eligibility(addresses[0], campaign.campaign_id)
        assert controller.get_campaign(campaign.campaign_id) == before

    def test_invalid_identity(self, controller, campaign):
        with pytest.raises(InvalidInputException):
            controller.check_eligibility("nope", campaign.campaign_id)


class TestRevokeAndReissue:
    def test_transfer_rejected_then_revoke_frees_slot(self, clock, controller, tree, addresses):
        a, b = addresses[:2]
        campaign = make_campaign(controller, tree, capacity=1)
        _open(clock, campaign)
        credential_id = controller.claim(a, campaign.campaign_id, tree.proof_for(a), caller=SUBMITTER)

        with pytest.raises(NonTransferableException):
            controller.ledger.transfer(credential_id, b)

        revoked = controller.revoke(credential_id)
        assert revoked.credential_id == credential_id
        assert controller.get_campaign(campaign.campaign_id).minted_count == 0

        new_id = controller.claim(b, campaign.campaign_id, tree.proof_for(b), caller=SUBMITTER)
        assert new_id == credential_id + 1
        assert controller.get_campaign(campaign.campaign_id).minted_count == 1

    def test_revoked_identity_may_claim_again(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        first = controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)
        controller.revoke(first)

        second = controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)
        assert second != first

    def test_revoke_unknown(self, controller):
        with pytest.raises(CredentialNotFoundException):
            controller.revoke(12)

    def test_metadata_resolution(self, clock, controller, campaign, addresses, tree):
        _open(clock, campaign)
        credential_id = controller.claim(addresses[0], campaign.campaign_id, tree.proof_for(addresses[0]), caller=SUBMITTER)

        assert controller.resolve_metadata(credential_id) == (
            campaign.metadata_locator.rstrip("/") + "/" + addresses[0].lower() + ".json"
        )


class TestAdminPassThrough:
    def test_update_and_delete(self, controller, tree):
        campaign = make_campaign(controller, tree, activate=False)
        start = T0 + timedelta(hours=3)
        updated = controller.update_campaign(
            campaign.campaign_id, tree.root, start, start + timedelta(hours=1), 4
        )
        assert updated.capacity == 4

        controller.delete_campaign(campaign.campaign_id)
        with pytest.raises(CampaignDoesNotExistException):
            controller.get_campaign(campaign.campaign_id)


class TestFromConfig:
    def test_wires_config(self):
        config = RuntimeConfig.from_dict({
            "hashing": {"encoding": "packed"},
            "admission": {"max_proof_depth": 4, "authorized_submitter": SUBMITTER},
        })
        controller = AdmissionController.from_config(config, clock=FixedClock())

        assert controller.scheme.encoding == "packed"
        assert controller.max_proof_depth == 4
        assert controller.authorized_submitter is not None
        assert controller.authorized_submitter.lower() == SUBMITTER.lower()

    def test_packed_controller_accepts_packed_tree(self):
        clock = FixedClock()
        config = RuntimeConfig.from_dict({
            "hashing": {"encoding": "packed"},
            "admission": {"authorized_submitter": SUBMITTER},
        })
        controller = AdmissionController.from_config(config, clock=clock)
        addresses = make_addresses(3)
        tree = make_tree(addresses, encoding="packed")
        campaign = make_campaign(controller, tree)
        _open(clock, campaign)

        assert controller.claim(addresses[1], campaign.campaign_id, tree.proof_for(addresses[1]), caller=SUBMITTER) == 1


class TestNormalizeProof:
    def test_none_is_empty(self):
        assert normalize_proof(None) == []

    def test_bad_hex_rejected(self):
        with pytest.raises(InvalidInputException) as exc_info:
            normalize_proof(["0x1234"])
        assert exc_info.value.details["field_path"] == "proof[0]"

    def test_short_bytes_rejected(self):
        with pytest.raises(InvalidInputException):
            normalize_proof([b"\x01" * 31])

    def test_flat_string_rejected(self):
        with pytest.raises(InvalidInputException) as exc_info:
            normalize_proof("0x" + "ab" * 32)
        assert exc_info.value.details["field_path"] == "proof"


def test_all_rejections_are_claim_exceptions(controller, campaign, addresses):
    with pytest.raises(ClaimException):
        controller.claim(addresses[0], campaign.campaign_id, [], caller=SUBMITTER)

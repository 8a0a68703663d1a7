"""
Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for allowlist building, campaign
administration and admission. Defines both Pydantic models for structured
error communication and Python exceptions for control flow.

Every error here is a terminal, caller-visible outcome. Nothing is retried
internally, so ``retryable`` is False throughout.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Input validation
    INVALID_INPUT = "INVALID_INPUT"

    # Authorization
    NOT_AUTHORIZED_SUBMITTER = "NOT_AUTHORIZED_SUBMITTER"
    ADMISSION_PAUSED = "ADMISSION_PAUSED"

    # Campaign lifecycle
    CAMPAIGN_DOES_NOT_EXIST = "CAMPAIGN_DOES_NOT_EXIST"
    CAMPAIGN_NOT_ACTIVE = "CAMPAIGN_NOT_ACTIVE"
    CAMPAIGN_EXPIRED = "CAMPAIGN_EXPIRED"
    CAMPAIGN_ACTIVE = "CAMPAIGN_ACTIVE"
    CAMPAIGN_HAS_MINTS = "CAMPAIGN_HAS_MINTS"
    CANNOT_MODIFY_STARTED_CAMPAIGN = "CANNOT_MODIFY_STARTED_CAMPAIGN"

    # Admission
    MINTING_WINDOW_NOT_OPEN = "MINTING_WINDOW_NOT_OPEN"
    ALREADY_CLAIMED = "ALREADY_CLAIMED"
    CAPACITY_REACHED = "CAPACITY_REACHED"

    # Merkle proofs
    INVALID_PROOF = "INVALID_PROOF"
    PROOF_TOO_LONG = "PROOF_TOO_LONG"

    # Credentials
    NON_TRANSFERABLE = "NON_TRANSFERABLE"
    CREDENTIAL_NOT_FOUND = "CREDENTIAL_NOT_FOUND"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class ClaimError(BaseModel):
    """
    Base error model for structured error communication.

    Used by relayer-facing layers to serialize a rejection without
    carrying the exception object around.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INVALID_PROOF],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "ClaimException":
        """
        Convert this error model to a raised exception.

        The exception class is chosen by ``code``, so a restored error can
        be caught as its specific subclass. Unknown codes give a plain
        ClaimException.
        """
        exc_type = _EXCEPTIONS_BY_CODE.get(self.code, ClaimException)
        exc = exc_type.__new__(exc_type)
        ClaimException.__init__(
            exc,
            message=self.message,
            code=self.code,
            details=dict(self.details),
            retryable=self.retryable,
        )
        return exc


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class ClaimException(Exception):
    """
    Base exception for the claims core.

    All exceptions carry a stable code and can be converted to a
    ClaimError model.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> ClaimError:
        """Convert this exception to a ClaimError model."""
        return ClaimError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InvalidInputException(ClaimException):
    """Malformed identity, campaign parameters or allowlist input."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_INPUT,
            details=full_details,
        )


class NotAuthorizedSubmitterException(ClaimException):
    """Caller is not the designated claim submitter."""

    def __init__(self, caller: str | None = None) -> None:
        details = {"caller": caller} if caller else {}
        super().__init__(
            message="Caller is not the authorized submitter",
            code=ErrorCodes.NOT_AUTHORIZED_SUBMITTER,
            details=details,
        )


class AdmissionPausedException(ClaimException):
    """The global kill switch is engaged."""

    def __init__(self) -> None:
        super().__init__(
            message="Admission is paused",
            code=ErrorCodes.ADMISSION_PAUSED,
        )


class _CampaignException(ClaimException):
    """Campaign-scoped error; records the campaign id in details."""

    def __init__(
        self,
        message: str,
        code: str,
        campaign_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if campaign_id is not None:
            full_details["campaign_id"] = campaign_id
        super().__init__(message=message, code=code, details=full_details)


class CampaignDoesNotExistException(_CampaignException):
    def __init__(self, campaign_id: int) -> None:
        super().__init__(
            f"Campaign #{campaign_id} does not exist",
            ErrorCodes.CAMPAIGN_DOES_NOT_EXIST,
            campaign_id,
        )


class CampaignNotActiveException(_CampaignException):
    def __init__(self, campaign_id: int) -> None:
        super().__init__(
            f"Campaign #{campaign_id} is not active",
            ErrorCodes.CAMPAIGN_NOT_ACTIVE,
            campaign_id,
        )


class CampaignExpiredException(_CampaignException):
    def __init__(self, campaign_id: int) -> None:
        super().__init__(
            f"Campaign #{campaign_id} has already ended",
            ErrorCodes.CAMPAIGN_EXPIRED,
            campaign_id,
        )


class CampaignActiveException(_CampaignException):
    def __init__(self, campaign_id: int) -> None:
        super().__init__(
            f"Campaign #{campaign_id} must be deactivated first",
            ErrorCodes.CAMPAIGN_ACTIVE,
            campaign_id,
        )


class CampaignHasMintsException(_CampaignException):
    def __init__(self, campaign_id: int, minted_count: int) -> None:
        super().__init__(
            f"Campaign #{campaign_id} has {minted_count} issued credential(s)",
            ErrorCodes.CAMPAIGN_HAS_MINTS,
            campaign_id,
            {"minted_count": minted_count},
        )


class CannotModifyStartedCampaignException(_CampaignException):
    def __init__(self, campaign_id: int) -> None:
        super().__init__(
            f"Campaign #{campaign_id} has started and can no longer be modified",
            ErrorCodes.CANNOT_MODIFY_STARTED_CAMPAIGN,
            campaign_id,
        )


class MintingWindowNotOpenException(_CampaignException):
    def __init__(self, campaign_id: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            f"Campaign #{campaign_id} is outside its minting window",
            ErrorCodes.MINTING_WINDOW_NOT_OPEN,
            campaign_id,
            details,
        )


class AlreadyClaimedException(_CampaignException):
    def __init__(self, campaign_id: int, identity: str) -> None:
        super().__init__(
            f"{identity} has already claimed in campaign #{campaign_id}",
            ErrorCodes.ALREADY_CLAIMED,
            campaign_id,
            {"identity": identity},
        )


class CapacityReachedException(_CampaignException):
    def __init__(self, campaign_id: int, capacity: int) -> None:
        super().__init__(
            f"Campaign #{campaign_id} reached its capacity of {capacity}",
            ErrorCodes.CAPACITY_REACHED,
            campaign_id,
            {"capacity": capacity},
        )


class InvalidProofException(ClaimException):
    """Merkle proof does not reproduce the trusted root."""

    def __init__(
        self,
        message: str = "Invalid merkle proof",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_PROOF,
            details=details,
        )


class ProofTooLongException(ClaimException):
    """Proof length exceeds the configured maximum depth."""

    def __init__(self, length: int, max_depth: int) -> None:
        super().__init__(
            message=f"Proof has {length} elements, maximum is {max_depth}",
            code=ErrorCodes.PROOF_TOO_LONG,
            details={"length": length, "max_depth": max_depth},
        )


class NonTransferableException(ClaimException):
    """Credentials cannot change owner outside issuance and revocation."""

    def __init__(self, credential_id: int) -> None:
        super().__init__(
            message=f"Credential #{credential_id} is non-transferable",
            code=ErrorCodes.NON_TRANSFERABLE,
            details={"credential_id": credential_id},
        )


class CredentialNotFoundException(ClaimException):
    def __init__(self, credential_id: int) -> None:
        super().__init__(
            message=f"Credential #{credential_id} not found",
            code=ErrorCodes.CREDENTIAL_NOT_FOUND,
            details={"credential_id": credential_id},
        )



_EXCEPTIONS_BY_CODE: dict[str, type[ClaimException]] = {
    ErrorCodes.INVALID_INPUT: InvalidInputException,
    ErrorCodes.NOT_AUTHORIZED_SUBMITTER: NotAuthorizedSubmitterException,
    ErrorCodes.ADMISSION_PAUSED: AdmissionPausedException,
    ErrorCodes.CAMPAIGN_DOES_NOT_EXIST: CampaignDoesNotExistException,
    ErrorCodes.CAMPAIGN_NOT_ACTIVE: CampaignNotActiveException,
    ErrorCodes.CAMPAIGN_EXPIRED: CampaignExpiredException,
    ErrorCodes.CAMPAIGN_ACTIVE: CampaignActiveException,
    ErrorCodes.CAMPAIGN_HAS_MINTS: CampaignHasMintsException,
    ErrorCodes.CANNOT_MODIFY_STARTED_CAMPAIGN: CannotModifyStartedCampaignException,
    ErrorCodes.MINTING_WINDOW_NOT_OPEN: MintingWindowNotOpenException,
    ErrorCodes.ALREADY_CLAIMED: AlreadyClaimedException,
    ErrorCodes.CAPACITY_REACHED: CapacityReachedException,
    ErrorCodes.INVALID_PROOF: InvalidProofException,
    ErrorCodes.PROOF_TOO_LONG: ProofTooLongException,
    ErrorCodes.NON_TRANSFERABLE: NonTransferableException,
    ErrorCodes.CREDENTIAL_NOT_FOUND: CredentialNotFoundException,
}

"""
Schemas & Canonicalization

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Version constants
from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
)

# Error models and exceptions
from .errors import (
    AdmissionPausedException,
    AlreadyClaimedException,
    CampaignActiveException,
    CampaignDoesNotExistException,
    CampaignExpiredException,
    CampaignHasMintsException,
    CampaignNotActiveException,
    CannotModifyStartedCampaignException,
    CapacityReachedException,
    ClaimError,
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

# Identity handling
from .identity import (
    ZERO_IDENTITY,
    IdentityLike,
    format_identity,
    identity_key,
    parse_identity,
)

# Campaign and credential records
from .campaign import (
    Campaign,
    Credential,
)

# Allowlist artifact
from .allowlist import AllowlistArtifact

# Verification results
from .verification import (
    CheckResult,
    CheckSeverity,
    EligibilityResult,
    VerificationResult,
)

__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    # Errors
    "AdmissionPausedException",
    "AlreadyClaimedException",
    "CampaignActiveException",
    "CampaignDoesNotExistException",
    "CampaignExpiredException",
    "CampaignHasMintsException",
    "CampaignNotActiveException",
    "CannotModifyStartedCampaignException",
    "CapacityReachedException",
    "ClaimError",
    "ClaimException",
    "CredentialNotFoundException",
    "ErrorCodes",
    "InvalidInputException",
    "InvalidProofException",
    "MintingWindowNotOpenException",
    "NonTransferableException",
    "NotAuthorizedSubmitterException",
    "ProofTooLongException",
    # Identity
    "ZERO_IDENTITY",
    "IdentityLike",
    "format_identity",
    "identity_key",
    "parse_identity",
    # Campaign
    "Campaign",
    "Credential",
    # Allowlist
    "AllowlistArtifact",
    # Verification
    "CheckResult",
    "CheckSeverity",
    "EligibilityResult",
    "VerificationResult",
]

"""
Schemas & Canonicalization
File: verification.py

Purpose: Standard result format for read-only checks. The eligibility
pre-flight and allowlist artifact verification report through these
models instead of raising.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import ClaimError


# Severity levels for checks
CheckSeverity = Literal["info", "warn", "error"]


class CheckResult(BaseModel):
    """
    Result of a single verification check.

    Checks are atomic verification steps that can pass or fail.
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(
        ...,
        description="Unique identifier for this check",
        min_length=1,
    )
    ok: bool = Field(
        ...,
        description="Whether the check passed",
    )
    severity: CheckSeverity = Field(
        ...,
        description="Severity level of this check",
    )
    message: str = Field(
        ...,
        description="Human-readable message describing the result",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional details about the check",
    )

    @classmethod
    def passed(
        cls,
        check_id: str,
        message: str = "Check passed",
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a passed check result."""
        return cls(
            check_id=check_id,
            ok=True,
            severity="info",
            message=message,
            details=details or {},
        )

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a failed check result."""
        return cls(
            check_id=check_id,
            ok=False,
            severity="error",
            message=message,
            details=details or {},
        )


class VerificationResult(BaseModel):
    """
    Complete result of a verification process.

    ``error`` holds the first failing check as a structured ClaimError so
    that callers get the same code the state-changing path would raise.
    """

    model_config = ConfigDict(extra="forbid")

    ok: bool = Field(
        ...,
        description="Overall verification success",
    )
    checks: list[CheckResult] = Field(
        default_factory=list,
        description="Individual check results",
    )
    error: ClaimError | None = Field(
        default=None,
        description="Error for the first failed check, if any",
    )

    @property
    def passed_count(self) -> int:
        """Count of passed checks."""
        return sum(1 for check in self.checks if check.ok)

    def get_failed_checks(self) -> list[CheckResult]:
        """Get all failed checks."""
        return [check for check in self.checks if not check.ok]

    @classmethod
    def success(cls, checks: list[CheckResult] | None = None) -> "VerificationResult":
        """Create a successful verification result."""
        return cls(ok=True, checks=checks or [])

    @classmethod
    def failure(
        cls,
        checks: list[CheckResult],
        error: ClaimError | None = None,
    ) -> "VerificationResult":
        """Create a failed verification result."""
        return cls(ok=False, checks=checks, error=error)

    def add_check(self, check: CheckResult) -> None:
        """Add a check result."""
        self.checks.append(check)
        if not check.ok:
            self.ok = False


class EligibilityResult(VerificationResult):
    """Outcome of the read-only "would this identity qualify" pre-flight."""

    campaign_id: int = Field(
        ...,
        description="Campaign that was checked",
    )
    identity: str = Field(
        ...,
        description="Checksum address that was checked",
    )

"""
CLI Verify Command

Verify an allowlist artifact offline:
- Every proof reproduces the artifact's root (default)
- Or a single address against a trusted root (--address, --root)

Usage:
    claims verify allowlist.json [--address ADDR] [--root ROOT] [--json] [--debug]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from claimcore.crypto.hashing import hash_from_hex, to_hex
from claimcore.merkle import AllowlistIOError, MerkleVerifier, load_artifact, verify_artifact
from claimcore.schemas.allowlist import AllowlistArtifact
from claimcore.schemas.errors import ClaimException
from claimcore.schemas.identity import format_identity, parse_identity
from claimcore.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of artifact verification for CLI output."""
    artifact_path: str = ""
    merkle_root: str = ""
    encoding: str = ""
    leaf_count: int = 0
    proofs_ok: bool = False
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["checks"]:
            del d["checks"]
        if not d["errors"]:
            del d["errors"]
        return d


def verify_single(
    artifact: AllowlistArtifact,
    address: str,
    root: bytes,
    max_depth: int,
) -> VerificationResult:
    """Verify one address's proof from the artifact against ``root``."""
    identity = parse_identity(address)
    check_id = f"proof:{format_identity(identity)}"
    proof = artifact.proof_for(identity)
    if proof is None:
        return VerificationResult.failure([
            CheckResult.failed(check_id, "Address not in allowlist"),
        ])

    verifier = MerkleVerifier(artifact.scheme, max_depth=max_depth)
    try:
        ok = verifier.verify_identity(identity, proof, root)
    except ClaimException as e:
        return VerificationResult.failure(
            [CheckResult.failed(check_id, e.message, {"code": e.code})],
            e.to_error_model(),
        )
    if not ok:
        return VerificationResult.failure([
            CheckResult.failed(check_id, f"Proof does not reproduce {to_hex(root)}"),
        ])
    return VerificationResult.success([
        CheckResult.passed(check_id, f"Proof verifies against {to_hex(root)}"),
    ])


def build_summary(
    artifact_path: str,
    artifact: AllowlistArtifact,
    result: VerificationResult,
    debug: bool = False,
) -> VerifySummary:
    """Build a VerifySummary from a verification result."""
    summary = VerifySummary(
        artifact_path=artifact_path,
        merkle_root=artifact.merkle_root,
        encoding=artifact.encoding,
        leaf_count=artifact.leaf_count,
        proofs_ok=result.ok,
        errors=[check.message for check in result.get_failed_checks()],
    )
    if debug:
        summary.checks = [
            {"check_id": check.check_id, "ok": check.ok, "message": check.message}
            for check in result.checks
        ]
    return summary


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"artifact: {summary.artifact_path}")
    print(f"merkle_root: {summary.merkle_root}")
    print(f"encoding: {summary.encoding}")
    print(f"leaf_count: {summary.leaf_count}")
    print(f"proofs_ok: {str(summary.proofs_ok).lower()}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")

    if summary.checks:
        passed = sum(1 for c in summary.checks if c["ok"])
        failed = len(summary.checks) - passed
        print(f"\nchecks: {passed} passed, {failed} failed")
        for check in summary.checks[:20]:
            status = "✓" if check["ok"] else "✗"
            print(f"  {status} {check['check_id']}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        Exit code (0=verified, 1=error, 2=verification failed)
    """
    max_depth = args.runtime_config.admission.max_proof_depth

    try:
        artifact = load_artifact(args.artifact)
    except (FileNotFoundError, AllowlistIOError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        if args.address:
            root = hash_from_hex(args.root) if args.root else artifact.root
            result = verify_single(artifact, args.address, root, max_depth)
        else:
            if args.root and hash_from_hex(args.root) != artifact.root:
                print(f"Error: Artifact root {artifact.merkle_root} does not match --root", file=sys.stderr)
                return EXIT_VERIFICATION_FAILED
            result = verify_artifact(artifact, max_depth)
    except (ClaimException, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info(f"Verified {args.artifact}: ok={result.ok} ({result.passed_count}/{len(result.checks)} checks)")

    summary = build_summary(args.artifact, artifact, result, debug=args.debug)
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    return EXIT_SUCCESS if result.ok else EXIT_VERIFICATION_FAILED

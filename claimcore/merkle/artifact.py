"""
Allowlist Artifact IO
File: artifact.py

Purpose: Convert a built tree into the distributable allowlist artifact,
save/load it as canonical JSON, and re-verify every proof it carries.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from claimcore.crypto.hashing import HashingScheme, to_hex
from claimcore.merkle.merkle_proofs import DEFAULT_MAX_PROOF_DEPTH, verify_merkle_proof
from claimcore.merkle.merkle_tree import MerkleTree
from claimcore.schemas.allowlist import AllowlistArtifact
from claimcore.schemas.canonical import dumps_canonical
from claimcore.schemas.errors import ClaimException, InvalidInputException, InvalidProofException
from claimcore.schemas.identity import format_identity
from claimcore.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


class AllowlistIOError(Exception):
    """Error while reading or writing an allowlist artifact."""
    pass


def to_artifact(tree: MerkleTree) -> AllowlistArtifact:
    """Render a built tree as an artifact, preserving identity order."""
    return AllowlistArtifact(
        encoding=tree.scheme.encoding,
        merkle_root=to_hex(tree.root),
        leaf_count=tree.leaf_count,
        proofs={
            format_identity(identity): [to_hex(node) for node in tree.proofs[identity]]
            for identity in tree.identities
        },
    )


def dump_artifact(artifact: AllowlistArtifact) -> str:
    """Serialize an artifact to canonical JSON."""
    return dumps_canonical(artifact.model_dump(mode="json"))


def save_artifact(artifact: AllowlistArtifact, path: str | Path) -> Path:
    """
    Write an artifact to ``path`` (parent directories are created).

    Returns:
        The resolved output path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_artifact(artifact), encoding="utf-8")
    logger.info(f"Saved allowlist artifact ({artifact.leaf_count} identities) to {path}")
    return path


def load_artifact(
    path: str | Path,
    expected_scheme: HashingScheme | None = None,
) -> AllowlistArtifact:
    """
    Load an artifact from disk.

    Args:
        path: Artifact JSON file
        expected_scheme: If given, the artifact's encoding must match it

    Raises:
        FileNotFoundError: If the file does not exist
        AllowlistIOError: If the file is not a valid artifact
        InvalidInputException: If the encoding differs from expected_scheme
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Allowlist artifact not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        artifact = AllowlistArtifact.model_validate(data)
    except json.JSONDecodeError as e:
        raise AllowlistIOError(f"Artifact is not valid JSON: {path}: {e}") from e
    except ValidationError as e:
        raise AllowlistIOError(f"Artifact failed schema validation: {path}: {e}") from e

    if expected_scheme is not None and artifact.encoding != expected_scheme.encoding:
        raise InvalidInputException(
            f"Artifact uses '{artifact.encoding}' leaf encoding, "
            f"configured scheme uses '{expected_scheme.encoding}'",
            field_path="encoding",
        )
    return artifact


def verify_artifact(
    artifact: AllowlistArtifact,
    max_depth: int | None = DEFAULT_MAX_PROOF_DEPTH,
) -> VerificationResult:
    """
    Check every proof in the artifact against its root.

    One check per identity plus a leaf-count consistency check. The
    result's ``error`` carries the first failure as a ClaimError.
    """
    result = VerificationResult.success()
    first_error: ClaimException | None = None
    scheme = artifact.scheme
    root = artifact.root

    if artifact.leaf_count != len(artifact.proofs):
        result.add_check(CheckResult.failed(
            "leaf_count",
            f"leaf_count is {artifact.leaf_count} but {len(artifact.proofs)} proofs are listed",
        ))
        first_error = InvalidInputException("leaf_count does not match proofs", field_path="leaf_count")
    else:
        result.add_check(CheckResult.passed("leaf_count", f"{artifact.leaf_count} identities"))

    for identity in artifact.identities():
        address = format_identity(identity)
        proof = artifact.proof_for(identity) or []
        check_id = f"proof:{address}"
        try:
            ok = verify_merkle_proof(scheme.leaf(identity), proof, root, max_depth)
        except ClaimException as e:
            result.add_check(CheckResult.failed(check_id, e.message, {"code": e.code}))
            first_error = first_error or e
            continue
        if ok:
            result.add_check(CheckResult.passed(check_id, "Proof verifies against root"))
        else:
            result.add_check(CheckResult.failed(check_id, "Proof does not reproduce the root"))
            first_error = first_error or InvalidProofException(details={"identity": address})

    if first_error is not None:
        result.error = first_error.to_error_model()
    return result


__all__ = [
    "AllowlistIOError",
    "to_artifact",
    "dump_artifact",
    "save_artifact",
    "load_artifact",
    "verify_artifact",
]

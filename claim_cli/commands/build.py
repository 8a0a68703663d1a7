"""
CLI Build Command

Build an allowlist artifact from a list of addresses:
- Read addresses (plain text, one per line, or a JSON list)
- Build the sorted-pair Merkle tree
- Write the root and every proof as canonical JSON

Usage:
    claims build addresses.txt --out allowlist.json [--encoding packed] [--dedupe] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from claimcore.crypto.hashing import HashingScheme
from claimcore.merkle import build_allowlist, save_artifact, to_artifact
from claimcore.schemas.errors import ClaimException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


@dataclass
class BuildSummary:
    """Summary of an artifact build for CLI output."""
    out_path: str = ""
    merkle_root: str = ""
    encoding: str = ""
    leaf_count: int = 0
    depth: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def read_addresses(path: Path) -> list[str]:
    """
    Read addresses from ``path``.

    A file whose first non-blank character is ``[`` is parsed as a JSON
    list of strings. Otherwise one address per line; blank lines and
    ``#`` comments are skipped.
    """
    text = path.read_text(encoding="utf-8")
    if text.lstrip().startswith("["):
        data = json.loads(text)
        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise ValueError(f"Expected a JSON list of address strings in {path}")
        return [item.strip() for item in data]

    addresses = []
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            addresses.append(line)
    return addresses


def print_summary_human(summary: BuildSummary) -> None:
    print(f"artifact: {summary.out_path}")
    print(f"merkle_root: {summary.merkle_root}")
    print(f"encoding: {summary.encoding}")
    print(f"leaf_count: {summary.leaf_count}")
    print(f"depth: {summary.depth}")


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Returns:
        Exit code (0=success, 1=error)
    """
    addresses_path = Path(args.addresses_file)
    if not addresses_path.exists():
        print(f"Error: Address file not found: {addresses_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    encoding = args.encoding or args.runtime_config.hashing.encoding

    try:
        addresses = read_addresses(addresses_path)
        tree = build_allowlist(addresses, HashingScheme(encoding=encoding), dedupe=args.dedupe)
    except (ClaimException, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    artifact = to_artifact(tree)
    out_path = save_artifact(artifact, args.out)

    summary = BuildSummary(
        out_path=str(out_path),
        merkle_root=artifact.merkle_root,
        encoding=artifact.encoding,
        leaf_count=artifact.leaf_count,
        depth=tree.depth,
    )
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)
    return EXIT_SUCCESS

"""
CLI Proof Command

Look up the proof for one address in an allowlist artifact. Lookup is
case-insensitive.

Usage:
    claims proof allowlist.json 0xabc... [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace

from claimcore.crypto.hashing import to_hex
from claimcore.merkle import AllowlistIOError, load_artifact
from claimcore.schemas.errors import ClaimException
from claimcore.schemas.identity import format_identity, parse_identity


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_NOT_FOUND = 2


def proof_cmd(args: Namespace) -> int:
    """
    Execute the proof command.

    Returns:
        Exit code (0=found, 1=error, 2=address not in the allowlist)
    """
    try:
        artifact = load_artifact(args.artifact)
        identity = parse_identity(args.address)
    except (FileNotFoundError, AllowlistIOError, ClaimException) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    proof = artifact.proof_for(identity)
    if proof is None:
        print(f"Address not in allowlist: {args.address}", file=sys.stderr)
        return EXIT_NOT_FOUND

    hex_proof = [to_hex(node) for node in proof]
    if args.json:
        print(json.dumps({
            "address": format_identity(identity),
            "merkle_root": artifact.merkle_root,
            "proof": hex_proof,
        }, indent=2))
    else:
        print(f"address: {format_identity(identity)}")
        print(f"merkle_root: {artifact.merkle_root}")
        print(f"proof ({len(hex_proof)}):")
        for node in hex_proof:
            print(f"  {node}")
    return EXIT_SUCCESS

"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m claim_cli build <addresses_file> --out allowlist.json [--encoding packed] [--dedupe] [--json]
    python -m claim_cli proof <artifact> <address> [--json]
    python -m claim_cli verify <artifact> [--address ADDR --root ROOT] [--json]
    python -m claim_cli config --init|--show [--path claims.yaml]

Environment Variables:
    CLAIMS_LEAF_ENCODING          Leaf encoding: padded or packed (default: padded)
    CLAIMS_MAX_PROOF_DEPTH        Maximum accepted proof length (default: 32)
    CLAIMS_MAX_CAMPAIGN_DURATION  Maximum campaign duration in seconds (default: 30 days)
    CLAIMS_AUTHORIZED_SUBMITTER   Address allowed to submit claims
    CLAIMS_LOG_LEVEL              Log level (default: INFO)
    CLAIMS_LOG_FILE               Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from claim_cli.commands import build, proof, verify
from claimcore.config import RuntimeConfig, get_default_config_template


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def load_config(path: Path | None) -> RuntimeConfig:
    """YAML file (if given) with CLAIMS_* environment overrides on top."""
    if path is not None:
        return RuntimeConfig.from_yaml(path).with_env_overrides()
    return RuntimeConfig.from_env()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="claims",
        description="Claims CLI - Build allowlist artifacts, look up and verify proofs.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build an allowlist artifact from a list of addresses",
        description="Compute the Merkle root and every proof, then write the artifact.",
    )
    build_parser.add_argument(
        "addresses_file",
        type=str,
        help="One address per line ('#' comments allowed) or a JSON list",
    )
    build_parser.add_argument(
        "--out", "-o",
        type=str,
        required=True,
        help="Output path for the artifact JSON",
    )
    build_parser.add_argument(
        "--encoding",
        type=str,
        choices=["padded", "packed"],
        default=None,
        help="Leaf encoding (default: from config)",
    )
    build_parser.add_argument(
        "--dedupe",
        action="store_true",
        default=False,
        help="Skip repeated addresses instead of failing",
    )
    build_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    build_parser.set_defaults(func=build.build_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Print the proof for one address",
    )
    proof_parser.add_argument("artifact", type=str, help="Path to the artifact JSON")
    proof_parser.add_argument("address", type=str, help="Address to look up (any case)")
    proof_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    proof_parser.set_defaults(func=proof.proof_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Re-verify proofs in an artifact",
        description="Check every proof against the root, or one address against a given root.",
    )
    verify_parser.add_argument("artifact", type=str, help="Path to the artifact JSON")
    verify_parser.add_argument(
        "--address",
        type=str,
        default=None,
        help="Verify only this address",
    )
    verify_parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Trusted root to verify against (default: the artifact's root)",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include every check in the output",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="claims.yaml",
        help="Path for config file (default: claims.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (CLAIMS_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: claims config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed or not found)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())

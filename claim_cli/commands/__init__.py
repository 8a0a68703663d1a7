"""
CLI command modules.
"""

from claim_cli.commands import build, proof, verify

__all__ = ["build", "proof", "verify"]

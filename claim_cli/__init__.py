"""
Claims CLI

Command-line interface for building and checking allowlist artifacts.

Usage:
    python -m claim_cli build addresses.txt --out allowlist.json
    python -m claim_cli proof allowlist.json 0xAbc...
    python -m claim_cli verify allowlist.json
    python -m claim_cli config --init
"""

__version__ = "0.1.0"

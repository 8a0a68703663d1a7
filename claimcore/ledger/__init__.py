"""
Credential Ledger

Issued, non-transferable credentials and their metadata locators.
"""

from .credentials import CredentialLedger, metadata_path

__all__ = [
    "CredentialLedger",
    "metadata_path",
]

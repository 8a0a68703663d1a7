"""
claimcore - Merkle allowlist and campaign admission.

Builds sorted-pair keccak256 allowlists offline and admits identities to
time-boxed, capacity-bounded campaigns against a stored root, issuing one
non-transferable credential per identity per campaign.
"""

__version__ = "0.1.0"

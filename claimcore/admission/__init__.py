"""
Admission Controller

Claim orchestration plus the administrative and query interfaces.
"""

from .controller import AdmissionController, ProofLike, normalize_proof

__all__ = [
    "AdmissionController",
    "ProofLike",
    "normalize_proof",
]

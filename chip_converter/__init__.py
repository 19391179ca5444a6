"""
chip_converter
==============
Reads a previous controller's chip config file into a structured,
queryable, round-trippable model.

Provides:
- ChipConfigData: load/save, fabric queries, fabric config projection
- Certificate chain verification for the stored RCAC/ICAC/NOC
- Codecs for the binary records embedded in the file
"""

from .chip_config import ChipConfigData, ResumptionConflict, open_chip_config
from .projection import FabricConfigData
from .verifier import CertificateVerificationResult

__all__ = [
    "ChipConfigData",
    "ResumptionConflict",
    "open_chip_config",
    "FabricConfigData",
    "CertificateVerificationResult",
]

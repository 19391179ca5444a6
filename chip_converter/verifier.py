"""
chip_converter.verifier
-----------------------
RCAC -> ICAC -> NOC chain verification for one fabric.

Steps run strictly in order and stop at the first failure; every failure
is reported as a CertificateVerificationResult, never raised.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional
import logging

from .certificates import Icac, Noc, Rcac
from .crypto import StandardCrypto
from .errors import CertificateError
from .storage.models import DecodedEntry, FabricData

log = logging.getLogger("ChipConfig.Verifier")

# malformed certificate content surfaces as any of these
_CERT_ERRORS = (CertificateError, TypeError, ValueError)


@dataclass
class CertificateVerificationResult:
    """
    Outcome of one chain check. Flags accumulate as steps pass: a missing
    NOC after a good RCAC reports rcac_valid=True, and icac_valid stays
    None when the fabric stores no ICAC.
    """
    valid: bool
    rcac_valid: Optional[bool] = None
    icac_valid: Optional[bool] = None
    noc_valid: Optional[bool] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def decode_certificate(entry: Optional[DecodedEntry], kind):
    """Decode a stored certificate as Rcac/Icac/Noc, or None if absent or invalid."""
    if entry is None:
        return None
    try:
        return kind.from_tlv(entry.raw)
    except _CERT_ERRORS as e:
        log.debug(f"[CERT] stored {kind.role} does not decode: {e}")
        return None


def verify_fabric_chain(fabric: Optional[FabricData]) -> CertificateVerificationResult:
    result = _verify_chain(fabric)
    if not result.valid:
        log.info(f"[CERT] fabric {fabric.index if fabric else None}: {result.error}")
    return result


def _verify_chain(fabric: Optional[FabricData]) -> CertificateVerificationResult:
    # provider is per call, no state shared between verifications
    crypto = StandardCrypto()

    rcac = decode_certificate(fabric.rcac if fabric else None, Rcac)
    if rcac is None:
        return CertificateVerificationResult(valid=False, error="RCAC not found or invalid")

    try:
        rcac.verify(crypto)
    except _CERT_ERRORS as e:
        return CertificateVerificationResult(valid=False, rcac_valid=False, error=f"RCAC verification failed: {e}")

    noc = decode_certificate(fabric.noc, Noc)
    if noc is None:
        return CertificateVerificationResult(valid=False, rcac_valid=True, error="NOC not found or invalid")

    icac = None
    icac_valid = None
    if fabric.icac is not None:
        try:
            icac = Icac.from_tlv(fabric.icac.raw)
            icac.verify(crypto, rcac)
        except _CERT_ERRORS as e:
            return CertificateVerificationResult(
                valid=False, rcac_valid=True, icac_valid=False, error=f"ICAC verification failed: {e}"
            )
        icac_valid = True

    try:
        noc.verify(crypto, rcac, icac)
    except _CERT_ERRORS as e:
        return CertificateVerificationResult(
            valid=False, rcac_valid=True, icac_valid=icac_valid, noc_valid=False,
            error=f"NOC verification failed: {e}",
        )

    log.debug(f"[CERT] fabric {fabric.index} chain verified (icac={'yes' if icac else 'no'})")
    return CertificateVerificationResult(valid=True, rcac_valid=True, icac_valid=icac_valid, noc_valid=True)

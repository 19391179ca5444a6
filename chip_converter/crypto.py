"""
chip_converter.crypto
---------------------
Cryptographic provider for certificate verification:

- ECDSA over P-256 with SHA-256 (the only signature suite the legacy
  certificates use)
- conversion between the 64-byte raw r||s signature form stored in
  certificates and the DER form `cryptography` works with
- key identifiers (SHA-1 of the uncompressed public point)

A provider is created per verification call and holds no state.
"""

from __future__ import annotations
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature
import hashlib

from .constants import EC_PUBLIC_KEY_LENGTH, EC_SIGNATURE_LENGTH
from .errors import CertificateError

_COORD = EC_SIGNATURE_LENGTH // 2


# --------- signature encodings ----------
def raw_to_der_signature(sig: bytes) -> bytes:
    if len(sig) != EC_SIGNATURE_LENGTH:
        raise CertificateError(f"Signature must be {EC_SIGNATURE_LENGTH} bytes, got {len(sig)}")
    r = int.from_bytes(sig[:_COORD], "big")
    s = int.from_bytes(sig[_COORD:], "big")
    return encode_dss_signature(r, s)


def der_to_raw_signature(der: bytes) -> bytes:
    r, s = decode_dss_signature(der)
    return r.to_bytes(_COORD, "big") + s.to_bytes(_COORD, "big")


def key_identifier(public_point: bytes) -> bytes:
    return hashlib.sha1(public_point).digest()


class StandardCrypto:
    """ECDSA P-256 / SHA-256 provider."""

    curve = ec.SECP256R1()

    def load_public_key(self, point: bytes) -> ec.EllipticCurvePublicKey:
        if len(point) != EC_PUBLIC_KEY_LENGTH:
            raise CertificateError(f"Public key must be {EC_PUBLIC_KEY_LENGTH} bytes, got {len(point)}")
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(self.curve, point)
        except ValueError as e:
            raise CertificateError(f"Invalid EC public key: {e}") from e

    def public_key_info_der(self, point: bytes) -> bytes:
        """SubjectPublicKeyInfo DER for an uncompressed P-256 point."""
        return self.load_public_key(point).public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )

    def verify_ecdsa(self, public_point: bytes, data: bytes, signature: bytes) -> None:
        """Raise CertificateError unless `signature` (raw r||s) signs `data`."""
        key = self.load_public_key(public_point)
        try:
            key.verify(raw_to_der_signature(signature), data, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            raise CertificateError("Signature is invalid")

    def is_valid_signature(self, public_point: bytes, data: bytes, signature: bytes) -> bool:
        try:
            self.verify_ecdsa(public_point, data, signature)
            return True
        except CertificateError:
            return False

"""
chip_converter.certificates
---------------------------
Operational certificates stored in the legacy config file (f/<i>/r, /i, /n).

Certificates are kept in the compact TLV certificate form. Signatures are
made over the equivalent X.509 TBSCertificate, so verification rebuilds
that DER structure (asn1crypto) and checks the ECDSA P-256 signature
with the issuer's key (cryptography).

- MatterCertificate: TLV decode/encode, X.509 TBS reconstruction
- DistinguishedName: ordered DN attributes, standard and fabric-specific
- Rcac / Icac / Noc: role rules plus signature verification
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple, Union

from asn1crypto import algos, core, keys, x509

from . import tlv
from .constants import EC_PUBLIC_KEY_LENGTH, EC_SIGNATURE_LENGTH, KEY_IDENTIFIER_LENGTH, MATTER_EPOCH_OFFSET
from .crypto import StandardCrypto, raw_to_der_signature
from .errors import CertificateError, TlvDecodeError

# --------- TLV certificate tags ----------
TAG_SERIAL_NUMBER = 1
TAG_SIGNATURE_ALGORITHM = 2
TAG_ISSUER = 3
TAG_NOT_BEFORE = 4
TAG_NOT_AFTER = 5
TAG_SUBJECT = 6
TAG_PUBLIC_KEY_ALGORITHM = 7
TAG_CURVE_ID = 8
TAG_EC_PUBLIC_KEY = 9
TAG_EXTENSIONS = 10
TAG_SIGNATURE = 11

EXT_BASIC_CONSTRAINTS = 1
EXT_KEY_USAGE = 2
EXT_EXTENDED_KEY_USAGE = 3
EXT_SUBJECT_KEY_ID = 4
EXT_AUTHORITY_KEY_ID = 5
EXT_FUTURE = 6

SIGNATURE_ECDSA_SHA256 = 1
PUBLIC_KEY_EC = 1
CURVE_PRIME256V1 = 1

# --------- distinguished name attributes ----------
DN_COMMON_NAME = 1
DN_DOMAIN_COMPONENT = 16
DN_NODE_ID = 17
DN_FIRMWARE_SIGNING_ID = 18
DN_ICAC_ID = 19
DN_RCAC_ID = 20
DN_FABRIC_ID = 21
DN_NOC_CAT = 22
DN_PRINTABLE = 0x80

_STANDARD_DN_OIDS = {
    1: "2.5.4.3",     # common name
    2: "2.5.4.4",     # surname
    3: "2.5.4.5",     # serial number
    4: "2.5.4.6",     # country
    5: "2.5.4.7",     # locality
    6: "2.5.4.8",     # state or province
    7: "2.5.4.10",    # organization
    8: "2.5.4.11",    # organizational unit
    9: "2.5.4.12",    # title
    10: "2.5.4.41",   # name
    11: "2.5.4.42",   # given name
    12: "2.5.4.43",   # initials
    13: "2.5.4.44",   # generation qualifier
    14: "2.5.4.46",   # dn qualifier
    15: "2.5.4.65",   # pseudonym
    16: "0.9.2342.19200300.100.1.25",  # domain component
}

# tag -> (OID, hex digits in the X.509 string form)
_MATTER_DN_OIDS = {
    DN_NODE_ID: ("1.3.6.1.4.1.37244.1.1", 16),
    DN_FIRMWARE_SIGNING_ID: ("1.3.6.1.4.1.37244.1.2", 16),
    DN_ICAC_ID: ("1.3.6.1.4.1.37244.1.3", 16),
    DN_RCAC_ID: ("1.3.6.1.4.1.37244.1.4", 16),
    DN_FABRIC_ID: ("1.3.6.1.4.1.37244.1.5", 16),
    DN_NOC_CAT: ("1.3.6.1.4.1.37244.1.6", 8),
}

# --------- extension mappings ----------
KEY_USAGE_DIGITAL_SIGNATURE = 0x0001
KEY_USAGE_KEY_CERT_SIGN = 0x0020
KEY_USAGE_CRL_SIGN = 0x0040

_KEY_USAGE_NAMES = (
    "digital_signature", "non_repudiation", "key_encipherment", "data_encipherment",
    "key_agreement", "key_cert_sign", "crl_sign", "encipher_only", "decipher_only",
)

EKU_SERVER_AUTH = 1
EKU_CLIENT_AUTH = 2

_EKU_OIDS = {
    1: "1.3.6.1.5.5.7.3.1",  # serverAuth
    2: "1.3.6.1.5.5.7.3.2",  # clientAuth
    3: "1.3.6.1.5.5.7.3.3",  # codeSigning
    4: "1.3.6.1.5.5.7.3.4",  # emailProtection
    5: "1.3.6.1.5.5.7.3.8",  # timeStamping
    6: "1.3.6.1.5.5.7.3.9",  # OCSPSigning
}

OID_BASIC_CONSTRAINTS = "2.5.29.19"
OID_KEY_USAGE = "2.5.29.15"
OID_EXTENDED_KEY_USAGE = "2.5.29.37"
OID_SUBJECT_KEY_ID = "2.5.29.14"
OID_AUTHORITY_KEY_ID = "2.5.29.35"
OID_ECDSA_WITH_SHA256 = "1.2.840.10045.4.3.2"

# Operational node ids live in 0x0000_0000_0000_0001 .. 0xFFFF_FFEF_FFFF_FFFF
OPERATIONAL_NODE_ID_MAX = 0xFFFFFFEFFFFFFFFF
MAX_CATS = 3

_MATTER_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)
_NO_EXPIRY = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


# --------- X.509 structures ----------
# Names are encoded as a bare RDNSequence so each attribute keeps exactly
# the string type the TLV form implies.
class _AttributeTypeAndValue(core.Sequence):
    _fields = [("type", core.ObjectIdentifier), ("value", core.Any)]


class _RelativeDistinguishedName(core.SetOf):
    _child_spec = _AttributeTypeAndValue


class _RDNSequence(core.SequenceOf):
    _child_spec = _RelativeDistinguishedName


class _Extension(core.Sequence):
    _fields = [
        ("extn_id", core.ObjectIdentifier),
        ("critical", core.Boolean, {"default": False}),
        ("extn_value", core.OctetString),
    ]


class _Extensions(core.SequenceOf):
    _child_spec = _Extension


class _TbsCertificate(core.Sequence):
    _fields = [
        ("version", x509.Version, {"explicit": 0, "default": "v1"}),
        ("serial_number", core.Integer),
        ("signature", algos.SignedDigestAlgorithm),
        ("issuer", _RDNSequence),
        ("validity", x509.Validity),
        ("subject", _RDNSequence),
        ("subject_public_key_info", keys.PublicKeyInfo),
        ("extensions", _Extensions, {"explicit": 3, "optional": True}),
    ]


class _Certificate(core.Sequence):
    _fields = [
        ("tbs_certificate", _TbsCertificate),
        ("signature_algorithm", algos.SignedDigestAlgorithm),
        ("signature_value", core.OctetBitString),
    ]


def matter_time_to_datetime(seconds: int, not_after: bool = False) -> datetime:
    if not_after and seconds == 0:
        return _NO_EXPIRY
    return _MATTER_EPOCH + timedelta(seconds=seconds)


def unix_to_matter_time(unix_seconds: int) -> int:
    return unix_seconds - MATTER_EPOCH_OFFSET


def _x509_time(value: datetime) -> x509.Time:
    if value.year < 2050:
        return x509.Time(name="utc_time", value=value)
    return x509.Time(name="general_time", value=value)


def _is_uint(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


# --------- distinguished names ----------
DnValue = Union[int, str]


@dataclass
class DistinguishedName:
    attributes: List[Tuple[int, DnValue]] = field(default_factory=list)

    @classmethod
    def from_tlv(cls, items) -> "DistinguishedName":
        if not isinstance(items, list) or not all(isinstance(item, tuple) for item in items):
            raise CertificateError("Distinguished name must be a TLV list")
        attributes = []
        for tag, value in items:
            base = tag & ~DN_PRINTABLE if isinstance(tag, int) else None
            if tag in _MATTER_DN_OIDS:
                limit = 0xFFFFFFFF if tag == DN_NOC_CAT else 0xFFFFFFFFFFFFFFFF
                if not _is_uint(value) or value > limit:
                    raise CertificateError(f"DN attribute {tag} must be an unsigned integer")
            elif base in _STANDARD_DN_OIDS:
                if not isinstance(value, str):
                    raise CertificateError(f"DN attribute {tag} must be a string")
            else:
                raise CertificateError(f"Unknown DN attribute tag: {tag!r}")
            attributes.append((tag, value))
        return cls(attributes)

    def write(self, w: tlv.TlvWriter, tag: int) -> None:
        w.start_list(tag)
        for attr_tag, value in self.attributes:
            if attr_tag in _MATTER_DN_OIDS:
                w.put_uint(attr_tag, value)
            else:
                w.put_str(attr_tag, value)
        w.end_container()

    def get(self, tag: int) -> Optional[DnValue]:
        return next((value for attr_tag, value in self.attributes if attr_tag == tag), None)

    @property
    def node_id(self) -> Optional[int]:
        return self.get(DN_NODE_ID)

    @property
    def fabric_id(self) -> Optional[int]:
        return self.get(DN_FABRIC_ID)

    @property
    def icac_id(self) -> Optional[int]:
        return self.get(DN_ICAC_ID)

    @property
    def rcac_id(self) -> Optional[int]:
        return self.get(DN_RCAC_ID)

    @property
    def firmware_signing_id(self) -> Optional[int]:
        return self.get(DN_FIRMWARE_SIGNING_ID)

    @property
    def case_authenticated_tags(self) -> List[int]:
        return [value for tag, value in self.attributes if tag == DN_NOC_CAT]

    @property
    def common_name(self) -> Optional[str]:
        return self.get(DN_COMMON_NAME) or self.get(DN_COMMON_NAME | DN_PRINTABLE)

    def to_asn1(self) -> _RDNSequence:
        rdns = []
        for tag, value in self.attributes:
            if tag in _MATTER_DN_OIDS:
                oid, digits = _MATTER_DN_OIDS[tag]
                asn1_value = core.UTF8String(format(value, f"0{digits}X"))
            else:
                base = tag & ~DN_PRINTABLE
                oid = _STANDARD_DN_OIDS[base]
                if base == DN_DOMAIN_COMPONENT:
                    asn1_value = core.IA5String(value)
                elif tag & DN_PRINTABLE:
                    asn1_value = core.PrintableString(value)
                else:
                    asn1_value = core.UTF8String(value)
            rdns.append(_RelativeDistinguishedName([_AttributeTypeAndValue({"type": oid, "value": asn1_value})]))
        return _RDNSequence(rdns)


# --------- extensions ----------
@dataclass
class BasicConstraints:
    is_ca: bool = False
    path_len: Optional[int] = None


@dataclass
class CertificateExtensions:
    basic_constraints: Optional[BasicConstraints] = None
    key_usage: Optional[int] = None
    extended_key_usage: Optional[List[int]] = None
    subject_key_id: Optional[bytes] = None
    authority_key_id: Optional[bytes] = None
    future_extensions: List[bytes] = field(default_factory=list)
    # tag order as stored; the X.509 form keeps the same order
    order: List[int] = field(default_factory=list)

    @classmethod
    def from_tlv(cls, items) -> "CertificateExtensions":
        if not isinstance(items, list) or not all(isinstance(item, tuple) for item in items):
            raise CertificateError("Extensions must be a TLV list")
        ext = cls()
        for tag, value in items:
            if tag == EXT_BASIC_CONSTRAINTS:
                if not isinstance(value, dict) or not isinstance(value.get(1), bool):
                    raise CertificateError("Basic constraints must carry an is-CA flag")
                path_len = value.get(2)
                if path_len is not None and not _is_uint(path_len):
                    raise CertificateError("Path length constraint must be an unsigned integer")
                ext.basic_constraints = BasicConstraints(value[1], path_len)
            elif tag == EXT_KEY_USAGE:
                if not _is_uint(value) or value > 0x1FF:
                    raise CertificateError("Key usage must be a 9-bit unsigned integer")
                ext.key_usage = value
            elif tag == EXT_EXTENDED_KEY_USAGE:
                if not isinstance(value, list) or not all(_is_uint(v) and v in _EKU_OIDS for v in value):
                    raise CertificateError("Extended key usage must be an array of known purposes")
                ext.extended_key_usage = list(value)
            elif tag in (EXT_SUBJECT_KEY_ID, EXT_AUTHORITY_KEY_ID):
                if not isinstance(value, bytes) or len(value) != KEY_IDENTIFIER_LENGTH:
                    raise CertificateError(f"Key identifier must be {KEY_IDENTIFIER_LENGTH} bytes")
                if tag == EXT_SUBJECT_KEY_ID:
                    ext.subject_key_id = value
                else:
                    ext.authority_key_id = value
            elif tag == EXT_FUTURE:
                if not isinstance(value, bytes):
                    raise CertificateError("Future extension must be a byte string")
                ext.future_extensions.append(value)
            else:
                raise CertificateError(f"Unknown certificate extension tag: {tag!r}")
            if tag != EXT_FUTURE and tag in ext.order:
                raise CertificateError(f"Duplicate certificate extension tag: {tag}")
            ext.order.append(tag)
        return ext

    def _tags(self) -> List[int]:
        if self.order:
            return self.order
        tags = []
        for tag, present in (
            (EXT_BASIC_CONSTRAINTS, self.basic_constraints is not None),
            (EXT_KEY_USAGE, self.key_usage is not None),
            (EXT_EXTENDED_KEY_USAGE, self.extended_key_usage is not None),
            (EXT_SUBJECT_KEY_ID, self.subject_key_id is not None),
            (EXT_AUTHORITY_KEY_ID, self.authority_key_id is not None),
        ):
            if present:
                tags.append(tag)
        return tags + [EXT_FUTURE] * len(self.future_extensions)

    def write(self, w: tlv.TlvWriter, tag: int) -> None:
        w.start_list(tag)
        future = iter(self.future_extensions)
        for ext_tag in self._tags():
            if ext_tag == EXT_BASIC_CONSTRAINTS:
                w.start_struct(ext_tag).put_bool(1, self.basic_constraints.is_ca)
                if self.basic_constraints.path_len is not None:
                    w.put_uint(2, self.basic_constraints.path_len)
                w.end_container()
            elif ext_tag == EXT_KEY_USAGE:
                w.put_uint(ext_tag, self.key_usage)
            elif ext_tag == EXT_EXTENDED_KEY_USAGE:
                w.start_array(ext_tag)
                for purpose in self.extended_key_usage:
                    w.put_uint(None, purpose)
                w.end_container()
            elif ext_tag == EXT_SUBJECT_KEY_ID:
                w.put_bytes(ext_tag, self.subject_key_id)
            elif ext_tag == EXT_AUTHORITY_KEY_ID:
                w.put_bytes(ext_tag, self.authority_key_id)
            else:
                w.put_bytes(ext_tag, next(future))
        w.end_container()

    def to_asn1(self) -> _Extensions:
        exts = []
        future = iter(self.future_extensions)
        for ext_tag in self._tags():
            if ext_tag == EXT_BASIC_CONSTRAINTS:
                constraints = {"ca": self.basic_constraints.is_ca}
                if self.basic_constraints.path_len is not None:
                    constraints["path_len_constraint"] = self.basic_constraints.path_len
                exts.append(_make_extension(OID_BASIC_CONSTRAINTS, True, x509.BasicConstraints(constraints)))
            elif ext_tag == EXT_KEY_USAGE:
                usage = {name for bit, name in enumerate(_KEY_USAGE_NAMES) if self.key_usage & (1 << bit)}
                exts.append(_make_extension(OID_KEY_USAGE, True, x509.KeyUsage(usage)))
            elif ext_tag == EXT_EXTENDED_KEY_USAGE:
                purposes = x509.ExtKeyUsageSyntax([_EKU_OIDS[p] for p in self.extended_key_usage])
                exts.append(_make_extension(OID_EXTENDED_KEY_USAGE, True, purposes))
            elif ext_tag == EXT_SUBJECT_KEY_ID:
                exts.append(_make_extension(OID_SUBJECT_KEY_ID, False, core.OctetString(self.subject_key_id)))
            elif ext_tag == EXT_AUTHORITY_KEY_ID:
                akid = x509.AuthorityKeyIdentifier({"key_identifier": self.authority_key_id})
                exts.append(_make_extension(OID_AUTHORITY_KEY_ID, False, akid))
            else:
                raw = next(future)
                try:
                    extension = _Extension.load(raw)
                    extension.native
                except ValueError as e:
                    raise CertificateError(f"Invalid future extension: {e}") from e
                exts.append(extension)
        return _Extensions(exts)


def _make_extension(oid: str, critical: bool, value: core.Asn1Value) -> _Extension:
    return _Extension({"extn_id": oid, "critical": critical, "extn_value": value.dump()})


# --------- certificate ----------
@dataclass
class MatterCertificate:
    serial_number: bytes
    issuer: DistinguishedName
    not_before: int
    not_after: int
    subject: DistinguishedName
    ec_public_key: bytes
    extensions: CertificateExtensions
    signature: bytes = b""
    signature_algorithm: int = SIGNATURE_ECDSA_SHA256
    public_key_algorithm: int = PUBLIC_KEY_EC
    curve_id: int = CURVE_PRIME256V1

    @classmethod
    def decode(cls, data: bytes) -> "MatterCertificate":
        try:
            fields = tlv.decode(data)
        except TlvDecodeError as e:
            raise CertificateError(f"Invalid certificate TLV: {e}") from e
        if not isinstance(fields, dict):
            raise CertificateError("Certificate must be a TLV structure")

        missing = [tag for tag in range(TAG_SERIAL_NUMBER, TAG_SIGNATURE + 1) if tag not in fields]
        if missing:
            raise CertificateError(f"Certificate is missing fields {missing}")
        for tag in (TAG_SERIAL_NUMBER, TAG_EC_PUBLIC_KEY, TAG_SIGNATURE):
            if not isinstance(fields[tag], bytes):
                raise CertificateError(f"Certificate field {tag} must be a byte string")
        for tag in (TAG_SIGNATURE_ALGORITHM, TAG_NOT_BEFORE, TAG_NOT_AFTER, TAG_PUBLIC_KEY_ALGORITHM, TAG_CURVE_ID):
            if not _is_uint(fields[tag]):
                raise CertificateError(f"Certificate field {tag} must be an unsigned integer")

        try:
            issuer = DistinguishedName.from_tlv(fields[TAG_ISSUER])
            subject = DistinguishedName.from_tlv(fields[TAG_SUBJECT])
            extensions = CertificateExtensions.from_tlv(fields[TAG_EXTENSIONS])
        except (TypeError, ValueError) as e:
            raise CertificateError(f"Malformed certificate field: {e}") from e

        return cls(
            serial_number=fields[TAG_SERIAL_NUMBER],
            signature_algorithm=fields[TAG_SIGNATURE_ALGORITHM],
            issuer=issuer,
            not_before=fields[TAG_NOT_BEFORE],
            not_after=fields[TAG_NOT_AFTER],
            subject=subject,
            public_key_algorithm=fields[TAG_PUBLIC_KEY_ALGORITHM],
            curve_id=fields[TAG_CURVE_ID],
            ec_public_key=fields[TAG_EC_PUBLIC_KEY],
            extensions=extensions,
            signature=fields[TAG_SIGNATURE],
        )

    def encode(self) -> bytes:
        w = tlv.TlvWriter().start_struct()
        w.put_bytes(TAG_SERIAL_NUMBER, self.serial_number)
        w.put_uint(TAG_SIGNATURE_ALGORITHM, self.signature_algorithm)
        self.issuer.write(w, TAG_ISSUER)
        w.put_uint(TAG_NOT_BEFORE, self.not_before)
        w.put_uint(TAG_NOT_AFTER, self.not_after)
        self.subject.write(w, TAG_SUBJECT)
        w.put_uint(TAG_PUBLIC_KEY_ALGORITHM, self.public_key_algorithm)
        w.put_uint(TAG_CURVE_ID, self.curve_id)
        w.put_bytes(TAG_EC_PUBLIC_KEY, self.ec_public_key)
        self.extensions.write(w, TAG_EXTENSIONS)
        w.put_bytes(TAG_SIGNATURE, self.signature)
        return w.end_container().to_bytes()

    def _tbs(self, crypto: StandardCrypto) -> _TbsCertificate:
        if self.signature_algorithm != SIGNATURE_ECDSA_SHA256:
            raise CertificateError(f"Unsupported signature algorithm: {self.signature_algorithm}")
        if self.public_key_algorithm != PUBLIC_KEY_EC or self.curve_id != CURVE_PRIME256V1:
            raise CertificateError("Only EC keys on prime256v1 are supported")
        tbs = {
            "version": "v3",
            "serial_number": int.from_bytes(self.serial_number, "big", signed=True),
            "signature": algos.SignedDigestAlgorithm({"algorithm": OID_ECDSA_WITH_SHA256}),
            "issuer": self.issuer.to_asn1(),
            "validity": x509.Validity({
                "not_before": _x509_time(matter_time_to_datetime(self.not_before)),
                "not_after": _x509_time(matter_time_to_datetime(self.not_after, not_after=True)),
            }),
            "subject": self.subject.to_asn1(),
            "subject_public_key_info": keys.PublicKeyInfo.load(crypto.public_key_info_der(self.ec_public_key)),
        }
        if self.extensions._tags():
            tbs["extensions"] = self.extensions.to_asn1()
        return _TbsCertificate(tbs)

    def tbs_der(self, crypto: Optional[StandardCrypto] = None) -> bytes:
        """DER of the X.509 TBSCertificate this certificate's signature covers."""
        try:
            return self._tbs(crypto or StandardCrypto()).dump()
        except (ValueError, TypeError, OverflowError) as e:
            raise CertificateError(f"Cannot build the X.509 form: {e}") from e

    def to_x509_der(self, crypto: Optional[StandardCrypto] = None) -> bytes:
        cert = _Certificate({
            "tbs_certificate": self._tbs(crypto or StandardCrypto()),
            "signature_algorithm": algos.SignedDigestAlgorithm({"algorithm": OID_ECDSA_WITH_SHA256}),
            "signature_value": raw_to_der_signature(self.signature),
        })
        return cert.dump()

    def verify_signature(self, crypto: StandardCrypto, issuer_public_key: bytes) -> None:
        if len(self.signature) != EC_SIGNATURE_LENGTH:
            raise CertificateError(f"Signature must be {EC_SIGNATURE_LENGTH} bytes")
        crypto.verify_ecdsa(issuer_public_key, self.tbs_der(crypto), self.signature)


# --------- operational roles ----------
class OperationalCertificate:
    role = "certificate"

    def __init__(self, cert: MatterCertificate):
        self.cert = cert

    @classmethod
    def from_tlv(cls, data: bytes):
        return cls(MatterCertificate.decode(data))

    @property
    def subject(self) -> DistinguishedName:
        return self.cert.subject

    @property
    def issuer(self) -> DistinguishedName:
        return self.cert.issuer

    @property
    def ec_public_key(self) -> bytes:
        return self.cert.ec_public_key

    @property
    def subject_key_id(self) -> Optional[bytes]:
        return self.cert.extensions.subject_key_id

    def _check_common(self) -> None:
        ext = self.cert.extensions
        if len(self.cert.ec_public_key) != EC_PUBLIC_KEY_LENGTH:
            raise CertificateError(f"{self.role} public key must be {EC_PUBLIC_KEY_LENGTH} bytes")
        if ext.basic_constraints is None:
            raise CertificateError(f"{self.role} has no basic constraints extension")
        if ext.key_usage is None:
            raise CertificateError(f"{self.role} has no key usage extension")
        if ext.subject_key_id is None or ext.authority_key_id is None:
            raise CertificateError(f"{self.role} must carry subject and authority key identifiers")
        if len(self.subject.case_authenticated_tags) > MAX_CATS:
            raise CertificateError(f"{self.role} carries more than {MAX_CATS} CASE authenticated tags")

    def _check_ca(self) -> None:
        ext = self.cert.extensions
        if not ext.basic_constraints.is_ca:
            raise CertificateError(f"{self.role} must be a CA certificate")
        required = KEY_USAGE_KEY_CERT_SIGN | KEY_USAGE_CRL_SIGN
        if ext.key_usage & required != required:
            raise CertificateError(f"{self.role} key usage must allow keyCertSign and cRLSign")
        if ext.extended_key_usage is not None:
            raise CertificateError(f"{self.role} must not carry an extended key usage extension")
        if self.subject.node_id is not None:
            raise CertificateError(f"{self.role} subject must not contain a node id")

    def _check_issued_by(self, issuer: "OperationalCertificate") -> None:
        if self.cert.extensions.authority_key_id != issuer.subject_key_id:
            raise CertificateError(f"{self.role} authority key id does not match the {issuer.role} subject key id")
        fabric_id = issuer.subject.fabric_id
        if fabric_id is not None and self.subject.fabric_id not in (None, fabric_id):
            raise CertificateError(f"{self.role} fabric id does not match the {issuer.role} fabric id")


class Rcac(OperationalCertificate):
    """Root CA certificate: self-signed anchor of the fabric."""
    role = "RCAC"

    def verify(self, crypto: StandardCrypto) -> None:
        self._check_common()
        self._check_ca()
        rcac_id = self.subject.rcac_id
        if rcac_id is None:
            raise CertificateError("RCAC subject must contain an RCAC id")
        if self.subject.icac_id is not None:
            raise CertificateError("RCAC subject must not contain an ICAC id")
        if self.issuer.rcac_id != rcac_id:
            raise CertificateError("RCAC issuer RCAC id must equal its subject RCAC id")
        if self.cert.extensions.authority_key_id != self.subject_key_id:
            raise CertificateError("RCAC authority key id must equal its subject key id")
        self.cert.verify_signature(crypto, self.ec_public_key)


class Icac(OperationalCertificate):
    """Intermediate CA certificate, issued by the RCAC."""
    role = "ICAC"

    def verify(self, crypto: StandardCrypto, rcac: Rcac) -> None:
        self._check_common()
        self._check_ca()
        if self.subject.icac_id is None:
            raise CertificateError("ICAC subject must contain an ICAC id")
        if self.subject.rcac_id is not None:
            raise CertificateError("ICAC subject must not contain an RCAC id")
        if self.issuer.rcac_id is None or self.issuer.rcac_id != rcac.subject.rcac_id:
            raise CertificateError("ICAC issuer does not match the RCAC subject")
        self._check_issued_by(rcac)
        self.cert.verify_signature(crypto, rcac.ec_public_key)


class Noc(OperationalCertificate):
    """Node operational certificate, issued by the ICAC or directly by the RCAC."""
    role = "NOC"

    def verify(self, crypto: StandardCrypto, rcac: Rcac, icac: Optional[Icac] = None) -> None:
        self._check_common()
        ext = self.cert.extensions
        node_id = self.subject.node_id
        if node_id is None or not 1 <= node_id <= OPERATIONAL_NODE_ID_MAX:
            raise CertificateError("NOC subject must contain an operational node id")
        if self.subject.fabric_id is None:
            raise CertificateError("NOC subject must contain a fabric id")
        if self.subject.icac_id is not None or self.subject.rcac_id is not None:
            raise CertificateError("NOC subject must not contain CA ids")
        if ext.basic_constraints.is_ca:
            raise CertificateError("NOC must not be a CA certificate")
        if not ext.key_usage & KEY_USAGE_DIGITAL_SIGNATURE:
            raise CertificateError("NOC key usage must allow digitalSignature")
        purposes = ext.extended_key_usage or []
        if EKU_CLIENT_AUTH not in purposes or EKU_SERVER_AUTH not in purposes:
            raise CertificateError("NOC extended key usage must include clientAuth and serverAuth")

        if icac is not None:
            if self.issuer.icac_id is None or self.issuer.icac_id != icac.subject.icac_id:
                raise CertificateError("NOC issuer does not match the ICAC subject")
            issuer = icac
        else:
            if self.issuer.rcac_id is None or self.issuer.rcac_id != rcac.subject.rcac_id:
                raise CertificateError("NOC issuer does not match the RCAC subject")
            issuer = rcac
        self._check_issued_by(issuer)
        self.cert.verify_signature(crypto, issuer.ec_public_key)

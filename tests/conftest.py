import json
from types import SimpleNamespace

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from chip_converter.certificates import (
    DN_FABRIC_ID,
    DN_ICAC_ID,
    DN_NODE_ID,
    DN_RCAC_ID,
    EKU_CLIENT_AUTH,
    EKU_SERVER_AUTH,
    KEY_USAGE_CRL_SIGN,
    KEY_USAGE_DIGITAL_SIGNATURE,
    KEY_USAGE_KEY_CERT_SIGN,
    BasicConstraints,
    CertificateExtensions,
    DistinguishedName,
    MatterCertificate,
    unix_to_matter_time,
)
from chip_converter.crypto import der_to_raw_signature, key_identifier
from chip_converter.utils import b64e

# Records captured from a real legacy controller file
METADATA_B64 = "FSUASxMsAQAY"  # vendorId=4939, label=""
FABRIC_INDEX_LIST_B64 = "FSQAAjYBBAEYGA=="  # next=2, indices=[1]
LAST_KNOWN_GOOD_TIME_B64 = "FSYAgKi8LBg="
IPK_KEY_SET_B64 = (
    "FSQBACQCATYDFSQEACUFLSgwBhDzc7Jr6Sc58QxRECtgZOCeGBUkBAAkBQAwBhAAAAAAAAAAAAAAAAAAAAAAGBUk"
    "BAAkBQAwBhAAAAAAAAAAAAAAAAAAAAAAGBglB///GA=="
)
SESSION_DETAILS_B64 = (
    "FTADEKZ79K2dsazhXj3uQ233GNYwBCAJG2Lyb2YqHGO0unkRCD1CAvZwRbLOukMYvRMA2a/kZzAFDAAAAAAAAAAAAAAAABg="
)
SESSION_RESUMPTION_ID = "pnv0rZ2xrOFePe5DbfcY1g=="  # resumption id inside SESSION_DETAILS_B64
RESUMPTION_ENTRY_B64 = "FSQBASQCcBg="  # fabricIndex=1, peerNodeId=0x70
RESUMPTION_INDEX_B64 = (
    "FhUkAQEkAnAYFSQBASQCoxgVJAEBJAI3GBUkAQEkAocYFSQBASQCURgVJAEBJAJhGBUkAQEkAlcYFSQBASQCVRgV"
    "JAEBJAJmGBUkAQEkAhcYFSQBASQCeRgVJAEBJAJDGBUkAQEkAnoYFSQBASQCOhgVJAEBJAJUGBUkAQEkAkQYFSQB"
    "ASQCOBgY"
)
INVALID_TLV_B64 = "aW52YWxpZA=="  # "invalid"

RCAC_ID = 1
ICAC_ID = 2
FABRIC_ID = 0x0000000000000002
NODE_ID = 0x0000000000000070
NOT_BEFORE = unix_to_matter_time(1700000000)
NOT_AFTER = unix_to_matter_time(2000000000)


def public_point(key) -> bytes:
    return key.public_key().public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)


def new_key():
    return ec.generate_private_key(ec.SECP256R1())


def sign(cert: MatterCertificate, signer_key) -> MatterCertificate:
    der = signer_key.sign(cert.tbs_der(), ec.ECDSA(hashes.SHA256()))
    cert.signature = der_to_raw_signature(der)
    return cert


def make_cert(subject, issuer, subject_key, issuer_key, is_ca, key_usage, eku=None, serial=b"\x01\x02\x03\x04",
              not_after=NOT_AFTER, signer_key=None):
    cert = MatterCertificate(
        serial_number=serial,
        issuer=DistinguishedName(list(issuer)),
        not_before=NOT_BEFORE,
        not_after=not_after,
        subject=DistinguishedName(list(subject)),
        ec_public_key=public_point(subject_key),
        extensions=CertificateExtensions(
            basic_constraints=BasicConstraints(is_ca=is_ca),
            key_usage=key_usage,
            extended_key_usage=eku,
            subject_key_id=key_identifier(public_point(subject_key)),
            authority_key_id=key_identifier(public_point(issuer_key)),
        ),
    )
    return sign(cert, signer_key or issuer_key)


CA_USAGE = KEY_USAGE_KEY_CERT_SIGN | KEY_USAGE_CRL_SIGN
NOC_EKU = [EKU_CLIENT_AUTH, EKU_SERVER_AUTH]


def make_chain(with_icac=True):
    root_key, icac_key, noc_key = new_key(), new_key(), new_key()
    rcac = make_cert([(DN_RCAC_ID, RCAC_ID)], [(DN_RCAC_ID, RCAC_ID)], root_key, root_key,
                     is_ca=True, key_usage=CA_USAGE, not_after=0)
    icac = None
    if with_icac:
        icac = make_cert([(DN_ICAC_ID, ICAC_ID)], [(DN_RCAC_ID, RCAC_ID)], icac_key, root_key,
                         is_ca=True, key_usage=CA_USAGE)
        noc_issuer, noc_issuer_key = [(DN_ICAC_ID, ICAC_ID)], icac_key
    else:
        noc_issuer, noc_issuer_key = [(DN_RCAC_ID, RCAC_ID)], root_key
    noc = make_cert([(DN_NODE_ID, NODE_ID), (DN_FABRIC_ID, FABRIC_ID)], noc_issuer, noc_key, noc_issuer_key,
                    is_ca=False, key_usage=KEY_USAGE_DIGITAL_SIGNATURE, eku=NOC_EKU)
    return SimpleNamespace(
        root_key=root_key, icac_key=icac_key, noc_key=noc_key,
        rcac=rcac, icac=icac, noc=noc,
        rcac_b64=b64e(rcac.encode()),
        icac_b64=b64e(icac.encode()) if icac else None,
        noc_b64=b64e(noc.encode()),
    )


@pytest.fixture(scope="session")
def chain():
    return make_chain(with_icac=True)


@pytest.fixture(scope="session")
def root_issued_chain():
    return make_chain(with_icac=False)


@pytest.fixture
def write_config(tmp_path):
    """Write a chip config document and return its path."""
    counter = {"n": 0}

    def _write(sdk_config, repl_config=None, name=None):
        counter["n"] += 1
        path = tmp_path / (name or f"chip-{counter['n']}.json")
        document = {"sdk-config": sdk_config}
        if repl_config is not None:
            document["repl-config"] = repl_config
        path.write_text(json.dumps(document), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def full_sdk_config(chain):
    """A complete single-fabric file with every key family present."""
    return {
        "g/fidx": FABRIC_INDEX_LIST_B64,
        "g/lkgt": LAST_KNOWN_GOOD_TIME_B64,
        "g/sri": RESUMPTION_INDEX_B64,
        f"g/s/{SESSION_RESUMPTION_ID}": RESUMPTION_ENTRY_B64,
        "f/1/n": chain.noc_b64,
        "f/1/i": chain.icac_b64,
        "f/1/r": chain.rcac_b64,
        "f/1/m": METADATA_B64,
        "f/1/k/0": IPK_KEY_SET_B64,
        "f/1/s/0000000000000070": SESSION_DETAILS_B64,
        "g/fs/c": "ZmFpbHNhZmVj",
        "g/gdc": "Y291bnRlcg==",
        "g/icdfl": "aWNk",
        "ExampleOpCredsCAKey1": "a2V5MQ==",
        "ExampleCARootCert1": "Y2VydDE=",
    }


def with_struct_in_eku(cert: MatterCertificate) -> bytes:
    """Encode `cert` with an extended key usage array holding an empty structure."""
    cert = MatterCertificate.decode(cert.encode())
    cert.extensions.extended_key_usage = [1]
    if 3 not in cert.extensions.order:
        cert.extensions.order.insert(2, 3)
    data = cert.encode()
    # [1] -> [{}], same length
    assert data.count(bytes.fromhex("36 03 04 01 18")) == 1
    return data.replace(bytes.fromhex("36 03 04 01 18"), bytes.fromhex("36 03 15 18 18"))

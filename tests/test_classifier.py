import pytest

from chip_converter.classifier import (
    BUCKET_FABRIC,
    BUCKET_GENERIC,
    BUCKET_GLOBAL,
    BUCKET_IGNORED,
    BUCKET_RESUMPTION,
    KeyClassifier,
    classify_key,
)
from chip_converter.schemas import SessionResumptionEntry
from chip_converter.storage import DecodedEntry, FabricStore, GlobalData, SessionData
from chip_converter.utils import b64e
from conftest import (
    INVALID_TLV_B64,
    IPK_KEY_SET_B64,
    METADATA_B64,
    RESUMPTION_ENTRY_B64,
    SESSION_DETAILS_B64,
)


@pytest.mark.parametrize("key,bucket", [
    ("g/fs/c", BUCKET_IGNORED),
    ("g/fs/n", BUCKET_IGNORED),
    ("g/gdc", BUCKET_IGNORED),
    ("g/gcc", BUCKET_IGNORED),
    ("g/gfl", BUCKET_IGNORED),
    ("g/icdfl", BUCKET_IGNORED),
    ("f/1/n", BUCKET_FABRIC),
    ("f/A/k/0", BUCKET_FABRIC),
    ("g/fidx", BUCKET_GLOBAL),
    ("g/lkgt", BUCKET_GLOBAL),
    ("g/sri", BUCKET_GLOBAL),
    ("g/s/pnv0rZ2xrOFePe5DbfcY1g==", BUCKET_RESUMPTION),
    ("g/s/", BUCKET_GENERIC),
    ("g/fs/x", BUCKET_GENERIC),
    ("g/unknown", BUCKET_GENERIC),
    ("f/zz/n", BUCKET_GENERIC),
    ("f/1", BUCKET_GENERIC),
    ("ExampleOpCredsCAKey1", BUCKET_GENERIC),
])
def test_classify_key_buckets(key, bucket):
    assert classify_key(key).bucket == bucket


def test_fabric_route_parses_hex_index_and_keeps_segment():
    route = classify_key("f/A/s/0000000000000070")
    assert route.fabric_index == 10
    assert route.path_segment == "A"
    assert route.sub_key == "s/0000000000000070"


def test_resumption_route_carries_id():
    assert classify_key("g/s/abc=").sub_key == "abc="


@pytest.fixture
def classifier():
    return KeyClassifier(FabricStore(), GlobalData(), SessionData(), {}, {})


def test_fabric_entries_are_filed_and_decoded(classifier):
    classifier.add("f/1/m", METADATA_B64)
    classifier.add("f/1/k/0", IPK_KEY_SET_B64)
    classifier.add("f/1/s/0000000000000070", SESSION_DETAILS_B64)
    classifier.add("f/1/x", "AAE=")

    fabric = classifier.store.get(1)
    assert fabric.metadata.base64 == METADATA_B64
    assert fabric.metadata_decoded.vendor_id == 4939
    assert 0 in fabric.keys_decoded
    assert "0000000000000070" in fabric.sessions_decoded
    assert fabric.other["x"].raw == b"\x00\x01"


def test_undecodable_fabric_entries_are_kept(classifier):
    classifier.add("f/2/m", INVALID_TLV_B64)
    classifier.add("f/2/k/1", INVALID_TLV_B64)
    fabric = classifier.store.get(2)
    assert fabric.metadata.base64 == INVALID_TLV_B64
    assert fabric.metadata_decoded is None
    assert fabric.keys[1].raw == b"invalid"
    assert fabric.keys_decoded == {}


def test_non_canonical_key_slot_goes_to_other(classifier):
    classifier.add("f/1/k/00", IPK_KEY_SET_B64)
    fabric = classifier.store.get(1)
    assert fabric.keys == {}
    assert "k/00" in fabric.other


def test_resumptions_are_resolved_by_payload(classifier):
    classifier.add("g/s/AAA=", RESUMPTION_ENTRY_B64)
    classifier.add("g/s/BBB=", b64e(SessionResumptionEntry(3, 0x71).encode()))
    classifier.add("g/s/CCC=", INVALID_TLV_B64)
    assert classifier.store.indices() == []

    assert classifier.resolve() == 2
    assert classifier.store.get(1).resumptions_decoded["AAA="].peer_node_id == 0x70
    assert classifier.store.get(3).resumptions["BBB="].base64.startswith("FSQB")
    assert classifier.generic == {"g/s/CCC=": INVALID_TLV_B64}
    assert classifier.pending == []


def test_global_and_passthrough_entries(classifier):
    classifier.add("g/fidx", INVALID_TLV_B64)
    classifier.add("g/gdc", "Y291bnRlcg==")
    classifier.add("custom", "dmFsdWU=")
    assert classifier.globals.fabric_index_list.base64 == INVALID_TLV_B64
    assert classifier.globals.fabric_index_list_decoded is None
    assert classifier.ignored == {"g/gdc": "Y291bnRlcg=="}
    assert classifier.generic == {"custom": "dmFsdWU="}


def test_other_spelling_of_known_index_stays_generic(classifier):
    classifier.add("f/A/m", METADATA_B64)
    route = classifier.add("f/0a/m", INVALID_TLV_B64)
    assert route.bucket == BUCKET_GENERIC
    assert classifier.store.get(10).metadata.base64 == METADATA_B64
    assert classifier.generic == {"f/0a/m": INVALID_TLV_B64}


@pytest.mark.parametrize("text,raw", [
    ("AAAAA", b"\x00\x00\x00"),
    ("A", b""),
    ("AAE", b"\x00\x01"),
    ("AA*AA", b"\x00\x00\x00"),
])
def test_lenient_base64(text, raw):
    assert DecodedEntry.from_base64(text) == DecodedEntry(raw=raw, base64=text)

import pytest

from chip_converter.errors import TlvDecodeError
from chip_converter.schemas import (
    FabricIndexList,
    FabricMetadata,
    GroupKeyEntry,
    GroupKeySet,
    LastKnownGoodTime,
    SessionResumptionDetails,
    SessionResumptionEntry,
    decode_session_resumption_index,
    encode_session_resumption_index,
)
from chip_converter.utils import b64d, b64e
from conftest import (
    FABRIC_INDEX_LIST_B64,
    INVALID_TLV_B64,
    IPK_KEY_SET_B64,
    LAST_KNOWN_GOOD_TIME_B64,
    METADATA_B64,
    RESUMPTION_ENTRY_B64,
    RESUMPTION_INDEX_B64,
    SESSION_DETAILS_B64,
    SESSION_RESUMPTION_ID,
)


def test_fabric_metadata():
    meta = FabricMetadata.decode(b64d(METADATA_B64))
    assert meta == FabricMetadata(vendor_id=4939, label="")
    assert b64e(meta.encode()) == METADATA_B64


def test_fabric_metadata_label_limit():
    FabricMetadata.decode(FabricMetadata(0xFFF1, "x" * 32).encode())
    with pytest.raises(TlvDecodeError):
        FabricMetadata.decode(FabricMetadata(0xFFF1, "x" * 33).encode())


def test_group_key_set_with_ipk():
    key_set = GroupKeySet.decode(b64d(IPK_KEY_SET_B64))
    assert key_set.policy == 0
    assert key_set.key_count == 1
    assert key_set.group_key_set_id == 0xFFFF
    assert len(key_set.keys) == 3
    first = key_set.keys[0]
    assert first.start_time == 0
    assert first.key_hash == 0x282D
    assert first.key[:4] == bytes.fromhex("f373b26b")
    assert all(len(entry.key) == 16 for entry in key_set.keys)
    assert key_set.identity_protection_key == first.key
    assert b64e(key_set.encode()) == IPK_KEY_SET_B64


def test_group_key_set_ipk_is_the_16_byte_entry():
    key_set = GroupKeySet(policy=1, key_count=2, keys=[
        GroupKeyEntry(start_time=1, key_hash=2, key=b"\x11" * 32),
        GroupKeyEntry(start_time=3, key_hash=4, key=b"\x22" * 16),
    ], group_key_set_id=5)
    decoded = GroupKeySet.decode(key_set.encode())
    assert decoded == key_set
    assert decoded.identity_protection_key == b"\x22" * 16

    no_ipk = GroupKeySet(policy=0, key_count=1, keys=[GroupKeyEntry(0, 0, b"\x33" * 32)])
    assert GroupKeySet.decode(no_ipk.encode()).identity_protection_key is None


def test_fabric_index_list():
    fidx = FabricIndexList.decode(b64d(FABRIC_INDEX_LIST_B64))
    assert fidx == FabricIndexList(next_fabric_index=2, fabric_indices=[1])
    assert b64e(fidx.encode()) == FABRIC_INDEX_LIST_B64


def test_last_known_good_time():
    lkgt = LastKnownGoodTime.decode(b64d(LAST_KNOWN_GOOD_TIME_B64))
    assert lkgt.epoch_seconds == 750561408
    assert b64e(lkgt.encode()) == LAST_KNOWN_GOOD_TIME_B64


def test_session_resumption_details():
    details = SessionResumptionDetails.decode(b64d(SESSION_DETAILS_B64))
    assert b64e(details.resumption_id) == SESSION_RESUMPTION_ID
    assert len(details.shared_secret) == 32
    assert details.cat == b"\x00" * 12
    assert details.extra == {}


def test_session_resumption_details_rejects_wrong_lengths():
    bad = SessionResumptionDetails(b"\x01" * 15, b"\x02" * 32, b"\x00" * 12).encode()
    with pytest.raises(TlvDecodeError):
        SessionResumptionDetails.decode(bad)


def test_session_resumption_entry():
    entry = SessionResumptionEntry.decode(b64d(RESUMPTION_ENTRY_B64))
    assert entry == SessionResumptionEntry(fabric_index=1, peer_node_id=0x70)
    assert b64e(entry.encode()) == RESUMPTION_ENTRY_B64


def test_session_resumption_index():
    entries = decode_session_resumption_index(b64d(RESUMPTION_INDEX_B64))
    assert len(entries) > 1
    assert entries[0] == SessionResumptionEntry(1, 0x70)
    assert entries[1] == SessionResumptionEntry(1, 0xA3)
    assert all(entry.fabric_index == 1 for entry in entries)
    assert b64e(encode_session_resumption_index(entries)) == RESUMPTION_INDEX_B64


@pytest.mark.parametrize("decoder", [
    FabricMetadata.decode,
    GroupKeySet.decode,
    FabricIndexList.decode,
    LastKnownGoodTime.decode,
    SessionResumptionDetails.decode,
    SessionResumptionEntry.decode,
    decode_session_resumption_index,
])
def test_decoders_reject_invalid_payload(decoder):
    with pytest.raises(TlvDecodeError):
        decoder(b64d(INVALID_TLV_B64))


def test_missing_field_is_an_error():
    # struct {0: 4939} without the label
    with pytest.raises(TlvDecodeError, match="label"):
        FabricMetadata.decode(bytes.fromhex("15 25 00 4b 13 18"))


def test_wrong_shape_is_an_error():
    with pytest.raises(TlvDecodeError):
        SessionResumptionEntry.decode(b64d(RESUMPTION_INDEX_B64))
    with pytest.raises(TlvDecodeError):
        decode_session_resumption_index(b64d(RESUMPTION_ENTRY_B64))

"""
chip_converter.schemas
----------------------
Fixed record schemas embedded in the legacy config file.

Every `decode()` is strict: it returns a complete record or raises
TlvDecodeError, never a partially filled one. `encode()` produces the
canonical TLV form of the record.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import tlv
from .constants import (
    CAT_FIELD_LENGTH,
    FABRIC_LABEL_MAX,
    IPK_LENGTH,
    RESUMPTION_ID_LENGTH,
    SHARED_SECRET_LENGTH,
)
from .errors import TlvDecodeError

UINT8_MAX = 0xFF
UINT16_MAX = 0xFFFF
UINT32_MAX = 0xFFFFFFFF
UINT64_MAX = 0xFFFFFFFFFFFFFFFF


# --------- field helpers ----------
def _struct(value: Any, name: str) -> dict:
    if not isinstance(value, dict):
        raise TlvDecodeError(f"{name}: expected a structure")
    return value


def _uint(fields: dict, tag: int, name: str, maximum: int = UINT64_MAX) -> int:
    if tag not in fields:
        raise TlvDecodeError(f"Missing field {name} (tag {tag})")
    value = fields[tag]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TlvDecodeError(f"Field {name} must be an unsigned integer")
    if not 0 <= value <= maximum:
        raise TlvDecodeError(f"Field {name} out of range: {value}")
    return value


def _bytes(fields: dict, tag: int, name: str, length: Optional[int] = None) -> bytes:
    if tag not in fields:
        raise TlvDecodeError(f"Missing field {name} (tag {tag})")
    value = fields[tag]
    if not isinstance(value, bytes):
        raise TlvDecodeError(f"Field {name} must be a byte string")
    if length is not None and len(value) != length:
        raise TlvDecodeError(f"Field {name} must be {length} bytes, got {len(value)}")
    return value


def _str(fields: dict, tag: int, name: str, max_bytes: int) -> str:
    if tag not in fields:
        raise TlvDecodeError(f"Missing field {name} (tag {tag})")
    value = fields[tag]
    if not isinstance(value, str):
        raise TlvDecodeError(f"Field {name} must be a UTF-8 string")
    if len(value.encode("utf-8")) > max_bytes:
        raise TlvDecodeError(f"Field {name} longer than {max_bytes} bytes")
    return value


def _array(fields: dict, tag: int, name: str) -> list:
    if tag not in fields:
        raise TlvDecodeError(f"Missing field {name} (tag {tag})")
    value = fields[tag]
    if not isinstance(value, list) or any(isinstance(item, tuple) for item in value):
        raise TlvDecodeError(f"Field {name} must be an array")
    return value


# --------- fabric records ----------
@dataclass
class FabricMetadata:
    vendor_id: int
    label: str = ""

    @classmethod
    def decode(cls, data: bytes) -> "FabricMetadata":
        fields = _struct(tlv.decode(data), "FabricMetadata")
        return cls(
            vendor_id=_uint(fields, 0, "vendorId", UINT16_MAX),
            label=_str(fields, 1, "label", FABRIC_LABEL_MAX),
        )

    def encode(self) -> bytes:
        w = tlv.TlvWriter().start_struct()
        w.put_uint(0, self.vendor_id).put_str(1, self.label)
        return w.end_container().to_bytes()


@dataclass
class GroupKeyEntry:
    start_time: int
    key_hash: int
    key: bytes

    @classmethod
    def from_fields(cls, fields: dict) -> "GroupKeyEntry":
        return cls(
            start_time=_uint(fields, 4, "startTime"),
            key_hash=_uint(fields, 5, "keyHash", UINT16_MAX),
            key=_bytes(fields, 6, "key"),
        )

    def write(self, w: tlv.TlvWriter) -> None:
        w.start_struct()
        w.put_uint(4, self.start_time).put_uint(5, self.key_hash).put_bytes(6, self.key)
        w.end_container()


@dataclass
class GroupKeySet:
    """Operational key set stored in fabric slot k/<n>.

    A set can hold several entries of different key lengths. By convention
    the Identity Protection Key is the entry whose key is exactly 16 bytes.
    """
    policy: int
    key_count: int
    keys: List[GroupKeyEntry] = field(default_factory=list)
    group_key_set_id: int = UINT16_MAX

    @classmethod
    def decode(cls, data: bytes) -> "GroupKeySet":
        fields = _struct(tlv.decode(data), "GroupKeySet")
        entries = [GroupKeyEntry.from_fields(_struct(item, "GroupKeyEntry"))
                   for item in _array(fields, 3, "keys")]
        return cls(
            policy=_uint(fields, 1, "policy", UINT8_MAX),
            key_count=_uint(fields, 2, "keyCount", UINT8_MAX),
            keys=entries,
            group_key_set_id=_uint(fields, 7, "groupKeySetId", UINT16_MAX),
        )

    def encode(self) -> bytes:
        w = tlv.TlvWriter().start_struct()
        w.put_uint(1, self.policy).put_uint(2, self.key_count)
        w.start_array(3)
        for entry in self.keys:
            entry.write(w)
        w.end_container()
        w.put_uint(7, self.group_key_set_id)
        return w.end_container().to_bytes()

    @property
    def identity_protection_key(self) -> Optional[bytes]:
        return next((entry.key for entry in self.keys if len(entry.key) == IPK_LENGTH), None)


# --------- global records ----------
@dataclass
class FabricIndexList:
    next_fabric_index: int
    fabric_indices: List[int] = field(default_factory=list)

    @classmethod
    def decode(cls, data: bytes) -> "FabricIndexList":
        fields = _struct(tlv.decode(data), "FabricIndexList")
        indices = _array(fields, 1, "fabricIndices")
        for index in indices:
            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= UINT8_MAX:
                raise TlvDecodeError(f"Invalid fabric index in list: {index!r}")
        return cls(
            next_fabric_index=_uint(fields, 0, "nextFabricIndex", UINT8_MAX),
            fabric_indices=list(indices),
        )

    def encode(self) -> bytes:
        w = tlv.TlvWriter().start_struct()
        w.put_uint(0, self.next_fabric_index)
        w.start_array(1)
        for index in self.fabric_indices:
            w.put_uint(None, index)
        w.end_container()
        return w.end_container().to_bytes()


@dataclass
class LastKnownGoodTime:
    epoch_seconds: int

    @classmethod
    def decode(cls, data: bytes) -> "LastKnownGoodTime":
        fields = _struct(tlv.decode(data), "LastKnownGoodTime")
        return cls(epoch_seconds=_uint(fields, 0, "epochSeconds", UINT32_MAX))

    def encode(self) -> bytes:
        w = tlv.TlvWriter().start_struct()
        w.put_uint(0, self.epoch_seconds)
        return w.end_container().to_bytes()


# --------- session resumption ----------
@dataclass
class SessionResumptionDetails:
    resumption_id: bytes
    shared_secret: bytes
    cat: bytes
    extra: Dict[Any, Any] = field(default_factory=dict)

    _KNOWN_TAGS = (3, 4, 5)

    @classmethod
    def decode(cls, data: bytes) -> "SessionResumptionDetails":
        fields = _struct(tlv.decode(data), "SessionResumptionDetails")
        return cls(
            resumption_id=_bytes(fields, 3, "resumptionId", RESUMPTION_ID_LENGTH),
            shared_secret=_bytes(fields, 4, "sharedSecret", SHARED_SECRET_LENGTH),
            cat=_bytes(fields, 5, "cat", CAT_FIELD_LENGTH),
            extra={tag: value for tag, value in fields.items() if tag not in cls._KNOWN_TAGS},
        )

    def encode(self) -> bytes:
        # extra fields are opaque here and are not re-encoded
        w = tlv.TlvWriter().start_struct()
        w.put_bytes(3, self.resumption_id).put_bytes(4, self.shared_secret).put_bytes(5, self.cat)
        return w.end_container().to_bytes()


@dataclass
class SessionResumptionEntry:
    fabric_index: int
    peer_node_id: int

    @classmethod
    def from_fields(cls, fields: dict) -> "SessionResumptionEntry":
        return cls(
            fabric_index=_uint(fields, 1, "fabricIndex", UINT8_MAX),
            peer_node_id=_uint(fields, 2, "peerNodeId"),
        )

    @classmethod
    def decode(cls, data: bytes) -> "SessionResumptionEntry":
        return cls.from_fields(_struct(tlv.decode(data), "SessionResumptionEntry"))

    def write(self, w: tlv.TlvWriter) -> None:
        w.start_struct()
        w.put_uint(1, self.fabric_index).put_uint(2, self.peer_node_id)
        w.end_container()

    def encode(self) -> bytes:
        w = tlv.TlvWriter()
        self.write(w)
        return w.to_bytes()


def decode_session_resumption_index(data: bytes) -> List[SessionResumptionEntry]:
    items = tlv.decode(data)
    if not isinstance(items, list) or any(isinstance(item, tuple) for item in items):
        raise TlvDecodeError("SessionResumptionIndex: expected an array")
    return [SessionResumptionEntry.from_fields(_struct(item, "SessionResumptionEntry")) for item in items]


def encode_session_resumption_index(entries: List[SessionResumptionEntry]) -> bytes:
    w = tlv.TlvWriter().start_array()
    for entry in entries:
        entry.write(w)
    return w.end_container().to_bytes()

"""
chip_converter.tlv
------------------
Reader and writer for the compact tag-length-value encoding used by every
structured payload in the legacy config file.

Decoded shapes:
- structure -> dict {tag: value}
- array     -> list [value, ...]
- list      -> list [(tag, value), ...]  (order and duplicate tags kept)

Context tags decode to int, profile tags to tuples.
"""

from __future__ import annotations
from typing import Any, List, Optional, Tuple
import struct

from .errors import TlvDecodeError

# Element types (low 5 bits of the control byte)
TYPE_INT8, TYPE_INT16, TYPE_INT32, TYPE_INT64 = 0x00, 0x01, 0x02, 0x03
TYPE_UINT8, TYPE_UINT16, TYPE_UINT32, TYPE_UINT64 = 0x04, 0x05, 0x06, 0x07
TYPE_FALSE, TYPE_TRUE = 0x08, 0x09
TYPE_FLOAT32, TYPE_FLOAT64 = 0x0A, 0x0B
TYPE_UTF8_1 = 0x0C
TYPE_BYTES_1 = 0x10
TYPE_NULL = 0x14
TYPE_STRUCT, TYPE_ARRAY, TYPE_LIST = 0x15, 0x16, 0x17
TYPE_END = 0x18

# Tag control (high 3 bits)
TAG_ANONYMOUS = 0
TAG_CONTEXT = 1

_SIGNED = {1: "<b", 2: "<h", 4: "<i", 8: "<q"}
_UNSIGNED = {1: "<B", 2: "<H", 4: "<I", 8: "<Q"}

_END = object()


class TlvReader:
    """Sequential decoder over one TLV buffer."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0

    def read_bytes(self, count: int) -> bytes:
        if count < 0 or self.pos + count > len(self.data):
            raise TlvDecodeError(f"Not enough data: need {count} bytes at position {self.pos}")
        result = self.data[self.pos:self.pos + count]
        self.pos += count
        return result

    def read_uint(self, size: int) -> int:
        return struct.unpack(_UNSIGNED[size], self.read_bytes(size))[0]

    def read_int(self, size: int) -> int:
        return struct.unpack(_SIGNED[size], self.read_bytes(size))[0]

    def read_tag(self, tag_control: int):
        if tag_control == 0:
            return None
        if tag_control == 1:
            return self.read_uint(1)
        if tag_control in (2, 3):
            return ("common", self.read_uint(2 if tag_control == 2 else 4))
        if tag_control in (4, 5):
            return ("implicit", self.read_uint(2 if tag_control == 4 else 4))
        vendor_id = self.read_uint(2)
        profile = self.read_uint(2)
        tag_num = self.read_uint(2 if tag_control == 6 else 4)
        return (vendor_id, profile, tag_num)

    def read_element(self) -> Tuple[Any, Any]:
        control = self.read_uint(1)
        tag_control, element_type = (control >> 5) & 0x07, control & 0x1F
        tag = self.read_tag(tag_control)

        if element_type <= TYPE_INT64:
            return tag, self.read_int(1 << element_type)
        if element_type <= TYPE_UINT64:
            return tag, self.read_uint(1 << (element_type - TYPE_UINT8))
        if element_type in (TYPE_FALSE, TYPE_TRUE):
            return tag, element_type == TYPE_TRUE
        if element_type == TYPE_FLOAT32:
            return tag, struct.unpack("<f", self.read_bytes(4))[0]
        if element_type == TYPE_FLOAT64:
            return tag, struct.unpack("<d", self.read_bytes(8))[0]
        if TYPE_UTF8_1 <= element_type < TYPE_BYTES_1:
            length = self.read_uint(1 << (element_type - TYPE_UTF8_1))
            try:
                return tag, self.read_bytes(length).decode("utf-8")
            except UnicodeDecodeError as e:
                raise TlvDecodeError(f"Invalid UTF-8 string: {e}") from e
        if TYPE_BYTES_1 <= element_type < TYPE_NULL:
            length = self.read_uint(1 << (element_type - TYPE_BYTES_1))
            return tag, self.read_bytes(length)
        if element_type == TYPE_NULL:
            return tag, None
        if element_type == TYPE_STRUCT:
            return tag, self._read_struct()
        if element_type == TYPE_ARRAY:
            return tag, self._read_array()
        if element_type == TYPE_LIST:
            return tag, self._read_list()
        if element_type == TYPE_END:
            if tag is not None:
                raise TlvDecodeError("End of container must be anonymous")
            return None, _END
        raise TlvDecodeError(f"Unknown element type: 0x{element_type:02x}")

    def _read_struct(self) -> dict:
        fields = {}
        while True:
            tag, value = self.read_element()
            if value is _END:
                return fields
            if tag is None:
                raise TlvDecodeError("Structure members must be tagged")
            if tag in fields:
                raise TlvDecodeError(f"Duplicate tag {tag!r} in structure")
            fields[tag] = value

    def _read_array(self) -> list:
        items = []
        while True:
            tag, value = self.read_element()
            if value is _END:
                return items
            if tag is not None:
                raise TlvDecodeError("Array members must be anonymous")
            items.append(value)

    def _read_list(self) -> List[Tuple[Any, Any]]:
        items = []
        while True:
            tag, value = self.read_element()
            if value is _END:
                return items
            items.append((tag, value))


def decode(data: bytes) -> Any:
    """Decode exactly one top-level element; trailing bytes are an error."""
    reader = TlvReader(data)
    try:
        _, value = reader.read_element()
    except RecursionError as e:
        raise TlvDecodeError("Containers nested too deeply") from e
    if value is _END:
        raise TlvDecodeError("Unexpected end of container")
    if reader.pos != len(reader.data):
        raise TlvDecodeError(f"Trailing data after element: {len(reader.data) - reader.pos} bytes")
    return value


class TlvWriter:
    """Canonical encoder: minimal integer widths, anonymous or context tags."""

    def __init__(self):
        self._buf = bytearray()
        self._depth = 0

    def _control(self, tag: Optional[int], element_type: int) -> None:
        if tag is None:
            self._buf.append((TAG_ANONYMOUS << 5) | element_type)
        elif 0 <= tag <= 0xFF:
            self._buf.append((TAG_CONTEXT << 5) | element_type)
            self._buf.append(tag)
        else:
            raise ValueError(f"Unsupported tag: {tag!r}")

    def put_uint(self, tag: Optional[int], value: int) -> "TlvWriter":
        if value < 0:
            raise ValueError("Unsigned value must not be negative")
        for width, element_type in ((1, TYPE_UINT8), (2, TYPE_UINT16), (4, TYPE_UINT32), (8, TYPE_UINT64)):
            if value < 1 << (8 * width):
                self._control(tag, element_type)
                self._buf += struct.pack(_UNSIGNED[width], value)
                return self
        raise ValueError(f"Unsigned value out of range: {value}")

    def put_int(self, tag: Optional[int], value: int) -> "TlvWriter":
        for width, element_type in ((1, TYPE_INT8), (2, TYPE_INT16), (4, TYPE_INT32), (8, TYPE_INT64)):
            bound = 1 << (8 * width - 1)
            if -bound <= value < bound:
                self._control(tag, element_type)
                self._buf += struct.pack(_SIGNED[width], value)
                return self
        raise ValueError(f"Signed value out of range: {value}")

    def put_bool(self, tag: Optional[int], value: bool) -> "TlvWriter":
        self._control(tag, TYPE_TRUE if value else TYPE_FALSE)
        return self

    def put_null(self, tag: Optional[int]) -> "TlvWriter":
        self._control(tag, TYPE_NULL)
        return self

    def _put_length_prefixed(self, tag: Optional[int], base_type: int, data: bytes) -> None:
        for width in (1, 2, 4, 8):
            if len(data) < 1 << (8 * width):
                self._control(tag, base_type + (width.bit_length() - 1))
                self._buf += struct.pack(_UNSIGNED[width], len(data))
                self._buf += data
                return

    def put_bytes(self, tag: Optional[int], value: bytes) -> "TlvWriter":
        self._put_length_prefixed(tag, TYPE_BYTES_1, bytes(value))
        return self

    def put_str(self, tag: Optional[int], value: str) -> "TlvWriter":
        self._put_length_prefixed(tag, TYPE_UTF8_1, value.encode("utf-8"))
        return self

    def start_struct(self, tag: Optional[int] = None) -> "TlvWriter":
        return self._start(tag, TYPE_STRUCT)

    def start_array(self, tag: Optional[int] = None) -> "TlvWriter":
        return self._start(tag, TYPE_ARRAY)

    def start_list(self, tag: Optional[int] = None) -> "TlvWriter":
        return self._start(tag, TYPE_LIST)

    def _start(self, tag: Optional[int], element_type: int) -> "TlvWriter":
        self._control(tag, element_type)
        self._depth += 1
        return self

    def end_container(self) -> "TlvWriter":
        if self._depth == 0:
            raise ValueError("No open container")
        self._buf.append(TYPE_END)
        self._depth -= 1
        return self

    def to_bytes(self) -> bytes:
        if self._depth:
            raise ValueError(f"{self._depth} container(s) left open")
        return bytes(self._buf)

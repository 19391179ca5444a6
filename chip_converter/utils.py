"""
chip_converter.utils
--------------------
Small helpers shared across the converter: base64 codecs, fabric index
parsing, and the deterministic JSON writer used for the on-disk format.
"""

from __future__ import annotations
import base64, binascii, json, re
from typing import Any, Dict

_NON_B64 = re.compile(rb"[^A-Za-z0-9+/]")


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    # lenient: missing or extra padding and stray characters are tolerated
    data = s.encode("utf-8")
    try:
        return base64.b64decode(data + b"==", validate=False)
    except binascii.Error:
        # a dangling final character carries no whole byte
        clean = _NON_B64.sub(b"", data)
        if len(clean) % 4 == 1:
            clean = clean[:-1]
        return base64.b64decode(clean + b"=" * (-len(clean) % 4))


def parse_fabric_index(segment: str) -> int:
    return int(segment, 16)


def format_fabric_index(index: int) -> str:
    return format(index, "x")


def dump_config_json(obj: Dict[str, Any], indent: int = 4) -> str:
    return json.dumps(obj, indent=indent, ensure_ascii=False)

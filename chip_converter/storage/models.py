# chip_converter/storage/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, TypeVar

from chip_converter.errors import TlvDecodeError
from chip_converter.schemas import (
    FabricIndexList,
    FabricMetadata,
    GroupKeySet,
    LastKnownGoodTime,
    SessionResumptionDetails,
    SessionResumptionEntry,
)
from chip_converter.utils import b64d, b64e, format_fabric_index

T = TypeVar("T")


@dataclass(frozen=True)
class DecodedEntry:
    """
    One stored value: the base64 text exactly as read, plus its bytes.

    `base64` is what gets written back on save, so an entry round-trips
    unchanged whether or not its payload could be interpreted.
    """
    raw: bytes
    base64: str

    @classmethod
    def from_base64(cls, value: str) -> "DecodedEntry":
        return cls(raw=b64d(value), base64=value)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "DecodedEntry":
        return cls(raw=bytes(raw), base64=b64e(raw))

    def decode_as(self, decoder: Callable[[bytes], T]) -> Optional[T]:
        try:
            return decoder(self.raw)
        except TlvDecodeError:
            return None


@dataclass
class FabricData:
    index: int
    noc: Optional[DecodedEntry] = None
    icac: Optional[DecodedEntry] = None
    rcac: Optional[DecodedEntry] = None
    metadata: Optional[DecodedEntry] = None
    metadata_decoded: Optional[FabricMetadata] = None
    keys: Dict[int, DecodedEntry] = field(default_factory=dict)
    keys_decoded: Dict[int, GroupKeySet] = field(default_factory=dict)
    sessions: Dict[str, DecodedEntry] = field(default_factory=dict)
    sessions_decoded: Dict[str, SessionResumptionDetails] = field(default_factory=dict)
    resumptions: Dict[str, DecodedEntry] = field(default_factory=dict)
    resumptions_decoded: Dict[str, SessionResumptionEntry] = field(default_factory=dict)
    other: Dict[str, DecodedEntry] = field(default_factory=dict)
    # hex segment as it appeared in the f/<index>/ path
    path_segment: str = ""

    def __post_init__(self):
        if not self.path_segment:
            self.path_segment = format_fabric_index(self.index)

    @property
    def key_prefix(self) -> str:
        return f"f/{self.path_segment}"


@dataclass
class GlobalData:
    fabric_index_list: Optional[DecodedEntry] = None
    fabric_index_list_decoded: Optional[FabricIndexList] = None
    last_known_good_time: Optional[DecodedEntry] = None
    last_known_good_time_decoded: Optional[LastKnownGoodTime] = None


@dataclass
class SessionData:
    resumption_index: Optional[DecodedEntry] = None
    resumption_index_decoded: Optional[List[SessionResumptionEntry]] = None

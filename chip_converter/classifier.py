"""
chip_converter.classifier
-------------------------
Routes each flat sdk-config key to exactly one bucket and files the value
into the in-memory model.

Routing is two-phase:
1. `classify_key()` buckets purely by string pattern (ignored, fabric,
   global, resumption, generic) and `KeyClassifier.add()` files
   everything whose owner is known from the key itself.
2. `KeyClassifier.resolve()` handles g/s/<resumptionId> entries, whose
   owning fabric is only known after decoding the payload.

Payload decode failures never propagate: the matching *_decoded field is
left unset and the raw/base64 entry is kept.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging

from .constants import (
    FABRIC_ICAC,
    FABRIC_KEY_RE,
    FABRIC_KEY_SET_PREFIX,
    FABRIC_METADATA,
    FABRIC_NOC,
    FABRIC_RCAC,
    FABRIC_SESSION_PREFIX,
    GLOBAL_FABRIC_INDEX_LIST,
    GLOBAL_LAST_KNOWN_GOOD_TIME,
    GLOBAL_SESSION_PREFIX,
    GLOBAL_SESSION_RESUMPTION_INDEX,
    IGNORED_KEY_PATTERNS,
    KEY_SET_SLOT_RE,
)
from .schemas import (
    FabricIndexList,
    FabricMetadata,
    GroupKeySet,
    LastKnownGoodTime,
    SessionResumptionDetails,
    SessionResumptionEntry,
    decode_session_resumption_index,
)
from .storage.fabrics import FabricStore
from .storage.models import DecodedEntry, FabricData, GlobalData, SessionData
from .utils import parse_fabric_index

log = logging.getLogger("ChipConfig.Classifier")

BUCKET_IGNORED = "ignored"
BUCKET_FABRIC = "fabric"
BUCKET_GLOBAL = "global"
BUCKET_RESUMPTION = "resumption"
BUCKET_GENERIC = "generic"

GLOBAL_KEYS = (GLOBAL_FABRIC_INDEX_LIST, GLOBAL_LAST_KNOWN_GOOD_TIME, GLOBAL_SESSION_RESUMPTION_INDEX)


@dataclass(frozen=True)
class KeyRoute:
    bucket: str
    key: str
    fabric_index: Optional[int] = None
    path_segment: str = ""
    sub_key: str = ""


def is_ignored_key(key: str) -> bool:
    return any(pattern.match(key) for pattern in IGNORED_KEY_PATTERNS)


def classify_key(key: str) -> KeyRoute:
    """Phase 1: bucket a key by its string pattern alone. First match wins."""
    if is_ignored_key(key):
        return KeyRoute(BUCKET_IGNORED, key)

    match = FABRIC_KEY_RE.match(key)
    if match:
        segment, sub_key = match.groups()
        return KeyRoute(BUCKET_FABRIC, key, parse_fabric_index(segment), segment, sub_key)

    if key in GLOBAL_KEYS:
        return KeyRoute(BUCKET_GLOBAL, key)
    if key.startswith(GLOBAL_SESSION_PREFIX) and len(key) > len(GLOBAL_SESSION_PREFIX):
        return KeyRoute(BUCKET_RESUMPTION, key, sub_key=key[len(GLOBAL_SESSION_PREFIX):])

    return KeyRoute(BUCKET_GENERIC, key)


def file_fabric_entry(fabric: FabricData, sub_key: str, entry: DecodedEntry) -> None:
    if sub_key == FABRIC_NOC:
        fabric.noc = entry
    elif sub_key == FABRIC_ICAC:
        fabric.icac = entry
    elif sub_key == FABRIC_RCAC:
        fabric.rcac = entry
    elif sub_key == FABRIC_METADATA:
        fabric.metadata = entry
        fabric.metadata_decoded = entry.decode_as(FabricMetadata.decode)
        if fabric.metadata_decoded is None:
            log.debug(f"[DECODE] f/{fabric.path_segment}/m is not valid fabric metadata")
    elif sub_key.startswith(FABRIC_KEY_SET_PREFIX) and KEY_SET_SLOT_RE.match(sub_key[len(FABRIC_KEY_SET_PREFIX):]):
        slot = int(sub_key[len(FABRIC_KEY_SET_PREFIX):])
        fabric.keys[slot] = entry
        decoded = entry.decode_as(GroupKeySet.decode)
        if decoded is not None:
            fabric.keys_decoded[slot] = decoded
        else:
            log.debug(f"[DECODE] f/{fabric.path_segment}/{sub_key} is not a valid group key set")
    elif sub_key.startswith(FABRIC_SESSION_PREFIX) and len(sub_key) > len(FABRIC_SESSION_PREFIX):
        node_hex = sub_key[len(FABRIC_SESSION_PREFIX):]
        fabric.sessions[node_hex] = entry
        decoded = entry.decode_as(SessionResumptionDetails.decode)
        if decoded is not None:
            fabric.sessions_decoded[node_hex] = decoded
        else:
            log.debug(f"[DECODE] f/{fabric.path_segment}/{sub_key} is not valid session resumption details")
    else:
        fabric.other[sub_key] = entry


def file_global_entry(globals_: GlobalData, sessions: SessionData, key: str, entry: DecodedEntry) -> None:
    if key == GLOBAL_FABRIC_INDEX_LIST:
        globals_.fabric_index_list = entry
        globals_.fabric_index_list_decoded = entry.decode_as(FabricIndexList.decode)
    elif key == GLOBAL_LAST_KNOWN_GOOD_TIME:
        globals_.last_known_good_time = entry
        globals_.last_known_good_time_decoded = entry.decode_as(LastKnownGoodTime.decode)
    elif key == GLOBAL_SESSION_RESUMPTION_INDEX:
        sessions.resumption_index = entry
        sessions.resumption_index_decoded = entry.decode_as(decode_session_resumption_index)
    else:
        raise KeyError(f"Not a global key: {key}")


class KeyClassifier:
    """Files one load's worth of keys into the given model containers."""

    def __init__(
        self,
        store: FabricStore,
        globals_: GlobalData,
        sessions: SessionData,
        ignored: Dict[str, str],
        generic: Dict[str, str],
    ):
        self.store = store
        self.globals = globals_
        self.sessions = sessions
        self.ignored = ignored
        self.generic = generic
        self.pending: List[Tuple[str, str]] = []

    def add(self, key: str, value: str) -> KeyRoute:
        route = classify_key(key)

        if route.bucket == BUCKET_IGNORED:
            self.ignored[key] = value
        elif route.bucket == BUCKET_FABRIC:
            fabric = self.store.get_or_create(route.fabric_index, route.path_segment)
            if fabric.path_segment != route.path_segment:
                # another spelling of an index already seen (f/a vs f/A vs f/0a)
                log.debug(f"[LOAD] {key} does not match {fabric.key_prefix}, keeping it as generic")
                self.generic[key] = value
                return KeyRoute(BUCKET_GENERIC, key)
            file_fabric_entry(fabric, route.sub_key, DecodedEntry.from_base64(value))
        elif route.bucket == BUCKET_GLOBAL:
            file_global_entry(self.globals, self.sessions, key, DecodedEntry.from_base64(value))
        elif route.bucket == BUCKET_RESUMPTION:
            self.pending.append((key, value))
        else:
            self.generic[key] = value
        return route

    def resolve(self) -> int:
        """Phase 2: file deferred g/s entries under the fabric their payload names.

        Entries that do not decode cannot be attributed and stay generic.
        Returns the number of entries attributed to a fabric.
        """
        resolved = 0
        for key, value in self.pending:
            resumption_id = key[len(GLOBAL_SESSION_PREFIX):]
            entry = DecodedEntry.from_base64(value)
            decoded = entry.decode_as(SessionResumptionEntry.decode)
            if decoded is None:
                log.debug(f"[DECODE] {key} has no decodable owner, keeping it as generic")
                self.generic[key] = value
                continue
            fabric = self.store.get_or_create(decoded.fabric_index)
            fabric.resumptions[resumption_id] = entry
            fabric.resumptions_decoded[resumption_id] = decoded
            resolved += 1
        self.pending = []
        return resolved

"""
chip_converter.serializer
-------------------------
Inverse of the key classifier: rebuilds the flat sdk-config map from the
in-memory model. Values are always the stored base64 text, never
re-encoded, so undecodable entries survive unchanged.

Order: globals, then each fabric (n, i, r, m, k/*, s/*, its g/s/*
resumptions, other), then ignored keys, then generic keys.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Optional

from .constants import (
    GLOBAL_FABRIC_INDEX_LIST,
    GLOBAL_LAST_KNOWN_GOOD_TIME,
    GLOBAL_SESSION_PREFIX,
    GLOBAL_SESSION_RESUMPTION_INDEX,
    REPL_CONFIG,
    SDK_CONFIG,
)
from .storage.models import FabricData, GlobalData, SessionData


def fabric_items(fabric: FabricData) -> Iterable[tuple]:
    prefix = fabric.key_prefix
    for sub_key, entry in (("n", fabric.noc), ("i", fabric.icac), ("r", fabric.rcac), ("m", fabric.metadata)):
        if entry is not None:
            yield f"{prefix}/{sub_key}", entry.base64
    for slot, entry in fabric.keys.items():
        yield f"{prefix}/k/{slot}", entry.base64
    for node_hex, entry in fabric.sessions.items():
        yield f"{prefix}/s/{node_hex}", entry.base64
    for resumption_id, entry in fabric.resumptions.items():
        yield f"{GLOBAL_SESSION_PREFIX}{resumption_id}", entry.base64
    for sub_key, entry in fabric.other.items():
        yield f"{prefix}/{sub_key}", entry.base64


def build_sdk_config(
    globals_: GlobalData,
    sessions: SessionData,
    fabrics: Iterable[FabricData],
    ignored: Dict[str, str],
    generic: Dict[str, str],
) -> Dict[str, str]:
    sdk_config: Dict[str, str] = {}

    if globals_.fabric_index_list is not None:
        sdk_config[GLOBAL_FABRIC_INDEX_LIST] = globals_.fabric_index_list.base64
    if globals_.last_known_good_time is not None:
        sdk_config[GLOBAL_LAST_KNOWN_GOOD_TIME] = globals_.last_known_good_time.base64
    if sessions.resumption_index is not None:
        sdk_config[GLOBAL_SESSION_RESUMPTION_INDEX] = sessions.resumption_index.base64

    for fabric in fabrics:
        sdk_config.update(fabric_items(fabric))

    sdk_config.update(ignored)
    sdk_config.update(generic)
    return sdk_config


def build_config_document(sdk_config: Dict[str, str], repl_config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    document: Dict[str, Any] = {SDK_CONFIG: sdk_config}
    if repl_config:
        document[REPL_CONFIG] = repl_config
    return document

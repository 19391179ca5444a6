"""
chip_converter.projection
-------------------------
Migration-ready view of one fabric.

The legacy controller never persisted its operational private key, so the
projection only carries public and shared fabric material: the RCAC/ICAC
chain, identifiers, vendor, label and the IPK. Whoever adopts a fabric
must create a new operational key pair and have a new NOC issued against
the preserved RCAC/ICAC chain; the stored NOC is informational.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .certificates import Noc, Rcac
from .storage.models import FabricData
from .verifier import decode_certificate


@dataclass(frozen=True)
class FabricConfigData:
    fabric_index: int
    fabric_id: int
    node_id: int
    root_node_id: int
    root_vendor_id: int
    root_cert: bytes
    root_public_key: bytes
    identity_protection_key: bytes
    operational_cert: bytes
    label: str
    intermediate_ca_cert: Optional[bytes] = None


def project_fabric_config(fabric: Optional[FabricData]) -> Optional[FabricConfigData]:
    """All or nothing: any missing prerequisite yields None."""
    if fabric is None:
        return None

    rcac = decode_certificate(fabric.rcac, Rcac)
    noc = decode_certificate(fabric.noc, Noc)
    if rcac is None or noc is None:
        return None

    node_id = noc.subject.node_id
    fabric_id = noc.subject.fabric_id
    root_node_id = rcac.subject.rcac_id
    if node_id is None or fabric_id is None or root_node_id is None:
        return None

    metadata = fabric.metadata_decoded
    if metadata is None:
        return None

    key_set = fabric.keys_decoded.get(0)
    ipk = key_set.identity_protection_key if key_set is not None else None
    if ipk is None:
        return None

    return FabricConfigData(
        fabric_index=fabric.index,
        fabric_id=fabric_id,
        node_id=node_id,
        root_node_id=root_node_id,
        root_vendor_id=metadata.vendor_id,
        root_cert=fabric.rcac.raw,
        root_public_key=rcac.ec_public_key,
        identity_protection_key=ipk,
        operational_cert=fabric.noc.raw,
        label=metadata.label,
        intermediate_ca_cert=fabric.icac.raw if fabric.icac is not None else None,
    )

# chip_converter/storage/fabrics.py
from __future__ import annotations
from typing import Dict, Iterator, List, Optional

from chip_converter.storage.models import FabricData


class FabricStore:
    """
    Index-keyed store of per-fabric material.

    `get_or_create` is the only way entries come into existence, whether
    the owning fabric is known from the key path (f/<index>/...) or only
    from a decoded payload (g/s/<id>).
    """

    def __init__(self):
        self.fabrics: Dict[int, FabricData] = {}

    def get_or_create(self, index: int, path_segment: str = "") -> FabricData:
        fabric = self.fabrics.get(index)
        if fabric is None:
            fabric = FabricData(index=index, path_segment=path_segment)
            self.fabrics[index] = fabric
        return fabric

    def get(self, index: int) -> Optional[FabricData]:
        return self.fabrics.get(index)

    def indices(self) -> List[int]:
        return sorted(self.fabrics)

    def clear(self) -> None:
        self.fabrics.clear()

    def __len__(self) -> int:
        return len(self.fabrics)

    def __iter__(self) -> Iterator[FabricData]:
        for index in self.indices():
            yield self.fabrics[index]

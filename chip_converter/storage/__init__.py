# chip_converter/storage/__init__.py

from .models import DecodedEntry, FabricData, GlobalData, SessionData
from .fabrics import FabricStore

__all__ = [
    "DecodedEntry",
    "FabricData",
    "GlobalData",
    "SessionData",
    "FabricStore",
]

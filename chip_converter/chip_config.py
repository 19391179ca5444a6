"""
chip_converter.chip_config
--------------------------
ChipConfigData: the in-memory model of a legacy controller's chip config
file (JSON with an "sdk-config" map of base64 values and an optional
opaque "repl-config" object).

Loading classifies every key into fabric, global, ignored or generic
buckets, decoding the binary records it understands while keeping the
original base64 of every value. Saving writes the same keys and values
back, so load -> save -> load is lossless.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import json
import logging

from .certificates import Icac, Noc, Rcac
from .classifier import KeyClassifier
from .config import ConverterSettings, load_settings
from .constants import REPL_CONFIG, SDK_CONFIG
from .errors import ConfigFileError
from .logger import configure_logging
from .projection import FabricConfigData, project_fabric_config
from .serializer import build_config_document, build_sdk_config
from .storage.fabrics import FabricStore
from .storage.models import FabricData, GlobalData, SessionData
from .utils import b64e, dump_config_json
from .verifier import CertificateVerificationResult, decode_certificate, verify_fabric_chain

log = logging.getLogger("ChipConfig.Loader")


@dataclass(frozen=True)
class ResumptionConflict:
    """A resumption id filed under one fabric's sessions but owned by another via g/s."""
    resumption_id: str
    session_fabric_index: int
    node_hex: str
    resumption_fabric_index: int


class ChipConfigData:
    """
    Categorized access to a chip config file.

    - fabrics:  per-fabric certificates, metadata, key sets, sessions
    - globals:  fabric index list, last known good time
    - sessions: global session resumption index
    - ignored:  bookkeeping keys kept verbatim (failsafe, counters, ICD)
    - generic:  everything else, kept verbatim
    """

    def __init__(self, settings: Optional[ConverterSettings] = None):
        self.settings = settings or ConverterSettings()
        self.store = FabricStore()
        self.globals = GlobalData()
        self.sessions = SessionData()
        self.ignored: Dict[str, str] = {}
        self.generic: Dict[str, str] = {}
        self.repl_config: Dict[str, Any] = {}

    @property
    def fabrics(self) -> Dict[int, FabricData]:
        return self.store.fabrics

    def clear(self) -> None:
        self.store.clear()
        self.globals = GlobalData()
        self.sessions = SessionData()
        self.ignored = {}
        self.generic = {}
        self.repl_config = {}

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------
    def load(self, path: str) -> None:
        """
        Read and classify a chip config file, replacing any loaded state.

        Raises OSError / json.JSONDecodeError for unreadable files and
        ConfigFileError for JSON without the expected shape. Individual
        undecodable records never fail the load.
        """
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        sdk_config, repl_config = self._validate(data, path)

        self.clear()
        self.repl_config = repl_config

        classifier = KeyClassifier(self.store, self.globals, self.sessions, self.ignored, self.generic)
        for key, value in sdk_config.items():
            classifier.add(key, value)
        resolved = classifier.resolve()

        log.info(
            f"[LOAD] {path}: {len(sdk_config)} keys, fabrics={self.get_fabric_indices()}, "
            f"resumptions={resolved}, ignored={len(self.ignored)}, generic={len(self.generic)}"
        )
        for conflict in self.find_resumption_conflicts():
            log.warning(
                f"[LOAD] resumption {conflict.resumption_id} is stored for fabric "
                f"{conflict.session_fabric_index} (node {conflict.node_hex}) but owned by fabric "
                f"{conflict.resumption_fabric_index}; keeping both"
            )

    @staticmethod
    def _validate(data: Any, path: str):
        if not isinstance(data, dict):
            raise ConfigFileError(f"{path}: top-level JSON value must be an object")
        sdk_config = data.get(SDK_CONFIG, {})
        if not isinstance(sdk_config, dict):
            raise ConfigFileError(f"{path}: '{SDK_CONFIG}' must be an object")
        for key, value in sdk_config.items():
            if not isinstance(value, str):
                raise ConfigFileError(f"{path}: value of '{key}' must be a base64 string")
        repl_config = data.get(REPL_CONFIG)
        if repl_config is None:
            repl_config = {}
        if not isinstance(repl_config, dict):
            raise ConfigFileError(f"{path}: '{REPL_CONFIG}' must be an object")
        return sdk_config, repl_config

    def to_sdk_config(self) -> Dict[str, str]:
        return build_sdk_config(self.globals, self.sessions, self.store, self.ignored, self.generic)

    def save(self, path: str) -> None:
        document = build_config_document(self.to_sdk_config(), self.repl_config)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(dump_config_json(document, indent=self.settings.json_indent))
        log.info(f"[SAVE] {path}: {len(document[SDK_CONFIG])} keys")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_fabric_indices(self) -> List[int]:
        return self.store.indices()

    def get_fabric(self, index: int) -> Optional[FabricData]:
        return self.store.get(index)

    def get_rcac(self, fabric_index: int) -> Optional[Rcac]:
        fabric = self.store.get(fabric_index)
        return decode_certificate(fabric.rcac, Rcac) if fabric else None

    def get_icac(self, fabric_index: int) -> Optional[Icac]:
        """ICAC is optional; fabrics whose NOC is issued by the root have none."""
        fabric = self.store.get(fabric_index)
        return decode_certificate(fabric.icac, Icac) if fabric else None

    def get_noc(self, fabric_index: int) -> Optional[Noc]:
        fabric = self.store.get(fabric_index)
        return decode_certificate(fabric.noc, Noc) if fabric else None

    def verify_certificate_chain(self, fabric_index: int) -> CertificateVerificationResult:
        return verify_fabric_chain(self.store.get(fabric_index))

    def get_fabric_config(self, fabric_index: int) -> Optional[FabricConfigData]:
        return project_fabric_config(self.store.get(fabric_index))

    def find_resumption_conflicts(self) -> List[ResumptionConflict]:
        owners = {
            resumption_id: fabric.index
            for fabric in self.store
            for resumption_id in fabric.resumptions
        }
        conflicts = []
        for fabric in self.store:
            for node_hex, details in fabric.sessions_decoded.items():
                resumption_id = b64e(details.resumption_id)
                owner = owners.get(resumption_id)
                if owner is not None and owner != fabric.index:
                    conflicts.append(ResumptionConflict(resumption_id, fabric.index, node_hex, owner))
        return conflicts


def open_chip_config(config: dict | None = None) -> ChipConfigData:
    """Build a ChipConfigData from settings (dict, then environment) and load its file."""
    settings = load_settings(config)
    configure_logging(settings.log_level, settings.log_file)
    data = ChipConfigData(settings)
    data.load(settings.config_path)
    return data

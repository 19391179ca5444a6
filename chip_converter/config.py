"""
chip_converter.config
---------------------
Runtime settings for the converter. Explicit dict values win over
environment variables, which win over the defaults.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import os

from .constants import DEFAULT_CONFIG_PATH, DEFAULT_JSON_INDENT


@dataclass
class ConverterSettings:
    config_path: str = DEFAULT_CONFIG_PATH
    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_indent: int = DEFAULT_JSON_INDENT


def load_settings(config: dict | None = None) -> ConverterSettings:
    config = config or {}
    indent = config.get("json_indent") or os.getenv("CHIP_CONVERTER_JSON_INDENT", str(DEFAULT_JSON_INDENT))
    try:
        json_indent = int(indent)
    except ValueError:
        raise ValueError(f"Invalid JSON indent: {indent!r}")

    return ConverterSettings(
        config_path=config.get("config_path") or os.getenv("CHIP_CONFIG_PATH", DEFAULT_CONFIG_PATH),
        log_level=(config.get("log_level") or os.getenv("CHIP_CONVERTER_LOG_LEVEL", "INFO")).upper(),
        log_file=config.get("log_file") or os.getenv("CHIP_CONVERTER_LOG_FILE") or None,
        json_indent=json_indent,
    )

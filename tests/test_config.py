import logging

import pytest

from chip_converter.config import ConverterSettings, load_settings
from chip_converter.logger import configure_logging, get_logger


def test_defaults(monkeypatch):
    for var in ("CHIP_CONFIG_PATH", "CHIP_CONVERTER_LOG_LEVEL", "CHIP_CONVERTER_LOG_FILE", "CHIP_CONVERTER_JSON_INDENT"):
        monkeypatch.delenv(var, raising=False)
    assert load_settings() == ConverterSettings(config_path="chip.json", log_level="INFO", log_file=None, json_indent=4)


def test_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("CHIP_CONFIG_PATH", "/data/chip.json")
    monkeypatch.setenv("CHIP_CONVERTER_LOG_LEVEL", "debug")
    monkeypatch.setenv("CHIP_CONVERTER_LOG_FILE", str(tmp_path / "logs" / "conv.log"))
    monkeypatch.setenv("CHIP_CONVERTER_JSON_INDENT", "2")
    settings = load_settings()
    assert settings.config_path == "/data/chip.json"
    assert settings.log_level == "DEBUG"
    assert settings.log_file.endswith("conv.log")
    assert settings.json_indent == 2


def test_dict_overrides_environment(monkeypatch):
    monkeypatch.setenv("CHIP_CONFIG_PATH", "/env/chip.json")
    monkeypatch.setenv("CHIP_CONVERTER_JSON_INDENT", "8")
    settings = load_settings({"config_path": "/dict/chip.json", "json_indent": 1})
    assert settings.config_path == "/dict/chip.json"
    assert settings.json_indent == 1


def test_invalid_indent(monkeypatch):
    monkeypatch.setenv("CHIP_CONVERTER_JSON_INDENT", "wide")
    with pytest.raises(ValueError):
        load_settings()


def test_logger_writes_json_lines(tmp_path):
    log_file = tmp_path / "logs" / "converter.log"
    logger = get_logger("ChipConfigTest.File", level="INFO", to_file=str(log_file))
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    line = log_file.read_text(encoding="utf-8").strip()
    assert '"level": "INFO"' in line
    assert '"msg": "hello"' in line


def test_configure_logging_sets_package_level():
    logger = configure_logging("WARNING")
    assert logger.name == "ChipConfig"
    assert logger.level == logging.WARNING
    configure_logging("INFO")


def test_file_sink_added_once(tmp_path):
    name = "ChipConfigTest.Late"
    get_logger(name)
    log_file = str(tmp_path / "late.log")
    get_logger(name, to_file=log_file)
    logger = get_logger(name, to_file=log_file)
    assert sum(isinstance(h, logging.FileHandler) for h in logger.handlers) == 1

from __future__ import annotations


class ChipConfigError(Exception):
    pass


class ConfigFileError(ChipConfigError):
    """The file parsed as JSON but does not have the chip config shape."""


class TlvDecodeError(ChipConfigError, ValueError):
    pass


class CertificateError(ChipConfigError):
    pass

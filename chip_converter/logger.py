import logging, json, sys, time, os

ROOT_LOGGER = "ChipConfig"


def _json_formatter():
    formatter = logging.Formatter(
        fmt=json.dumps({
            "ts": "%(asctime)s",
            "level": "%(levelname)s",
            "name": "%(name)s",
            "msg": "%(message)s"
        }),
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    formatter.converter = time.gmtime  # UTC
    return formatter


def _has_file_sink(logger, path):
    target = os.path.abspath(path)
    return any(isinstance(h, logging.FileHandler) and h.baseFilename == target for h in logger.handlers)


def get_logger(name=ROOT_LOGGER, level=None, to_file=None):
    """JSON-line logger shared by the converter components (stdout, optional file)."""
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_json_formatter())
        logger.addHandler(handler)

    # a file sink may be requested after the stdout handler already exists
    if to_file and not _has_file_sink(logger, to_file):
        os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(to_file)
        file_handler.setFormatter(_json_formatter())
        logger.addHandler(file_handler)

    return logger


def configure_logging(level="INFO", to_file=None):
    """Set level and sinks on the package root; module loggers (ChipConfig.*) propagate to it."""
    return get_logger(ROOT_LOGGER, level=level, to_file=to_file)

"""Logging setup shared by the walker, the upload pipeline and the CLI."""

import logging
import sys

LOGGER_NAME = "s3vn"

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# boto3 is chatty at DEBUG; keep it at WARNING unless asked for wire-level logs
THIRD_PARTY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

_logger: logging.Logger | None = None


def _level_for(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    return logging.INFO


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: str | None = None,
    debug_boto: bool = False,
) -> logging.Logger:
    """Configure the ``s3vn`` logger.

    Console output goes to stderr so that ``--json`` results on stdout stay
    machine readable. A log file, when given, always receives DEBUG records,
    which include one line per uploaded object.
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = False

    level = _level_for(verbose, quiet)
    logger.setLevel(logging.DEBUG if log_file else level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug_boto else logging.WARNING)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the s3vn logger, configuring defaults on first use."""
    global _logger
    if _logger is None:
        setup_logging()
    assert _logger is not None
    return _logger

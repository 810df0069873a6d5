# sst_utils/logging_setup.py
import logging
from typing import Literal

Level = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: Level = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def level_from_flags(default: str, quiet: bool = False, verbose: bool = False) -> str:
    """--quiet wins over --verbose; neither keeps the configured level."""
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return default

import dataclasses
import logging
from logging.handlers import RotatingFileHandler
from pprint import pformat
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import LoggingConfig

FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(threadName)s | %(funcName)s | %(message)s"


def dataclass_format(dataclass) -> str:
    return pformat(dataclasses.asdict(dataclass), indent=2, compact=False)


def setup_logging(config: "LoggingConfig"):
    # Common formatter
    fmt = logging.Formatter(FORMAT)
    level = logging.getLevelName(config.level.upper())

    # Console handler
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    # Root logger
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)

    # File handler (info level, rotation)
    if config.path is not None:
        file = RotatingFileHandler(
            config.path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file.setLevel(max(level, logging.INFO))
        file.setFormatter(fmt)
        root.addHandler(file)

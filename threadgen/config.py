import logging
from dataclasses import dataclass, field
from pathlib import Path

import dacite
import yaml

from .log_helpers import dataclass_format

log = logging.getLogger()


def _resolve_path(
    path: str | Path,
) -> Path:
    """Resolve a path into an absolute Path."""
    return Path(path).expanduser().resolve()


@dataclass(frozen=True)
class WorkerConfig:
    thread_name_prefix: str = "threadgen"
    daemon: bool = True
    join_timeout_sec: float = 1.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "DEBUG"
    path: Path | None = None
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5


@dataclass(frozen=True)
class Config:
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_current = Config()


def get_config() -> Config:
    return _current


def configure(config: Config) -> None:
    """Replace the process wide defaults read by generators on construction."""
    global _current
    _current = config
    log.debug(f"Configured:\n{dataclass_format(config)}")


def load_config(path: str | Path) -> Config:
    config_path = Path(path).expanduser().resolve(strict=True)
    yaml_dict = yaml.safe_load(config_path.read_text()) or {}
    config = dacite.from_dict(
        Config,
        yaml_dict,
        dacite.Config(
            strict=True,
            type_hooks={Path: _resolve_path},
        ),
    )

    log.info(f"Loaded config from {str(config_path)!r}")
    log.debug(f"Parsed config:\n{dataclass_format(config)}")
    return config

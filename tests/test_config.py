import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import dacite
import pytest

from threadgen.config import Config, LoggingConfig, WorkerConfig, get_config, load_config
from threadgen.log_helpers import dataclass_format, setup_logging


class TestConfig:
    def test_load_config(self, tmp_path: Path):
        config_file = tmp_path / "threadgen.yaml"
        config_file.write_text(
            "worker:\n"
            "  thread_name_prefix: producer\n"
            "  join_timeout_sec: 0.5\n"
            "logging:\n"
            "  level: INFO\n"
            f"  path: {tmp_path / 'threadgen.log'}\n"
        )

        config = load_config(config_file)

        assert config.worker == WorkerConfig(
            thread_name_prefix="producer", daemon=True, join_timeout_sec=0.5
        )
        assert config.logging.level == "INFO"
        assert config.logging.path == (tmp_path / "threadgen.log").resolve()

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        config_file = tmp_path / "threadgen.yaml"
        config_file.write_text("")
        assert load_config(config_file) == Config()

    def test_unknown_keys_are_rejected(self, tmp_path: Path):
        config_file = tmp_path / "threadgen.yaml"
        config_file.write_text("worker:\n  pool_size: 4\n")
        with pytest.raises(dacite.UnexpectedDataError):
            load_config(config_file)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_default_config(self):
        assert get_config() == Config()
        assert "thread_name_prefix" in dataclass_format(get_config())


class TestSetupLogging:
    def test_console_only(self, root_logger: logging.Logger):
        before = len(root_logger.handlers)
        setup_logging(LoggingConfig(level="info"))

        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == before + 1

    def test_rotating_file(self, root_logger: logging.Logger, tmp_path: Path):
        log_file = tmp_path / "threadgen.log"
        setup_logging(LoggingConfig(level="DEBUG", path=log_file))

        file_handlers = [
            h for h in root_logger.handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.INFO

        logging.getLogger("test").info("hello")
        file_handlers[0].flush()
        assert "hello" in log_file.read_text()

import logging

import pytest

from threadgen.config import Config, configure


@pytest.fixture(autouse=True)
def default_config():
    configure(Config())
    yield
    configure(Config())


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)

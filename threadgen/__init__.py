from .aio import AsyncGenerator, async_bind
from .builder import bind, build, generator, yield_
from .config import Config, configure, get_config, load_config
from .errors import ChannelClosed, GeneratorInterrupted, ProtocolError, ThreadgenError
from .generator import Generator
from .log_helpers import setup_logging
from .types import End, Failure, GeneratorState, Outcome, Value

__all__ = [
    "AsyncGenerator",
    "async_bind",
    "bind",
    "build",
    "generator",
    "yield_",
    "Config",
    "configure",
    "get_config",
    "load_config",
    "ChannelClosed",
    "GeneratorInterrupted",
    "ProtocolError",
    "ThreadgenError",
    "Generator",
    "setup_logging",
    "End",
    "Failure",
    "GeneratorState",
    "Outcome",
    "Value",
]

import logging
import os
from pathlib import Path

from .config import Config, configure, load_config
from .demos import EXAMPLE_GRAPH, BreakingFibonacci, Fibonacci, dfs
from .errors import GeneratorInterrupted
from .log_helpers import setup_logging

log = logging.getLogger()


def main():
    config_path = Path(os.environ.get("THREADGEN_CONFIG", "threadgen.yaml"))
    config = load_config(config_path) if config_path.exists() else Config()
    setup_logging(config.logging)
    configure(config)

    with Fibonacci() as fib:
        for index, value in enumerate(fib):
            print(f"fib[{index}] = {value}")
            if index >= 16:
                break

    try:
        for value in BreakingFibonacci(100):
            print(f"breaking fib: {value}")
    except GeneratorInterrupted as e:
        log.info(f"Stopped by {e.cause!r}")

    walk = dfs(EXAMPLE_GRAPH)
    for event in walk:
        print(event)


if __name__ == "__main__":
    main()

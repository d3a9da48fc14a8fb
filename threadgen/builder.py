"""Build generators out of plain callables.

`build` registers the new generator under its producer thread, which lets the
callable use the free standing `yield_` without a reference to its generator:

    def countdown(n):
        while n:
            yield_(n)
            n -= 1

    for i in build(countdown, 3):
        ...

`bind` passes the yield function to the callable explicitly instead and does
not touch the registry.
"""

import logging
import threading
import weakref
from functools import wraps
from typing import Any, Callable, TypeVar

from .errors import ProtocolError
from .generator import Generator

T = TypeVar("T")

log = logging.getLogger(__name__)

# producer thread -> generator. Entries go away when the producer thread ends,
# when the generator is closed, or when an unstarted generator is collected.
_REGISTRY: "weakref.WeakValueDictionary[threading.Thread, Generator]" = (
    weakref.WeakValueDictionary()
)
_REGISTRY_LOCK = threading.Lock()


def _register(generator: Generator) -> None:
    with _REGISTRY_LOCK:
        _REGISTRY[generator.thread] = generator


def _unregister(generator: Generator) -> None:
    with _REGISTRY_LOCK:
        if _REGISTRY.get(generator.thread) is generator:
            del _REGISTRY[generator.thread]


def owner(thread: threading.Thread | None = None) -> Generator | None:
    """The registered generator running on `thread` (default: the current one)."""
    if thread is None:
        thread = threading.current_thread()
    with _REGISTRY_LOCK:
        return _REGISTRY.get(thread)


class _CallableGenerator(Generator[T]):
    def __init__(self, logic: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        self._logic = logic
        self._args = args
        self._kwargs = kwargs

    def run(self) -> Any:
        try:
            return self._logic(*self._args, **self._kwargs)
        finally:
            _unregister(self)

    def close(self) -> None:
        super().close()
        _unregister(self)

    def __repr__(self) -> str:
        name = getattr(self._logic, "__qualname__", repr(self._logic))
        return f"<{self.__class__.__name__} {name} {self._thread.name!r} {self._state.value}>"


class _BoundGenerator(_CallableGenerator[T]):
    def run(self) -> Any:
        return self._logic(self.yield_, *self._args, **self._kwargs)


def build(logic: Callable[..., Any], *args: Any, **kwargs: Any) -> Generator[Any]:
    """Wrap `logic(*args, **kwargs)` as a generator; it yields through `yield_`."""
    generator: Generator[Any] = _CallableGenerator(logic, args, kwargs)
    _register(generator)
    log.debug(f"Built {generator!r}")
    return generator


def bind(logic: Callable[..., Any], *args: Any, **kwargs: Any) -> Generator[Any]:
    """Wrap `logic(yield_, *args, **kwargs)` as a generator."""
    return _BoundGenerator(logic, args, kwargs)


def yield_(value: Any) -> None:
    """Hand `value` to the consumer of the generator running the calling thread."""
    generator = owner()
    if generator is None:
        raise ProtocolError(
            f"yield_ called from {threading.current_thread().name!r}, "
            "which is not running a built generator"
        )
    generator.yield_(value)


# decorator
def generator(fn: Callable[..., Any]) -> Callable[..., Generator[Any]]:
    @wraps(fn)
    def _fn(*args: Any, **kwargs: Any) -> Generator[Any]:
        return build(fn, *args, **kwargs)

    return _fn

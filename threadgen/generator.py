import itertools
import logging
import threading
import weakref
from abc import ABC, abstractmethod
from functools import wraps
from typing import Any, Generic, TypeVar

from .channel import RendezvousChannel
from .config import get_config
from .errors import ChannelClosed, GeneratorInterrupted, ProtocolError, ThreadgenError
from .types import End, Failure, GeneratorState, Outcome, Value

T = TypeVar("T")

_thread_ids = itertools.count(1)


def _thread_entry(ref: "weakref.ref[Generator]") -> None:
    generator = ref()
    if generator is not None:
        generator._thread_run()


class Generator(ABC, Generic[T]):
    """Pull based generator whose `run` method executes on a dedicated thread.

    Subclasses override `run` and call `self.yield_(value)` wherever a native
    generator would `yield`. The thread is started by the first pull and every
    `yield_` blocks until the consumer pulled the value, so the producer is
    never more than one value ahead of the consumer.

    Iterating consumes the generator: a second `for` loop over the same
    instance continues where the previous one stopped.
    """

    def __init__(self) -> None:
        # reached twice when a subclass also calls super().__init__()
        if "_channel" in self.__dict__:
            return
        worker = get_config().worker
        name = f"{worker.thread_name_prefix}-{self.__class__.__name__}-{next(_thread_ids)}"

        self.log = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self._state = GeneratorState.IDLE
        self._failure: BaseException | None = None
        self._exit_raised = False
        self._join_timeout_sec = worker.join_timeout_sec
        self._channel: RendezvousChannel[Outcome[T]] = RendezvousChannel(name)
        # the thread reaches the generator weakly so an unstarted one can be collected
        self._thread = threading.Thread(
            target=_thread_entry,
            args=(weakref.ref(self),),
            name=name,
            daemon=worker.daemon,
        )

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)

        # automatic super().__init__()
        original_init = cls.__dict__.get("__init__")
        if original_init is not None:

            @wraps(original_init)
            def wrapped_init(self, *args, **kwargs):
                Generator.__init__(self)
                original_init(self, *args, **kwargs)
                self.log.debug("Fully initialized")

            cls.__init__ = wrapped_init

    @abstractmethod
    def run(self) -> Any:
        """Producer logic. Call `self.yield_` instead of returning values."""

    @property
    def state(self) -> GeneratorState:
        with self._lock:
            return self._state

    @property
    def failure(self) -> BaseException | None:
        """The first exception raised by `run`, if any."""
        with self._lock:
            return self._failure

    @property
    def thread(self) -> threading.Thread:
        return self._thread

    def yield_(self, value: T) -> None:
        if threading.current_thread() is not self._thread:
            raise ProtocolError(
                f"yield_ called from {threading.current_thread().name!r}, "
                f"outside of producer thread {self._thread.name!r}"
            )
        if self._exit_raised:
            raise RuntimeError("generator ignored GeneratorExit")
        try:
            self._channel.put(Value(value))
        except ChannelClosed:
            self._exit_raised = True
            raise GeneratorExit from None

    def next(self) -> T:
        outcome = self._pull()
        if isinstance(outcome, Value):
            return outcome.value
        if isinstance(outcome, Failure):
            raise GeneratorInterrupted(outcome.cause) from outcome.cause
        raise StopIteration(outcome.result)

    def try_next(self) -> Outcome[T]:
        """Like `next`, but report the outcome instead of raising it.

        Once a `Failure` or `End` was returned, every later call returns
        `End(None)`.
        """
        return self._pull()

    def close(self) -> None:
        """Stop the generator. A producer parked in `yield_` unwinds with GeneratorExit."""
        with self._lock:
            if self._state.terminal:
                return
            started = self._state is not GeneratorState.IDLE
            self._state = GeneratorState.CLOSED

        self._channel.close(End())
        if started and threading.current_thread() is not self._thread:
            self._thread.join(self._join_timeout_sec)
            if self._thread.is_alive():
                self.log.warning(
                    f"{self._thread.name!r} still running after {self._join_timeout_sec}s, "
                    "it stops at its next yield_"
                )

    def __iter__(self):
        return self

    def __next__(self) -> T:
        try:
            return self.next()
        except (ThreadgenError, StopIteration):
            raise
        except Exception as e:
            self.log.debug("Re-raising and wrapping exception", exc_info=True)
            raise GeneratorInterrupted(e) from e

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self._thread.name!r} {self._state.value}>"

    def _pull(self) -> Outcome[T]:
        if threading.current_thread() is self._thread:
            raise ProtocolError("A generator cannot pull from its own producer thread")

        with self._lock:
            if self._state.terminal:
                return End()
            if self._state is GeneratorState.IDLE:
                self.log.debug(f"Starting producer thread {self._thread.name!r}")
                self._thread.start()
                self._state = GeneratorState.STARTED
            self._state = GeneratorState.AWAITING_HANDOFF

        outcome = self._channel.take()

        with self._lock:
            if isinstance(outcome, Value):
                self._state = GeneratorState.DELIVERING
            elif isinstance(outcome, Failure):
                self._state = GeneratorState.FAILED
            elif self._state is not GeneratorState.CLOSED:
                self._state = GeneratorState.FINISHED
        return outcome

    def _thread_run(self) -> None:
        self.log.debug("Run of producer thread")
        try:
            result = self.run()
        except GeneratorExit:
            self.log.debug("Producer unwound after close")
        except BaseException as e:
            self.log.debug("Run failed with exception (to be wrapped)", exc_info=True)
            self._deliver_failure(e)
        else:
            self.log.debug(f"Producer returned {result!r}")
            self._channel.close(End(result))
        finally:
            # never leave the consumer parked on a dead producer
            self._channel.close(End())

    def _deliver_failure(self, error: BaseException) -> None:
        with self._lock:
            if self._failure is None:
                self._failure = error
        if not self._channel.close(Failure(error)):
            self.log.warning(f"Dropping {error!r}, the generator was closed by its consumer")

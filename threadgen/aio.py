"""Cooperative flavour of `Generator`.

The producer is a coroutine running as an `asyncio.Task` on the consumer's
event loop, so no thread is spent per generator and `aclose` can cancel a
producer wherever it is suspended.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from functools import wraps
from typing import Any, Awaitable, Callable, Generic, TypeVar

from .errors import ChannelClosed, GeneratorInterrupted, ProtocolError, ThreadgenError
from .types import End, Failure, GeneratorState, Outcome, Value

T = TypeVar("T")


class AsyncRendezvousChannel(Generic[T]):
    """`RendezvousChannel` for tasks of a single event loop."""

    def __init__(self, name: str = "channel") -> None:
        self.name = name
        self._cond = asyncio.Condition()
        self._item: T | None = None
        self._occupied = False
        self._puts = 0
        self._takes = 0
        self._closed = False
        self._terminal: T | None = None
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, item: T) -> None:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._occupied or self._closed)
            if self._closed:
                raise ChannelClosed(f"{self.name} is closed")

            self._item = item
            self._occupied = True
            self._puts += 1
            ticket = self._puts
            self._log.debug(f"Putting into {self.name}: {item!r}")
            self._cond.notify_all()

            try:
                await self._cond.wait_for(
                    lambda: self._takes >= ticket or self._closed
                )
            except asyncio.CancelledError:
                self._retract(ticket)
                self._log.debug(f"Handover of {item!r} on {self.name} cancelled")
                raise
            except BaseException:
                self._retract(ticket)
                self._log.error(
                    f"Unexpected interruption while handing over {item!r} on {self.name}",
                    exc_info=True,
                )
                raise

            if self._takes < ticket:
                self._retract(ticket)
                raise ChannelClosed(f"{self.name} closed before {item!r} was taken")

    async def take(self) -> T:
        async with self._cond:
            await self._cond.wait_for(lambda: self._occupied or self._closed)
            if not self._occupied:
                return self._terminal  # type: ignore[return-value]

            item = self._item
            self._item = None
            self._occupied = False
            self._takes += 1
            self._log.debug(f"Taking from {self.name}: {item!r}")
            self._cond.notify_all()
            return item  # type: ignore[return-value]

    async def close(self, terminal: T) -> bool:
        async with self._cond:
            if self._closed:
                return False
            self._closed = True
            self._terminal = terminal
            self._log.debug(f"Closing {self.name} with {terminal!r}")
            self._cond.notify_all()
            return True

    def _retract(self, ticket: int) -> None:
        if self._occupied and self._puts == ticket:
            self._item = None
            self._occupied = False
            self._puts -= 1
            self._cond.notify_all()


class AsyncGenerator(ABC, Generic[T]):
    """Subclasses override `async def run` and `await self.yield_(value)`."""

    def __init__(self) -> None:
        # reached twice when a subclass also calls super().__init__()
        if "_channel" in self.__dict__:
            return
        self.log = logging.getLogger(self.__class__.__name__)
        self._state = GeneratorState.IDLE
        self._failure: BaseException | None = None
        self._exit_raised = False
        self._channel: AsyncRendezvousChannel[Outcome[T]] = AsyncRendezvousChannel(
            self.__class__.__name__
        )
        self._task: asyncio.Task | None = None

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)

        # automatic super().__init__()
        original_init = cls.__dict__.get("__init__")
        if original_init is not None:

            @wraps(original_init)
            def wrapped_init(self, *args, **kwargs):
                AsyncGenerator.__init__(self)
                original_init(self, *args, **kwargs)
                self.log.debug("Fully initialized")

            cls.__init__ = wrapped_init

    @abstractmethod
    async def run(self) -> Any:
        pass

    @property
    def state(self) -> GeneratorState:
        return self._state

    @property
    def failure(self) -> BaseException | None:
        return self._failure

    async def yield_(self, value: T) -> None:
        if self._task is None or asyncio.current_task() is not self._task:
            raise ProtocolError("yield_ called outside of the producer task")
        if self._exit_raised:
            raise RuntimeError("generator ignored GeneratorExit")
        try:
            await self._channel.put(Value(value))
        except ChannelClosed:
            self._exit_raised = True
            raise GeneratorExit from None

    async def next(self) -> T:
        outcome = await self._pull()
        if isinstance(outcome, Value):
            return outcome.value
        if isinstance(outcome, Failure):
            raise GeneratorInterrupted(outcome.cause) from outcome.cause
        raise StopAsyncIteration(outcome.result)

    async def try_next(self) -> Outcome[T]:
        return await self._pull()

    async def aclose(self) -> None:
        if self._state.terminal:
            return
        self._state = GeneratorState.CLOSED
        await self._channel.close(End())
        if self._task is not None and not self._task.done():
            if self._task is asyncio.current_task():
                return
            self._task.cancel()
            await asyncio.wait([self._task])

    def __aiter__(self):
        return self

    async def __anext__(self) -> T:
        try:
            return await self.next()
        except (ThreadgenError, StopAsyncIteration):
            raise
        except Exception as e:
            self.log.debug("Re-raising and wrapping exception", exc_info=True)
            raise GeneratorInterrupted(e) from e

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.aclose()

    async def _pull(self) -> Outcome[T]:
        if self._task is not None and asyncio.current_task() is self._task:
            raise ProtocolError("A generator cannot pull from its own producer task")
        if self._state.terminal:
            return End()
        if self._state is GeneratorState.IDLE:
            self.log.debug("Starting producer task")
            self._task = asyncio.create_task(
                self._task_run(), name=f"{self.__class__.__name__}.run"
            )
            self._state = GeneratorState.STARTED
        self._state = GeneratorState.AWAITING_HANDOFF

        outcome = await self._channel.take()

        if isinstance(outcome, Value):
            self._state = GeneratorState.DELIVERING
        elif isinstance(outcome, Failure):
            self._state = GeneratorState.FAILED
        elif self._state is not GeneratorState.CLOSED:
            self._state = GeneratorState.FINISHED
        return outcome

    async def _task_run(self) -> None:
        self.log.debug("Run of producer task")
        try:
            result = await self.run()
        except GeneratorExit:
            self.log.debug("Producer unwound after close")
        except asyncio.CancelledError:
            self.log.debug("Producer task cancelled")
            raise
        except BaseException as e:
            self.log.debug("Run failed with exception (to be wrapped)", exc_info=True)
            if self._failure is None:
                self._failure = e
            if not await self._channel.close(Failure(e)):
                self.log.warning(f"Dropping {e!r}, the generator was closed by its consumer")
        else:
            self.log.debug(f"Producer returned {result!r}")
            await self._channel.close(End(result))
        finally:
            # never leave the consumer parked on a dead producer
            await self._channel.close(End())


class _AsyncBoundGenerator(AsyncGenerator[T]):
    def __init__(
        self, logic: Callable[..., Awaitable[Any]], args: tuple, kwargs: dict
    ) -> None:
        super().__init__()
        self._logic = logic
        self._args = args
        self._kwargs = kwargs

    async def run(self) -> Any:
        return await self._logic(self.yield_, *self._args, **self._kwargs)


def async_bind(
    logic: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
) -> AsyncGenerator[Any]:
    """Wrap the coroutine function `logic(yield_, *args, **kwargs)` as an async generator."""
    return _AsyncBoundGenerator(logic, args, kwargs)

import asyncio

import pytest

from threadgen.aio import AsyncGenerator, async_bind
from threadgen.demos import AsyncFibonacci
from threadgen.errors import GeneratorInterrupted, ProtocolError
from threadgen.types import End, GeneratorState, Value

FIBONACCI = [0, 1, 1, 2, 3, 5, 8, 13, 21, 34, 55, 89, 144, 233, 377, 610, 987]


class Kaboom(Exception):
    pass


class AsyncBreakingFibonacci(AsyncGenerator[int]):
    def __init__(self, target: int) -> None:
        super().__init__()
        self.target = target

    async def run(self) -> None:
        await self.yield_(0)
        i, j = 0, 1
        while True:
            if j > self.target:
                raise Kaboom("Kaboom!")
            await self.yield_(j)
            i, j = j, i + j


class Fatal(BaseException):
    pass


class AsyncDies(AsyncGenerator[int]):
    async def run(self) -> None:
        await self.yield_(1)
        raise Fatal("boom")


class Repeater(AsyncGenerator[str]):
    def __init__(self, value: str, times: int) -> None:
        self.value = value
        self.times = times

    async def run(self) -> None:
        for _ in range(self.times):
            await self.yield_(self.value)


class Sleeper(AsyncGenerator[int]):
    def __init__(self) -> None:
        super().__init__()
        self.sleeping = asyncio.Event()
        self.cancelled = False

    async def run(self) -> None:
        await self.yield_(1)
        self.sleeping.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise


async def countdown(emit, n):
    while n:
        await emit(n)
        n -= 1
    return "liftoff"


class TestAsyncGenerator:
    @pytest.mark.asyncio
    async def test_fibonacci_sequence(self):
        async with AsyncFibonacci() as fib:
            assert [await fib.next() for _ in range(9)] == FIBONACCI[:9]

    @pytest.mark.asyncio
    async def test_async_for_is_not_restartable(self):
        fib = AsyncFibonacci()
        first, second = [], []
        async for value in fib:
            first.append(value)
            if len(first) == 5:
                break
        async for value in fib:
            second.append(value)
            if len(second) == 5:
                break
        await fib.aclose()

        assert first == FIBONACCI[:5]
        assert second == FIBONACCI[5:10]

    @pytest.mark.asyncio
    async def test_failure_is_wrapped_and_terminal(self):
        gen = AsyncBreakingFibonacci(100)
        values = []
        with pytest.raises(GeneratorInterrupted) as exc_info:
            async for value in gen:
                values.append(value)

        assert values == FIBONACCI[:12]
        assert isinstance(exc_info.value.__cause__, Kaboom)
        assert gen.state is GeneratorState.FAILED
        with pytest.raises(StopAsyncIteration):
            await gen.next()

    @pytest.mark.asyncio
    async def test_interleaved_generators(self):
        a, b = AsyncFibonacci(), AsyncFibonacci()
        from_a, from_b = [], []
        for _ in range(6):
            from_a.append(await a.next())
            from_b.append(await b.next())
            from_b.append(await b.next())
        await a.aclose()
        await b.aclose()

        assert from_a == FIBONACCI[:6]
        assert from_b == FIBONACCI[:12]

    @pytest.mark.asyncio
    async def test_aclose_cancels_producer_between_yields(self):
        gen = Sleeper()
        assert await gen.next() == 1
        await gen.sleeping.wait()

        await gen.aclose()

        assert gen.cancelled
        assert gen.state is GeneratorState.CLOSED
        with pytest.raises(StopAsyncIteration):
            await gen.next()

    @pytest.mark.asyncio
    async def test_base_exception_is_delivered(self):
        gen = AsyncDies()
        assert await gen.next() == 1
        with pytest.raises(GeneratorInterrupted) as exc_info:
            await gen.next()

        assert isinstance(exc_info.value.cause, Fatal)
        assert gen.state is GeneratorState.FAILED
        assert isinstance(gen.failure, Fatal)

    @pytest.mark.asyncio
    async def test_subclass_init_without_super(self):
        gen = Repeater("a", 2)
        assert gen.state is GeneratorState.IDLE
        assert [value async for value in gen] == ["a", "a"]

    @pytest.mark.asyncio
    async def test_yield_outside_producer_task(self):
        with pytest.raises(ProtocolError):
            await AsyncFibonacci().yield_(1)


class TestAsyncBind:
    @pytest.mark.asyncio
    async def test_explicit_yield(self):
        assert [value async for value in async_bind(countdown, 3)] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_try_next(self):
        gen = async_bind(countdown, 1)
        assert await gen.try_next() == Value(1)
        assert await gen.try_next() == End("liftoff")
        assert await gen.try_next() == End()
        assert gen.state is GeneratorState.FINISHED

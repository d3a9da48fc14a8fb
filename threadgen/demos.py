from typing import Any

from .aio import AsyncGenerator
from .builder import generator, yield_
from .generator import Generator


class Fibonacci(Generator[int]):
    """Fibonacci numbers, forever."""

    def run(self) -> None:
        self.yield_(0)
        i, j = 0, 1
        while True:
            self.yield_(j)
            i, j = j, i + j


class FibonacciOverflow(Exception):
    pass


class BreakingFibonacci(Generator[int]):
    """Fibonacci numbers until one exceeds `target`, then blow up."""

    def __init__(self, target: int) -> None:
        self.target = target

    def run(self) -> None:
        self.yield_(0)
        i, j = 0, 1
        while True:
            if j > self.target:
                raise FibonacciOverflow(f"{j} exceeds {self.target}")
            self.yield_(j)
            i, j = j, i + j


class AsyncFibonacci(AsyncGenerator[int]):
    async def run(self) -> None:
        await self.yield_(0)
        i, j = 0, 1
        while True:
            await self.yield_(j)
            i, j = j, i + j


# 0 - 1 - 3 - 4
#  \- 2 /
EXAMPLE_GRAPH = [
    (0, 1),
    (1, 3),
    (3, 4),
    (0, 2),
    (2, 3),
]


@generator
def dfs(graph: list[tuple[int, int]], root: int = 0) -> int:
    """Yield ('pre', n) and ('post', n) events of a depth first walk.

    Returns the number of visited nodes once the walk is over.
    """
    seen: set[Any] = set()

    def visit(n):
        yield_(("pre", n))
        if n in seen:
            return
        seen.add(n)
        for f, t in graph:
            if f == n:
                visit(t)
        yield_(("post", n))

    visit(root)
    return len(seen)

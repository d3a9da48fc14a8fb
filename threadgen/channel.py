import logging
import threading
from typing import Generic, TypeVar

from .errors import ChannelClosed

T = TypeVar("T")


class RendezvousChannel(Generic[T]):
    """Zero capacity handoff between one putting and one taking thread.

    `put` returns only once a receiver took the item, so at most one item is
    ever in flight. `close` latches a terminal item: every `take` after it
    returns the terminal item immediately and every pending or later `put`
    raises `ChannelClosed`.
    """

    def __init__(self, name: str = "channel") -> None:
        self.name = name
        self._cond = threading.Condition()
        self._item: T | None = None
        self._occupied = False
        # tickets pair a put with the take that consumed it
        self._puts = 0
        self._takes = 0
        self._closed = False
        self._terminal: T | None = None
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: T) -> None:
        with self._cond:
            self._cond.wait_for(lambda: not self._occupied or self._closed)
            if self._closed:
                raise ChannelClosed(f"{self.name} is closed")

            self._item = item
            self._occupied = True
            self._puts += 1
            ticket = self._puts
            self._log.debug(f"Putting into {self.name}: {item!r}")
            self._cond.notify_all()

            try:
                self._cond.wait_for(lambda: self._takes >= ticket or self._closed)
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

    def take(self) -> T:
        with self._cond:
            self._cond.wait_for(lambda: self._occupied or self._closed)
            if not self._occupied:
                return self._terminal  # type: ignore[return-value]

            item = self._item
            self._item = None
            self._occupied = False
            self._takes += 1
            self._log.debug(f"Taking from {self.name}: {item!r}")
            self._cond.notify_all()
            return item  # type: ignore[return-value]

    def close(self, terminal: T) -> bool:
        """Latch `terminal` and wake everyone up. First close wins."""
        with self._cond:
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

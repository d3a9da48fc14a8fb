from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeAlias, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Value(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Failure:
    cause: BaseException


@dataclass(frozen=True, slots=True)
class End:
    # whatever the producer logic returned
    result: Any = None


Outcome: TypeAlias = Value[T] | Failure | End


class GeneratorState(Enum):
    IDLE = "idle"
    STARTED = "started"
    AWAITING_HANDOFF = "awaiting_handoff"
    DELIVERING = "delivering"
    FAILED = "failed"
    FINISHED = "finished"
    CLOSED = "closed"

    @property
    def terminal(self) -> bool:
        return self in (
            GeneratorState.FAILED,
            GeneratorState.FINISHED,
            GeneratorState.CLOSED,
        )

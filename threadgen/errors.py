class ThreadgenError(Exception):
    pass


class GeneratorInterrupted(ThreadgenError):
    """Raised to the consumer when the producer logic raised.

    The original exception is kept both as `cause` and as `__cause__`, so
    `except` clauses and tracebacks can see the real failure.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Generator interrupted by {str(cause)!r}")
        self.cause = cause
        self.__cause__ = cause


class ProtocolError(ThreadgenError, RuntimeError):
    """`yield_` was called from outside the producer it belongs to."""


class ChannelClosed(ThreadgenError):
    pass

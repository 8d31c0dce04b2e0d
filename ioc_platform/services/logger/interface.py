from abc import ABC, abstractmethod
from typing import Any


class LoggingInterface(ABC):
    """Structured logging: a message plus keyword context."""

    @abstractmethod
    def info(self, msg: str, **ctx: Any) -> None: ...

    @abstractmethod
    def warn(self, msg: str, **ctx: Any) -> None: ...

    @abstractmethod
    def error(self, msg: str, **ctx: Any) -> None: ...

    @abstractmethod
    def debug(self, msg: str, **ctx: Any) -> None: ...

    def exception(self, msg: str, exc: BaseException, **ctx: Any) -> None:
        """Log *exc* at error level with its type and message as context."""
        self.error(msg, error_type=type(exc).__name__, error=str(exc), **ctx)

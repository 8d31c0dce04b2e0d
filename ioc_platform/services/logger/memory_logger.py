from dataclasses import dataclass
from typing import Any

from ioc_platform.services.logger.interface import LoggingInterface


@dataclass
class LogEntry:
    level: str
    msg: str
    ctx: dict[str, Any]


class MemoryLogger(LoggingInterface):
    """Keeps every entry in a list so tests can assert on what was logged."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def info(self, msg: str, **ctx: Any) -> None:
        self._record("INFO", msg, ctx)

    def warn(self, msg: str, **ctx: Any) -> None:
        self._record("WARN", msg, ctx)

    def error(self, msg: str, **ctx: Any) -> None:
        self._record("ERROR", msg, ctx)

    def debug(self, msg: str, **ctx: Any) -> None:
        self._record("DEBUG", msg, ctx)

    @property
    def messages(self) -> list[str]:
        return [e.msg for e in self.entries]

    def at_level(self, level: str) -> list[LogEntry]:
        return [e for e in self.entries if e.level == level.upper()]

    def clear(self) -> None:
        self.entries.clear()

    def _record(self, level: str, msg: str, ctx: dict[str, Any]) -> None:
        self.entries.append(LogEntry(level, msg, dict(ctx)))

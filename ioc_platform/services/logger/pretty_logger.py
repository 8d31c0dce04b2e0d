import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from ioc_platform.services.logger.interface import LoggingInterface

_COLORS = {
    "INFO": "\033[32m",   # green
    "WARN": "\033[33m",   # yellow
    "ERROR": "\033[31m",  # red
    "DEBUG": "\033[36m",  # cyan
}
_RESET = "\033[0m"


class PrettyLogger(LoggingInterface):
    """Colorized human-readable logger for local development."""

    def __init__(self, stream: TextIO | None = None, min_level: str = "DEBUG") -> None:
        self._stream = stream
        self._min_rank = _rank(min_level)

    def info(self, msg: str, **ctx: Any) -> None:
        self._log("INFO", msg, ctx)

    def warn(self, msg: str, **ctx: Any) -> None:
        self._log("WARN", msg, ctx)

    def error(self, msg: str, **ctx: Any) -> None:
        self._log("ERROR", msg, ctx)

    def debug(self, msg: str, **ctx: Any) -> None:
        self._log("DEBUG", msg, ctx)

    def _log(self, level: str, msg: str, ctx: dict[str, Any]) -> None:
        if _rank(level) < self._min_rank:
            return
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        color = _COLORS.get(level, "")
        extra = "  " + " ".join(f"{k}={v}" for k, v in ctx.items()) if ctx else ""
        print(f"{color}{ts} [{level}]{_RESET} {msg}{extra}", file=self._stream or sys.stderr)


def _rank(level: str) -> int:
    order = ("DEBUG", "INFO", "WARN", "ERROR")
    try:
        return order.index(level.upper())
    except ValueError:
        raise ValueError(f"Unknown log level: '{level}' (available: {', '.join(order)})") from None

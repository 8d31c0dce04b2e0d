from typing import Any

from ioc_platform.services.logger.interface import LoggingInterface


class NoopLogger(LoggingInterface):
    """Discards everything. Default for library objects built without a logger."""

    def info(self, msg: str, **ctx: Any) -> None:
        pass

    def warn(self, msg: str, **ctx: Any) -> None:
        pass

    def error(self, msg: str, **ctx: Any) -> None:
        pass

    def debug(self, msg: str, **ctx: Any) -> None:
        pass

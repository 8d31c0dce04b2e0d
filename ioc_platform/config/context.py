import os
from typing import Mapping

_TRUTHY = ("true", "1", "yes", "on")


class PlatformConfig:
    """Environment-based configuration with optional overrides."""

    def __init__(self, overrides: Mapping[str, str] | None = None) -> None:
        self._env = dict(os.environ)
        if overrides:
            self._env.update(overrides)

    def get(self, key: str, default: str = "") -> str:
        return self._env.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._env.get(key)
        if value is None:
            return default
        return value.strip().lower() in _TRUTHY

    def __contains__(self, key: str) -> bool:
        return key in self._env

    def __repr__(self) -> str:
        return f"PlatformConfig({len(self._env)} keys)"

"""Loads .env files with KEY=VALUE format.

Supports:
- Comments (lines starting with #)
- Blank lines
- Quoted values (single or double quotes are stripped)
- Inline comments after values are NOT stripped (to keep values predictable)

Keys must look like identifiers (dots allowed after the first character).
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, MutableMapping

# Project root: two levels up from ioc_platform/config/
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

DEFAULT_ENV_FILES = (
    ".env",
    ".env.local",
    ".env.development",
    ".env.production",
    ".env.dev",
    ".env.prod",
)


class MissingEnvFile(FileNotFoundError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"{path} does not exist")


class InvalidKeyFormat(ValueError):
    def __init__(self, key: str, path: Path | None = None) -> None:
        self.key = key
        self.path = path
        where = f" in {path}" if path else ""
        super().__init__(
            f"The key '{key}'{where} is not a valid format (expected {KEY_PATTERN.pattern})"
        )


def load_env_file(env_name: str = "local", project_root: Path | None = None) -> dict[str, str]:
    """Load .env/<env_name>.env and return as dict. Returns empty dict if file is missing."""
    root = project_root or _PROJECT_ROOT
    env_file = root / ".env" / f"{env_name}.env"
    if not env_file.is_file():
        return {}
    return parse_env_file(env_file)


def parse_env_file(path: Path) -> dict[str, str]:
    result: dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if not KEY_PATTERN.match(key):
            raise InvalidKeyFormat(key, path)
        # Strip surrounding quotes
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        result[key] = value
    return result


def find_env_files(project_root: Path | None = None) -> list[Path]:
    """Default env files that exist under *project_root*, in precedence order."""
    root = project_root or _PROJECT_ROOT
    return [root / name for name in DEFAULT_ENV_FILES if (root / name).is_file()]


def group_of(key: str) -> str | None:
    """``APP_NAME`` belongs to group ``APP``; keys without ``_`` have no group."""
    head, sep, _ = key.partition("_")
    return head if sep and head else None


class Dotenv:
    """Environment files loaded into a process environment.

    Files are read in order, later files overriding earlier ones. Loading
    writes every value into *environ* (``os.environ`` by default) and
    remembers which keys it wrote, so a ``reload`` can remove keys that
    disappeared from the files.
    """

    def __init__(
        self,
        files: str | Path | Iterable[str | Path] | None = None,
        project_root: Path | None = None,
        environ: MutableMapping[str, str] | None = None,
    ) -> None:
        self._root = project_root or _PROJECT_ROOT
        self._environ = os.environ if environ is None else environ
        if files is None:
            self._files = find_env_files(self._root)
        else:
            self._files = self._validate(files)
        self._values: dict[str, str] = {}
        self._loaded = False

    @property
    def files(self) -> list[Path]:
        return list(self._files)

    @property
    def keys(self) -> list[str]:
        self.load()
        return list(self._values)

    def load(self) -> Dotenv:
        if self._loaded:
            return self
        values: dict[str, str] = {}
        for path in self._files:
            if not path.is_file():
                continue
            values.update(parse_env_file(path))
        self._apply(values)
        self._loaded = True
        return self

    def reload(self, defaults: dict[str, str] | None = None) -> Dotenv:
        """Re-read the files; *defaults* are merged over the fresh values."""
        self._loaded = False
        self.load()
        if defaults:
            self._apply({**self._values, **defaults})
        return self

    def get(self, key: str | None = None, default: str | None = None) -> str | dict[str, str] | None:
        """One value, or a copy of every loaded value when *key* is None."""
        self.load()
        if key is None:
            return dict(self._values)
        return self._values.get(key, default)

    def group(self, prefix: str, default: dict[str, str] | None = None) -> dict[str, str]:
        """Every loaded ``PREFIX_*`` key, e.g. ``group("APP")`` -> ``{"APP_NAME": ...}``."""
        self.load()
        members = {k: v for k, v in self._values.items() if group_of(k) == prefix}
        if not members:
            return {} if default is None else dict(default)
        return members

    # ── Internal ──────────────────────────────────────────────────────────

    def _apply(self, values: dict[str, str]) -> None:
        for key in values:
            if not KEY_PATTERN.match(key):
                raise InvalidKeyFormat(key)
        for stale in set(self._values) - set(values):
            self._environ.pop(stale, None)
        self._environ.update(values)
        self._values = dict(values)

    def _validate(self, files: str | Path | Iterable[str | Path]) -> list[Path]:
        if isinstance(files, (str, Path)):
            files = [files]
        paths: list[Path] = []
        for f in files:
            path = Path(f)
            if not path.is_absolute():
                path = self._root / path
            if not path.is_file():
                raise MissingEnvFile(path)
            paths.append(path)
        return paths

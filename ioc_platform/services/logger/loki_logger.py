"""Loki logger: ships structured records to Grafana Loki's HTTP push API.

Records are queued in memory and shipped in batches, one Loki stream per
level, either by a background thread every ``flush_interval`` seconds or as
soon as ``flush_threshold`` records are queued. Shipping never raises: a
rejected or unreachable push adds the batch size to ``dropped``.
"""

from __future__ import annotations

import atexit
import json
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import requests

from ioc_platform.services.logger.interface import LoggingInterface

PUSH_PATH = "/loki/api/v1/push"


@dataclass(frozen=True)
class LokiRecord:
    level: str
    ts_ns: int
    line: str


def build_push_payload(labels: Mapping[str, str], records: Iterable[LokiRecord]) -> dict[str, Any]:
    """Group *records* into one stream per level, keeping their order."""
    values_by_level: dict[str, list[list[str]]] = {}
    for record in records:
        values_by_level.setdefault(record.level, []).append([str(record.ts_ns), record.line])
    return {
        "streams": [
            {"stream": {**labels, "level": level}, "values": values}
            for level, values in values_by_level.items()
        ]
    }


class LokiLogger(LoggingInterface):
    def __init__(
        self,
        base_url: str | None = None,
        service: str | None = None,
        environment: str | None = None,
        flush_interval: float = 1.0,
        flush_threshold: int = 100,
        background: bool = True,
        session: requests.Session | None = None,
        timeout: float = 5.0,
    ) -> None:
        base = base_url or os.environ.get("LOKI_URL", "http://localhost:3100")
        self.push_url = base.rstrip("/") + PUSH_PATH
        self.labels = {
            "service": service or os.environ.get("LOKI_SERVICE", "ioc_platform"),
            "environment": environment or os.environ.get("LOKI_ENVIRONMENT", "development"),
        }
        self.dropped = 0
        self._session = session or requests.Session()
        self._timeout = timeout
        self._threshold = flush_threshold
        self._pending: list[LokiRecord] = []
        self._guard = threading.Lock()
        self._stopped = threading.Event()
        self._worker: threading.Thread | None = None
        if background:
            self._worker = threading.Thread(
                target=self._run, args=(flush_interval,), name="loki-flush", daemon=True
            )
            self._worker.start()
            atexit.register(self.close)

    def info(self, msg: str, **ctx: Any) -> None:
        self._enqueue("INFO", msg, ctx)

    def warn(self, msg: str, **ctx: Any) -> None:
        self._enqueue("WARN", msg, ctx)

    def error(self, msg: str, **ctx: Any) -> None:
        self._enqueue("ERROR", msg, ctx)

    def debug(self, msg: str, **ctx: Any) -> None:
        self._enqueue("DEBUG", msg, ctx)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def flush(self) -> int:
        """Ship everything queued so far. Returns how many records were sent."""
        with self._guard:
            batch, self._pending = self._pending, []
        return self._ship(batch)

    def close(self) -> None:
        """Stop the background worker, ship what is left and release the session."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        if self._worker is not None:
            atexit.unregister(self.close)
            if self._worker is not threading.current_thread():
                self._worker.join(timeout=self._timeout)
        self.flush()
        self._session.close()

    # ── Internal ──────────────────────────────────────────────────────────

    def _enqueue(self, level: str, msg: str, ctx: dict[str, Any]) -> None:
        record = LokiRecord(level, time.time_ns(), json.dumps({"msg": msg, **ctx}, default=str))
        with self._guard:
            self._pending.append(record)
            if len(self._pending) < self._threshold:
                return
            batch, self._pending = self._pending, []
        self._ship(batch)

    def _run(self, interval: float) -> None:
        while not self._stopped.wait(interval):
            self.flush()

    def _ship(self, batch: list[LokiRecord]) -> int:
        if not batch:
            return 0
        try:
            response = self._session.post(
                self.push_url,
                json=build_push_payload(self.labels, batch),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException:
            with self._guard:
                self.dropped += len(batch)
            return 0
        return len(batch)

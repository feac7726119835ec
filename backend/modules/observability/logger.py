"""
Structured JSON logger: append-only, one object per line (.jsonl).

Usage:
    from modules.observability.logger import StructuredLogger

    perf = StructuredLogger()
    perf.log("performance", "PERFORMANCE", {"component": "RoutePlanner.optimize"})

    with perf.timed("BudgetPlanner.allocate", categories=5):
        ...

Logs are written to  logs/<stream>.jsonl  relative to the backend/ root.
Disabled entirely when config.PERF_LOG_ENABLED is false.
"""

from __future__ import annotations

import json
import os
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

import config

# logs/ directory lives alongside backend/config.py
_LOGS_DIR: Path = Path(__file__).resolve().parents[2] / "logs"

DEFAULT_STREAM = "performance"


class StructuredLogger:
    """Thread-safe, append-only JSONL logger."""

    def __init__(
        self,
        logs_dir: Path | str | None = None,
        enabled: Optional[bool] = None,
    ) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else _LOGS_DIR
        self._enabled = config.PERF_LOG_ENABLED if enabled is None else enabled
        self._lock = threading.Lock()
        self._handles: dict[str, object] = {}  # stream -> file handle

    # ── public API ────────────────────────────────────────────────────────

    def log(self, stream: str, event_type: str, payload: dict) -> None:
        """Append one structured JSON record to ``<stream>.jsonl``."""
        if not self._enabled:
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "stream": stream,
            "event_type": event_type,
            "payload": payload,
        }
        line = json.dumps(record, default=str, ensure_ascii=False) + "\n"

        with self._lock:
            fh = self._handles.get(stream)
            if fh is None:
                fh = self._open(stream)
            fh.write(line)  # type: ignore[union-attr]
            fh.flush()  # type: ignore[union-attr]

    @contextmanager
    def timed(self, component: str, stream: str = DEFAULT_STREAM, **fields) -> Iterator[dict]:
        """
        Log a PERFORMANCE event with duration_ms when the block exits.

        The yielded dict is merged into the payload, so callers can attach
        results computed inside the block.
        """
        extra: dict = {}
        t0 = time.perf_counter()
        try:
            yield extra
        finally:
            self.log(stream, "PERFORMANCE", {
                "component": component,
                "duration_ms": round((time.perf_counter() - t0) * 1000, 2),
                **fields,
                **extra,
            })

    def close(self, stream: str | None = None) -> None:
        """Close one or all open file handles."""
        with self._lock:
            if stream:
                fh = self._handles.pop(stream, None)
                if fh:
                    fh.close()  # type: ignore[union-attr]
            else:
                for fh in self._handles.values():
                    fh.close()  # type: ignore[union-attr]
                self._handles.clear()

    # ── internals ─────────────────────────────────────────────────────────

    def _open(self, stream: str):  # noqa: ANN202
        os.makedirs(self._logs_dir, exist_ok=True)
        path = self._logs_dir / f"{stream}.jsonl"
        fh = open(path, "a", encoding="utf-8")  # noqa: SIM115
        self._handles[stream] = fh
        return fh

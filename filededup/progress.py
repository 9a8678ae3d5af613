"""Shared scan counters and the periodic progress reporter."""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

logger = logging.getLogger("filededup.progress")

_DEFAULT_INTERVAL = 3.0  # seconds between progress lines


class ProgressCounters:
    """
    Per-run counters shared by every pipeline stage.

    processed/queued/total_files/total_bytes drive the progress line;
    records/batches_sent/batches_failed feed the final summary.
    Every update goes through add(); readers take snapshot().
    """

    FIELDS = (
        "processed",
        "queued",
        "total_files",
        "total_bytes",
        "records",
        "batches_sent",
        "batches_failed",
    )

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values = dict.fromkeys(self.FIELDS, 0)

    def add(self, name: str, n: int = 1) -> int:
        with self._lock:
            self._values[name] += n
            return self._values[name]

    def get(self, name: str) -> int:
        with self._lock:
            return self._values[name]

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._values)


def format_size(n: Optional[int]) -> str:
    if n is None:
        return "0 B"
    value = float(n)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if value < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} PB"


def format_duration(seconds: float) -> str:
    s = int(seconds)
    h, rem = divmod(s, 3600)
    m, sec = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{sec:02d}"
    return f"{m}:{sec:02d}"


def percent_complete(processed: int, total: int) -> Optional[float]:
    if total <= 0:
        return None
    return processed * 100.0 / total


def eta_seconds(elapsed: float, processed: int, total: int) -> Optional[float]:
    """Linear ETA: elapsed × remaining / processed.  None until something is done."""
    if processed <= 0 or total <= 0:
        return None
    return max(0.0, elapsed * (total - processed) / processed)


class ProgressReporter:
    """Logs a progress snapshot every ``interval`` seconds until stop()."""

    def __init__(
        self,
        counters: ProgressCounters,
        started_at: float,
        interval: float = _DEFAULT_INTERVAL,
    ) -> None:
        self.counters = counters
        self.started_at = started_at
        self.interval = interval
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, daemon=True, name="filededup-progress"
        )

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.report()

    def report(self) -> Optional[str]:
        snap = self.counters.snapshot()
        total = snap["total_files"]
        if total <= 0:
            return None
        processed = snap["processed"]
        elapsed = time.monotonic() - self.started_at
        pct = percent_complete(processed, total)
        eta = eta_seconds(elapsed, processed, total)
        line = (
            f"Scan progress: processed={processed:,} queued={snap['queued']:,}"
            f" total={total:,} percent={pct:.1f}%"
            f" elapsed={format_duration(elapsed)}"
            f" eta={format_duration(eta) if eta is not None else '?'}"
        )
        logger.info(line)
        return line

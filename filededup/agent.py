"""
Scan pipeline: walker → worker pool → collector → sender.

Every stage is a thread and the stages talk only through bounded
ClosableQueues.  A full queue blocks its producer, so a slow server stalls
the collector, which stalls the workers, which stalls the walker; memory
stays bounded whatever the size of the tree.  Shutdown runs downstream:
each stage exits once its input queue is closed and drained, then the
coordinator closes the next queue.
"""
from __future__ import annotations

import enum
import logging
import os
import queue
import stat
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from filededup import client
from filededup.client import DeliveryError
from filededup.hash_utils import hash_by_size
from filededup.progress import (
    ProgressCounters,
    ProgressReporter,
    format_duration,
    format_size,
)
from filededup.record import FileRecord
from filededup.walker import Walker

logger = logging.getLogger("filededup.agent")

_MIN_WORKERS = 4
_MIN_QUEUE_SIZE = 1000


class QueueClosed(Exception):
    """put() on a queue that has already been closed."""


class ClosableQueue(queue.Queue):
    """
    Bounded blocking FIFO with an explicit end of stream.

    close() appends a sentinel behind everything already queued; it must be
    called by the producer after its last put().  Iterating yields items
    until the sentinel, which each consumer posts back so that every other
    consumer also sees end of stream.  A get() on a closed, drained queue
    therefore never blocks.
    """

    _SENTINEL = object()

    def __init__(self, maxsize: int = 0):
        super().__init__(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self.mutex:
            if self._closed:
                return
            self._closed = True
        super().put(self._SENTINEL)

    def put(self, item, block: bool = True, timeout: Optional[float] = None) -> None:
        if self._closed:
            raise QueueClosed("put on closed queue")
        super().put(item, block, timeout)

    def __iter__(self):
        while True:
            item = self.get()
            if item is self._SENTINEL:
                super().put(item)
                return
            yield item


class PipelineState(enum.Enum):
    IDLE = "idle"
    COUNTING = "counting"
    SCANNING = "scanning"
    DRAINING = "draining"
    FLUSHING = "flushing"
    DONE = "done"


@dataclass
class ScanSummary:
    files_processed: int
    records: int
    batches_sent: int
    batches_failed: int
    total_files: int
    total_bytes: int
    elapsed: float

    @property
    def files_per_second(self) -> float:
        return self.files_processed / self.elapsed if self.elapsed > 0 else 0.0

    @property
    def bytes_per_second(self) -> float:
        return self.total_bytes / self.elapsed if self.elapsed > 0 else 0.0


def default_workers() -> int:
    return max(os.cpu_count() or 1, _MIN_WORKERS)


def default_queue_size(batch_size: int) -> int:
    return max(batch_size * 2, _MIN_QUEUE_SIZE)


def _resolve_dir(dir_path: str) -> str:
    """Absolute form of dir_path; falls back to dir_path if it can't be resolved."""
    try:
        return os.path.abspath(dir_path)
    except OSError as e:
        logger.warning("Failed to get absolute path: path=%s error=%s", dir_path, e)
        return dir_path


class Agent:
    """
    One scan of ``root``, reporting FileRecords to ``server_url``.

    workers / queue_size of 0 derive defaults (see default_workers and
    default_queue_size).  ``sender`` replaces the HTTP upload; it receives
    one batch (list of FileRecord) and raises DeliveryError on failure.
    """

    def __init__(
        self,
        root: str,
        server_url: str,
        machine_id: str,
        batch_size: int = 1000,
        workers: int = 0,
        queue_size: int = 0,
        max_file_size: Optional[int] = None,
        progress_interval: float = 3.0,
        sender: Optional[Callable[[list[FileRecord]], None]] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.root = root
        self.server_url = server_url.rstrip("/")
        self.machine_id = machine_id
        self.batch_size = batch_size
        self.num_workers = workers if workers > 0 else default_workers()
        self.queue_size = queue_size if queue_size > 0 else default_queue_size(batch_size)
        self.max_file_size = max_file_size
        self.progress_interval = progress_interval
        self._send = sender or self._send_http
        self.counters = ProgressCounters()
        self.state = PipelineState.IDLE
        self.state_history: list[PipelineState] = []

    def _set_state(self, state: PipelineState) -> None:
        self.state = state
        self.state_history.append(state)
        logger.debug("pipeline state: %s", state.value)

    def _send_http(self, batch: list[FileRecord]) -> None:
        client.send_batch(batch, server_url=self.server_url)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def process_path(self, path: str) -> Optional[FileRecord]:
        """Stat and hash one path.  None means skipped (unreadable or not a regular file)."""
        try:
            st = os.stat(path)
        except OSError as e:
            logger.debug("skipping: path=%s error=%s", path, e.strerror)
            return None
        if not stat.S_ISREG(st.st_mode):
            return None

        hash_val = hash_by_size(path, st.st_size)
        if hash_val is None:
            logger.debug("skipping unreadable file: path=%s", path)
            return None

        return FileRecord.from_stat(
            self.machine_id,
            _resolve_dir(os.path.dirname(path)),
            os.path.basename(path),
            st,
            hash_val,
        )

    def _worker(
        self,
        file_queue: ClosableQueue,
        result_queue: ClosableQueue,
        fd_semaphore: threading.BoundedSemaphore,
    ) -> None:
        for path in file_queue:
            try:
                # Bounds open descriptors independently of the worker count.
                # Released before the (possibly blocking) hand-off below.
                with fd_semaphore:
                    record = self.process_path(path)
                if record is not None:
                    result_queue.put(record)
                    self.counters.add("records")
            except Exception:
                logger.exception("unexpected error processing path=%s", path)
            finally:
                self.counters.add("processed")

    def _collect(self, result_queue: ClosableQueue, batch_queue: ClosableQueue) -> None:
        batch: list[FileRecord] = []
        for record in result_queue:
            batch.append(record)
            if len(batch) >= self.batch_size:
                batch_queue.put(batch)
                batch = []
        if batch:
            batch_queue.put(batch)

    def _send_batches(self, batch_queue: ClosableQueue) -> None:
        for batch in batch_queue:
            logger.info("Sending batch of files: count=%d", len(batch))
            try:
                self._send(batch)
            except DeliveryError as e:
                self.counters.add("batches_failed")
                logger.error("Failed to send batch: count=%d error=%s", len(batch), e)
            except Exception:
                self.counters.add("batches_failed")
                logger.exception("Failed to send batch: count=%d", len(batch))
            else:
                self.counters.add("batches_sent")
                logger.debug("Batch sent successfully: count=%d", len(batch))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> ScanSummary:
        """
        Run the scan to completion and return its summary.
        Raises FatalTraversalError (after every stage has drained) if the
        root could not be read.
        """
        start = time.monotonic()
        walker = Walker(self.root, max_size=self.max_file_size)

        self._set_state(PipelineState.COUNTING)
        logger.info("Counting files to process: root=%s", self.root)
        total_files, total_bytes = walker.count()
        self.counters.add("total_files", total_files)
        self.counters.add("total_bytes", total_bytes)
        logger.info(
            "Starting file scan: totalFiles=%d totalBytes=%s workers=%d queueSize=%d batchSize=%d",
            total_files,
            format_size(total_bytes),
            self.num_workers,
            self.queue_size,
            self.batch_size,
        )

        reporter = ProgressReporter(self.counters, start, self.progress_interval)
        reporter.start()

        file_queue = ClosableQueue(self.queue_size)
        result_queue = ClosableQueue(self.queue_size)
        batch_queue = ClosableQueue(self.num_workers)
        fd_semaphore = threading.BoundedSemaphore(self.num_workers * 2)

        workers = [
            threading.Thread(
                target=self._worker,
                args=(file_queue, result_queue, fd_semaphore),
                name=f"filededup-worker-{i}",
                daemon=True,
            )
            for i in range(self.num_workers)
        ]
        collector = threading.Thread(
            target=self._collect,
            args=(result_queue, batch_queue),
            name="filededup-collector",
            daemon=True,
        )
        sender = threading.Thread(
            target=self._send_batches,
            args=(batch_queue,),
            name="filededup-sender",
            daemon=True,
        )
        for t in workers:
            t.start()
        collector.start()
        sender.start()

        self._set_state(PipelineState.SCANNING)
        try:
            for path in walker.iter_files():
                file_queue.put(path)
                self.counters.add("queued")
        finally:
            self._set_state(PipelineState.DRAINING)
            file_queue.close()
            for t in workers:
                t.join()
            result_queue.close()

            self._set_state(PipelineState.FLUSHING)
            collector.join()
            batch_queue.close()
            sender.join()
            reporter.stop()

        walker.raise_if_failed()

        snap = self.counters.snapshot()
        summary = ScanSummary(
            files_processed=snap["processed"],
            records=snap["records"],
            batches_sent=snap["batches_sent"],
            batches_failed=snap["batches_failed"],
            total_files=snap["total_files"],
            total_bytes=snap["total_bytes"],
            elapsed=time.monotonic() - start,
        )
        self._set_state(PipelineState.DONE)
        logger.info(
            "Scan completed: totalFiles=%d records=%d batches=%d failedBatches=%d"
            " totalBytes=%s duration=%s filesPerSecond=%.1f throughput=%s/s workers=%d",
            summary.files_processed,
            summary.records,
            summary.batches_sent,
            summary.batches_failed,
            format_size(summary.total_bytes),
            format_duration(summary.elapsed),
            summary.files_per_second,
            format_size(int(summary.bytes_per_second)),
            self.num_workers,
        )
        return summary

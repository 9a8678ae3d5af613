"""Directory traversal — counting pass and streaming pass."""
from __future__ import annotations

import logging
import os
from typing import Iterator, Optional

logger = logging.getLogger("filededup.walker")


class FatalTraversalError(Exception):
    """Raised when the scan root itself cannot be read."""


def _onerror_quiet(e: OSError) -> None:
    # Counting pass: unreadable directories simply don't count
    pass


class Walker:
    """
    Walks ``root`` yielding every non-directory entry.  Symlinked directories
    are not descended into.  An unreadable subdirectory is logged and skipped;
    an unreadable root is remembered in ``error`` and raised by raise_if_failed()
    once the caller has finished with the stream.

    max_size: when set, files larger than this many bytes are left out of both
    the count and the stream.
    """

    def __init__(self, root: str, max_size: Optional[int] = None):
        self.root = root
        self.max_size = max_size
        self.error: Optional[OSError] = None

    def _is_root(self, path: Optional[str]) -> bool:
        if path is None:
            return False
        return os.path.normpath(path) == os.path.normpath(self.root)

    def _onerror(self, e: OSError) -> None:
        if self._is_root(e.filename):
            self.error = e
            return
        logger.warning("cannot read directory: path=%s error=%s", e.filename, e.strerror)

    def _walk(self, onerror) -> Iterator[str]:
        for dirpath, _dirnames, filenames in os.walk(
            self.root, onerror=onerror, followlinks=False
        ):
            for filename in filenames:
                yield os.path.join(dirpath, filename)

    def _over_limit(self, size: int) -> bool:
        return self.max_size is not None and size > self.max_size

    def count(self) -> tuple[int, int]:
        """Return (total_files, total_bytes) for the tree."""
        files = 0
        total_bytes = 0
        for path in self._walk(_onerror_quiet):
            try:
                st = os.stat(path)
            except OSError:
                # iter_files still yields it, so it is still one file to process
                files += 1
                continue
            if self._over_limit(st.st_size):
                continue
            files += 1
            total_bytes += st.st_size
        return files, total_bytes

    def iter_files(self) -> Iterator[str]:
        """Lazily yield file paths.  Single use: each call walks the tree again."""
        self.error = None
        for path in self._walk(self._onerror):
            if self.max_size is not None:
                try:
                    size = os.stat(path).st_size
                except OSError:
                    # Let the worker pool account for it as a skipped path
                    yield path
                    continue
                if self._over_limit(size):
                    logger.debug("skipping large file: path=%s size=%d", path, size)
                    continue
            yield path

    def raise_if_failed(self) -> None:
        if self.error is not None:
            raise FatalTraversalError(
                f"walk error: {self.root}: {self.error.strerror or self.error}"
            ) from self.error

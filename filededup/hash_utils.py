"""SHA-256 fingerprints: full-content for small files, sampled for large ones."""
from __future__ import annotations

import hashlib
import struct
from typing import BinaryIO, Optional

MIB = 1024 * 1024

FULL_HASH_LIMIT = 10 * MIB      # files strictly below this are hashed in full
HEAD_SIZE = 1 * MIB
TAIL_SIZE = 1 * MIB
LARGE_FILE_LIMIT = 100 * MIB    # above this the middle budget is capped
MAX_MIDDLE_BUDGET = 10 * MIB
NUM_SAMPLES = 10

_BUF_SIZE = 64 * 1024


def hash_file(path: str, chunk_size: int = _BUF_SIZE) -> Optional[str]:
    """
    Compute SHA-256 hex digest of the whole file.
    Returns None on PermissionError or OSError (caller decides whether to log).
    """
    h = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                h.update(chunk)
        return h.hexdigest()
    except PermissionError:
        return None
    except OSError:
        return None


def middle_budget(size: int) -> int:
    """Total bytes sampled from the middle region of a file of ``size`` bytes."""
    if size > LARGE_FILE_LIMIT:
        return MAX_MIDDLE_BUDGET
    if size > FULL_HASH_LIMIT:
        return size // 10
    return 0


def sampled_segments(size: int) -> list[tuple[int, int]]:
    """
    Return the (offset, length) segments hashed for a large file, in hash order:
    head, NUM_SAMPLES evenly spaced middle samples, tail.

    Samples are not clamped to the middle region; the last one may overlap
    the tail on files just above the limit.
    """
    segments = [(0, HEAD_SIZE)]

    budget = middle_budget(size)
    if budget > 0 and size > HEAD_SIZE + TAIL_SIZE:
        middle_start = HEAD_SIZE
        middle_range = size - TAIL_SIZE - middle_start
        sample_size = budget // NUM_SAMPLES
        for i in range(NUM_SAMPLES):
            pos = middle_start + (middle_range * i) // NUM_SAMPLES
            segments.append((pos, sample_size))

    if size > HEAD_SIZE:
        segments.append((max(size - TAIL_SIZE, 0), TAIL_SIZE))
    return segments


def _hash_segment(f: BinaryIO, h, offset: int, length: int, buf_size: int) -> int:
    f.seek(offset)
    remaining = length
    while remaining > 0:
        want = min(remaining, buf_size)
        chunk = f.read(want)
        if not chunk:
            break
        h.update(chunk)
        remaining -= len(chunk)
        if len(chunk) < want:
            # short read: the file ended inside this segment
            break
    return length - remaining


def hash_large_file(path: str, size: int, buf_size: int = _BUF_SIZE) -> Optional[str]:
    """
    Sampled SHA-256 for large files.

    Hashes head, middle samples and tail (see sampled_segments), then the
    file size as 8 little-endian bytes, so files with identical samples but
    different lengths never share a digest.  Bytes outside the sampled
    segments do not contribute: two files differing only there collide.
    Returns None on OSError.
    """
    h = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for offset, length in sampled_segments(size):
                _hash_segment(f, h, offset, length, buf_size)
    except OSError:
        return None
    h.update(struct.pack("<Q", size))
    return h.hexdigest()


def hash_by_size(path: str, size: int) -> Optional[str]:
    """Pick the hashing strategy for a file of ``size`` bytes."""
    if size < FULL_HASH_LIMIT:
        return hash_file(path)
    return hash_large_file(path, size)

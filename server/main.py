"""FastAPI application — ingest and duplicate-query endpoints."""

from __future__ import annotations

import gzip
import json
import logging
import os
import time
import zlib
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.gzip import GZipMiddleware
from pydantic import ValidationError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("filededup.server")

from server import db
from server.models import DuplicateFile, FileCount, FileRecord, FileRecordList


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init_db(os.environ.get("FILEDEDUP_DB_PATH") or db.get_db_path())
    yield


app = FastAPI(title="filededup", version="0.1.0", lifespan=lifespan)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    elapsed = time.monotonic() - start
    if elapsed > 1.0:
        logger.warning(
            "%s %s %d — %.1fs", request.method, request.url.path, response.status_code, elapsed
        )
    elif request.method == "POST":
        logger.info(
            "%s %s %d — %.3fs", request.method, request.url.path, response.status_code, elapsed
        )
    return response


# ---------------------------------------------------------------------------
# File ingest
# ---------------------------------------------------------------------------


def _decode_body(raw: bytes, content_encoding: str) -> list[FileRecord]:
    if content_encoding.lower() == "gzip":
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError, zlib.error):
            raise HTTPException(400, "Failed to decompress")
    try:
        payload = json.loads(raw)
    except ValueError:
        raise HTTPException(400, "Invalid JSON")
    try:
        return FileRecordList.validate_python(payload)
    except ValidationError as e:
        raise HTTPException(
            422, e.errors(include_url=False, include_input=False, include_context=False)
        )


def upsert_records(records: list[FileRecord]) -> int:
    # DuckDB refuses to update the same row twice in one statement, so the
    # last record for each key wins before the multi-row INSERT is built.
    latest = {(r.machine_id, r.path, r.filename): r for r in records}
    if not latest:
        return 0
    values_ph = ", ".join(["(?, ?, ?, ?, ?, ?)"] * len(latest))
    sql = f"""
        INSERT INTO files (machine_id, path, filename, size, mtime, hash)
        VALUES {values_ph}
        ON CONFLICT (machine_id, path, filename) DO UPDATE SET
            size  = excluded.size,
            mtime = excluded.mtime,
            hash  = excluded.hash
    """
    params: list = []
    for r in latest.values():
        params.extend([r.machine_id, r.path, r.filename, r.size, r.mtime.isoformat(), r.hash])
    db.execute(sql, params)
    return len(latest)


@app.post("/files", status_code=204)
async def upload_files(request: Request):
    raw = await request.body()
    records = _decode_body(raw, request.headers.get("content-encoding", ""))
    start = time.monotonic()
    n = await run_in_threadpool(upsert_records, records)
    elapsed = time.monotonic() - start
    if elapsed > 2.0:
        logger.warning("POST /files: %d records in %.1fs", n, elapsed)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@app.get("/files/count", response_model=FileCount)
def count_files():
    row = db.query_one("SELECT COUNT(*) FROM files")
    return {"count": row[0] if row else 0}


@app.get("/duplicates", response_model=list[DuplicateFile])
def find_duplicates():
    rows = db.query(
        """
        SELECT hash,
               COUNT(*) AS duplicate_count,
               list(path || '/' || filename ORDER BY path, filename) AS paths
        FROM files
        GROUP BY hash
        HAVING COUNT(*) > 1
        ORDER BY duplicate_count DESC, hash
        """
    )
    logger.info("Found %d sets of duplicate files", len(rows))
    return [
        DuplicateFile(hash=r[0], duplicate_count=r[1], paths=list(r[2]))
        for r in rows
    ]

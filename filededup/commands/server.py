"""filededup server — start the FastAPI aggregation server with uvicorn."""
from __future__ import annotations

import os
import sys

import uvicorn


def resolve_db_path(db_flag: str | None) -> str:
    """
    Pin the DuckDB file for the server process.  --db wins over
    FILEDEDUP_DB_PATH; the result is exported so uvicorn reload workers
    open the same file.
    """
    from server.db import get_db_path

    if db_flag:
        os.environ["FILEDEDUP_DB_PATH"] = db_flag
    db_path = get_db_path()
    if db_path != ":memory:":
        db_path = os.path.abspath(os.path.expanduser(db_path))
        os.environ["FILEDEDUP_DB_PATH"] = db_path
    return db_path


def cmd_server(args) -> None:
    db_path = resolve_db_path(getattr(args, "db", None))
    if db_path != ":memory:" and not os.path.isdir(os.path.dirname(db_path)):
        print(f"filededup: database directory does not exist: {os.path.dirname(db_path)}",
              file=sys.stderr)
        sys.exit(1)

    print(f"Starting filededup server on {args.host}:{args.port} (db: {db_path})", flush=True)
    uvicorn.run(
        "server.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )

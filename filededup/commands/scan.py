"""filededup scan — walk a directory, hash every file, POST records to the server."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

from filededup.agent import Agent
from filededup.commands import _effective_machine_id, print_config_hint
from filededup.config import get_agent_config, get_server_url
from filededup.progress import format_size
from filededup.walker import FatalTraversalError

logger = logging.getLogger("filededup.scan")


def _pick(value, fallback):
    return fallback if value is None else value


def resolve_scan_settings(args, cfg: dict[str, Any] | None = None) -> dict[str, Any]:
    """Merge CLI flags over config (which already carries env overrides and defaults)."""
    if cfg is None:
        cfg = get_agent_config()
    skip_large = bool(_pick(getattr(args, "skip_large", None), cfg.get("skip_large", False)))
    max_size = _pick(getattr(args, "max_size", None), cfg.get("max_size", 1024 * 1024 * 1024))
    raw_root = getattr(args, "path", ".") or "."
    return {
        "root": os.path.expanduser(raw_root),
        "server_url": getattr(args, "server", None) or get_server_url(),
        "machine_id": getattr(args, "machine_id", None) or _effective_machine_id(),
        "batch_size": _pick(getattr(args, "batch", None), cfg.get("batch_size", 1000)),
        "workers": _pick(getattr(args, "workers", None), cfg.get("workers", 0)),
        "queue_size": _pick(getattr(args, "queue_size", None), cfg.get("queue_size", 0)),
        "max_file_size": max_size if skip_large else None,
        "progress_interval": _pick(
            getattr(args, "progress_interval", None), cfg.get("progress_interval", 3)
        ),
    }


def cmd_scan(args) -> None:
    settings = resolve_scan_settings(args)
    max_size = settings["max_file_size"]

    logger.info(
        "Starting file deduplication agent: dir=%s server=%s machineID=%s batchSize=%d"
        " skipLarge=%s maxSize=%s",
        settings["root"],
        settings["server_url"],
        settings["machine_id"],
        settings["batch_size"],
        max_size is not None,
        format_size(max_size) if max_size is not None else "-",
    )

    try:
        agent = Agent(**settings)
    except ValueError as e:
        print(f"filededup: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        summary = agent.run()
    except FatalTraversalError as e:
        logger.error("Agent failed: %s", e)
        sys.exit(1)

    if summary.batches_failed:
        logger.warning(
            "%d of %d batches could not be delivered",
            summary.batches_failed,
            summary.batches_failed + summary.batches_sent,
        )
        print_config_hint()
    logger.info("Agent completed successfully")

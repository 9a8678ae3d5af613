"""Shared HTTP client — gzip batch upload and JSON queries."""
from __future__ import annotations

import gzip
import json
from typing import Any, Iterable, Optional

import requests
from requests.adapters import HTTPAdapter

from filededup.config import get_server_url
from filededup.record import FileRecord


class DeliveryError(Exception):
    """A batch could not be delivered: transport failure or non-204 reply."""


def _make_session() -> requests.Session:
    # No urllib3-level retries: a failed batch is dropped, never resent.
    session = requests.Session()
    adapter = HTTPAdapter()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


# Module-level singleton: reuses TCP connections across all requests in a process
_session: requests.Session | None = None


def _get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = _make_session()
    return _session


def api_url(path: str, server_url: Optional[str] = None) -> str:
    """Construct full API URL from server URL (default: config) + path."""
    base = (server_url or get_server_url()).rstrip("/")
    return f"{base}{path}"


def encode_batch(records: Iterable[FileRecord]) -> bytes:
    """Serialize records as a JSON array and gzip it."""
    payload = json.dumps([r.to_dict() for r in records]).encode("utf-8")
    return gzip.compress(payload)


def send_batch(
    records: list[FileRecord],
    server_url: Optional[str] = None,
    timeout: tuple = (5, 30),
) -> None:
    """POST one batch to /files.  Raises DeliveryError unless the server replies 204."""
    body = encode_batch(records)
    try:
        resp = _get_session().post(
            api_url("/files", server_url),
            data=body,
            headers={
                "Content-Type": "application/json",
                "Content-Encoding": "gzip",
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise DeliveryError(f"http error: {e}") from e
    if resp.status_code != 204:
        raise DeliveryError(f"server responded with: {resp.status_code} {resp.reason}")


def get(path: str, params: dict | None = None, server_url: Optional[str] = None) -> Any:
    resp = _get_session().get(api_url(path, server_url), params=params, timeout=(5, 30))
    resp.raise_for_status()
    return resp.json()

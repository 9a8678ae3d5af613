"""Tests for filededup.client — gzip batch upload."""
import gzip
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from filededup import client
from filededup.client import DeliveryError, api_url, encode_batch, send_batch
from filededup.record import FileRecord


def _record(name="a.txt", hash_val="a" * 64):
    return FileRecord(
        machine_id="box",
        path="/data",
        filename=name,
        size=12,
        mtime=datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc),
        hash=hash_val,
    )


def _session_returning(status_code=204, reason="No Content", exc=None):
    session = MagicMock()
    if exc is not None:
        session.post.side_effect = exc
    else:
        session.post.return_value = MagicMock(status_code=status_code, reason=reason)
    return session


class TestEncodeBatch:
    def test_gzip_json_array_of_wire_records(self):
        body = encode_batch([_record("a.txt"), _record("b.txt", "b" * 64)])
        decoded = json.loads(gzip.decompress(body))
        assert [d["filename"] for d in decoded] == ["a.txt", "b.txt"]
        assert decoded[0] == {
            "machine_id": "box",
            "path": "/data",
            "filename": "a.txt",
            "size": 12,
            "mtime": "2025-01-15T10:00:00+00:00",
            "hash": "a" * 64,
        }


class TestApiUrl:
    def test_explicit_server(self):
        assert api_url("/files", "http://srv:8080/") == "http://srv:8080/files"

    def test_falls_back_to_config(self):
        with patch("filededup.client.get_server_url", return_value="http://cfg:9000"):
            assert api_url("/duplicates") == "http://cfg:9000/duplicates"


class TestSendBatch:
    def test_posts_gzip_with_headers(self):
        session = _session_returning()
        with patch.object(client, "_get_session", return_value=session):
            send_batch([_record()], server_url="http://srv:8080")

        args, kwargs = session.post.call_args
        assert args[0] == "http://srv:8080/files"
        assert kwargs["headers"]["Content-Encoding"] == "gzip"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert json.loads(gzip.decompress(kwargs["data"]))[0]["filename"] == "a.txt"

    @pytest.mark.parametrize("status", [200, 400, 500, 503])
    def test_any_status_but_204_fails(self, status):
        session = _session_returning(status_code=status, reason="Nope")
        with patch.object(client, "_get_session", return_value=session):
            with pytest.raises(DeliveryError, match=str(status)):
                send_batch([_record()], server_url="http://srv")

    def test_transport_error_fails(self):
        session = _session_returning(exc=requests.ConnectionError("refused"))
        with patch.object(client, "_get_session", return_value=session):
            with pytest.raises(DeliveryError, match="refused"):
                send_batch([_record()], server_url="http://srv")

    def test_single_attempt_per_batch(self):
        session = _session_returning(status_code=500)
        with patch.object(client, "_get_session", return_value=session):
            with pytest.raises(DeliveryError):
                send_batch([_record()], server_url="http://srv")
        assert session.post.call_count == 1

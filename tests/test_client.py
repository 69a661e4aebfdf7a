"""Tests for the HTTP client's wire handling."""

import pytest

from rankedit.client import ApiError, EditorClient, NotFound, _api_error
from rankedit.links import parse_editor_url
from rankedit.models import Snapshot


def test_upload_fetch_submit_retrieve(editor_client):
    assert editor_client.upload(Snapshot(ranks=[{"id": "member"}], version=1, server_uuid="uuid-999")) == (
        "Data uploaded successfully"
    )
    snap = editor_client.fetch()
    assert snap.ranks == [{"id": "member"}]
    assert snap.version == 1

    result = editor_client.submit()
    assert result.version == 1
    assert result.download_url == "/api/editor/abc123/download"

    changes = editor_client.retrieve()
    assert changes.editor_id == "abc123"
    assert changes.server_uuid == "uuid-999"
    assert changes.rank_changes == []


def test_upload_sends_data_envelope(editor_client):
    editor_client.upload(Snapshot(version=1))
    method, payload = editor_client.calls[0]
    assert method == "POST"
    assert set(payload) == {"data"}


def test_retrieve_without_changes_is_not_found(editor_client):
    editor_client.upload(Snapshot())
    with pytest.raises(NotFound, match="No changes found"):
        editor_client.retrieve()


def test_api_error_uses_error_body():
    err = _api_error(405, b'{"error": "Method not allowed"}')
    assert type(err) is ApiError
    assert err.status == 405
    assert str(err) == "Method not allowed (HTTP 405)"


def test_api_error_without_json_body():
    err = _api_error(404, b"<html>nope</html>")
    assert isinstance(err, NotFound)
    assert err.message == "HTTP 404"


def test_unreachable_server():
    link = parse_editor_url("http://127.0.0.1:1/abc123/uuid-999")
    with pytest.raises(ApiError) as exc:
        EditorClient(link, timeout=2).fetch()
    assert exc.value.status == 0

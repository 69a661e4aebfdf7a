"""Tests for the rankedit CLI, with the HTTP client routed to a Flask test client."""

import json

import pytest
from typer.testing import CliRunner

import rankedit.__main__ as cli
from conftest import EDITOR_URL, FlaskEditorClient

runner = CliRunner()


@pytest.fixture
def routed(monkeypatch, client):
    """Point every CLI command at the in-process app."""
    monkeypatch.setattr(cli, "_client", lambda url, settings: FlaskEditorClient(client, url))
    return client


@pytest.fixture
def uploaded(routed, snapshot):
    routed.post("/api/editor/abc123", json={"data": snapshot})
    return routed


def test_connect_prints_parts():
    result = runner.invoke(cli.app, ["connect", EDITOR_URL])
    assert result.exit_code == 0
    assert "abc123" in result.output
    assert "https://game.example/api/editor/abc123" in result.output


def test_connect_bad_url():
    result = runner.invoke(cli.app, ["connect", "https://host/onlyone"])
    assert result.exit_code == 1
    assert "Invalid URL format." in result.output


def test_show_renders_ranks(uploaded):
    result = runner.invoke(cli.app, ["show", EDITOR_URL, "--filter", "adm"])
    assert result.exit_code == 0
    assert "admin" in result.output
    assert "&4[ADMIN]" in result.output


def test_show_unknown_session(routed):
    result = runner.invoke(cli.app, ["show", EDITOR_URL])
    assert result.exit_code == 1
    assert "Session not found" in result.output


def test_upload_file(routed, snapshot, tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot), encoding="utf-8")
    result = runner.invoke(cli.app, ["upload", EDITOR_URL, str(path)])
    assert result.exit_code == 0
    assert routed.get("/api/editor/abc123").get_json()["version"] == 3


def test_rank_set_then_download(uploaded, tmp_path):
    result = runner.invoke(cli.app, ["rank", "set", EDITOR_URL, "vip", "--name", "VIP", "--weight", "50"])
    assert result.exit_code == 0
    assert "version 1" in result.output

    out = tmp_path / "changes.json"
    result = runner.invoke(cli.app, ["download", EDITOR_URL, "--output", str(out)])
    assert result.exit_code == 0
    changes = json.loads(out.read_text(encoding="utf-8"))
    assert changes["version"] == 1
    assert changes["rankChanges"][0]["rankId"] == "vip"
    assert changes["rankChanges"][0]["action"] == "create"
    assert changes["rankChanges"][0]["weight"] == 50


def test_rank_set_existing_keeps_other_fields(uploaded):
    runner.invoke(cli.app, ["rank", "set", EDITOR_URL, "admin", "--weight", "950"])
    change = uploaded.delete("/api/editor/abc123").get_json()["rankChanges"][0]
    assert change["action"] == "update"
    assert change["weight"] == 950
    assert change["prefix"] == "&4[ADMIN] "
    assert change["permissions"] == ["essentials.*"]


def test_tag_delete(uploaded):
    result = runner.invoke(cli.app, ["tag", "delete", EDITOR_URL, "star"])
    assert result.exit_code == 0
    change = uploaded.delete("/api/editor/abc123").get_json()["tagChanges"]
    assert change == [{"action": "delete", "tagId": "star"}]


def test_download_without_changes(uploaded):
    result = runner.invoke(cli.app, ["download", EDITOR_URL])
    assert result.exit_code == 1
    assert "No changes found" in result.output


def test_show_renders_null_fields(routed):
    routed.post("/api/editor/abc123", json={"data": {"ranks": [{"id": "vip", "name": None}]}})
    result = runner.invoke(cli.app, ["show", EDITOR_URL])
    assert result.exit_code == 0
    assert "vip" in result.output


def test_rank_set_clear_permissions(uploaded):
    result = runner.invoke(cli.app, ["rank", "set", EDITOR_URL, "admin", "--clear-permissions"])
    assert result.exit_code == 0
    change = uploaded.delete("/api/editor/abc123").get_json()["rankChanges"][0]
    assert change["permissions"] == []
    assert change["prefix"] == "&4[ADMIN] "


def test_rank_set_clear_then_replace_permissions(uploaded):
    runner.invoke(cli.app, [
        "rank", "set", EDITOR_URL, "admin", "--clear-permissions", "--permission", "chat.color",
    ])
    change = uploaded.delete("/api/editor/abc123").get_json()["rankChanges"][0]
    assert change["permissions"] == ["chat.color"]


def test_watch_applies_filter(uploaded, monkeypatch):
    real_render = cli.render_view

    def render_then_stop(view, link, console, query=""):
        real_render(view, link, console, query=query)
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "render_view", render_then_stop)
    result = runner.invoke(cli.app, ["watch", EDITOR_URL, "--filter", "adm", "--interval", "0.01"])
    assert result.exit_code == 0
    assert "Filter:" in result.output
    assert "admin" in result.output
    assert "member" not in result.output
    assert "Stopped." in result.output

"""Shared fixtures: a Flask test client over a fresh store, and an
EditorClient that talks to it without a network."""

from __future__ import annotations

import json
from urllib.parse import urlsplit

import pytest

from rankedit.api import create_app
from rankedit.client import EditorClient, _api_error
from rankedit.links import parse_editor_url
from rankedit.store import SessionStore

EDITOR_URL = "https://editor.example/abc123/uuid-999?api=https://game.example"


class FlaskEditorClient(EditorClient):
    """EditorClient routed through Flask's test client."""

    def __init__(self, flask_client, url: str = EDITOR_URL):
        super().__init__(parse_editor_url(url))
        self.flask_client = flask_client
        self.calls: list[tuple[str, object]] = []

    def _request(self, method, payload=None):
        self.calls.append((method, payload))
        path = urlsplit(self.link.endpoint).path
        resp = self.flask_client.open(path, method=method, json=payload)
        if resp.status_code >= 400:
            raise _api_error(resp.status_code, resp.data)
        return json.loads(resp.data)


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def app(store):
    app = create_app(store=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def member_rank():
    return {
        "id": "member",
        "name": "Member",
        "prefix": "&7",
        "suffix": "",
        "color": "&7",
        "weight": 0,
        "default": True,
        "permissions": [],
    }


@pytest.fixture
def snapshot(member_rank):
    """A valid upload payload."""
    return {
        "ranks": [
            member_rank,
            {
                "id": "admin",
                "name": "Admin",
                "prefix": "&4[ADMIN] ",
                "suffix": "",
                "color": "&4",
                "weight": 900,
                "default": False,
                "permissions": ["essentials.*"],
            },
        ],
        "tags": [
            {"id": "star", "displayName": "Star", "prefix": "&e*", "suffix": "", "priority": 5},
        ],
        "lastUpdated": 1700000000000,
        "version": 3,
        "serverUuid": "uuid-999",
    }


@pytest.fixture
def editor_client(client):
    return FlaskEditorClient(client)

"""Session API: the Flask application the editor view and collaborator talk to.

Routes:
    POST   /api/editor/<editorId>           upload (body has `data`) or submit changes
    GET    /api/editor/<editorId>           fetch the current snapshot
    DELETE /api/editor/<editorId>           retrieve the pending change-set
    GET    /api/editor/<editorId>/download  same change-set, as a file attachment
    POST   /connect                         landing flow: pasted URL -> editor view

Every error is a JSON body `{"error": ...}`. Validation happens before any
write, so a failed request leaves the session untouched.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from flask import Flask, Response, jsonify, redirect, request
from werkzeug.exceptions import HTTPException

from rankedit.links import InvalidEditorURL, parse_editor_url
from rankedit.models import ChangeSet, RankChange, RecordError, Snapshot, TagChange, now_ms
from rankedit.store import SessionStore

logger = logging.getLogger(__name__)


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status


def _is_upload(data) -> bool:
    """An upload carries non-empty `data`; null, false, 0 and "" mean a submit."""
    if data is None or data is False or data == "":
        return False
    return not (isinstance(data, (int, float)) and data == 0)


def _json_body() -> dict:
    """Request body as a dict; anything else counts as an empty body."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def create_app(store: Optional[SessionStore] = None) -> Flask:
    """Build the Flask app around a session store.

    Args:
        store: Store to serve from. A fresh in-memory store when omitted.
    """
    app = Flask(__name__)
    app.extensions["rankedit.store"] = store if store is not None else SessionStore()

    def _store() -> SessionStore:
        return app.extensions["rankedit.store"]

    # --- Session API ---

    @app.route("/api/editor/<editor_id>", methods=["GET", "POST", "DELETE"])
    def editor_session(editor_id: str):
        body = _json_body() if request.method == "POST" else {}

        if request.method == "POST" and _is_upload(body.get("data")):
            return _upload(editor_id, body["data"])
        if request.method == "GET":
            return _fetch(editor_id)
        if request.method == "POST":
            return _submit(editor_id, body)
        return _retrieve(editor_id)

    def _upload(editor_id: str, data) -> tuple[Response, int]:
        try:
            snapshot = Snapshot.from_dict(data)
        except RecordError as e:
            return _error(str(e), 400)
        _store().put_snapshot(editor_id, snapshot)
        logger.info(
            "Snapshot uploaded for %s (%d ranks, %d tags, version %s)",
            editor_id, len(snapshot.ranks), len(snapshot.tags), snapshot.version,
        )
        return jsonify({"success": True, "message": "Data uploaded successfully"}), 200

    def _fetch(editor_id: str) -> tuple[Response, int]:
        snapshot = _store().get_snapshot(editor_id)
        if snapshot is None:
            return _error("Session not found - please upload data file", 404)
        return jsonify(snapshot.to_dict()), 200

    def _submit(editor_id: str, body: dict) -> tuple[Response, int]:
        snapshot = _store().get_snapshot(editor_id)
        if snapshot is None:
            return _error("Session not found", 404)
        try:
            rank_changes = RankChange.list_from(body.get("rankChanges"))
            tag_changes = TagChange.list_from(body.get("tagChanges"))
        except RecordError as e:
            return _error(str(e), 400)

        current = _store().get_changes(editor_id)
        version = (current.version if current else 0) + 1
        _store().put_changes(editor_id, ChangeSet(
            editor_id=editor_id,
            server_uuid=snapshot.server_uuid,
            rank_changes=rank_changes,
            tag_changes=tag_changes,
            version=version,
            submitted_at=now_ms(),
        ))
        logger.info(
            "Changes submitted for %s: version %d (%d rank, %d tag)",
            editor_id, version, len(rank_changes), len(tag_changes),
        )
        return jsonify({
            "success": True,
            "version": version,
            "downloadUrl": f"/api/editor/{editor_id}/download",
        }), 200

    def _retrieve(editor_id: str) -> tuple[Response, int]:
        changes = _store().get_changes(editor_id)
        if changes is None:
            return _error("No changes found", 404)
        logger.info("Changes retrieved for %s (version %d)", editor_id, changes.version)
        return jsonify(changes.to_dict()), 200

    @app.get("/api/editor/<editor_id>/download")
    def download(editor_id: str):
        changes = _store().get_changes(editor_id)
        if changes is None:
            return _error("No changes found", 404)
        filename = f"changes-{editor_id}-v{changes.version}.json"
        logger.info("Change-set download for %s (version %d)", editor_id, changes.version)
        return Response(
            json.dumps(changes.to_dict(), indent=2, sort_keys=True),
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # --- Landing flow ---

    @app.post("/connect")
    def connect():
        url = request.form.get("url") or _json_body().get("url") or ""
        try:
            link = parse_editor_url(url)
        except InvalidEditorURL as e:
            return _error(str(e), 400)
        return redirect(link.view_location(), code=302)

    # --- Errors ---

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _error("Method not allowed", 405)

    @app.errorhandler(Exception)
    def internal_error(e):
        if isinstance(e, HTTPException):
            return _error(e.description or e.name, e.code or 500)
        logger.exception("API error")
        return _error("Internal server error", 500)

    return app

"""HTTP client for the session API.

Used by the editor view (fetch/submit) and by the collaborator side of the
CLI (upload/retrieve). Plain urllib; every non-2xx answer becomes an ApiError.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Iterable, Optional

from rankedit.config import DEFAULT_TIMEOUT
from rankedit.links import EditorLink
from rankedit.models import ChangeSet, RankChange, RecordError, Snapshot, TagChange


class ApiError(Exception):
    """The session API refused a request, or could not be reached (status 0)."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class NotFound(ApiError):
    """No snapshot or no change-set for this session."""


@dataclass
class SubmitResult:
    """What the API answers to a successful submit."""

    version: int
    download_url: str


class EditorClient:
    """Talks to /api/editor/<editorId> for one editor session."""

    def __init__(self, link: EditorLink, timeout: float = DEFAULT_TIMEOUT):
        self.link = link
        self.timeout = timeout

    def _request(self, method: str, payload: Optional[dict] = None):
        """Send one request and return the decoded JSON body.

        Raises:
            NotFound: HTTP 404.
            ApiError: any other non-2xx status, or a transport failure.
        """
        url = self.link.endpoint
        data = json.dumps(payload).encode() if payload is not None else None
        headers = {"Accept": "application/json"}
        if data is not None:
            headers["Content-Type"] = "application/json"
        req = urllib.request.Request(url, data=data, headers=headers, method=method)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read()
        except urllib.error.HTTPError as e:
            raise _api_error(e.code, e.read())
        except (urllib.error.URLError, OSError) as e:
            raise ApiError(0, f"Could not reach {url}: {e}")

        try:
            return json.loads(body)
        except json.JSONDecodeError:
            raise ApiError(0, f"Malformed response from {url}")

    def upload(self, snapshot: Snapshot) -> str:
        """Upload a snapshot for this session; returns the server's message."""
        body = self._request("POST", {"data": snapshot.to_upload()})
        return body.get("message", "")

    def fetch(self) -> Snapshot:
        try:
            return Snapshot.from_dict(self._request("GET"))
        except RecordError as e:
            raise ApiError(0, f"Malformed snapshot: {e}")

    def submit(
        self,
        rank_changes: Iterable[RankChange] = (),
        tag_changes: Iterable[TagChange] = (),
    ) -> SubmitResult:
        payload = {
            "rankChanges": [c.to_dict() for c in rank_changes],
            "tagChanges": [c.to_dict() for c in tag_changes],
        }
        body = self._request("POST", payload)
        return SubmitResult(version=body.get("version", 0), download_url=body.get("downloadUrl", ""))

    def retrieve(self) -> ChangeSet:
        """Fetch the pending change-set (non-destructive)."""
        try:
            return ChangeSet.from_dict(self._request("DELETE"))
        except RecordError as e:
            raise ApiError(0, f"Malformed change-set: {e}")


def _api_error(status: int, raw: bytes) -> ApiError:
    """Build the error for an HTTP failure, using the body's `error` if any."""
    message = f"HTTP {status}"
    try:
        body = json.loads(raw)
        if isinstance(body, dict) and body.get("error"):
            message = body["error"]
    except (json.JSONDecodeError, UnicodeDecodeError):
        pass
    cls = NotFound if status == 404 else ApiError
    return cls(status, message)

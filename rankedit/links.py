"""Parse the editor URL the collaborator hands out in-game.

The URL looks like:
    https://editor.example/<editorId>/<serverUuid>?api=https://game.example

`api` points at the session API base; without it the URL's own origin is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

BAD_URL = "Invalid URL. Please enter a valid editor URL."
BAD_FORMAT = "Invalid URL format. Please use the URL from /superior web connect"


class InvalidEditorURL(ValueError):
    """The pasted text is not a usable editor URL."""


@dataclass(frozen=True)
class EditorLink:
    """Where an editor session lives."""

    editor_id: str
    server_uuid: str
    api_base: str

    @property
    def editor_path(self) -> str:
        """Path of the editor view for this session."""
        return f"/{quote(self.editor_id, safe='')}/{quote(self.server_uuid, safe='')}"

    @property
    def endpoint(self) -> str:
        """Session API endpoint for this editor id."""
        return f"{self.api_base}/api/editor/{quote(self.editor_id, safe='')}"

    def view_location(self, with_api: bool = True) -> str:
        """editor_path plus the api query parameter, for redirects."""
        if not with_api:
            return self.editor_path
        return f"{self.editor_path}?{urlencode({'api': self.api_base})}"


def parse_editor_url(text: str) -> EditorLink:
    """Extract editor id, server uuid and API base from a pasted URL.

    Raises:
        InvalidEditorURL: the text is not an absolute URL, or its path has
            fewer than two segments.
    """
    try:
        parts = urlsplit((text or "").strip())
    except ValueError:
        raise InvalidEditorURL(BAD_URL)
    if not parts.scheme or not parts.netloc:
        raise InvalidEditorURL(BAD_URL)

    segments = [unquote(p) for p in parts.path.split("/") if p]
    if len(segments) < 2:
        raise InvalidEditorURL(BAD_FORMAT)

    api = parse_qs(parts.query).get("api", [""])[0].strip()
    api_base = (api or f"{parts.scheme}://{parts.netloc}").rstrip("/")

    return EditorLink(editor_id=segments[0], server_uuid=segments[1], api_base=api_base)

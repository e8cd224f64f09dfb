"""Utility helpers shared across server modules."""

import os
from urllib.parse import unquote_to_bytes

MIME_TYPES: dict[str, str] = {
    ".css": "text/css",
    ".html": "text/html",
    ".gif": "image/gif",
    ".ico": "image/x-ico",
    ".jpg": "image/jpeg",
    ".js": "text/javascript",
    ".php": "text/x-php",
    ".png": "image/png",
}

HTML_ENTITIES: dict[str, str] = {
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#039;",
    "<": "&lt;",
    ">": "&gt;",
}


class PathTraversalError(ValueError):
    """Raised when a request path climbs above the server root."""


def get_content_type(file_path: str) -> str | None:
    """Return the MIME type for a supported extension, else None."""
    _stem, extension = os.path.splitext(file_path)
    return MIME_TYPES.get(extension.lower())


def url_decode(value: str) -> bytes:
    """Decode '+' and %XX escapes; malformed escapes are kept literally.

    ``value`` is text decoded from the wire as ISO-8859-1, so unescaped
    non-ASCII characters map back to the bytes the client sent.
    """
    return unquote_to_bytes(value.replace("+", " ").encode("iso-8859-1"))


def html_escape(value: str) -> str:
    return "".join(HTML_ENTITIES.get(char, char) for char in value)


def resolve_request_path(root: str, request_path: str) -> str:
    """Map an absolute-path onto the filesystem below root.

    The result is always ``root`` followed by the decoded path. Raises
    PathTraversalError when ``..`` segments would leave the root, and
    ValueError when the decoded path contains a NUL byte.
    """
    decoded = os.fsdecode(url_decode(request_path))
    if "\x00" in decoded:
        raise ValueError("Request path contains a NUL byte")

    depth = 0
    for segment in decoded.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            depth -= 1
            if depth < 0:
                raise PathTraversalError(f"Request path escapes root: {request_path!r}")
        else:
            depth += 1

    return root + decoded

"""Generated HTML listings for directories without an index file."""

import logging
import os
from urllib.parse import quote

from response import HTTPResponse, error_response
from utils import html_escape

logger = logging.getLogger(__name__)

LISTING_TEMPLATE = (
    "<html><head><title>{title}</title></head>"
    "<body><h1>{title}</h1><ul>{items}</ul></body></html>"
)
ITEM_TEMPLATE = '<li><a href="{href}">{name}</a></li>'


def directory_entries(dir_path: str) -> list[str]:
    """Return the directory's entries plus "..", sorted by name."""
    return sorted(["..", *os.listdir(dir_path)])


def render_listing(title: str, entries: list[str]) -> str:
    items = "".join(
        ITEM_TEMPLATE.format(
            href=html_escape(quote(entry, errors="surrogateescape")),
            name=html_escape(entry),
        )
        for entry in entries
    )
    return LISTING_TEMPLATE.format(title=html_escape(title), items=items)


def list_directory(dir_path: str, root: str) -> HTTPResponse:
    if not os.access(dir_path, os.R_OK | os.X_OK):
        return error_response(403)

    try:
        body = render_listing(dir_path[len(root) :], directory_entries(dir_path))
    except (OSError, MemoryError):
        logger.exception("Failed to list %s", dir_path)
        return error_response(500)

    return HTTPResponse(
        status_code=200,
        headers={"Content-Type": "text/html"},
        body=body.encode("utf-8", errors="surrogateescape"),
    )

"""Static file transfer."""

import logging
import os

from response import HTTPResponse, error_response

logger = logging.getLogger(__name__)


def serve_file(file_path: str, content_type: str) -> HTTPResponse:
    if not os.access(file_path, os.R_OK):
        return error_response(403)

    try:
        with open(file_path, "rb") as file_obj:
            content = file_obj.read()
    except OSError:
        logger.exception("Failed to read %s", file_path)
        return error_response(500)

    return HTTPResponse(
        status_code=200,
        headers={"Content-Type": content_type},
        body=content,
    )

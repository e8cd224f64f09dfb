"""Filesystem routing: redirect, index substitution, listing, script or file."""

from __future__ import annotations

import os
from collections.abc import Sequence

from config import INDEX_FILES, INTERPRETER_COMMAND
from handlers.interpreter import interpret
from handlers.listing import list_directory
from handlers.static import serve_file
from request import HTTPRequest
from response import HTTPResponse, error_response, redirect_response
from utils import PathTraversalError, get_content_type, resolve_request_path

DYNAMIC_CONTENT_TYPE = "text/x-php"


class Router:
    def __init__(
        self,
        root: str,
        *,
        index_files: Sequence[str] = INDEX_FILES,
        interpreter_command: Sequence[str] = INTERPRETER_COMMAND,
    ) -> None:
        self.root = root
        self.index_files = tuple(index_files)
        self.interpreter_command = tuple(interpreter_command)

    def find_index(self, dir_path: str) -> str | None:
        """Return the first index file present in dir_path, in priority order."""
        for name in self.index_files:
            candidate = os.path.join(dir_path, name)
            if os.path.exists(candidate):
                return candidate
        return None

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        try:
            path = resolve_request_path(self.root, request.path)
        except PathTraversalError:
            return error_response(403)
        except ValueError:
            return error_response(404)

        if not os.path.exists(path):
            return error_response(404)

        if os.path.isdir(path):
            if not request.path.endswith("/"):
                return redirect_response(request.path + "/")

            index_path = self.find_index(path)
            if index_path is None:
                return list_directory(path, self.root)
            path = index_path

        content_type = get_content_type(path)
        if content_type is None:
            return error_response(501)

        if content_type == DYNAMIC_CONTENT_TYPE:
            return interpret(path, request.query, self.interpreter_command)
        return serve_file(path, content_type)

"""CGI-style adapter that runs an external interpreter for dynamic pages."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence

from config import INTERPRETER_COMMAND
from response import HTTPResponse, error_response

logger = logging.getLogger(__name__)


class InterpreterOutputError(ValueError):
    """Raised when interpreter output has no blank line after its headers."""


def build_environment(script_path: str, query: str) -> dict[str, str | bytes]:
    """Build the interpreter environment.

    The query is re-encoded as ISO-8859-1, the codec the request-line was
    decoded with, so the interpreter sees the exact bytes the client sent.
    """
    return {
        "PATH": os.environ.get("PATH", os.defpath),
        "GATEWAY_INTERFACE": "CGI/1.1",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "REQUEST_METHOD": "GET",
        "QUERY_STRING": query.encode("iso-8859-1"),
        "SCRIPT_FILENAME": script_path,
        "REDIRECT_STATUS": "200",
    }


def parse_header_block(header_block: bytes) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in header_block.decode("iso-8859-1").split("\r\n"):
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        name = name.strip()
        value = value.strip()
        if name in headers:
            headers[name] = f"{headers[name]}, {value}"
        else:
            headers[name] = value
    return headers


def split_interpreter_output(output: bytes) -> tuple[dict[str, str], bytes]:
    """Split raw interpreter output into (headers, body) at the first blank line."""
    header_end = output.find(b"\r\n\r\n")
    if header_end == -1:
        raise InterpreterOutputError("Interpreter output has no header terminator")
    return parse_header_block(output[:header_end]), output[header_end + 4 :]


def interpret(
    script_path: str,
    query: str,
    command: Sequence[str] = INTERPRETER_COMMAND,
) -> HTTPResponse:
    if not os.access(script_path, os.R_OK):
        return error_response(403)
    if not command:
        logger.error("No interpreter command configured")
        return error_response(500)

    try:
        completed = subprocess.run(
            list(command),
            env=build_environment(script_path, query),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError:
        logger.exception("Failed to start interpreter %s", command[0])
        return error_response(500)

    if completed.returncode != 0:
        logger.warning(
            "Interpreter exited with status %s for %s: %s",
            completed.returncode,
            script_path,
            completed.stderr.decode("utf-8", errors="replace").strip(),
        )

    try:
        headers, body = split_interpreter_output(completed.stdout)
    except InterpreterOutputError:
        logger.error("Malformed interpreter output for %s", script_path)
        return error_response(500)

    return HTTPResponse(status_code=200, headers=headers, body=body)

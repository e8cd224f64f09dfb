"""Low-level socket read/write utilities."""

from __future__ import annotations

import logging
import socket

from config import (
    BUFFER_SIZE,
    LIMIT_REQUEST_FIELD_SIZE,
    LIMIT_REQUEST_FIELDS,
    LIMIT_REQUEST_LINE,
    MAX_REQUEST_BYTES,
)
from response import REASON_PHRASES, HTTPResponse, prepare_response

logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"
CRLF = b"\r\n"


class HTTPReadError(Exception):
    """Raised when a client request cannot be safely read from the socket."""


class ConnectionClosedError(HTTPReadError):
    """Raised when the peer closes the connection before the headers end."""


class RequestReadError(HTTPReadError):
    """Raised when the underlying socket read fails."""


class SocketTimeoutError(HTTPReadError):
    """Raised when a client times out while sending request bytes."""


class RequestTooLargeError(HTTPReadError):
    """Raised when no header terminator appears within MAX_REQUEST_BYTES."""


class RequestLineTooLongError(HTTPReadError):
    """Raised when the request-line exceeds LIMIT_REQUEST_LINE bytes."""


class HeaderFieldTooLongError(HTTPReadError):
    """Raised when a header line exceeds LIMIT_REQUEST_FIELD_SIZE bytes."""


class TooManyHeaderFieldsError(HTTPReadError):
    """Raised when a request carries more than LIMIT_REQUEST_FIELDS headers."""


def validate_request_head(
    head: bytes,
    *,
    limit_request_line: int = LIMIT_REQUEST_LINE,
    limit_field_size: int = LIMIT_REQUEST_FIELD_SIZE,
    limit_fields: int = LIMIT_REQUEST_FIELDS,
) -> None:
    """Check a CRLF-terminated request head against the request limits.

    Line lengths are measured including their trailing CRLF.
    """
    line_end = head.find(CRLF)
    if line_end == -1:
        raise RequestLineTooLongError("Request-line is not CRLF terminated")
    if line_end + 2 > limit_request_line:
        raise RequestLineTooLongError(
            f"Request-line exceeded {limit_request_line} bytes"
        )

    fields = 0
    position = line_end + 2
    while position < len(head):
        field_end = head.find(CRLF, position)
        if field_end == -1:
            raise HeaderFieldTooLongError("Header field is not CRLF terminated")
        if field_end - position + 2 > limit_field_size:
            raise HeaderFieldTooLongError(
                f"Header field exceeded {limit_field_size} bytes"
            )
        fields += 1
        if fields > limit_fields:
            raise TooManyHeaderFieldsError(f"Request exceeded {limit_fields} header fields")
        position = field_end + 2


def read_http_request(
    client_socket: socket.socket,
    *,
    chunk_size: int = BUFFER_SIZE,
    max_request_bytes: int = MAX_REQUEST_BYTES,
) -> bytes:
    """Read one request head, ending with the CRLF of its last line.

    Any bytes after the blank line are discarded; request bodies are not
    supported. Raises an HTTPReadError subclass when no valid head can be read.
    """
    buffer = bytearray()

    while len(buffer) < max_request_bytes:
        try:
            chunk = client_socket.recv(min(chunk_size, max_request_bytes - len(buffer)))
        except socket.timeout as exc:
            raise SocketTimeoutError("Timed out waiting for request bytes") from exc
        except OSError as exc:
            raise RequestReadError(f"Socket read failed: {exc}") from exc

        if not chunk:
            raise ConnectionClosedError("Connection closed before request completed")

        search_from = max(0, len(buffer) - (len(HEADER_TERMINATOR) - 1))
        buffer.extend(chunk)

        terminator_index = buffer.find(HEADER_TERMINATOR, search_from)
        if terminator_index != -1:
            head = bytes(buffer[: terminator_index + len(CRLF)])
            validate_request_head(head)
            return head

    raise RequestTooLargeError(f"Request exceeded {max_request_bytes} bytes")


def write_http_response_message(client_socket: socket.socket, response: HTTPResponse) -> int:
    """Write status line, headers, blank line and body; return bytes written.

    A status code without a reason phrase aborts the write before anything
    reaches the socket.
    """
    if response.status_code not in REASON_PHRASES:
        logger.error("Refusing to write response with unknown status %s", response.status_code)
        return 0

    head = prepare_response(response)
    client_socket.sendall(head)
    bytes_sent = len(head)

    if response.body:
        client_socket.sendall(response.body)
        bytes_sent += len(response.body)
    return bytes_sent

"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import json
import logging
import os
import shlex
import signal
import socket
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from config import (
    ACCEPT_POLL_INTERVAL_SECS,
    CLIENT_TIMEOUT_SECS,
    HOST,
    INTERPRETER_COMMAND,
    LISTEN_BACKLOG,
    LOG_FORMAT,
    LOG_LEVEL,
    PORT,
)
from request import (
    HTTPRequest,
    HTTPRequestParseError,
    extract_request_line,
    parse_request_line,
)
from response import HTTPResponse, error_response
from router import Router
from socket_handler import HTTPReadError, read_http_request, write_http_response_message

logger = logging.getLogger(__name__)

USAGE = "server [-p port] /path/to/root"


class ServerStartupError(RuntimeError):
    """Raised when the server root or listening socket cannot be set up."""


def resolve_root(path: str | os.PathLike[str]) -> str:
    """Canonicalize the server root; it must be an existing, searchable directory."""
    try:
        root = Path(path).resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise ServerStartupError(f"Cannot resolve server root {path!s}: {exc}") from exc
    if not root.is_dir():
        raise ServerStartupError(f"Server root is not a directory: {root}")
    if not os.access(root, os.X_OK):
        raise ServerStartupError(f"Server root is not searchable: {root}")
    return str(root)


class HTTPServer:
    def __init__(
        self,
        root: str | os.PathLike[str],
        host: str = HOST,
        port: int = PORT,
        *,
        interpreter_command: Sequence[str] = INTERPRETER_COMMAND,
        client_timeout_secs: float | None = CLIENT_TIMEOUT_SECS,
        log_format: str = LOG_FORMAT,
    ) -> None:
        self.root = resolve_root(root)
        self.host = host
        self.port = port
        self.router = Router(self.root, interpreter_command=interpreter_command)
        self.client_timeout_secs = client_timeout_secs
        self.log_format = log_format

        self._server_socket: socket.socket | None = None
        self._running = False

    def start(self) -> None:
        """Listen and serve one connection at a time until stop() is called."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            self._server_socket = server_socket
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                server_socket.bind((self.host, self.port))
                server_socket.listen(LISTEN_BACKLOG)
            except OSError as exc:
                self._server_socket = None
                raise ServerStartupError(
                    f"Cannot listen on {self.host}:{self.port}: {exc}"
                ) from exc
            server_socket.settimeout(ACCEPT_POLL_INTERVAL_SECS)
            self.port = server_socket.getsockname()[1]
            logger.info("Using %s for server's root", self.root)
            logger.info("Listening on %s:%s", self.host, self.port)

            self._running = True
            try:
                while self._running:
                    try:
                        client_socket, address = server_socket.accept()
                    except socket.timeout:
                        continue
                    except OSError as exc:
                        if not self._running:
                            break
                        logger.warning("accept() failed: %s", exc)
                        continue

                    self._handle_client(client_socket, address)
            finally:
                self._running = False
                self._server_socket = None
                logger.info("Stopping server")

    def stop(self) -> None:
        """Ask the accept loop to exit before its next accept()."""
        self._running = False

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            client_socket.settimeout(self.client_timeout_secs)
            started_at = time.perf_counter()

            try:
                raw_request = read_http_request(client_socket)
            except HTTPReadError as exc:
                logger.warning(
                    "client=%s dropped without response: %s: %s",
                    address[0],
                    exc.__class__.__name__,
                    exc,
                )
                return

            method = "-"
            path = "-"
            request_line = extract_request_line(raw_request)
            logger.debug("Request-line: %r", request_line.rstrip("\r\n"))
            try:
                request = parse_request_line(request_line)
            except HTTPRequestParseError as exc:
                logger.debug("Rejected request-line: %s", exc)
                response = error_response(exc.status_code)
            else:
                method = request.method
                path = request.path
                response = self._dispatch(request)

            try:
                bytes_sent = write_http_response_message(client_socket, response)
            except OSError as exc:
                logger.warning("client=%s write failed: %s", address[0], exc)
                return
            if bytes_sent == 0:
                return

            self._record_and_log(
                address=address,
                method=method,
                path=path,
                response=response,
                payload_size=bytes_sent,
                bytes_in=len(raw_request),
                started_at=started_at,
            )

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        try:
            return self.router.dispatch(request)
        except Exception:
            logger.exception("Unhandled error while dispatching %s", request.path)
            return error_response(500)

    def _record_and_log(
        self,
        *,
        address: tuple[str, int],
        method: str,
        path: str,
        response: HTTPResponse,
        payload_size: int,
        bytes_in: int,
        started_at: float,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": method,
            "path": path,
            "status": response.status_code,
            "status_line": response.status_line,
            "bytes_in": bytes_in,
            "bytes_out": payload_size,
            "latency_ms": round(duration_ms, 3),
        }
        if self.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            "%s client=%s method=%s path=%s bytes_in=%s bytes_out=%s duration_ms=%.2f",
            event["status_line"],
            event["client"],
            event["method"],
            event["path"],
            event["bytes_in"],
            event["bytes_out"],
            duration_ms,
        )


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from exc
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="server",
        usage=USAGE,
        description="Serve static files, directory listings and CGI scripts from a root directory",
    )
    parser.add_argument("-p", "--port", type=_port, default=PORT)
    parser.add_argument("--host", default=HOST)
    parser.add_argument(
        "--interpreter",
        default=shlex.join(INTERPRETER_COMMAND),
        help="command used to run .php scripts (default: %(default)s)",
    )
    parser.add_argument("--log-format", choices=["plain", "json"], default=LOG_FORMAT)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=LOG_LEVEL,
    )
    parser.add_argument("root", help="directory to serve")
    return parser


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.root:
        parser.error("root must not be empty")
    try:
        args.root = resolve_root(args.root)
    except ServerStartupError as exc:
        parser.error(str(exc))
    args.interpreter = shlex.split(args.interpreter)
    if not args.interpreter:
        parser.error("interpreter command must not be empty")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    server = HTTPServer(
        args.root,
        host=args.host,
        port=args.port,
        interpreter_command=args.interpreter,
        log_format=args.log_format,
    )

    def _request_stop(_signum: int, _frame: object) -> None:
        server.stop()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)
    try:
        server.start()
    except ServerStartupError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

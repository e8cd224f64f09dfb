"""HTTP request model and parser."""

from dataclasses import dataclass

SUPPORTED_METHOD = "GET"
SUPPORTED_HTTP_VERSION = "HTTP/1.1"


class HTTPRequestParseError(ValueError):
    """Request parse error carrying an HTTP status code."""

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True, frozen=True)
class HTTPRequest:
    method: str
    path: str
    http_version: str
    query: str = ""
    raw_target: str = "/"
    request_line: str = ""

    @classmethod
    def from_bytes(cls, raw: bytes) -> "HTTPRequest":
        """Parse the request-line at the start of a raw request head."""
        return parse_request_line(extract_request_line(raw))


def extract_request_line(raw: bytes) -> str:
    """Return the first line of a request head, CRLF included when present.

    Bytes are decoded as ISO-8859-1 so every octet maps to one character.
    """
    text = raw.decode("iso-8859-1")
    line_end = text.find("\r\n")
    return text if line_end == -1 else text[: line_end + 2]


def parse_request_line(line: str) -> HTTPRequest:
    """Parse ``METHOD SP request-target SP HTTP-version CRLF``.

    Checks run in a fixed order and the first failure wins, so each bad
    request maps to exactly one status code.
    """
    first_space = line.find(" ")
    if first_space == -1:
        raise HTTPRequestParseError("Request-line has no space")

    method = line[:first_space]
    if method != SUPPORTED_METHOD:
        raise HTTPRequestParseError(f"Method not allowed: {method!r}", status_code=405)

    last_space = line.rfind(" ")
    target = line[first_space + 1 : last_space]
    if not target.startswith("/"):
        raise HTTPRequestParseError(
            "Only origin-form request targets are supported",
            status_code=501,
        )

    if '"' in target:
        raise HTTPRequestParseError("Request target contains a double quote")

    crlf = line.find("\r\n")
    if crlf == -1:
        raise HTTPRequestParseError("Request-line is not CRLF terminated")

    http_version = line[last_space + 1 : crlf]
    if http_version != SUPPORTED_HTTP_VERSION:
        raise HTTPRequestParseError(
            f"Unsupported HTTP version: {http_version!r}",
            status_code=505,
        )

    path, _separator, query = target.partition("?")
    return HTTPRequest(
        method=method,
        path=path,
        http_version=http_version,
        query=query,
        raw_target=target,
        request_line=line,
    )

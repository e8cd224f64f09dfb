"""HTTP response model and serializer."""

from dataclasses import dataclass, field
from email.utils import formatdate

from config import SERVER_NAME

REASON_PHRASES: dict[int, str] = {
    200: "OK",
    301: "Moved Permanently",
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    414: "Request-URI Too Long",
    418: "I'm a teapot",
    500: "Internal Server Error",
    501: "Not Implemented",
    505: "HTTP Version Not Supported",
}

ERROR_TEMPLATE = (
    "<html><head><title>{code} {phrase}</title></head>"
    "<body><h1>{code} {phrase}</h1></body></html>"
)


FRAMING_HEADERS = frozenset({"content-length", "connection", "transfer-encoding"})


class UnknownStatusError(ValueError):
    """Raised when a status code has no entry in the reason-phrase table."""


@dataclass(slots=True)
class HTTPResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str = b""

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status_code} {reason_phrase(self.status_code)}"

    def to_bytes(self) -> bytes:
        """Serialize the response into HTTP/1.1 wire format bytes."""
        return prepare_response(self) + self.body


def reason_phrase(status_code: int) -> str:
    try:
        return REASON_PHRASES[status_code]
    except KeyError as exc:
        raise UnknownStatusError(f"Unknown status code: {status_code}") from exc


def prepare_response(response: HTTPResponse) -> bytes:
    """Build the status line and header block, terminated by a blank line."""
    status_line = response.status_line
    normalized_headers = {
        key: value
        for key, value in response.headers.items()
        if key.lower() not in FRAMING_HEADERS
    }
    normalized_headers["Content-Length"] = str(len(response.body))
    normalized_headers.setdefault(
        "Date",
        formatdate(timeval=None, localtime=False, usegmt=True),
    )
    normalized_headers.setdefault("Server", SERVER_NAME)
    normalized_headers["Connection"] = "close"

    header_lines = [status_line]
    header_lines.extend(f"{key}: {value}" for key, value in normalized_headers.items())
    return "\r\n".join(header_lines).encode("iso-8859-1", errors="replace") + b"\r\n\r\n"


def error_response(status_code: int) -> HTTPResponse:
    """Render the minimal HTML page used for every client-visible failure."""
    phrase = reason_phrase(status_code)
    return HTTPResponse(
        status_code=status_code,
        headers={"Content-Type": "text/html"},
        body=ERROR_TEMPLATE.format(code=status_code, phrase=phrase),
    )


def redirect_response(location: str) -> HTTPResponse:
    return HTTPResponse(status_code=301, headers={"Location": location})

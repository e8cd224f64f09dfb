"""Configuration constants for the custom HTTP server."""

HOST: str = "0.0.0.0"
PORT: int = 8080
SERVER_NAME: str = "minihttpd/1.0"

# Request limits, based on Apache's core directives.
LIMIT_REQUEST_FIELDS: int = 50
LIMIT_REQUEST_FIELD_SIZE: int = 4094
LIMIT_REQUEST_LINE: int = 8190
MAX_REQUEST_BYTES: int = LIMIT_REQUEST_LINE + LIMIT_REQUEST_FIELDS * LIMIT_REQUEST_FIELD_SIZE + 4

BUFFER_SIZE: int = 512
LISTEN_BACKLOG: int = 128
ACCEPT_POLL_INTERVAL_SECS: float = 0.2
CLIENT_TIMEOUT_SECS: float | None = None

INDEX_FILES: tuple[str, ...] = ("index.php", "index.html")
INTERPRETER_COMMAND: tuple[str, ...] = ("php-cgi",)

LOG_FORMAT: str = "plain"
LOG_LEVEL: str = "INFO"

"""Unit tests for filesystem routing decisions."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from request import HTTPRequest, parse_request_line
from router import Router


def _get(router: Router, target: str):
    return router.dispatch(parse_request_line(f"GET {target} HTTP/1.1\r\n"))


@pytest.fixture
def router(site_root: Path, interpreter_command: tuple[str, ...]) -> Router:
    return Router(str(site_root), interpreter_command=interpreter_command)


def test_missing_file_is_404(router: Router) -> None:
    assert _get(router, "/missing.html").status_code == 404


def test_static_file_uses_table_content_type(router: Router, site_root: Path) -> None:
    response = _get(router, "/style.css")

    assert response.status_code == 200
    assert response.headers == {"Content-Type": "text/css"}
    assert response.body == (site_root / "style.css").read_bytes()


def test_binary_file_is_served_verbatim(router: Router, site_root: Path) -> None:
    response = _get(router, "/logo.png")

    assert response.headers["Content-Type"] == "image/png"
    assert response.body == (site_root / "logo.png").read_bytes()


def test_query_string_is_ignored_for_static_files(router: Router) -> None:
    assert _get(router, "/style.css?v=2").status_code == 200


def test_unknown_extension_is_501(router: Router) -> None:
    assert _get(router, "/notes.txt").status_code == 501


def test_directory_without_slash_redirects(router: Router) -> None:
    response = _get(router, "/subdir?x=1")

    assert response.status_code == 301
    assert response.headers == {"Location": "/subdir/"}
    assert response.body == b""


def test_directory_without_index_is_listed(router: Router) -> None:
    response = _get(router, "/subdir/")

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/html"
    assert b'<a href="b.html">b.html</a>' in response.body


def test_root_directory_is_listed(router: Router) -> None:
    response = _get(router, "/")

    assert response.status_code == 200
    assert b"<title>/</title>" in response.body


def test_index_html_is_substituted(router: Router) -> None:
    response = _get(router, "/with_html/")

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/html"
    assert response.body == b"<h1>html index</h1>"


def test_index_php_takes_priority(router: Router, site_root: Path) -> None:
    assert router.find_index(str(site_root / "with_both")) == os.path.join(
        str(site_root / "with_both"), "index.php"
    )

    response = _get(router, "/with_both/")

    assert response.status_code == 200
    assert response.headers["X-Script"] == "index.php"


def test_php_is_interpreted_with_query(router: Router) -> None:
    response = _get(router, "/hello.php?name=world")

    assert response.status_code == 200
    assert response.headers["Content-type"] == "text/html; charset=UTF-8"
    assert response.body == b"query=name=world;status=200"


def test_percent_encoded_path_is_decoded(router: Router, site_root: Path) -> None:
    (site_root / "with space.css").write_text("x{}")

    assert _get(router, "/with%20space.css").status_code == 200
    assert _get(router, "/with+space.css").status_code == 200


def test_raw_non_ascii_path_bytes_reach_the_filesystem(router: Router, site_root: Path) -> None:
    (site_root / "café.css").write_text("x{}")

    response = router.dispatch(HTTPRequest.from_bytes(b"GET /caf\xc3\xa9.css HTTP/1.1\r\n"))

    assert response.status_code == 200
    assert response.body == b"x{}"


def test_traversal_above_root_is_forbidden(router: Router) -> None:
    assert _get(router, "/../secret.html").status_code == 403
    assert _get(router, "/subdir/%2e%2e/%2e%2e/secret.html").status_code == 403


def test_nul_byte_in_path_is_404(router: Router) -> None:
    assert _get(router, "/style.css%00.html").status_code == 404


def test_filesystem_state_is_read_at_dispatch_time(router: Router, site_root: Path) -> None:
    assert _get(router, "/late.html").status_code == 404

    (site_root / "late.html").write_text("now here")

    assert _get(router, "/late.html").status_code == 200

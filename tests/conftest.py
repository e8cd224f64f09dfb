"""Shared fixtures: a small document root and a stand-in CGI interpreter."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

FAKE_INTERPRETER = '''\
import os
import sys

script = os.environ["SCRIPT_FILENAME"]
with open(script, "rb") as handle:
    source = handle.read()
if b"NO-HEADERS" in source:
    sys.stdout.buffer.write(b"just a body without separator")
    sys.exit(0)
sys.stdout.buffer.write(
    b"Content-type: text/html; charset=UTF-8\\r\\n"
    b"X-Script: " + os.path.basename(script).encode() + b"\\r\\n"
    b"\\r\\n"
    b"query=" + os.environb[b"QUERY_STRING"] + b";status=" + os.environ["REDIRECT_STATUS"].encode()
)
'''


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    root = tmp_path / "www"
    root.mkdir()
    (root / "style.css").write_bytes(b"body { color: red; }\n")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
    (root / "notes.txt").write_text("plain text is not served\n")
    (root / "hello.php").write_text("<?php echo 'hi'; ?>\n")
    (root / "broken.php").write_text("NO-HEADERS\n")

    (root / "subdir").mkdir()
    (root / "subdir" / "b.html").write_text("<p>b</p>")
    (root / "subdir" / "a&<b>.css").write_text("a{}")

    (root / "with_html").mkdir()
    (root / "with_html" / "index.html").write_text("<h1>html index</h1>")

    (root / "with_both").mkdir()
    (root / "with_both" / "index.html").write_text("<h1>html index</h1>")
    (root / "with_both" / "index.php").write_text("<?php ?>")
    return root


@pytest.fixture
def interpreter_command(tmp_path: Path) -> tuple[str, ...]:
    script = tmp_path / "fake_cgi.py"
    script.write_text(FAKE_INTERPRETER)
    return (sys.executable, str(script))

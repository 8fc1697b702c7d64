"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

APP_CSS = """
@font-face {
  font-family: "Inter";
  src: url("../media/inter.woff2") format("woff2"),
    url(../media/missing.woff) format("woff");
}
body { background: url(data:image/png;base64,AAAA); }
.remote { background: url('https://cdn.example.com/remote.ttf'); }
"""


@pytest.fixture
def client_dir(tmp_path: Path) -> Path:
    """Client build output with one stylesheet and two fonts."""

    root = tmp_path / "build" / "client"
    (root / "static" / "css").mkdir(parents=True)
    (root / "static" / "media").mkdir(parents=True)
    (root / "static" / "css" / "app.css").write_text(APP_CSS, encoding="utf-8")
    (root / "static" / "media" / "inter.woff2").write_bytes(b"wOF2inter")
    (root / "static" / "media" / "roboto.ttf").write_bytes(b"\x00\x01\x00\x00")
    return root

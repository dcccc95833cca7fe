from __future__ import annotations

import pytest

from mdembed.mcp_server import export, render


def test_render_tool_returns_html(notes_dir) -> None:
    doc = notes_dir / "doc.md"
    doc.write_text("![a](img/a.png)\n", encoding="utf-8")
    html = render(str(doc))
    assert html.startswith("<!DOCTYPE html>")
    assert "data:image/png;base64," in html


def test_export_tool_writes_file(notes_dir, tmp_path) -> None:
    doc = notes_dir / "doc.md"
    doc.write_text("# Out\n", encoding="utf-8")
    written = export(str(doc), str(tmp_path / "out.html"))
    assert written == str((tmp_path / "out.html").resolve())


def test_missing_document(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        render(str(tmp_path / "nope.md"))

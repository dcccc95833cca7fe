from __future__ import annotations

import base64
import re

import pytest

from mdembed.config import RenderConfig
from mdembed.content import UNRESOLVED_CLASS
from mdembed.errors import SourceUnreadableError
from mdembed.models import LocalAsset
from mdembed.renderer import read_document, render, render_document

PNG_SRC = re.compile(r'src="data:image/png;base64,([^"]+)"')


def test_local_png_is_inlined_byte_for_byte(notes_dir, png_bytes) -> None:
    rendered = render("# Trip\n\n![a photo](./img/a.png)\n", notes_dir)

    match = PNG_SRC.search(rendered.html)
    assert match is not None
    assert base64.b64decode(match.group(1)) == png_bytes
    assert "./img/a.png" not in rendered.html
    assert len(rendered.inlined) == 1
    assert rendered.inlined[0].path == notes_dir / "img" / "a.png"
    assert rendered.is_complete


def test_data_url_passes_through_unchanged(notes_dir) -> None:
    url = "data:image/png;base64,iVBORw0KGgo="
    rendered = render(f"![dot]({url})\n", notes_dir)

    assert f'src="{url}"' in rendered.html
    assert rendered.html.count("data:image/png") == 1
    assert [asset.url for asset in rendered.remote] == [url]
    assert not rendered.inlined


def test_rendering_output_again_does_not_double_encode(notes_dir) -> None:
    first = render("![a](img/a.png)\n", notes_dir)
    url = first.inlined[0].data_url
    second = render(f"![a]({url})\n", notes_dir)
    assert f'src="{url}"' in second.html
    assert not second.inlined


def test_missing_image_gets_placeholder(notes_dir) -> None:
    text = "Intro\n\n![gone](img/nope.png)\n"
    rendered = render(text, notes_dir)

    assert "img/nope.png" not in rendered.html
    assert UNRESOLVED_CLASS in rendered.html
    assert 'src="data:image/svg+xml;base64,' in rendered.html
    assert [asset.reference for asset in rendered.unresolved] == ["img/nope.png"]
    assert not rendered.is_complete
    assert render(text, notes_dir).html == rendered.html


def test_placeholder_text_is_configurable(notes_dir) -> None:
    config = RenderConfig(placeholder_text="Missing picture", placeholder_fill="gray")
    rendered = render("![gone](nope.png)\n", notes_dir, config)
    payload = re.search(r'src="data:image/svg\+xml;base64,([^"]+)"', rendered.html).group(1)
    svg = base64.b64decode(payload).decode("utf-8")
    assert "Missing picture" in svg
    assert 'fill="gray"' in svg


def test_one_bad_image_does_not_stop_the_others(notes_dir) -> None:
    rendered = render("![x](missing.png)\n\n![y](img/a.png)\n", notes_dir)
    assert len(rendered.unresolved) == 1
    assert len(rendered.inlined) == 1


def test_hyperlinks_are_left_alone(notes_dir) -> None:
    (notes_dir / "other.md").write_text("# Other\n", encoding="utf-8")
    rendered = render("See [the other note](other.md) and [img](img/a.png).\n", notes_dir)
    assert '<a href="other.md">the other note</a>' in rendered.html
    assert '<a href="img/a.png">img</a>' in rendered.html
    assert not rendered.inlined


def test_remote_images_are_kept(notes_dir) -> None:
    rendered = render("![logo](https://example.com/logo.png)\n", notes_dir)
    assert 'src="https://example.com/logo.png"' in rendered.html
    assert len(rendered.remote) == 1


def test_raw_html_images_and_reference_images_are_inlined(notes_dir, png_bytes) -> None:
    text = (
        '<p><img src="img/a.png" width="10"></p>\n\n'
        "![ref][pic]\n\n"
        "[pic]: img/a.png\n"
    )
    rendered = render(text, notes_dir)
    payloads = PNG_SRC.findall(rendered.html)
    assert len(payloads) == 2
    assert all(base64.b64decode(payload) == png_bytes for payload in payloads)


def test_image_path_with_spaces(notes_dir, png_bytes) -> None:
    (notes_dir / "img" / "my image.png").write_bytes(png_bytes)
    rendered = render("![x](<img/my image.png>)\n", notes_dir)
    assert len(rendered.inlined) == 1


def test_page_is_standalone(notes_dir) -> None:
    rendered = render("# Hello *world*\n\nBody\n", notes_dir)
    assert rendered.html.startswith("<!DOCTYPE html>")
    assert '<meta charset="utf-8">' in rendered.html
    assert "<style>" in rendered.html
    assert rendered.title == "Hello world"
    assert "<title>Hello world</title>" in rendered.html
    assert "<script>" not in rendered.html


def test_title_precedence(notes_dir) -> None:
    assert render("no heading\n", notes_dir).title == "Document"
    assert render("# Head\n", notes_dir, RenderConfig(title="Given")).title == "Given"


def test_custom_stylesheet(notes_dir, tmp_path) -> None:
    css = tmp_path / "style.css"
    css.write_text("body { color: rebeccapurple; }", encoding="utf-8")
    rendered = render("text\n", notes_dir, RenderConfig(stylesheet=css))
    assert "rebeccapurple" in rendered.html


def test_live_reload_script_only_with_watch_url(notes_dir) -> None:
    config = RenderConfig(live_reload=True)
    assert "<script>" not in render("x\n", notes_dir, config).html
    html = render("x\n", notes_dir, config, watch_url="/watch?path=%2Fa.md&since=1").html
    assert '"/watch?path=%2Fa.md&since=1"' in html


def test_render_document_reads_from_disk(notes_dir) -> None:
    doc = notes_dir / "doc.md"
    doc.write_text("![a](img/a.png)\n", encoding="utf-8")
    rendered = render_document(doc)
    assert rendered.source_path == doc.resolve()
    assert rendered.title == "doc.md"
    assert len(rendered.inlined) == 1


def test_read_document_missing(tmp_path) -> None:
    with pytest.raises(SourceUnreadableError) as excinfo:
        read_document(tmp_path / "absent.md")
    assert excinfo.value.path == (tmp_path / "absent.md").resolve()


def test_read_document_not_utf8(tmp_path) -> None:
    path = tmp_path / "latin1.md"
    path.write_bytes(b"caf\xe9\xff\xfe")
    with pytest.raises(SourceUnreadableError):
        read_document(path)


def test_svg_data_url_passes_through_unchanged(notes_dir) -> None:
    url = "data:image/svg+xml;base64,PHN2Zy8+"
    rendered = render(f"![s]({url})\n", notes_dir)
    assert f'src="{url}"' in rendered.html
    assert "![s]" not in rendered.html
    assert [asset.url for asset in rendered.remote] == [url]


def test_file_url_image_is_inlined(notes_dir, png_bytes) -> None:
    url = (notes_dir / "img" / "a.png").as_uri()
    rendered = render(f"![a]({url})\n", notes_dir)
    match = PNG_SRC.search(rendered.html)
    assert match is not None
    assert base64.b64decode(match.group(1)) == png_bytes
    assert len(rendered.inlined) == 1


def test_script_urls_never_become_images(notes_dir) -> None:
    rendered = render("![x](javascript:alert(1))\n", notes_dir)
    assert 'src="javascript:' not in rendered.html


def test_protocol_relative_image_is_kept(notes_dir) -> None:
    rendered = render("![logo](//cdn.example.com/logo.png)\n", notes_dir)
    assert 'src="//cdn.example.com/logo.png"' in rendered.html
    assert [asset.url for asset in rendered.remote] == ["//cdn.example.com/logo.png"]
    assert not rendered.unresolved


def test_file_vanishing_after_locate_degrades(notes_dir, monkeypatch) -> None:
    vanished = notes_dir / "img" / "vanished.png"
    monkeypatch.setattr(
        "mdembed.renderer.locate",
        lambda reference, base_dir: LocalAsset(reference, vanished),
    )
    rendered = render("![v](img/vanished.png)\n\nstill here\n", notes_dir)

    assert "still here" in rendered.html
    assert UNRESOLVED_CLASS in rendered.html
    assert 'src="data:image/svg+xml;base64,' in rendered.html
    assert [asset.reference for asset in rendered.unresolved] == ["img/vanished.png"]
    assert not rendered.inlined

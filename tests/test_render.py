"""Tests for wren.render — the Render façade end to end."""

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from wren.config import RenderConfig
from wren.engines import CONTENT_XHTML
from wren.errors import ConfigurationError, TemplateCompileError
from wren.http.response import Response
from wren.http.sink import ResponseRecorder
from wren.render import HTMLOptions, Render

_TEMPLATES = {
    "layout.tmpl": "<html><body>{{ yield() }}</body></html>",
    "admin/layout.tmpl": "<div class=\"admin\">{{ current() }}|{{ yield() }}</div>",
    "page.tmpl": "hello",
    "greet.tmpl": "<h1>Hello {{ name }}</h1>",
    "orphan.tmpl": "<p>{{ yield() }}</p>",
}


def _write(root: Path, files: dict[str, str]) -> Path:
    for name, source in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
    return root


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    return _write(tmp_path, _TEMPLATES)


def _call(method, *args: object) -> Response:
    sink = ResponseRecorder()
    method(sink, *args)
    return sink.to_response()


class TestConstruction:
    def test_defaults_without_templates(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        render = Render()
        assert len(render.templates) == 0

    def test_compile_failure_aborts(self, tmp_path: Path) -> None:
        _write(tmp_path, {"bad.tmpl": "{% for x in items %}never closed"})
        with pytest.raises(TemplateCompileError):
            Render(RenderConfig(directory=tmp_path))

    def test_unknown_charset(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="charset"):
            Render(RenderConfig(directory=tmp_path, charset="no-such-charset"))

    def test_empty_extensions(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="extensions"):
            Render(RenderConfig(directory=tmp_path, extensions=()))

    def test_half_configured_assets_walk_directory(
        self, template_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="wren.render"):
            render = Render(RenderConfig(directory=template_dir, asset=lambda name: b""))
        assert "page" in render.templates
        assert any("set together" in r.getMessage() for r in caplog.records)


class TestData:
    def test_binary(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).data, 200, b"\x89PNG")
        assert resp.status == 200
        assert resp.content_type == "application/octet-stream"
        assert resp.body == b"\x89PNG"


class TestText:
    def test_plain_text(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).text, 202, "accepted")
        assert resp.status == 202
        assert resp.content_type == "text/plain; charset=UTF-8"
        assert resp.text == "accepted"

    def test_custom_charset(self, tmp_path: Path) -> None:
        render = Render(RenderConfig(directory=tmp_path, charset="ISO-8859-1"))
        resp = _call(render.text, 200, "café")
        assert resp.content_type == "text/plain; charset=ISO-8859-1"
        assert resp.body == "café".encode("latin-1")


class TestJSON:
    def test_round_trip(self, tmp_path: Path) -> None:
        payload = {"one": "hello", "two": [1, 2.5, None, True], "nested": {"k": "<v>"}}
        resp = _call(Render(RenderConfig(directory=tmp_path)).json, 200, payload)
        assert resp.content_type == "application/json; charset=UTF-8"
        assert json.loads(resp.body) == payload

    def test_round_trip_with_prefix(self, tmp_path: Path) -> None:
        prefix = b")]}',\n"
        render = Render(RenderConfig(directory=tmp_path, prefix_json=prefix))
        resp = _call(render.json, 200, {"a": [1, 2]})
        assert resp.body.startswith(prefix)
        assert json.loads(resp.body[len(prefix):]) == {"a": [1, 2]}

    def test_indent(self, tmp_path: Path) -> None:
        render = Render(RenderConfig(directory=tmp_path, indent_json=True))
        resp = _call(render.json, 200, {"a": 1})
        assert resp.text == '{\n  "a": 1\n}'

    def test_unescape_html(self, tmp_path: Path) -> None:
        render = Render(RenderConfig(directory=tmp_path, unescape_html=True))
        resp = _call(render.json, 200, {"html": "<a>&</a>"})
        assert "<a>&</a>" in resp.text

    def test_escaped_without_flag(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).json, 200, {"html": "<a>&</a>"})
        assert "<a>" not in resp.text
        assert "\\u003ca\\u003e\\u0026" in resp.text

    def test_status_preserved(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).json, 201, {"id": 7})
        assert resp.status == 201

    def test_unencodable_becomes_500(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).json, 200, {"bad": {1, 2}})
        assert resp.status == 500
        assert resp.content_type == "text/plain; charset=utf-8"
        assert resp.header("X-Content-Type-Options") == "nosniff"
        assert "not JSON serializable" in resp.text
        assert resp.text.endswith("\n")

    def test_streaming(self, tmp_path: Path) -> None:
        render = Render(RenderConfig(directory=tmp_path, streaming_json=True))
        payload = {"rows": [{"n": i} for i in range(50)]}
        resp = _call(render.json, 200, payload)
        assert resp.status == 200
        assert json.loads(resp.body) == payload

    def test_streaming_failure_keeps_partial_body(self, tmp_path: Path) -> None:
        render = Render(RenderConfig(directory=tmp_path, streaming_json=True))
        resp = _call(render.json, 200, {"ok": 1, "bad": object()})
        assert resp.status == 200
        assert resp.body.startswith(b'{"ok":1')
        assert b"serializable" not in resp.body


class TestJSONP:
    def test_callback(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).jsonp, 200, "cb", {"a": 1})
        assert resp.content_type == "application/javascript; charset=UTF-8"
        assert resp.text == 'cb({"a":1});'

    def test_callback_not_validated(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).jsonp, 200, "a.b[0]", 1)
        assert resp.text == "a.b[0](1);"


class TestXML:
    def test_round_trip(self, tmp_path: Path) -> None:
        payload = {"greeting": {"one": "hello", "two": "<world>"}}
        resp = _call(Render(RenderConfig(directory=tmp_path)).xml, 200, payload)
        assert resp.content_type == "text/xml; charset=UTF-8"
        root = ET.fromstring(resp.body)
        assert root.tag == "greeting"
        assert {child.tag: child.text for child in root} == payload["greeting"]

    def test_prefix_and_indent(self, tmp_path: Path) -> None:
        decl = b'<?xml version="1.0" encoding="UTF-8"?>\n'
        render = Render(RenderConfig(directory=tmp_path, prefix_xml=decl, indent_xml=True))
        resp = _call(render.xml, 200, {"a": {"b": "1"}})
        assert resp.body == decl + b"<a>\n  <b>1</b>\n</a>"
        assert ET.fromstring(resp.body[len(decl):]).findtext("b") == "1"

    def test_unmarshallable_becomes_500(self, tmp_path: Path) -> None:
        resp = _call(Render(RenderConfig(directory=tmp_path)).xml, 200, 42)
        assert resp.status == 500
        assert "cannot marshal int" in resp.text


class TestHTML:
    def test_plain(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir))
        resp = _call(render.html, 200, "greet", {"name": "Ada"})
        assert resp.status == 200
        assert resp.content_type == "text/html; charset=UTF-8"
        assert resp.text == "<h1>Hello Ada</h1>"

    def test_default_layout(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, layout="layout"))
        resp = _call(render.html, 200, "page")
        assert resp.text == "<html><body>hello</body></html>"

    def test_per_call_layout_override(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, layout="layout"))
        resp = _call(render.html, 200, "page", None, HTMLOptions(layout="admin/layout"))
        assert resp.text == '<div class="admin">page|hello</div>'

    def test_override_to_no_layout(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, layout="layout"))
        resp = _call(render.html, 200, "page", None, HTMLOptions())
        assert resp.text == "hello"

    def test_xhtml_content_type(self, template_dir: Path) -> None:
        cfg = RenderConfig(directory=template_dir, html_content_type=CONTENT_XHTML)
        resp = _call(Render(cfg).html, 200, "page")
        assert resp.content_type == f"{CONTENT_XHTML}; charset=UTF-8"

    def test_missing_template_is_500_without_partial_body(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, layout="layout"))
        resp = _call(render.html, 200, "nope")
        assert resp.status == 500
        assert resp.content_type == "text/plain; charset=utf-8"
        assert resp.text == "template 'nope' not found\n"

    def test_yield_without_layout_is_500(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir))
        resp = _call(render.html, 200, "orphan")
        assert resp.status == 500
        assert "yield called with no layout defined" in resp.text
        assert "<p>" not in resp.text

    def test_failure_is_logged(self, template_dir: Path, caplog: pytest.LogCaptureFixture) -> None:
        render = Render(RenderConfig(directory=template_dir))
        with caplog.at_level(logging.ERROR, logger="wren.render"):
            _call(render.html, 200, "nope")
        assert any("render failed" in r.getMessage() for r in caplog.records)


class TestDevelopmentMode:
    def test_edits_visible_in_development(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, is_development=True))
        assert _call(render.html, 200, "page").text == "hello"

        (template_dir / "page.tmpl").write_text("goodbye")
        assert _call(render.html, 200, "page").text == "goodbye"

    def test_edits_invisible_in_production(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir))
        assert _call(render.html, 200, "page").text == "hello"

        (template_dir / "page.tmpl").write_text("goodbye")
        assert _call(render.html, 200, "page").text == "hello"

    def test_new_template_picked_up(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, is_development=True))
        _write(template_dir, {"fresh.tmpl": "new"})
        assert _call(render.html, 200, "fresh").text == "new"

    def test_broken_edit_becomes_500(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, is_development=True))
        (template_dir / "page.tmpl").write_text("{% if x %}never closed")
        resp = _call(render.html, 200, "page")
        assert resp.status == 500
        assert "page" in resp.text


class TestReload:
    def test_reload_swaps_snapshot(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir))
        before = render.templates
        (template_dir / "page.tmpl").write_text("goodbye")

        after = render.reload()

        assert after is render.templates
        assert after is not before
        assert before.execute("page", {}) == "hello"
        assert _call(render.html, 200, "page").text == "goodbye"

    def test_failed_reload_keeps_current_set(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir))
        before = render.templates
        (template_dir / "page.tmpl").write_text("{% if x %}never closed")

        with pytest.raises(TemplateCompileError):
            render.reload()
        assert render.templates is before


class TestBuffers:
    def test_pool_buffers_returned(self, template_dir: Path) -> None:
        render = Render(RenderConfig(directory=template_dir, buffer_pool_size=4))
        for _ in range(10):
            _call(render.html, 200, "page")
            _call(render.json, 200, {"a": 1})
        assert 1 <= len(render.pool) <= 4


class TestCustomEngine:
    def test_generic_render(self, tmp_path: Path) -> None:
        class CSV:
            buffered = True

            def render(self, sink, payload) -> None:  # noqa: ANN001
                sink.set_header("Content-Type", "text/csv")
                sink.write_head(200)
                sink.write("\n".join(",".join(row) for row in payload).encode())

        render = Render(RenderConfig(directory=tmp_path))
        sink = ResponseRecorder()
        render.render(sink, CSV(), [["a", "b"], ["1", "2"]])
        assert sink.to_response().text == "a,b\n1,2"

"""Content engines — one small strategy per output format.

Every engine shares one contract: ``render(sink, payload)`` writes the
``Content-Type`` header and status, then the body, and raises on failure
without writing an error response (the render façade does that).

Buffered engines (everything except streaming JSON) encode the whole body
before touching the sink, staging it in a pooled buffer. A failed encode
therefore leaves the sink untouched. Streaming JSON writes the head first
and the body chunk by chunk, so a failure deep in the payload can leave a
truncated body behind; ``buffered`` reports which guarantee applies.
"""

import io
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable

from wren.buffers import BufferPool
from wren.errors import EncodeError
from wren.http.sink import ResponseSink
from wren.marshal import iter_json, write_xml
from wren.templating.layout import LayoutComposer
from wren.templating.store import TemplateSet, context_for

CONTENT_BINARY = "application/octet-stream"
CONTENT_HTML = "text/html"
CONTENT_JSON = "application/json"
CONTENT_JSONP = "application/javascript"
CONTENT_TEXT = "text/plain"
CONTENT_XHTML = "application/xhtml+xml"
CONTENT_XML = "text/xml"


@dataclass(frozen=True, slots=True)
class Head:
    """Content type and status shared by every engine."""

    content_type: str
    status: int

    def write(self, sink: ResponseSink) -> None:
        sink.set_header("Content-Type", self.content_type)
        sink.write_head(self.status)


@runtime_checkable
class ContentEngine(Protocol):
    """Renders one payload into a response sink."""

    @property
    def buffered(self) -> bool: ...

    def render(self, sink: ResponseSink, payload: Any) -> None: ...


def _staged(pool: BufferPool | None) -> Any:
    return pool.borrow() if pool is not None else nullcontext(io.BytesIO())


def _encode(text: str, encoding: str, format_name: str) -> bytes:
    try:
        return text.encode(encoding)
    except UnicodeEncodeError as exc:
        raise EncodeError(format_name, str(exc)) from exc


@contextmanager
def _flush_on_success(head: Head, sink: ResponseSink, pool: BufferPool | None) -> Iterator[io.BytesIO]:
    """Stage a body; write head and body only if the block completes."""
    with _staged(pool) as buf:
        yield buf
        head.write(sink)
        sink.write(buf.getvalue())


@dataclass(frozen=True, slots=True)
class Data:
    """Raw bytes, written verbatim."""

    head: Head
    buffered: ClassVar[bool] = True

    def render(self, sink: ResponseSink, payload: Any) -> None:
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise EncodeError("data", f"expected bytes, got {type(payload).__name__}")
        self.head.write(sink)
        sink.write(bytes(payload))


@dataclass(frozen=True, slots=True)
class Text:
    """A string, written verbatim in the configured charset."""

    head: Head
    encoding: str = "utf-8"
    buffered: ClassVar[bool] = True

    def render(self, sink: ResponseSink, payload: Any) -> None:
        if not isinstance(payload, str):
            raise EncodeError("text", f"expected str, got {type(payload).__name__}")
        body = _encode(payload, self.encoding, "text")
        self.head.write(sink)
        sink.write(body)


@dataclass(frozen=True, slots=True)
class JSON:
    """JSON document, optionally indented, prefixed, or streamed."""

    head: Head
    encoding: str = "utf-8"
    indent: bool = False
    prefix: bytes = b""
    unescape_html: bool = False
    streaming: bool = False
    pool: BufferPool | None = None

    @property
    def buffered(self) -> bool:
        return not self.streaming

    def _chunks(self, payload: Any) -> Iterator[bytes]:
        for chunk in iter_json(payload, indent=self.indent, escape_html=not self.unescape_html):
            yield _encode(chunk, self.encoding, "json")

    def render(self, sink: ResponseSink, payload: Any) -> None:
        if self.streaming:
            self._render_streaming(sink, payload)
            return

        with _flush_on_success(self.head, sink, self.pool) as buf:
            buf.write(self.prefix)
            for chunk in self._chunks(payload):
                buf.write(chunk)

    def _render_streaming(self, sink: ResponseSink, payload: Any) -> None:
        self.head.write(sink)
        if self.prefix:
            sink.write(self.prefix)
        for chunk in self._chunks(payload):
            sink.write(chunk)


@dataclass(frozen=True, slots=True)
class JSONP:
    """JSON wrapped in a caller-supplied callback: ``callback(<json>);``.

    The callback name is written as given; validating it is the caller's job.
    """

    head: Head
    callback: str
    encoding: str = "utf-8"
    indent: bool = False
    pool: BufferPool | None = None
    buffered: ClassVar[bool] = True

    def render(self, sink: ResponseSink, payload: Any) -> None:
        with _flush_on_success(self.head, sink, self.pool) as buf:
            buf.write(_encode(f"{self.callback}(", self.encoding, "jsonp"))
            for chunk in iter_json(payload, indent=self.indent):
                buf.write(_encode(chunk, self.encoding, "jsonp"))
            buf.write(b");")


@dataclass(frozen=True, slots=True)
class XML:
    """XML document, optionally indented or prefixed."""

    head: Head
    encoding: str = "utf-8"
    indent: bool = False
    prefix: bytes = b""
    pool: BufferPool | None = None
    buffered: ClassVar[bool] = True

    def render(self, sink: ResponseSink, payload: Any) -> None:
        with _flush_on_success(self.head, sink, self.pool) as buf:
            buf.write(self.prefix)
            write_xml(payload, buf, indent=self.indent, encoding=self.encoding)


@dataclass(frozen=True, slots=True)
class HTML:
    """A template from the compiled set, optionally wrapped in a layout.

    With a layout, the layout template is executed instead and reaches
    the requested template through ``yield``. Output is streamed into a
    pooled buffer and copied to the sink only after execution completes,
    so a template error never produces a truncated page.
    """

    head: Head
    name: str
    templates: TemplateSet
    layout: str = ""
    encoding: str = "utf-8"
    pool: BufferPool | None = None
    buffered: ClassVar[bool] = True

    def render(self, sink: ResponseSink, payload: Any) -> None:
        context = context_for(payload)
        name = self.name
        if self.layout:
            overlay = LayoutComposer(self.templates).bind_yield(self.name, context)
            context = {**context, **overlay}
            name = self.layout

        chunks = self.templates.stream(name, context)
        with _flush_on_success(self.head, sink, self.pool) as buf:
            for chunk in chunks:
                buf.write(_encode(chunk, self.encoding, "html"))

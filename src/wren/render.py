"""The render façade.

``Render`` owns the configuration, the compiled template set, and the
buffer pool. Each of its format methods builds a fresh ``Head`` and engine
for the call and hands them to ``render()``, which turns any failure into
a plain-text 500 response.

Usage::

    from wren import Render, RenderConfig

    render = Render(RenderConfig(directory="templates", layout="layout"))

    def handler(sink):
        render.html(sink, 200, "home", {"title": "Home"})
"""

import codecs
import logging
import threading
from dataclasses import dataclass
from typing import Any

from wren.buffers import BufferPool
from wren.config import RenderConfig
from wren.engines import (
    CONTENT_BINARY,
    CONTENT_JSON,
    CONTENT_JSONP,
    CONTENT_TEXT,
    CONTENT_XML,
    HTML,
    JSON,
    JSONP,
    XML,
    ContentEngine,
    Data,
    Head,
    Text,
)
from wren.errors import ConfigurationError
from wren.http.sink import ResponseSink
from wren.templating.store import TemplateSet, TemplateStore

logger = logging.getLogger("wren.render")


@dataclass(frozen=True, slots=True)
class HTMLOptions:
    """Per-call overrides for ``Render.html()``.

    ``layout`` replaces the configured default; an empty string renders
    without a layout even when a default is configured.
    """

    layout: str = ""


def _check_config(config: RenderConfig) -> None:
    try:
        codecs.lookup(config.charset)
    except LookupError as exc:
        msg = f"Unknown charset {config.charset!r} in RenderConfig."
        raise ConfigurationError(msg) from exc
    if not config.extensions or not all(config.extensions):
        msg = "RenderConfig.extensions must list at least one non-empty extension."
        raise ConfigurationError(msg)
    if not config.uses_assets and (config.asset is not None or config.asset_names is not None):
        logger.warning(
            "asset and asset_names must be set together; walking %r instead",
            str(config.directory),
        )


class Render:
    """Renders HTML, JSON, JSONP, XML, text, and binary responses.

    Construction compiles every template; a template that fails to compile
    raises ``TemplateCompileError`` and no ``Render`` is created.

    Thread-safety:
        The template set is an immutable snapshot. ``reload()`` (and every
        HTML render in development mode) builds a new snapshot and swaps
        the reference; renders already running keep the snapshot they
        started with.
    """

    __slots__ = ("_pool", "_reload_lock", "_store", "_templates", "config")

    def __init__(self, config: RenderConfig | None = None) -> None:
        self.config: RenderConfig = config or RenderConfig()
        _check_config(self.config)
        self._store = TemplateStore(self.config)
        self._reload_lock: threading.Lock = threading.Lock()
        self._templates: TemplateSet = self._store.compile()
        self._pool = BufferPool(self.config.buffer_pool_size)

    # -- Template set --

    @property
    def templates(self) -> TemplateSet:
        """The current compiled template snapshot."""
        return self._templates

    @property
    def pool(self) -> BufferPool:
        return self._pool

    def reload(self) -> TemplateSet:
        """Recompile every template and swap in the new set.

        A compile failure leaves the current set in place and propagates.
        """
        with self._reload_lock:
            templates = self._store.compile()
            self._templates = templates
        logger.debug("reloaded %d templates", len(templates))
        return templates

    # -- Generic entry point --

    def render(self, sink: ResponseSink, engine: ContentEngine, payload: Any) -> None:
        """Run *engine* against *sink*, converting failures into a 500.

        The error response is written only if no body byte reached the
        sink; a streaming engine that fails mid-body leaves what it wrote.
        """
        try:
            engine.render(sink, payload)
        except Exception as exc:
            logger.exception("render failed: %s", type(engine).__name__)
            if sink.body_started:
                return
            _write_error(sink, str(exc), 500)

    # -- Formats --

    def data(self, sink: ResponseSink, status: int, payload: bytes) -> None:
        """Write raw bytes as ``application/octet-stream``."""
        head = Head(content_type=CONTENT_BINARY, status=status)
        self.render(sink, Data(head=head), payload)

    def text(self, sink: ResponseSink, status: int, payload: str) -> None:
        """Write a string as ``text/plain``."""
        head = Head(content_type=CONTENT_TEXT + self.config.compiled_charset, status=status)
        self.render(sink, Text(head=head, encoding=self.config.charset), payload)

    def json(self, sink: ResponseSink, status: int, payload: Any) -> None:
        """Marshal *payload* as ``application/json``."""
        cfg = self.config
        head = Head(content_type=CONTENT_JSON + cfg.compiled_charset, status=status)
        engine = JSON(
            head=head,
            encoding=cfg.charset,
            indent=cfg.indent_json,
            prefix=cfg.prefix_json,
            unescape_html=cfg.unescape_html,
            streaming=cfg.streaming_json,
            pool=self._pool,
        )
        self.render(sink, engine, payload)

    def jsonp(self, sink: ResponseSink, status: int, callback: str, payload: Any) -> None:
        """Marshal *payload* as JSON wrapped in ``callback(...);``."""
        cfg = self.config
        head = Head(content_type=CONTENT_JSONP + cfg.compiled_charset, status=status)
        engine = JSONP(
            head=head,
            callback=callback,
            encoding=cfg.charset,
            indent=cfg.indent_json,
            pool=self._pool,
        )
        self.render(sink, engine, payload)

    def xml(self, sink: ResponseSink, status: int, payload: Any) -> None:
        """Marshal *payload* as ``text/xml``."""
        cfg = self.config
        head = Head(content_type=CONTENT_XML + cfg.compiled_charset, status=status)
        engine = XML(
            head=head,
            encoding=cfg.charset,
            indent=cfg.indent_xml,
            prefix=cfg.prefix_xml,
            pool=self._pool,
        )
        self.render(sink, engine, payload)

    def html(
        self,
        sink: ResponseSink,
        status: int,
        name: str,
        binding: Any = None,
        options: HTMLOptions | None = None,
    ) -> None:
        """Execute template *name* with *binding*, inside a layout if one is selected."""
        cfg = self.config
        if cfg.is_development:
            try:
                self.reload()
            except Exception as exc:
                logger.exception("template reload failed")
                _write_error(sink, str(exc), 500)
                return

        layout = options.layout if options is not None else cfg.layout
        head = Head(content_type=cfg.html_content_type + cfg.compiled_charset, status=status)
        engine = HTML(
            head=head,
            name=name,
            templates=self._templates,
            layout=layout,
            encoding=cfg.charset,
            pool=self._pool,
        )
        self.render(sink, engine, binding)


def _write_error(sink: ResponseSink, message: str, status: int) -> None:
    """Write a plain-text error response carrying *message*."""
    sink.set_header("Content-Type", "text/plain; charset=utf-8")
    sink.set_header("X-Content-Type-Options", "nosniff")
    sink.write_head(status)
    sink.write(f"{message}\n".encode())

"""Wren — response rendering between handlers and the HTTP response.

Renders HTML pages from compiled templates (with layouts), JSON, JSONP,
XML, plain text, and raw bytes, each with the right content type.

Basic usage::

    from wren import Render, RenderConfig, ResponseRecorder

    render = Render(RenderConfig(directory="templates", layout="layout"))

    sink = ResponseRecorder()
    render.html(sink, 200, "home", {"title": "Home"})
    render.json(sink, 200, {"ok": True})
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0.dev0"
__all__ = [
    "BufferPool",
    "ConfigurationError",
    "Delims",
    "EncodeError",
    "HTMLOptions",
    "NoLayoutError",
    "Render",
    "RenderConfig",
    "RenderError",
    "Response",
    "ResponseRecorder",
    "ResponseSink",
    "TemplateCompileError",
    "TemplateNotFound",
    "TemplateSet",
    "TemplateStore",
    "WrenError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name in ("Render", "HTMLOptions"):
        from wren import render as _render

        return getattr(_render, name)

    if name in ("RenderConfig", "Delims"):
        from wren import config as _config

        return getattr(_config, name)

    if name == "BufferPool":
        from wren.buffers import BufferPool

        return BufferPool

    if name in ("TemplateSet", "TemplateStore"):
        from wren.templating import store as _store

        return getattr(_store, name)

    if name == "Response":
        from wren.http.response import Response

        return Response

    if name in ("ResponseRecorder", "ResponseSink"):
        from wren.http import sink as _sink

        return getattr(_sink, name)

    if name in (
        "ConfigurationError",
        "EncodeError",
        "NoLayoutError",
        "RenderError",
        "TemplateCompileError",
        "TemplateNotFound",
        "WrenError",
    ):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)

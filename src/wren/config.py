"""Render configuration.

One frozen RenderConfig per Render instance. Fields mirror the knobs of
each content engine, grouped by the format they affect.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CHARSET = "UTF-8"


@dataclass(frozen=True, slots=True)
class Delims:
    """Left and right markers for template output actions."""

    left: str = "{{"
    right: str = "}}"


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Render configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RenderConfig(directory="views", layout="base", indent_json=True)
    """

    # Template source
    directory: str | Path = "templates"
    asset: Callable[[str], bytes] | None = None  # Fetch bytes by asset name
    asset_names: Callable[[], Iterable[str]] | None = None  # List all asset names
    extensions: tuple[str, ...] = (".tmpl",)

    # Templates
    layout: str = ""  # Empty means no layout
    funcs: tuple[Mapping[str, Callable[..., Any]], ...] = ()
    delims: Delims = Delims()
    is_development: bool = False  # Recompile templates on every HTML render

    # Content types
    charset: str = DEFAULT_CHARSET
    html_content_type: str = "text/html"  # e.g. "application/xhtml+xml"

    # JSON
    indent_json: bool = False
    prefix_json: bytes = b""  # e.g. b")]}',\n"
    unescape_html: bool = False  # Emit literal <, >, & instead of \u003c escapes
    streaming_json: bool = False  # Encode straight to the sink, no buffering

    # XML
    indent_xml: bool = False
    prefix_xml: bytes = b""  # e.g. b'<?xml version="1.0" encoding="UTF-8"?>\n'

    # Buffers
    buffer_pool_size: int = 64

    @property
    def compiled_charset(self) -> str:
        """The ``; charset=...`` suffix appended to text content types."""
        return f"; charset={self.charset}"

    @property
    def uses_assets(self) -> bool:
        """Whether templates come from the asset pair instead of a directory."""
        return self.asset is not None and self.asset_names is not None

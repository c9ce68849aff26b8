"""Layout composition through ``yield`` and ``current``.

A layout template wraps a content template by calling ``yield`` where the
content belongs::

    <html><body>{{ yield() }}</body></html>

``current`` returns the name of the content template being wrapped, which
layouts use for things like highlighting the active nav item.

Both helpers exist on every compiled set as placeholders. A render that
selects a layout passes request-local replacements in the render context,
which kida resolves ahead of environment globals, so concurrent renders
never see each other's bindings.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from kida.template import Markup

from wren.errors import NoLayoutError

if TYPE_CHECKING:
    from wren.templating.store import TemplateSet


class Yield:
    """Renders the wrapped content template as safe markup.

    Callable (``{{ yield() }}``) and directly printable (``{{ yield }}``).
    Without a bound content renderer it raises ``NoLayoutError``.
    """

    __slots__ = ("_render",)

    def __init__(self, render: Callable[[], str] | None = None) -> None:
        self._render = render

    def __call__(self) -> Markup:
        if self._render is None:
            raise NoLayoutError
        # Our own template output, already escaped.
        return Markup(self._render())

    def __html__(self) -> str:
        return self()

    def __str__(self) -> str:
        return self()

    def __repr__(self) -> str:
        return "Yield(bound)" if self._render is not None else "Yield()"


class Current:
    """Returns the name of the content template inside a layout."""

    __slots__ = ("name",)

    def __init__(self, name: str = "") -> None:
        self.name = name

    def __call__(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Current):
            return self.name == other.name
        if isinstance(other, str):
            return self.name == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Current({self.name!r})"


def default_placeholders() -> dict[str, Any]:
    """The unbound ``yield`` and ``current`` registered on every set."""
    return {"yield": Yield(), "current": Current()}


class LayoutComposer:
    """Binds ``yield`` and ``current`` for one render call."""

    __slots__ = ("_templates",)

    def __init__(self, templates: TemplateSet) -> None:
        self._templates = templates

    def bind_yield(self, name: str, context: dict[str, Any]) -> dict[str, Any]:
        """Return the render-context overlay that lets a layout embed *name*.

        The content template sees the bound ``current`` but the unbound
        ``yield``, so a content template calling ``yield`` fails instead of
        rendering itself forever.
        """
        self._templates.require(name)
        current = Current(name)
        content_context = {**context, "current": current}

        def render_content() -> str:
            return self._templates.execute(name, content_context)

        return {"yield": Yield(render_content), "current": current}

"""Wren exception hierarchy.

Shared across the template store, the engines, and the render façade so
every module raises and catches the same types.
"""


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when render configuration is invalid.

    Typically raised while constructing ``Render``.
    """


class TemplateCompileError(WrenError):
    """A template failed to compile. Fatal at startup.

    Serving with a partially compiled set would silently miss templates
    at request time, so construction is aborted instead.
    """

    def __init__(self, name: str, detail: str = "") -> None:
        super().__init__(name, detail)
        self.name = name
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"template {self.name!r}: {self.detail}"
        return f"template {self.name!r} failed to compile"


class RenderError(WrenError):
    """Base for per-request failures converted into a 500 response."""


class TemplateNotFound(RenderError):  # noqa: N818
    """The requested template name is not in the compiled set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"template {name!r} not found")
        self.name = name


class NoLayoutError(RenderError):
    """A template called ``yield`` while no layout was selected."""

    def __init__(self, detail: str = "yield called with no layout defined") -> None:
        super().__init__(detail)


class EncodeError(RenderError):
    """A payload could not be marshalled into the requested format."""

    def __init__(self, format_name: str, detail: str) -> None:
        super().__init__(f"{format_name}: {detail}")
        self.format_name = format_name
        self.detail = detail

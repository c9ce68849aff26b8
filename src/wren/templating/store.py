"""Template compilation into an immutable, addressable set.

The TemplateStore walks the configured source, keeps the entries whose
names carry a recognized extension, and compiles each one into a kida
Environment. The result is a TemplateSet snapshot: it is never mutated
after construction, so recompiling means building a new snapshot and
swapping the reference.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from kida import DictLoader, Environment

from wren.config import RenderConfig
from wren.errors import TemplateCompileError, TemplateNotFound, WrenError
from wren.templating.layout import default_placeholders
from wren.templating.sources import TemplateSource, source_for

logger = logging.getLogger("wren.templating")


def match_extension(name: str, extensions: tuple[str, ...]) -> str | None:
    """Return the first extension *name* ends with, or ``None``.

    Only the final path segment is considered, so a directory called
    ``users.tmpl`` does not make ``users.tmpl/index`` a template.
    """
    base = name.rsplit("/", 1)[-1]
    for ext in extensions:
        if ext and base.endswith(ext) and len(base) > len(ext):
            return ext
    return None


def context_for(binding: Any) -> dict[str, Any]:
    """Turn an HTML binding into a template context.

    Mappings become the context itself; any other value is exposed to
    templates as ``binding``.
    """
    if binding is None:
        return {}
    if isinstance(binding, Mapping):
        return dict(binding)
    return {"binding": binding}


def _unwrap(exc: BaseException) -> WrenError | None:
    """Find a wren error kida wrapped while enhancing a runtime error."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, WrenError):
            return current
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return None


def _unwrapping(chunks: Iterator[str]) -> Iterator[str]:
    """Re-raise wren errors that kida wrapped during streaming."""
    try:
        yield from chunks
    except Exception as exc:
        original = _unwrap(exc)
        if original is not None and original is not exc:
            raise original from exc
        raise


class TemplateSet:
    """An immutable snapshot of compiled templates.

    Safe to render from many threads at once. Per-call values such as
    the layout's ``yield`` are passed in the render context, never stored
    on the set.
    """

    __slots__ = ("_env", "_names")

    def __init__(self, env: Environment, names: frozenset[str]) -> None:
        self._env = env
        self._names = names

    @property
    def names(self) -> frozenset[str]:
        return self._names

    @property
    def env(self) -> Environment:
        return self._env

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def require(self, name: str) -> None:
        """Raise ``TemplateNotFound`` unless *name* is in the set."""
        if name not in self._names:
            raise TemplateNotFound(name)

    def execute(self, name: str, context: dict[str, Any]) -> str:
        """Render template *name* with *context* and return the markup."""
        self.require(name)
        template = self._env.get_template(name)
        try:
            return template.render(context)
        except Exception as exc:
            original = _unwrap(exc)
            if original is not None and original is not exc:
                raise original from exc
            raise

    def stream(self, name: str, context: dict[str, Any]) -> Iterator[str]:
        """Render template *name* chunk by chunk.

        ``TemplateNotFound`` is raised here, before iteration starts;
        execution errors surface while the chunks are consumed.
        """
        self.require(name)
        template = self._env.get_template(name)
        return _unwrapping(template.render_stream(context))


class TemplateStore:
    """Compiles every recognized template under the configured namespace.

    Usage::

        store = TemplateStore(RenderConfig(directory="views"))
        templates = store.compile()
        html = templates.execute("home", {"title": "Home"})
    """

    __slots__ = ("_config", "_source")

    def __init__(self, config: RenderConfig, source: TemplateSource | None = None) -> None:
        self._config = config
        self._source = source if source is not None else source_for(config)

    @property
    def source(self) -> TemplateSource:
        return self._source

    def collect(self) -> dict[str, str]:
        """Read every recognized entry into a ``{name: source}`` mapping."""
        extensions = self._config.extensions
        sources: dict[str, str] = {}
        for rel in self._source.names():
            ext = match_extension(rel, extensions)
            if ext is None:
                continue
            name = rel[: -len(ext)]
            if name in sources:
                raise TemplateCompileError(name, f"duplicate template name from {rel!r}")
            try:
                sources[name] = self._source.read(rel).decode("utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise TemplateCompileError(name, str(exc)) from exc
        return sources

    def compile(self) -> TemplateSet:
        """Build a fresh TemplateSet. Any failure aborts the whole build."""
        sources = self.collect()
        delims = self._config.delims
        env = Environment(
            loader=DictLoader(sources),
            autoescape=True,
            auto_reload=False,
            variable_start=delims.left,
            variable_end=delims.right,
        )
        _apply_helpers(env, self._config.funcs)

        for name in sorted(sources):
            try:
                env.get_template(name)
            except Exception as exc:
                raise TemplateCompileError(name, str(exc)) from exc

        logger.debug("compiled %d templates from %r", len(sources), self._source)
        return TemplateSet(env, frozenset(sources))


def _apply_helpers(
    env: Environment,
    bundles: tuple[Mapping[str, Callable[..., Any]], ...],
) -> None:
    """Register helper bundles, then the built-in placeholders.

    Later bundles override earlier ones. Every helper is usable both as a
    call (``{{ upper(name) }}``) and as a filter (``{{ name | upper }}``).
    The ``yield`` and ``current`` placeholders go last so they always exist.
    """
    for bundle in bundles:
        env.update_filters(dict(bundle))
        for name, func in bundle.items():
            env.add_global(name, func)

    for name, value in default_placeholders().items():
        env.add_global(name, value)

"""Template source providers.

A *source* is anything that can enumerate template files under a
namespace and hand back their raw bytes. Two shapes are supported:

- **DirectorySource**: a directory tree walked recursively
- **AssetSource**: a flat ``asset_names()`` list plus an ``asset(name)`` reader,
  for templates embedded in a package or generated at build time

Both report names relative to the namespace with ``/`` separators, so the
store applies one extension and naming rule regardless of origin.
"""

import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Protocol, runtime_checkable

from wren.config import RenderConfig


def normalize_name(name: str) -> str:
    """Normalize a relative template path to canonical ``a/b/c`` form."""
    return name.replace(os.sep, "/").replace("\\", "/").strip("/")


@runtime_checkable
class TemplateSource(Protocol):
    """Enumerates files under a namespace and reads them as bytes."""

    def names(self) -> Iterable[str]: ...

    def read(self, name: str) -> bytes: ...


class DirectorySource:
    """Walks a directory tree. Directories themselves are never reported."""

    __slots__ = ("root",)

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def names(self) -> Iterator[str]:
        if not self.root.is_dir():
            return
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames.sort()
            base = Path(dirpath)
            for filename in sorted(filenames):
                path = base / filename
                if path.is_file():
                    yield normalize_name(str(path.relative_to(self.root)))

    def read(self, name: str) -> bytes:
        return (self.root / name).read_bytes()

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.root)!r})"


class AssetSource:
    """Filters a flat asset name list down to names under *prefix*.

    ``prefix`` is matched as a path segment: with prefix ``templates``,
    ``templates/home.tmpl`` is reported as ``home.tmpl`` while
    ``templates_old/home.tmpl`` is ignored.
    """

    __slots__ = ("_asset", "_asset_names", "prefix")

    def __init__(
        self,
        prefix: str | Path,
        asset: Callable[[str], bytes],
        asset_names: Callable[[], Iterable[str]],
    ) -> None:
        self.prefix = normalize_name(str(prefix))
        self._asset = asset
        self._asset_names = asset_names

    def _full_name(self, name: str) -> str:
        return f"{self.prefix}/{name}" if self.prefix else name

    def names(self) -> Iterator[str]:
        lead = f"{self.prefix}/" if self.prefix else ""
        for raw in self._asset_names():
            full = normalize_name(raw)
            if not full.startswith(lead):
                continue
            rel = full[len(lead):]
            if rel:
                yield rel

    def read(self, name: str) -> bytes:
        return self._asset(self._full_name(name))

    def __repr__(self) -> str:
        return f"AssetSource({self.prefix!r})"


def source_for(config: RenderConfig) -> TemplateSource:
    """Pick the source described by *config*.

    The asset pair wins only when both callables are set; otherwise the
    configured directory is walked.
    """
    if config.uses_assets:
        return AssetSource(config.directory, config.asset, config.asset_names)  # type: ignore[arg-type]
    return DirectorySource(config.directory)

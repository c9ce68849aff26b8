"""``wren check`` — compile a template directory and report the result.

Prints each compiled template name to stdout. Exits with code 1 if the
directory is missing or any template fails to compile.
"""

import argparse
import sys
from pathlib import Path

from wren.config import Delims, RenderConfig
from wren.errors import TemplateCompileError
from wren.templating.store import TemplateStore


def run_check(args: argparse.Namespace) -> None:
    """Compile ``args.directory`` with the given extensions and delimiters."""
    directory = Path(args.directory)
    if not directory.is_dir():
        print(f"Error: template directory {str(directory)!r} not found", file=sys.stderr)
        raise SystemExit(1)

    config = RenderConfig(
        directory=directory,
        extensions=tuple(args.extensions) if args.extensions else (".tmpl",),
        delims=Delims(*args.delims) if args.delims else Delims(),
    )

    try:
        templates = TemplateStore(config).compile()
    except TemplateCompileError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    for name in sorted(templates.names):
        print(name)
    print(f"{len(templates)} templates OK", file=sys.stderr)

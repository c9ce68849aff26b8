"""Wren CLI — template validation.

Entry point registered as ``wren`` in ``pyproject.toml``::

    [project.scripts]
    wren = "wren.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wren`` command."""
    parser = argparse.ArgumentParser(
        prog="wren",
        description="Wren — response rendering for HTML templates, JSON, XML, and more.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- wren check -------------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Compile every template and list them")
    check_parser.add_argument(
        "--directory",
        default="templates",
        help="Template directory (default: templates)",
    )
    check_parser.add_argument(
        "--ext",
        action="append",
        dest="extensions",
        default=None,
        help="Template extension; repeat for several (default: .tmpl)",
    )
    check_parser.add_argument(
        "--delims",
        nargs=2,
        metavar=("LEFT", "RIGHT"),
        default=None,
        help="Custom output delimiters",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "check":
        from wren.cli._check import run_check

        run_check(args)

"""Perch CLI — render a component tree headlessly.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch — a lifecycle engine for trees of remotely loaded HTML components.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch render ------------------------------------------------------
    render_parser = subparsers.add_parser(
        "render",
        help="Mount a root component, wait for the tree to settle, print the HTML",
    )
    render_parser.add_argument("url", help="Root component url (marker syntax allowed)")
    render_parser.add_argument("--base-url", default=None, help="Prefix for root-relative urls")
    render_parser.add_argument("--host", default="#app", help="Root host selector")
    render_parser.add_argument(
        "--document",
        default=None,
        help="HTML file to render into (default: an empty page with <div id=\"app\">)",
    )
    render_parser.add_argument("--debug", action="store_true", help="Verbose logging")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "render":
        from perch.cli._render import run_render

        sys.exit(run_render(args))

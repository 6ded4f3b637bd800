"""Roost CLI — inspect the dispatch tables of an application.

Entry point registered as ``roost`` in ``pyproject.toml``::

    [project.scripts]
    roost = "roost.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``roost`` command."""
    parser = argparse.ArgumentParser(
        prog="roost",
        description="Roost — runtime-registered REST handlers.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- roost routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List dispatch keys")
    routes_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:app) of an App or RestMapper",
    )
    routes_parser.add_argument(
        "--startup",
        action="store_true",
        help="Run the App's startup hooks first (handlers registered at startup)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from roost.cli._routes import run_routes

        run_routes(args)

"""``roost routes`` — list dispatch keys.

Resolves an import string to an App or RestMapper and prints every
operation with its verb, key, ranking and handler method.
"""

import argparse
import sys

import anyio

from roost.app import App
from roost.cli._resolve import resolve_app
from roost.mapper import RestMapper


def collect_rows(target: App | RestMapper) -> list[tuple[str, str, str, str]]:
    """Rows of (VERB, KEY, RANKING, HANDLER), one per operation."""
    mappers = target.mappers if isinstance(target, App) else (target,)
    rows: list[tuple[str, str, str, str]] = []
    for mapper in sorted(mappers, key=lambda m: m.namespace):
        prefix = "" if mapper.namespace == "/" else mapper.namespace
        for op in mapper.table.operations:
            key = f"{prefix}/{op.name}/{op.arity}{'+' if op.variable_tail else ''}"
            handler = f"{type(op.handler).__name__}.{op.method_name}"
            rows.append((op.verb, key, str(op.ranking), handler))
    return rows


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of VERB, KEY, RANKING and HANDLER."""
    try:
        target = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if args.startup and isinstance(target, App):
        anyio.run(target.startup)

    rows = collect_rows(target)
    if not rows:
        print("No operations registered.")
        return

    # Column widths
    headings = ("VERB", "KEY", "RANKING", "HANDLER")
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headings[:3])]

    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:>{widths[2]}}}  {{}}"
    print(fmt.format(*headings))
    sep_len = sum(widths) + 6 + max(len(r[3]) for r in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))

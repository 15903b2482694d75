#!/usr/bin/env python3
"""
Check IPLD schema files for errors and warnings.

Usage:
    python -m ipld_schema.schema_lint <file.ipldsch> [file2.ipldsch ...]
    python -m ipld_schema.schema_lint --parser peg FILE   # Use the Lark grammar
    python -m ipld_schema.schema_lint --dump yaml FILE    # Print the parsed types
"""

import argparse
import sys
from pathlib import Path

from . import schema_parser, schema_peg_parser
from .schema_converter import schema_to_json, schema_to_yaml
from .schema_errors import SchemaError


PARSERS = {
    'handwritten': schema_parser.parse,
    'peg': schema_peg_parser.parse,
}

DUMPERS = {
    'yaml': schema_to_yaml,
    'json': schema_to_json,
}


def lint_file(path: Path, parser: str = 'handwritten', dump: str = None) -> tuple[int, int]:
    """Lint a single file. Returns (error_count, warning_count)."""
    try:
        with open(path) as f:
            source = f.read()
    except FileNotFoundError:
        print(f"{path}: file not found")
        return 1, 0

    try:
        schema = PARSERS[parser](source)
    except SchemaError as e:
        loc = f":{e.line}" if e.line else ""
        print(f"{path}{loc}: error: {e.message}")
        return 1, 0

    duplicates = schema.duplicates()
    for name in duplicates:
        print(f"{path}: warning: type {name!r} is declared more than once; the last declaration wins")

    if dump:
        print(DUMPERS[dump](schema), end="")

    return 0, len(duplicates)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Check IPLD schema files for errors and warnings."
    )
    parser.add_argument(
        "files",
        nargs="+",
        help="Schema files to check"
    )
    parser.add_argument(
        "--parser",
        choices=sorted(PARSERS),
        default="handwritten",
        help="Parser implementation to use (default: handwritten)"
    )
    parser.add_argument(
        "--dump",
        choices=sorted(DUMPERS),
        default=None,
        help="Print the parsed types of each valid file in this format"
    )

    args = parser.parse_args(argv)

    total_errors = 0
    total_warnings = 0

    for path in (Path(f) for f in args.files):
        errors, warnings = lint_file(path, parser=args.parser, dump=args.dump)
        total_errors += errors
        total_warnings += warnings

    if total_errors or total_warnings:
        print(f"\n{total_errors} error(s), {total_warnings} warning(s)")

    return 1 if total_errors else 0


if __name__ == "__main__":
    sys.exit(main())

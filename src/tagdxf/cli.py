from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter, OrderedDict
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .config import CodecConfig
from .convert import to_dxf
from .document import SUPPORTED_ENTITY_TYPES, SUPPORTED_TABLE_TYPES, read


def _package_version() -> str:
    try:
        return version("tagdxf")
    except PackageNotFoundError:
        return "0.0.0"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tagdxf", description="Inspect and rewrite ASCII DXF files.")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level for reader and writer diagnostics.",
    )
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show basic DXF information.")
    inspect_parser.add_argument("path", help="Path to DXF file.")
    inspect_parser.add_argument(
        "--verbose",
        action="store_true",
        help="List every diagnostic and comment instead of a summary.",
    )

    convert_parser = subparsers.add_parser(
        "convert",
        help="Re-encode a DXF file for another DXF version.",
    )
    convert_parser.add_argument("input_path", help="Path to input DXF file.")
    convert_parser.add_argument("output_path", help="Path to output DXF file.")
    convert_parser.add_argument(
        "--types",
        default=None,
        help='Entity filter passed to query(), e.g. "LINE CIRCLE ACAD_PROXY_ENTITY".',
    )
    convert_parser.add_argument(
        "--dxf-version",
        default="R2000",
        help="Target DXF version, e.g. R12/R14/R2000/R2018 or AC1015.",
    )
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any entity cannot be written for the target version.",
    )
    convert_parser.add_argument(
        "--echo-comments",
        action="store_true",
        help="Print group 999 comments while reading.",
    )
    return parser


def _run_inspect(path: str, *, verbose: bool = False) -> int:
    file_path = Path(path)
    if not file_path.exists():
        print(f"error: file not found: {file_path}", file=sys.stderr)
        return 2

    try:
        doc = read(str(file_path))
    except Exception as exc:
        print(f"error: failed to read DXF: {exc}", file=sys.stderr)
        return 2

    counts: OrderedDict[str, int] = OrderedDict()
    for entity in doc.store:
        counts[entity.dxftype] = counts.get(entity.dxftype, 0) + 1

    print(f"file: {file_path}")
    print(f"version: {doc.version.acadver} ({doc.version.release})")
    print(f"total_entities: {sum(counts.get(name, 0) for name in SUPPORTED_ENTITY_TYPES)}")
    for dxftype in SUPPORTED_ENTITY_TYPES:
        count = counts.get(dxftype, 0)
        if count > 0:
            print(f"{dxftype}: {count}")
    for table in SUPPORTED_TABLE_TYPES:
        count = counts.get(table, 0)
        if count > 0:
            print(f"table[{table}]: {count}")
    for dxftype, count in doc.skipped_by_type.items():
        print(f"skipped[{dxftype}]: {count}")

    kinds = Counter(diagnostic.kind for diagnostic in doc.diagnostics)
    for kind, count in sorted(kinds.items()):
        print(f"diagnostics[{kind}]: {count}")
    if doc.comments:
        print(f"comments: {len(doc.comments)}")
    if verbose:
        for diagnostic in doc.diagnostics:
            print(f"diagnostic: {diagnostic}")
        for comment in doc.comments:
            print(f"comment: {comment}")
    return 0


def _run_convert(
    input_path: str,
    output_path: str,
    *,
    types: str | None = None,
    dxf_version: str = "R2000",
    strict: bool = False,
    echo_comments: bool = False,
) -> int:
    dxf_path = Path(input_path)
    if not dxf_path.exists():
        print(f"error: file not found: {dxf_path}", file=sys.stderr)
        return 2

    config = CodecConfig(echo_comments=echo_comments)
    try:
        result = to_dxf(
            str(dxf_path),
            output_path,
            types=types,
            dxf_version=dxf_version,
            strict=strict,
            config=config,
        )
    except Exception as exc:
        print(f"error: failed to convert DXF: {exc}", file=sys.stderr)
        return 2

    print(f"input: {result.source_path}")
    print(f"output: {result.output_path}")
    print(f"target_version: {result.target_version}")
    print(f"total_entities: {result.total_entities}")
    print(f"written_entities: {result.written_entities}")
    print(f"skipped_entities: {result.skipped_entities}")
    for dxftype, count in result.skipped_by_type.items():
        print(f"skipped[{dxftype}]: {count}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "inspect":
        return _run_inspect(args.path, verbose=bool(args.verbose))
    if args.command == "convert":
        return _run_convert(
            args.input_path,
            args.output_path,
            types=args.types,
            dxf_version=args.dxf_version,
            strict=bool(args.strict),
            echo_comments=bool(args.echo_comments),
        )

    parser.print_help()
    return 0

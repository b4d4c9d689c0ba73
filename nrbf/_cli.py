"""nrbf command-line interface.

Usage:
    nrbf records FILE            one line per record: slot, offset, type, id
    nrbf dump FILE [--indent N]  JSON of the root object (or --object ID)
    nrbf refs FILE               reference report; exit 1 if any dangle
    nrbf version

Common options: --strict, --encoding ENC, -v/--verbose (repeat for debug).
Decode errors exit with status 2.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import (
    MAX_DEPTH,
    NrbfError,
    ObjectGraph,
    __version__,
    decode_file,
    to_json,
    to_python,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nrbf",
        description="Decode .NET binary formatter (NRBF) object-graph streams",
    )
    sub = parser.add_subparsers(dest="command")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("file", help="stream to decode")
    common.add_argument("--strict", action="store_true",
                        help="fail on references that never resolve")
    common.add_argument("--encoding", default="utf-8",
                        help="text encoding of strings (default: utf-8)")
    common.add_argument("--max-depth", type=int, default=MAX_DEPTH,
                        help="maximum record nesting depth")
    common.add_argument("-v", "--verbose", action="count", default=0,
                        help="log progress (-vv for every record)")

    # ── records ──
    sub.add_parser("records", parents=[common], help="List decoded records")

    # ── dump ──
    dump_p = sub.add_parser("dump", parents=[common], help="Print the graph as JSON")
    dump_p.add_argument("--indent", type=int, default=2,
                        help="JSON indent (default: 2)")
    dump_p.add_argument("--object", type=int, metavar="ID",
                        help="dump object ID instead of the root")

    # ── refs ──
    sub.add_parser("refs", parents=[common], help="Report reference resolution")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load(args: argparse.Namespace) -> ObjectGraph:
    _header, graph = decode_file(args.file, encoding=args.encoding,
                                 max_depth=args.max_depth, strict=args.strict)
    return graph


def _cmd_records(args: argparse.Namespace) -> int:
    graph = _load(args)
    for rec in graph:
        oid = "" if rec.object_id is None else "id={}".format(rec.object_id)
        print("{:6d}  0x{:08x}  {:<32} {}".format(
            rec.slot, rec.offset, rec.record_type.name, oid).rstrip())
    return 0


def _cmd_dump(args: argparse.Namespace) -> int:
    graph = _load(args)
    record = None
    if args.object is not None:
        record = graph.get(args.object)
        if record is None:
            print("nrbf: no object with id {}".format(args.object), file=sys.stderr)
            return 1
    print(to_json(to_python(graph, record), indent=args.indent))
    return 0


def _cmd_refs(args: argparse.Namespace) -> int:
    graph = _load(args)
    refs = graph.references
    dangling = graph.dangling
    print("references: {}  resolved: {}  dangling: {}".format(
        len(refs), len(refs) - len(dangling), len(dangling)))
    for ref in dangling:
        print("  0x{:08x}  -> id {} (dangling)".format(ref.offset, ref.id_ref))
    return 1 if dangling else 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"nrbf {__version__}")
        return

    _configure_logging(args.verbose)
    commands = {"records": _cmd_records, "dump": _cmd_dump, "refs": _cmd_refs}
    try:
        status = commands[args.command](args)
    except NrbfError as e:
        print(f"nrbf: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"nrbf: cannot read {args.file}: {e.strerror}", file=sys.stderr)
        sys.exit(2)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()

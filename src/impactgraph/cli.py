"""
Command-line interface for impactgraph.

Usage:
    impactgraph scan <path>
    impactgraph impact <path> [--base REF] [--head REF] [--staged] [--depth N] [--architecture FILE]
    impactgraph graph <path>
    impactgraph cycles <path>
    impactgraph symbols <path> [--name NAME] [--orphans]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__, config
from .engine import Engine


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="impactgraph",
        description="impactgraph - dependency graph and change impact analysis",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    parser.add_argument("--workers", type=int, default=None, help=f"Worker threads (default: {config.WORKERS})")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # scan
    scan_parser = subparsers.add_parser("scan", help="Index a repository and print statistics")
    scan_parser.add_argument("path", nargs="?", default=".", help="Repository root (default: current directory)")

    # impact
    impact_parser = subparsers.add_parser("impact", help="Analyze the impact of a git diff")
    impact_parser.add_argument("path", nargs="?", default=".", help="Repository root (default: current directory)")
    impact_parser.add_argument("--base", default="HEAD", help="Base ref (default: HEAD)")
    impact_parser.add_argument("--head", default=None, help="Head ref (default: working tree)")
    impact_parser.add_argument("--staged", action="store_true", help="Analyze staged changes only")
    impact_parser.add_argument(
        "--depth", type=int, default=config.MAX_IMPACT_DEPTH,
        help=f"Max dependency hops (default: {config.MAX_IMPACT_DEPTH})",
    )
    impact_parser.add_argument(
        "--architecture", default=None,
        help=f"Architecture YAML (default: {config.CONFIG_DIR}/architecture.yaml if present)",
    )

    # graph
    graph_parser = subparsers.add_parser("graph", help="Print the file dependency graph")
    graph_parser.add_argument("path", nargs="?", default=".", help="Repository root (default: current directory)")

    # cycles
    cycles_parser = subparsers.add_parser("cycles", help="List import cycles")
    cycles_parser.add_argument("path", nargs="?", default=".", help="Repository root (default: current directory)")

    # symbols
    symbols_parser = subparsers.add_parser("symbols", help="Query the symbol map")
    symbols_parser.add_argument("path", nargs="?", default=".", help="Repository root (default: current directory)")
    symbols_parser.add_argument("--name", help="Only symbols with this name")
    symbols_parser.add_argument("--orphans", action="store_true", help="Exported symbols nothing imports")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.command:
        parser.print_help()
        return

    try:
        if args.command == "scan":
            result = cmd_scan(args)
        elif args.command == "impact":
            result = cmd_impact(args)
        elif args.command == "graph":
            result = cmd_graph(args)
        elif args.command == "cycles":
            result = cmd_cycles(args)
        elif args.command == "symbols":
            result = cmd_symbols(args)
        else:
            parser.print_help()
            return

        print(json.dumps(result, indent=2, ensure_ascii=False))

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _engine(args) -> Engine:
    root = Path(args.path)
    if not root.is_dir():
        raise FileNotFoundError(f"Path does not exist: {root}")
    return Engine(root, workers=args.workers)


def cmd_scan(args):
    engine = _engine(args)
    return engine.index()


def cmd_impact(args):
    engine = _engine(args)
    if args.architecture:
        if not Path(args.architecture).is_file():
            raise FileNotFoundError(f"Architecture file does not exist: {args.architecture}")
        engine.load_architecture(args.architecture)
    engine.index()
    result = engine.analyze_impact(
        base=args.base,
        head=args.head,
        staged=args.staged,
        depth=args.depth,
    )
    return result.to_dict()


def cmd_graph(args):
    engine = _engine(args)
    engine.index()
    return engine.graph_dict()


def cmd_cycles(args):
    engine = _engine(args)
    engine.index()
    cycles = engine.cycles()
    return {"count": len(cycles), "cycles": cycles}


def cmd_symbols(args):
    engine = _engine(args)
    engine.index()
    if args.orphans:
        symbols = engine.orphan_exports()
    elif args.name:
        symbols = engine.find_symbol(args.name)
    else:
        symbols = engine.symbols.all_symbols()
    return [s.to_dict() for s in symbols]


if __name__ == "__main__":
    main()

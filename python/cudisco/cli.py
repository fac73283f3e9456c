"""cudisco CLI - inspect how the local CUDA toolkit is discovered."""

import argparse
import json
import logging
import sys

from . import _find_lib
from ._log import get_logger
from ._names import library_names
from ._toolkit import find_toolkit
from ._versions import Version, cuda_library_versions
from .discovery import COMPONENTS, discover, get_binary, get_library
from .errors import DiscoveryError


def _toolkit_dirs(args):
    return args.dir if args.dir else find_toolkit()


def cmd_toolkit(args):
    dirs = find_toolkit()
    if not dirs:
        print("No CUDA toolkit found", file=sys.stderr)
        return 1
    for d in dirs:
        print(d)
    return 0


def cmd_library(args):
    dirs = _toolkit_dirs(args)
    if args.no_load:
        path = _find_lib.find_cuda_library(dirs, args.name)
        if path is None:
            path = _find_lib.find_cuda_library(dirs, args.name, cuda_library_versions(args.name))
    else:
        try:
            path, _ = get_library(dirs, args.name, optional=True)
        except DiscoveryError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    if path is None:
        print(f"Error: library '{args.name}' not found", file=sys.stderr)
        return 1
    print(path)
    return 0


def cmd_binary(args):
    path = get_binary(_toolkit_dirs(args), args.name, optional=True)
    if path is None:
        print(f"Error: binary '{args.name}' not found", file=sys.stderr)
        return 1
    print(path)
    return 0


def cmd_names(args):
    for name in library_names(args.name, args.version + args.token):
        print(name)
    return 0


def cmd_report(args):
    report = discover(args.dir or None)

    if args.json:
        out = {
            "available": report.available,
            "toolkit_dirs": list(report.toolkit_dirs),
            "components": {
                comp.name: (report.results[comp.name].resolved.path
                            if comp.name in report.results and report.results[comp.name].found
                            else None)
                for comp in COMPONENTS
            },
            "error": str(report.error) if report.error else None,
        }
        print(json.dumps(out, indent=2))
        return 0 if report.available else 1

    print(f"Toolkit dirs: {', '.join(report.toolkit_dirs) or '(none)'}")
    for comp in COMPONENTS:
        result = report.results.get(comp.name)
        if result is None:
            status = "not checked"
        elif result.found:
            status = result.resolved.path
        else:
            status = f"MISSING ({result.error})"
        print(f"  {comp.kind:8} {comp.name:20} {status}")
    print(f"Available: {'yes' if report.available else 'no'}")
    return 0 if report.available else 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="cudisco - discover the local CUDA toolkit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Where is the toolkit?
  cudisco toolkit

  # Resolve one library or binary
  cudisco library cublas
  cudisco binary ptxas --dir /usr/local/cuda-12.4

  # File names probed for a library
  cudisco names cudart --version 12.4

  # Full discovery pass
  cudisco report --json
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every search step")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("toolkit", help="List candidate toolkit directories")

    p_library = subparsers.add_parser("library", help="Find a CUDA library")
    p_library.add_argument("name", help="Logical library name (e.g. cublas)")
    p_library.add_argument("--dir", action="append",
                           help="Toolkit directory (default: discovered)")
    p_library.add_argument("--no-load", action="store_true",
                           help="Only locate the library, do not open it")

    p_binary = subparsers.add_parser("binary", help="Find a CUDA binary")
    p_binary.add_argument("name", help="Binary name (e.g. ptxas)")
    p_binary.add_argument("--dir", action="append",
                          help="Toolkit directory (default: discovered)")

    p_names = subparsers.add_parser("names", help="Print candidate library file names")
    p_names.add_argument("name", help="Logical library name")
    p_names.add_argument("--version", action="append", default=[], type=Version.parse,
                         help="Version hint (e.g. 12.4)")
    p_names.add_argument("--token", action="append", default=[],
                         help="Opaque version token (e.g. 2023.1.0)")

    p_report = subparsers.add_parser("report", help="Run a full discovery pass")
    p_report.add_argument("--dir", action="append",
                          help="Toolkit directory (default: discovered)")
    p_report.add_argument("--json", action="store_true",
                          help="Output as JSON")

    args = parser.parse_args(argv)

    if args.verbose:
        get_logger(__name__, level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 1

    dispatch = {
        "toolkit": cmd_toolkit,
        "library": cmd_library,
        "binary": cmd_binary,
        "names": cmd_names,
        "report": cmd_report,
    }
    return dispatch[args.command](args)


if __name__ == "__main__":
    sys.exit(main())

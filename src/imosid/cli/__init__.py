"""Command-line interface for imosid.

Usage:
    imosid compile <file> [--metafile]
    imosid info <file>
    imosid query <file> [-s SECTION ...]
    imosid delete <file> <section>
    imosid update <target> [-i INPUT] [--section NAME ...] [-p]
    imosid apply <file-or-directory> [--dry-run]
    imosid check <directory>

Global options:
    --syntax PREFIX   comment prefix to use instead of auto-detection
    --config PATH     path to config.yaml
    -v, --verbose     show informational messages (-vv for debug)
"""

import argparse
import logging
import sys

from imosid import __version__
from imosid.cli.files import cmd_compile, cmd_delete, cmd_info, cmd_query
from imosid.cli.sync import cmd_apply, cmd_check, cmd_update


def configure_logging(verbosity: int) -> None:
    """Configure root logging for console use."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    logging.getLogger().setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imosid",
        description="Instant manager of sections in dotfiles",
    )
    parser.add_argument("--version", action="version", version=f"imosid {__version__}")
    parser.add_argument(
        "--syntax", default=None,
        help="Comment prefix to use instead of auto-detection",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to config.yaml",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Show informational messages (repeat for debug output)",
    )
    sub = parser.add_subparsers(dest="command")

    comp = sub.add_parser("compile", help="Add hashes to sections in a file")
    comp.add_argument("file", help="File to process")
    comp.add_argument(
        "-m", "--metafile", action="store_true",
        help="Track the file with a separate metafile instead of comments",
    )

    info = sub.add_parser("info", help="List imosid metadata in a file")
    info.add_argument("file", help="File to get info for")

    query = sub.add_parser("query", help="Print sections from a file")
    query.add_argument("file", help="File to search through")
    query.add_argument(
        "-s", "--section", action="append", default=None,
        help="Section to print (repeatable; whole file if omitted)",
    )

    delete = sub.add_parser("delete", help="Stop tracking a section")
    delete.add_argument("file", help="File containing the section")
    delete.add_argument("section", help="Section name")

    upd = sub.add_parser("update", help="Apply source sections to a target")
    upd.add_argument("target", help="File to apply updates to")
    upd.add_argument(
        "-i", "--input", default=None,
        help="Apply this file instead of the sources named in the target",
    )
    upd.add_argument(
        "--section", action="append", default=None,
        help="Only update this section (repeatable)",
    )
    upd.add_argument(
        "-p", "--print", action="store_true", dest="print_only",
        help="Print the result instead of writing it",
    )

    app = sub.add_parser("apply", help="Apply a file to the target named in it")
    app.add_argument("file", help="File or directory to apply")
    app.add_argument(
        "--dry-run", action="store_true",
        help="Report changes without writing",
    )

    chk = sub.add_parser("check", help="Check a directory for modified files")
    chk.add_argument("directory", help="Directory to check")

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.verbose)

    dispatch = {
        "compile": cmd_compile,
        "info": cmd_info,
        "query": cmd_query,
        "delete": cmd_delete,
        "update": cmd_update,
        "apply": cmd_apply,
        "check": cmd_check,
    }

    handler = dispatch.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line interface: parse a MIFARE Classic dump file and print it in
human readable format.

Usage:
    mfdread [-1] [-n] [-v] [--json] <FILE>

FILE may be "-" to read the dump from stdin.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from mfdread.config import APP_NAME, APP_VERSION, COLOR, FORCE_1K, LOG_FORMAT
from mfdread.rfid.dump_parser import load_dump
from mfdread.rfid.errors import DumpError
from mfdread.rfid.table import render_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Parse Mifare dump FILE and show details.",
    )
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Print verbose debug statements (repeat for more)")
    parser.add_argument("-1", "--force-1k", dest="force_1k", action="store_true",
                        default=FORCE_1K, help="Force 1k format")
    parser.add_argument("-n", "--no-color", dest="color", action="store_false",
                        default=COLOR,
                        help="Do not colorize the output (colour is only used "
                             "when stdout is a terminal)")
    parser.add_argument("--json", action="store_true",
                        help="Output the decoded dump as JSON")
    parser.add_argument("file", metavar="FILE",
                        help="Dump file (.mfd/.bin, .eml, .txt or .json), or - for stdin")
    return parser


def setup_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        report = load_dump(args.file, force_1k=args.force_1k)
    except DumpError as e:
        logger.debug("Failed to decode %s", args.file, exc_info=True)
        print(str(e), file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error opening the input file {args.file}: {e.strerror or e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(render_report(report, color=args.color and sys.stdout.isatty()))
    return 0

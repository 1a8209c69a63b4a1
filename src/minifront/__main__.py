"""Command-line driver: scan and parse a program, then print the requested reports."""

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Optional

from . import report
from .lex import ScanResult, Scanner
from .pda import Parser, end_of_input

_DEFAULT_FORMAT = "%(levelname)s | %(name)s | %(message)s"

log = logging.getLogger("minifront")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure stdlib logging once. Unknown level names fall back to WARNING."""

    lvl = (level or "WARNING").upper()
    logging.basicConfig(level=getattr(logging, lvl, logging.WARNING), format=_DEFAULT_FORMAT)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="minifront", description=__doc__)
    source = p.add_mutually_exclusive_group()
    source.add_argument("file", nargs="?", default=None, help="Program file to read. Defaults to stdin.")
    source.add_argument("-c", "--code", default=None, help="Program text given on the command line.")
    p.add_argument("--tokens", action="store_true", help="Print the token table.")
    p.add_argument("--paths", action="store_true", help="Print the DFA path taken for each token.")
    p.add_argument("--dfa", action="store_true", help="Print the DFA states and transitions.")
    p.add_argument("--table", action="store_true", help="Print the LL(1) parsing table.")
    p.add_argument("--trace", action="store_true", help="Print the PDA trace.")
    p.add_argument("--debugfile", default=None, help="Write the grammar, FIRST/FOLLOW sets and table to this file.")
    p.add_argument("--log-level", default=None, help="Logging level (e.g., INFO, DEBUG).")
    return p


def _read_source(args: argparse.Namespace) -> str:
    if args.code is not None:
        return args.code
    if args.file is not None:
        with open(args.file, encoding="utf-8") as fp:
            return fp.read()
    return sys.stdin.read()


def _scan_all(scanner: Scanner, text: str) -> list[ScanResult]:
    results: list[ScanResult] = []
    index, lineno = 0, 1
    while True:
        result = scanner.scan(text, index, lineno)
        if result.at_end:
            return results
        results.append(result)
        index, lineno = result.index, result.lineno


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.log_level)

    parser_type: type[Parser] = Parser
    if args.debugfile:
        parser_type = type("DebugParser", (Parser,), {"debugfile": args.debugfile})

    try:
        text = _read_source(args)
    except OSError as exc:
        log.error("Unable to read %s: %s", args.file, exc)
        return 2

    scanner = parser_type.scanner_class()
    scanner.log = log  # pyright: ignore # Instance override of the class-level logger.
    parser = parser_type()
    parser.log = log  # pyright: ignore # Instance override of the class-level logger.

    tokens = list(scanner.tokenize(text))
    result = parser.parse(end_of_input(scanner, tokens))

    if not (args.tokens or args.paths or args.dfa or args.table or args.trace):
        args.tokens = args.trace = True

    sections: list[tuple[str, str]] = []
    if args.tokens:
        sections.append(("Tokens", report.format_tokens(tokens)))
    if args.paths:
        sections.append(("DFA paths", report.format_paths(_scan_all(scanner, text))))
    if args.dfa:
        sections.append(("DFA", report.format_dfa(scanner.dfa)))
    if args.table:
        sections.append(("LL(1) table", report.format_table(parser.table)))
    if args.trace:
        sections.append(("PDA trace", report.format_parse_result(result)))

    for title, body in sections:
        print(f"=== {title} ===")
        print(body)
        print()

    if result.error is not None:
        if not args.trace:
            print(result.error.message, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

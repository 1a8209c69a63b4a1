"""Plain-text tables of tokens, automata, parsing tables, and PDA traces.

These only read the front-end's outputs; nothing here feeds back into scanning or parsing.
"""

from collections.abc import Iterable, Sequence

from tabulate import tabulate

from .automata import DFA, format_symbols
from .grammar import LL1Table
from .lex import ScanResult
from .pda import PDAAction, ParseResult
from .tokens import Token

__all__ = ("format_dfa", "format_parse_result", "format_paths", "format_table", "format_tokens", "format_trace")

TABLE_FORMAT = "github"


def format_tokens(tokens: Iterable[Token], tablefmt: str = TABLE_FORMAT) -> str:
    rows = [(tok.kind.name, tok.value, tok.lineno, tok.index) for tok in tokens]
    headers = ["kind", "value", "line", "index"]
    return tabulate(rows or [("-", "-", "-", "-")], headers=headers, tablefmt=tablefmt, disable_numparse=True)


def format_paths(results: Iterable[ScanResult], tablefmt: str = TABLE_FORMAT) -> str:
    """One row per scanned token with the DFA states it went through, e.g. "0 → 2 → 5"."""

    rows = []
    for result in results:
        if result.token is None:
            continue
        states = [result.path[0][0], *(dst for _, dst in result.path)] if result.path else []
        rows.append((result.token.kind.name, result.token.value, " → ".join(map(str, states)) or "(none)"))
    headers = ["kind", "value", "DFA path"]
    return tabulate(rows or [("-", "-", "-")], headers=headers, tablefmt=tablefmt, disable_numparse=True)


def format_dfa(dfa: DFA, tablefmt: str = TABLE_FORMAT) -> str:
    """Tabulate the DFA states. Transitions into the dead state are left out."""

    rows = []
    for state in dfa:
        flags = []
        if state.id == dfa.start:
            flags.append("start")
        if state.id == dfa.dead:
            flags.append("dead")

        by_target: dict[int, list[str]] = {}
        for symbol, target in state.transitions.items():
            if target != dfa.dead or state.id == dfa.dead:
                by_target.setdefault(target, []).append(symbol)
        moves = "; ".join(f"{format_symbols(symbols)} → {target}" for target, symbols in sorted(by_target.items()))

        rows.append((state.id, ", ".join(flags), state.kind.name if state.kind else "", moves))

    return tabulate(rows, headers=["state", "flags", "accepts", "transitions"], tablefmt=tablefmt)


def format_table(table: LL1Table, tablefmt: str = TABLE_FORMAT) -> str:
    rows = [(name, *(cell.split(" → ", 1)[-1] if cell else "" for cell in cells)) for name, cells in table.rows()]
    return tabulate(rows, headers=["", *table.terminals], tablefmt=tablefmt)


def format_trace(trace: Sequence[PDAAction], tablefmt: str = TABLE_FORMAT) -> str:
    rows = [(n, " ".join(step.stack), step.token.value, step.action) for n, step in enumerate(trace)]
    return tabulate(rows, headers=["step", "stack", "lookahead", "action"], tablefmt=tablefmt, disable_numparse=True)


def format_parse_result(result: ParseResult, tablefmt: str = TABLE_FORMAT) -> str:
    out = [format_trace(result.trace, tablefmt), ""]
    if result.error is None:
        out.append("Input accepted.")
    else:
        out.append(result.error.message)
    return "\n".join(out)

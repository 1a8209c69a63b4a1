# region License
# -----------------------------------------------------------------------------
# minifront: pda.py
#
# Copyright (C) 2016 - 2018
# David M. Beazley (Dabeaz LLC)
# Copyright (C) 2024, Sachaa-Thanasius
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are
# met:
#
# * Redistributions of source code must retain the above copyright notice,
#   this list of conditions and the following disclaimer.
# * Redistributions in binary form must reproduce the above copyright notice,
#   this list of conditions and the following disclaimer in the documentation
#   and/or other materials provided with the distribution.
# * Neither the name of the David Beazley or Dabeaz LLC may be used to
#   endorse or promote products derived from this software without
#  specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
# "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
# LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR
# A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT
# OWNER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL,
# SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE,
# DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY
# THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT
# (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# -----------------------------------------------------------------------------
# endregion

import enum
import sys
from collections.abc import Iterable
from typing import Any, ClassVar, NamedTuple, Optional

from ._misc import override
from .grammar import ARITHMETIC_RULES, ARITHMETIC_TERMINALS, END, Grammar, GrammarError, LL1Table
from .lex import Scanner
from .tokens import Token, TokenKind

__all__ = (
    "InternalParserError",
    "PDAAction",
    "ParseError",
    "ParseResult",
    "Parser",
    "ParserBuildError",
    "SyntaxErrorInfo",
    "SyntaxErrorKind",
    "end_of_input",
    "parse",
)


# ============================================================================
# region -------- Exceptions and Results --------
# ============================================================================


class ParserBuildError(Exception):
    """Exception raised if the grammar or parsing table of a parser class can't be built."""


class InternalParserError(RuntimeError):
    """Exception raised when the parsing table makes the parser expand without consuming input forever.

    This is a defect in the table, never a problem with the parsed text.
    """


class SyntaxErrorKind(enum.Enum):
    UNEXPECTED_TERMINAL = "unexpected terminal"
    UNEXPECTED_SYMBOL = "unexpected symbol"
    INCOMPLETE_INPUT = "incomplete input"
    UNKNOWN_TOKEN = "unknown token"


class SyntaxErrorInfo(NamedTuple):
    """Description of the first syntax error of a parse.

    Attributes
    ----------
    kind: SyntaxErrorKind
        Which check failed.
    message: str
        Human-readable description, including the line number.
    lineno: int
        Line of the offending token.
    token: Token
        The lookahead token at the point of failure.
    symbol: str
        The stack symbol being matched or expanded.
    expected: tuple[str, ...]
        Terminals that would have been accepted.
    """

    kind: SyntaxErrorKind
    message: str
    lineno: int
    token: Token
    symbol: str
    expected: tuple[str, ...] = ()


class ParseError(Exception):
    """Exception raised by `ParseResult.raise_for_error()` for a failed parse.

    Attributes
    ----------
    info: SyntaxErrorInfo
        The error description.
    lineno: int
        Line of the offending token.
    """

    def __init__(self, info: SyntaxErrorInfo) -> None:
        super().__init__(info.message)
        self.info = info
        self.lineno = info.lineno


class PDAAction(NamedTuple):
    """One self-contained step of the derivation trace.

    Attributes
    ----------
    stack: tuple[str, ...]
        The parser stack after the action, bottom first.
    token: Token
        The lookahead token when the action was taken.
    action: str
        "push X", "match X", "expand N → rhs", "ACCEPTED", or "error: ...".

    Notes
    -----
    There is no separate "pop X" entry. "match X" pops the terminal X, and "expand N → rhs" pops N and pushes the
    right side in one step, so its snapshot already shows N replaced. An epsilon expansion ("N → ε") is therefore a
    bare pop of N.
    """

    stack: tuple[str, ...]
    token: Token
    action: str


class ParseResult:
    """Outcome of a parse: the full trace plus, on failure, the first syntax error.

    Attributes
    ----------
    trace: list[PDAAction]
        Every recorded step, up to and including acceptance or the failure.
    error: SyntaxErrorInfo | None
        The syntax error that stopped the parse, or None if the input was accepted.
    """

    __slots__ = ("trace", "error")

    def __init__(self, trace: list[PDAAction], error: Optional[SyntaxErrorInfo] = None) -> None:
        self.trace = trace
        self.error = error

    @property
    def accepted(self) -> bool:
        return self.error is None

    @property
    def final_stack(self) -> tuple[str, ...]:
        return self.trace[-1].stack if self.trace else ()

    def raise_for_error(self) -> None:
        """Raise `ParseError` if the parse failed."""

        if self.error is not None:
            raise ParseError(self.error)

    @override
    def __repr__(self) -> str:
        status = "accepted" if self.error is None else self.error.kind.value
        return f"<ParseResult {status} steps={len(self.trace)}>"


# endregion


# ============================================================================
# region -------- Parser --------
# ============================================================================


_OPERATOR_KEYS: dict[TokenKind, str] = {
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.MULTIPLY: "*",
    TokenKind.DIVIDE: "/",
    TokenKind.MOD: "%",
    TokenKind.ASSIGN: "=",
    TokenKind.LPAREN: "(",
    TokenKind.RPAREN: ")",
    TokenKind.SEMICOLON: ";",
}


class ParserMeta(type):
    """Metaclass that builds the grammar and LL(1) table of each parser class as it is created."""

    def __new__(cls, clsname: str, bases: tuple[type, ...], namespace: dict[str, Any], **kwds: object):
        self = super().__new__(cls, clsname, bases, namespace, **kwds)
        self._build()  # pyright: ignore # This method should always exist in Parser subclasses.
        return self


class Parser(metaclass=ParserMeta):
    """Table-driven LL(1) parser that keeps an explicit stack and records every step it takes."""

    # ---- These attributes may be redefined in subclasses.
    terminals: ClassVar[tuple[str, ...]] = ARITHMETIC_TERMINALS
    """Terminal names used by the rules."""

    rules: ClassVar[tuple[tuple[str, tuple[str, ...]], ...]] = ARITHMETIC_RULES
    """(name, right side) pairs; an empty right side is an epsilon production."""

    start: ClassVar[Optional[str]] = "S"
    """Start symbol. Defaults to the name of the first rule if None."""

    literal_keywords: ClassVar[frozenset[str]] = frozenset({"print"})
    """Lexemes that are their own terminal, even when scanned as identifiers."""

    scanner_class: ClassVar[type[Scanner]] = Scanner
    """Scanner used by `parse()` to turn text into tokens."""

    log: ClassVar[Any] = Scanner.log
    """Logging object where debugging/diagnostic messages are sent."""

    debugfile: ClassVar[Optional[str]] = None
    """Debugging filename where the grammar and table can be written."""

    # ---- Created by _build().
    _grammar: ClassVar[Grammar]
    _table: ClassVar[LL1Table]

    @classmethod
    def _build_grammar(cls) -> Grammar:
        if not cls.rules:
            msg = "No grammar rules are defined."
            raise ParserBuildError(msg)

        errors: list[str] = []
        try:
            grammar = Grammar(cls.terminals)
        except GrammarError as exc:
            raise ParserBuildError(str(exc)) from exc

        for name, syms in cls.rules:
            try:
                grammar.add_production(name, syms)
            except GrammarError as exc:
                errors.append(str(exc))

        try:
            grammar.set_start(cls.start)
        except GrammarError as exc:
            errors.append(str(exc))

        errors.extend(
            f"Symbol {sym!r} used in rule ({prod}), but not defined as a terminal or a rule"
            for sym, prod in grammar.undefined_symbols()
        )

        if errors:
            msg = "\n".join(["Unable to build grammar.", *errors])
            raise ParserBuildError(msg)

        unused_terminals = grammar.unused_terminals()
        if unused_terminals:
            unused_str = "{" + ",".join(unused_terminals) + "}"
            plural = "(s)" if len(unused_terminals) > 1 else ""
            cls.log.warning("Terminal%s %s defined, but not used", plural, unused_str)

        for u in grammar.find_unreachable():
            cls.log.warning("Symbol %r is unreachable", u)

        return grammar

    @classmethod
    def _build(cls) -> None:
        """Build the grammar and its LL(1) table. This method is triggered by a metaclass."""

        grammar = cls._build_grammar()
        try:
            table = LL1Table.from_grammar(grammar)
        except GrammarError as exc:
            raise ParserBuildError(str(exc)) from exc

        cls._grammar = grammar
        cls._table = table

        if cls.debugfile:
            with open(cls.debugfile, "w", encoding="utf-8") as f:
                f.write(str(grammar))
                f.write("\n")
                f.write(str(table))
            cls.log.info("Parser debugging for %s written to %s", cls.__qualname__, cls.debugfile)

    @property
    def grammar(self) -> Grammar:
        return self._grammar

    @property
    def table(self) -> LL1Table:
        return self._table

    def lookahead_key(self, tok: Token) -> str:
        """Map a token to the terminal name used by the table."""

        if tok.kind is TokenKind.END:
            return END
        if tok.kind is TokenKind.PRINT or (tok.kind is TokenKind.IDENTIFIER and tok.value in self.literal_keywords):
            return tok.value
        if tok.kind in _OPERATOR_KEYS:
            return _OPERATOR_KEYS[tok.kind]
        return tok.kind.name

    def error(self, info: SyntaxErrorInfo) -> None:
        """Default error handling function. This may be subclassed."""

        self.log.error("%s", info.message)

    def parse(self, tokens: Iterable[Token]) -> ParseResult:
        """Parse the given input tokens.

        Extended Summary
        ----------------
        An END token is appended if `tokens` doesn't already end with one. Parsing stops at the first error; the
        trace up to that point, ending with an "error: ..." entry, is returned along with the error.

        Raises
        ------
        InternalParserError
            If an expansion makes no progress, which means the table is broken.
        """

        given = list(tokens)
        if not given or given[-1].kind is not TokenKind.END:
            lineno = given[-1].lineno if given else 1
            given.append(Token(TokenKind.END, END, lineno, given[-1].end if given else 0))

        table = self._table  # Local reference to the table (to avoid lookup on self.)
        grammar = self._grammar
        assert grammar.Start is not None

        trace: list[PDAAction] = []
        stack: list[str] = []
        pos = 0

        def record(tok: Token, action: str) -> None:
            trace.append(PDAAction(tuple(stack), tok, action))

        def fail(
            kind: SyntaxErrorKind, tok: Token, symbol: str, detail: str, expected: tuple[str, ...] = ()
        ) -> ParseResult:
            message = f"Syntax error at line {tok.lineno}: {detail}"
            info = SyntaxErrorInfo(kind, message, tok.lineno, tok, symbol, expected)
            record(tok, f"error: {detail}")
            self.error(info)
            return ParseResult(trace, info)

        stack.append(END)
        record(given[0], f"push {END}")
        stack.append(grammar.Start)
        record(given[0], f"push {grammar.Start}")

        # Stack depth at which each non-terminal was last expanded since input was last consumed.
        expanded: dict[str, int] = {}

        while True:
            tok = given[pos]
            top = stack[-1]

            if tok.kind is TokenKind.UNKNOWN:
                return fail(SyntaxErrorKind.UNKNOWN_TOKEN, tok, top, f"unknown token {tok.value!r}")

            key = self.lookahead_key(tok)

            if top == END:
                if key == END:
                    record(tok, "ACCEPTED")
                    return ParseResult(trace)
                detail = f"unexpected {tok.value!r} after the end of the program"
                return fail(SyntaxErrorKind.UNEXPECTED_SYMBOL, tok, top, detail)

            if grammar.is_terminal(top):
                if top != key:
                    if key == END:
                        detail = f"expected {top!r} but reached the end of input"
                    else:
                        detail = f"expected {top!r} but got {tok.value!r}"
                    return fail(SyntaxErrorKind.UNEXPECTED_TERMINAL, tok, top, detail, (top,))

                stack.pop()
                pos += 1
                expanded.clear()
                record(tok, f"match {top}")
                continue

            production = table.get(top, key)
            if production is None:
                expected = tuple(table.expected(top))
                if key == END:
                    kind = SyntaxErrorKind.INCOMPLETE_INPUT
                    detail = f"incomplete {top} at end of input; expected one of {', '.join(expected)}"
                else:
                    kind = SyntaxErrorKind.UNEXPECTED_SYMBOL
                    detail = f"unexpected {tok.value!r} in {top}; expected one of {', '.join(expected)}"
                return fail(kind, tok, top, detail, expected)

            if production.prod == (top,):
                msg = f"Production ({production}) rewrites {top} to itself at token {tok.value!r}."
                raise InternalParserError(msg)

            # Reaching the same non-terminal again while its earlier expansion is still pending means the expansions
            # cycle.
            depth = len(stack)
            prior = expanded.get(top)
            if prior is not None and depth >= prior:
                msg = f"No progress expanding {top} at token {tok.value!r}; the parsing table loops."
                raise InternalParserError(msg)
            expanded[top] = depth

            stack.pop()
            stack.extend(reversed(production.prod))

            # An entry lives while something derived from its non-terminal is still on the stack.
            expanded = {sym: d for sym, d in expanded.items() if d <= len(stack)}

            record(tok, f"expand {production}")


def parse(source: str, parser_type: type[Parser] = Parser) -> ParseResult:
    """Tokenize `source` with the parser's scanner and parse the result."""

    scanner = parser_type.scanner_class()
    parser = parser_type()
    return parser.parse(end_of_input(scanner, list(scanner.tokenize(source))))


def end_of_input(scanner: Scanner, tokens: list[Token]) -> list[Token]:
    """Return `tokens` followed by an END token placed where `scanner` stopped, after any trailing blank lines."""

    return [*tokens, Token(TokenKind.END, END, scanner.lineno, scanner.index)]


# endregion

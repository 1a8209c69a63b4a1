# region License
# -----------------------------------------------------------------------------
# minifront: lex.py
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

import sys
from collections.abc import Iterator
from typing import Any, ClassVar, NamedTuple, Optional

from ._misc import MISSING, StreamLogger, override
from .automata import DFA, NFA, NFAArena, combine_nfas, default_nfas, nfa_to_dfa
from .tokens import Token, TokenKind

__all__ = ("LexError", "LexerBuildError", "ScanResult", "Scanner", "scan_token", "tokenize")


DEFAULT_IGNORE = " \t\r\n\f\v"


# ============================================================================
# region -------- Exceptions --------
# ============================================================================


class LexError(Exception):
    """Exception raised when scanning cannot continue, e.g. from an overridden `Scanner.error()`.

    Parameters
    ----------
    message: str
        The message to put in the exception.
    text: str
        All remaining untokenized text.
    error_index: int
        The index location of the error.

    Attributes
    ----------
    text: str
        All remaining untokenized text.
    error_index: int
        The index location of the error.
    """

    def __init__(self, message: str, text: str, error_index: int) -> None:
        super().__init__(message)
        self.text = text
        self.error_index = error_index


class LexerBuildError(Exception):
    """Exception raised if there's some sort of problem building the scanner."""


# endregion


# ============================================================================
# region -------- Scanning --------
# ============================================================================


class ScanResult(NamedTuple):
    """Outcome of scanning for one token.

    Attributes
    ----------
    found: bool
        Whether a token was recognized.
    token: Token | None
        The recognized token, a one-character UNKNOWN token if nothing was recognized, or None at end of text.
    index: int
        Offset at which scanning should resume.
    lineno: int
        Line counter at `index`.
    path: list[tuple[int, int]]
        DFA transitions (source id, target id) taken up to the accepted position.
    walked: list[tuple[int, int]]
        Every DFA transition taken, including those past the accepted position.
    """

    found: bool
    token: Optional[Token]
    index: int
    lineno: int
    path: list[tuple[int, int]]
    walked: list[tuple[int, int]]

    @property
    def at_end(self) -> bool:
        return self.token is None


def scan_token(dfa: DFA, text: str, index: int = 0, lineno: int = 1, ignore: str = DEFAULT_IGNORE) -> ScanResult:
    """Scan the longest token that starts at or after `index`.

    Extended Summary
    ----------------
    Characters in `ignore` are skipped first, counting newlines. The DFA is then walked one character at a time until
    it has no transition for the next character or falls into its dead state. The token ends at the last position
    where the DFA was accepting, even if it walked further.

    Identifiers are returned as-is; keyword and function lookup is left to `Scanner.classify()`.

    Raises
    ------
    LexError
        If the DFA accepts the empty string. Zero-width tokens would never advance the input.
    """

    n = len(text)
    while index < n and text[index] in ignore:
        if text[index] == "\n":
            lineno += 1
        index += 1

    if index >= n:
        return ScanResult(False, None, n, lineno, [], [])

    start = index
    state = dfa.start
    if dfa[state].accepting:
        msg = f"DFA accepts the empty string at index {start}."
        raise LexError(msg, text[start:], start)

    walked: list[tuple[int, int]] = []
    accepted_at = -1
    accepted_steps = 0
    kind: Optional[TokenKind] = None

    while index < n:
        target = dfa.step(state, text[index])
        if target is None or target == dfa.dead:
            break
        walked.append((state, target))
        state = target
        index += 1
        if dfa[state].accepting:
            accepted_at = index
            accepted_steps = len(walked)
            kind = dfa[state].kind

    if kind is None:
        tok = Token(TokenKind.UNKNOWN, text[start], lineno, start)
        return ScanResult(False, tok, start + 1, lineno + (text[start] == "\n"), [], walked)

    lexeme = text[start:accepted_at]
    tok = Token(kind, lexeme, lineno, start)
    return ScanResult(True, tok, accepted_at, lineno + lexeme.count("\n"), walked[:accepted_steps], walked)


# endregion


# ============================================================================
# region -------- Scanner --------
# ============================================================================


class ScannerMeta(type):
    """Metaclass that builds the automaton of each scanner class as it is created."""

    def __new__(cls, clsname: str, bases: tuple[type, ...], namespace: dict[str, Any], **kwds: object):
        self = super().__new__(cls, clsname, bases, namespace, **kwds)
        self._build()  # pyright: ignore # This method should always exist in Scanner subclasses.
        return self


class Scanner(metaclass=ScannerMeta):
    """Break input text into tokens using a DFA built from per-class NFAs.

    Attributes
    ----------
    text: str
        The text being scanned. Populated via `tokenize()`.
    index: int
        Current index of the scanner within the text.
    lineno: int
        Current line number of the scanner within the text.
    """

    # ---- These attributes may be redefined in subclasses.
    operators: ClassVar[dict[str, TokenKind]] = {
        "+": TokenKind.PLUS,
        "-": TokenKind.MINUS,
        "*": TokenKind.MULTIPLY,
        "/": TokenKind.DIVIDE,
        "%": TokenKind.MOD,
        "=": TokenKind.ASSIGN,
        "(": TokenKind.LPAREN,
        ")": TokenKind.RPAREN,
        ";": TokenKind.SEMICOLON,
    }
    """Single-character tokens, each recognized by its own NFA."""

    keywords: ClassVar[dict[str, TokenKind]] = {"print": TokenKind.PRINT}
    """Identifier lexemes that are reclassified to a keyword kind."""

    functions: ClassVar[frozenset[str]] = frozenset({"sin", "cos", "tan", "sqrt", "abs", "ceil", "floor"})
    """Identifier lexemes that are reclassified to FUNCTION."""

    ignore: ClassVar[str] = DEFAULT_IGNORE
    """String containing ignored characters between tokens."""

    log: ClassVar[Any] = StreamLogger(sys.stderr)
    """Logging object where diagnostic messages are sent."""

    # ---- Created by _build().
    _nfa: ClassVar[NFA]
    _dfa: ClassVar[DFA]

    def __init__(self) -> None:
        self.text: str = MISSING
        self.index: int = -1
        self.lineno: int = -1

    @classmethod
    def _validate(cls) -> None:
        if not isinstance(cls.ignore, str):
            msg = "ignore specifier must be a string."
            raise LexerBuildError(msg)

        for char, kind in cls.operators.items():
            if not isinstance(kind, TokenKind):
                msg = f"Operator {char!r} must map to a TokenKind, not {kind!r}."
                raise LexerBuildError(msg)
            if len(char) != 1:
                msg = f"Operator {char!r} must be a single character."
                raise LexerBuildError(msg)
            if char.isalnum() or char == "_" or char == ".":
                msg = f"Operator {char!r} overlaps identifier or number characters."
                raise LexerBuildError(msg)
            if char in cls.ignore:
                msg = f"Operator {char!r} is also an ignored character."
                raise LexerBuildError(msg)

        for word, kind in cls.keywords.items():
            if not isinstance(kind, TokenKind):
                msg = f"Keyword {word!r} must map to a TokenKind, not {kind!r}."
                raise LexerBuildError(msg)
            if not word.isidentifier():
                msg = f"Keyword {word!r} is not an identifier lexeme."
                raise LexerBuildError(msg)

        clashes = set(cls.keywords) & set(cls.functions)
        if clashes:
            msg = f"{', '.join(sorted(clashes))} defined as both keyword(s) and function(s)."
            raise LexerBuildError(msg)

    @classmethod
    def _build(cls) -> None:
        """Build the combined NFA and its DFA from the class configuration, and validate them as sane."""

        cls._validate()

        arena = NFAArena()
        cls._nfa = combine_nfas(default_nfas(arena, cls.operators))
        cls._dfa = nfa_to_dfa(cls._nfa)

        if cls._dfa[cls._dfa.start].accepting:
            msg = f"{cls.__qualname__} automaton matches empty input."
            raise LexerBuildError(msg)

    @property
    def nfa(self) -> NFA:
        return self._nfa

    @property
    def dfa(self) -> DFA:
        return self._dfa

    def classify(self, kind: TokenKind, lexeme: str) -> TokenKind:
        """Reclassify an identifier lexeme as a keyword or function name. Other kinds pass through."""

        if kind is not TokenKind.IDENTIFIER:
            return kind
        if lexeme in self.keywords:
            return self.keywords[lexeme]
        if lexeme in self.functions:
            return TokenKind.FUNCTION
        return kind

    def scan(self, text: str, index: int = 0, lineno: int = 1) -> ScanResult:
        """Scan one token starting at `index`, then apply keyword and function lookup."""

        result = scan_token(self._dfa, text, index, lineno, self.ignore)
        if result.found:
            assert result.token is not None
            kind = self.classify(result.token.kind, result.token.value)
            if kind is not result.token.kind:
                result = result._replace(token=result.token._replace(kind=kind))
        return result

    def tokenize(self, text: str, lineno: int = 1, index: int = 0) -> Iterator[Token]:
        """Tokenize the given text."""

        self.text = text
        try:
            while True:
                result = self.scan(text, index, lineno)
                index = result.index
                lineno = result.lineno
                tok = result.token
                if tok is None:
                    return

                if not result.found:
                    self.index = index
                    self.lineno = lineno
                    tok = self.error(tok)
                    index = self.index
                    lineno = self.lineno
                    if tok is None:
                        continue

                yield tok

        # Set the final state of the scanner before exiting (even if exception)
        finally:
            self.index = index
            self.lineno = lineno

    def error(self, t: Token) -> Optional[Token]:
        """Default handler for an unrecognized character: report it and pass it on as an UNKNOWN token.

        Subclasses may return None to drop the character, move `self.index` to skip more input, or raise `LexError`.
        """

        self.log.warning("Illegal character %r at line %d, index %d", t.value, t.lineno, t.index)
        return t

    @override
    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} states={len(self._dfa)} alphabet={len(self._dfa.alphabet)}>"


def tokenize(text: str, scanner_type: type[Scanner] = Scanner) -> list[Token]:
    """Scan all of `text` with a fresh scanner."""

    return list(scanner_type().tokenize(text))


# endregion

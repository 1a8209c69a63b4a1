"""Token kinds, the token record, and the precedence order used when accepting automaton states collide."""

import enum
from typing import Final, NamedTuple

from ._misc import override

__all__ = ("KIND_PRECEDENCE", "Token", "TokenKind", "precedence_rank")


class TokenKind(enum.Enum):
    IDENTIFIER = "ID"
    NUMBER = "NUMBER"
    PLUS = "PLUS"
    MINUS = "MINUS"
    MULTIPLY = "MULT"
    DIVIDE = "DIV"
    MOD = "MOD"
    ASSIGN = "ASSIGN"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    SEMICOLON = "SEMICOLON"
    PRINT = "PRINT"
    FUNCTION = "FUNCTION"
    UNKNOWN = "UNKNOWN"
    END = "END"

    @override
    def __str__(self) -> str:
        return self.value


# Highest precedence first. Operators and punctuation beat the vocabulary kinds, which beat the
# identifier/number catch-alls.
KIND_PRECEDENCE: Final[tuple[TokenKind, ...]] = (
    TokenKind.PLUS,
    TokenKind.MINUS,
    TokenKind.MULTIPLY,
    TokenKind.DIVIDE,
    TokenKind.MOD,
    TokenKind.ASSIGN,
    TokenKind.LPAREN,
    TokenKind.RPAREN,
    TokenKind.SEMICOLON,
    TokenKind.PRINT,
    TokenKind.FUNCTION,
    TokenKind.NUMBER,
    TokenKind.IDENTIFIER,
)

_RANKS: Final[dict[TokenKind, int]] = {kind: rank for rank, kind in enumerate(KIND_PRECEDENCE)}


def precedence_rank(kind: TokenKind) -> int:
    """Return the rank of `kind`; lower ranks win. Kinds outside the order rank after everything else."""

    return _RANKS.get(kind, len(KIND_PRECEDENCE))


class Token(NamedTuple):
    """Representation of a single token.

    Attributes
    ----------
    kind: TokenKind
        The token class.
    value: str
        The lexeme, exactly as it appears in the source.
    lineno: int
        Line on which the lexeme starts.
    index: int
        Offset of the first character of the lexeme. -1 for synthesized tokens.
    """

    kind: TokenKind
    value: str
    lineno: int = 0
    index: int = -1

    @property
    def end(self) -> int:
        return self.index + len(self.value)

    @override
    def __repr__(self) -> str:
        return f"Token(kind={self.kind.name}, value={self.value!r}, lineno={self.lineno}, index={self.index})"

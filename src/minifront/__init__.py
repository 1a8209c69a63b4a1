"""A small compiler front end: an automaton-built scanner and a table-driven LL(1) parser with a recorded trace."""

from .automata import DFA, NFA, NFAArena, build_dfa, combine_nfas, nfa_to_dfa
from .grammar import Grammar, GrammarError, LL1Table, arithmetic_grammar
from .lex import LexError, LexerBuildError, Scanner, scan_token, tokenize
from .pda import InternalParserError, ParseError, ParseResult, Parser, ParserBuildError, parse
from .tokens import Token, TokenKind

__all__ = (
    "DFA",
    "NFA",
    "NFAArena",
    "build_dfa",
    "combine_nfas",
    "nfa_to_dfa",
    "Grammar",
    "GrammarError",
    "LL1Table",
    "arithmetic_grammar",
    "LexError",
    "LexerBuildError",
    "Scanner",
    "scan_token",
    "tokenize",
    "InternalParserError",
    "ParseError",
    "ParseResult",
    "Parser",
    "ParserBuildError",
    "parse",
    "Token",
    "TokenKind",
)

import io

import pytest
from minifront._misc import NullLogger, StreamLogger
from minifront.grammar import END, LL1Table, Production
from minifront.lex import Scanner
from minifront.pda import (
    InternalParserError,
    ParseError,
    Parser,
    SyntaxErrorKind,
    end_of_input,
    parse,
)
from minifront.tokens import Token, TokenKind

# ============================================================================
# region -------- Helpers
# ============================================================================


class QuietParser(Parser):
    log = NullLogger()


@pytest.fixture
def parser() -> QuietParser:
    return QuietParser()


def do_parse(parser: Parser, text: str):
    return parser.parse(Scanner().tokenize(text))


def actions(result) -> list[str]:
    return [step.action for step in result.trace]


def patched_table(parser: Parser, name: str, terminal: str, rhs: tuple[str, ...]) -> LL1Table:
    """Copy the parser's table with one cell replaced, and install it on this instance only."""

    table = LL1Table(parser.grammar)
    table.cells = {n: dict(row) for n, row in parser.table.cells.items()}
    table.cells[name][terminal] = Production(len(parser.grammar), name, rhs)
    parser._table = table  # pyright: ignore
    return table


# endregion


# ============================================================================
# region -------- Accepted programs
# ============================================================================


def test_simple_assignment(parser: QuietParser):
    result = do_parse(parser, "x = 1 + 2 ;")

    assert result.accepted
    assert result.error is None
    assert result.final_stack == (END,)

    steps = actions(result)
    assert steps[:3] == ["push $", "push S", "expand S → StmtList"]
    assert steps[-1] == "ACCEPTED"
    assert [s for s in steps if s.startswith("match")] == [
        "match IDENTIFIER",
        "match =",
        "match NUMBER",
        "match +",
        "match NUMBER",
        "match ;",
    ]
    result.raise_for_error()


def test_trace_snapshots_are_independent(parser: QuietParser):
    result = do_parse(parser, "x = 1 ;")

    assert result.trace[0].stack == (END,)
    assert result.trace[1].stack == (END, "S")
    assert result.trace[2].stack == (END, "StmtList")
    assert result.trace[0].token == Token(TokenKind.IDENTIFIER, "x", 1, 0)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "x = 1;",
        "print(x);",
        "y = (1 + 2) % 3;",
        "z = sqrt(x * x + y * y) / 2.5;",
        "print(sin(cos(0)));\na = b - c;\nprint(a);",
        "w = 0 - 1;",
    ],
)
def test_accepted(parser: QuietParser, text: str):
    assert do_parse(parser, text).accepted


def test_parse_convenience():
    result = parse("print(1);", QuietParser)
    assert result.accepted
    assert repr(result).startswith("<ParseResult accepted steps=")


def test_explicit_end_token(parser: QuietParser):
    tokens = [*Scanner().tokenize("x = 1;"), Token(TokenKind.END, END, 1)]
    assert parser.parse(tokens).accepted


# endregion


# ============================================================================
# region -------- Syntax errors
# ============================================================================


def test_missing_expression(parser: QuietParser):
    result = do_parse(parser, "x = ;")

    assert not result.accepted
    error = result.error
    assert error is not None
    assert error.kind is SyntaxErrorKind.UNEXPECTED_SYMBOL
    assert error.symbol == "Expr"
    assert error.lineno == 1
    assert error.token.value == ";"
    assert error.expected == ("IDENTIFIER", "NUMBER", "FUNCTION", "(")
    assert error.message == (
        "Syntax error at line 1: unexpected ';' in Expr; expected one of IDENTIFIER, NUMBER, FUNCTION, ("
    )
    assert actions(result)[-1].startswith("error: ")

    with pytest.raises(ParseError) as exc_info:
        result.raise_for_error()
    assert exc_info.value.lineno == 1
    assert exc_info.value.info is error


def test_error_line_number(parser: QuietParser):
    result = do_parse(parser, "x = 1;\n\ny = ;")
    assert result.error is not None
    assert result.error.lineno == 3


def test_unknown_token(parser: QuietParser):
    result = do_parse(parser, "x = 1 @ 2 ;")

    assert result.error is not None
    assert result.error.kind is SyntaxErrorKind.UNKNOWN_TOKEN
    assert result.error.token == Token(TokenKind.UNKNOWN, "@", 1, 6)


@pytest.mark.parametrize("text", ["x = 1 + 2", "print(x", "x ="])
def test_incomplete_input(parser: QuietParser, text: str):
    result = do_parse(parser, text)

    assert result.error is not None
    assert result.error.kind in {SyntaxErrorKind.INCOMPLETE_INPUT, SyntaxErrorKind.UNEXPECTED_TERMINAL}
    assert result.error.token.kind is TokenKind.END


def test_incomplete_expression(parser: QuietParser):
    result = do_parse(parser, "x = 1 + 2")

    assert result.error is not None
    assert result.error.kind is SyntaxErrorKind.INCOMPLETE_INPUT
    assert result.error.symbol == "TermPrime"


def test_missing_terminal(parser: QuietParser):
    result = do_parse(parser, "print x;")

    assert result.error is not None
    assert result.error.kind is SyntaxErrorKind.UNEXPECTED_TERMINAL
    assert result.error.symbol == "("
    assert result.error.expected == ("(",)
    assert result.error.message == "Syntax error at line 1: expected '(' but got 'x'"


def test_missing_semicolon_at_end(parser: QuietParser):
    result = do_parse(parser, "print(x)")

    assert result.error is not None
    assert result.error.kind is SyntaxErrorKind.UNEXPECTED_TERMINAL
    assert result.error.message == "Syntax error at line 1: expected ';' but reached the end of input"


def test_stray_token(parser: QuietParser):
    result = do_parse(parser, "x = 1; )")

    assert result.error is not None
    assert result.error.kind is SyntaxErrorKind.UNEXPECTED_SYMBOL
    assert result.error.symbol == "StmtList"


def test_errors_are_logged():
    stream = io.StringIO()

    class LoudParser(Parser):
        log = StreamLogger(stream)

    result = parse("x = ;", LoudParser)
    assert stream.getvalue() == f"ERROR: {result.error.message}\n"


def test_error_hook():
    seen = []

    class CollectingParser(QuietParser):
        def error(self, info) -> None:
            seen.append(info)

    result = parse("x = ;", CollectingParser)
    assert seen == [result.error]


# endregion


# ============================================================================
# region -------- Broken tables
# ============================================================================


def test_self_rewrite_is_internal_error(parser: QuietParser):
    patched_table(parser, "Factor", "NUMBER", ("Factor",))

    with pytest.raises(InternalParserError, match="rewrites Factor to itself"):
        do_parse(parser, "x = 1;")


def test_expansion_cycle_is_internal_error(parser: QuietParser):
    # Factor -> Term -> Factor TermPrime -> ... never consumes the NUMBER.
    patched_table(parser, "Factor", "NUMBER", ("Term",))

    with pytest.raises(InternalParserError, match="No progress expanding"):
        do_parse(parser, "x = 1;")


def test_patched_table_stays_on_instance(parser: QuietParser):
    patched_table(parser, "Factor", "NUMBER", ("Factor",))
    assert QuietParser().table.get("Factor", "NUMBER").prod == ("NUMBER",)


# endregion


# ============================================================================
# region -------- Custom grammars
# ============================================================================


class NullablePrefixParser(QuietParser):
    terminals = ("IDENTIFIER",)
    rules = (("S", ("A", "B")), ("B", ("A", "IDENTIFIER")), ("A", ()))


def test_nullable_symbol_expanded_twice_at_one_position():
    # A is expanded to ε once under S and again under B, both before "c" is matched.
    result = NullablePrefixParser().parse([Token(TokenKind.IDENTIFIER, "c", 1, 0)])

    assert result.accepted
    assert actions(result).count("expand A → ε") == 2
    assert actions(result)[-2:] == ["match IDENTIFIER", "ACCEPTED"]


def test_left_recursive_table_still_detected():
    parser = NullablePrefixParser()
    patched_table(parser, "B", "IDENTIFIER", ("B", "IDENTIFIER"))

    with pytest.raises(InternalParserError, match="No progress expanding B"):
        parser.parse([Token(TokenKind.IDENTIFIER, "c", 1, 0)])


# endregion


# ============================================================================
# region -------- End of input
# ============================================================================


def test_end_token_sits_after_trailing_blank_lines():
    result = parse("x = 1 +\n\n", QuietParser)

    assert result.error is not None
    assert result.error.kind is SyntaxErrorKind.INCOMPLETE_INPUT
    assert result.error.lineno == 3
    assert result.error.token == Token(TokenKind.END, END, 3, 9)
    assert result.error.message.startswith("Syntax error at line 3:")


def test_end_of_input_uses_scanner_position():
    scanner = Scanner()
    tokens = end_of_input(scanner, list(scanner.tokenize("x;\n")))
    assert tokens[-1] == Token(TokenKind.END, END, 2, 3)


def test_synthesized_end_token_follows_last_token(parser: QuietParser):
    result = parser.parse(Scanner().tokenize("x = "))

    assert result.error is not None
    assert result.error.token == Token(TokenKind.END, END, 1, 3)


# endregion


# ============================================================================
# region -------- Trace shape
# ============================================================================


def test_expansions_replace_the_top_in_one_step(parser: QuietParser):
    trace = do_parse(parser, "x = 1;").trace

    assert not any(step.action.startswith("pop") for step in trace)
    for before, step in zip(trace, trace[1:]):
        if not step.action.startswith("expand "):
            continue
        name, rhs = step.action[len("expand ") :].split(" → ")
        symbols = [] if rhs == "ε" else rhs.split()
        assert before.stack[-1] == name
        assert step.stack == (*before.stack[:-1], *reversed(symbols))


# endregion

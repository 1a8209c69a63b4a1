from typing import Optional

import pytest
from minifront.automata import NFA, NFAArena, nfa_to_dfa
from minifront.lex import LexError, LexerBuildError, Scanner, scan_token, tokenize
from minifront.tokens import Token, TokenKind

# ============================================================================
# region -------- Helpers
# ============================================================================


@pytest.fixture
def scanner() -> Scanner:
    return Scanner()


def do_lex(scanner: Scanner, inp: str) -> list[str]:
    return [tok.kind.name for tok in scanner.tokenize(inp)]


# endregion


@pytest.mark.parametrize(
    ("test_input", "expected"),
    [
        ("identifier123", ["IDENTIFIER"]),
        ("print", ["PRINT"]),
        ("printer", ["IDENTIFIER"]),
        ("sin", ["FUNCTION"]),
        ("sqrt floor ceil", ["FUNCTION", "FUNCTION", "FUNCTION"]),
        ("3.14", ["NUMBER"]),
        ("1.", ["NUMBER", "UNKNOWN"]),
        ("...", ["UNKNOWN", "UNKNOWN", "UNKNOWN"]),
        ("12ab", ["NUMBER", "IDENTIFIER"]),
        ("x=1;", ["IDENTIFIER", "ASSIGN", "NUMBER", "SEMICOLON"]),
        ("a % b", ["IDENTIFIER", "MOD", "IDENTIFIER"]),
        (
            "print(sin(x) * 2);",
            ["PRINT", "LPAREN", "FUNCTION", "LPAREN", "IDENTIFIER", "RPAREN", "MULTIPLY", "NUMBER", "RPAREN", "SEMICOLON"],
        ),
        ("", []),
        (" \t\n ", []),
    ],
)
def test_token_kinds(scanner: Scanner, test_input: str, expected: list[str]):
    assert do_lex(scanner, test_input) == expected


def test_maximal_munch(scanner: Scanner):
    (tok,) = scanner.tokenize("identifier123")
    assert tok == Token(TokenKind.IDENTIFIER, "identifier123", 1, 0)


def test_unknown_character_is_passed_on(scanner: Scanner):
    tokens = list(scanner.tokenize("x = 1 @ 2 ;"))

    assert [tok.kind for tok in tokens] == [
        TokenKind.IDENTIFIER,
        TokenKind.ASSIGN,
        TokenKind.NUMBER,
        TokenKind.UNKNOWN,
        TokenKind.NUMBER,
        TokenKind.SEMICOLON,
    ]
    assert tokens[3] == Token(TokenKind.UNKNOWN, "@", 1, 6)


@pytest.mark.parametrize(
    "text",
    [
        "x = 1 + 2 ;",
        "a=b*c-d/4.25;\n",
        "  print ( sin ( y ) ) ;\n\tz = 1;  \n\n",
        "z @@ 1\t \n",
        "\n\n\t",
    ],
)
def test_lexemes_round_trip(scanner: Scanner, text: str):
    # Lexemes at their recorded offsets plus the skipped whitespace between them rebuild the input.
    pieces: list[str] = []
    pos = 0
    for tok in scanner.tokenize(text):
        assert text[tok.index : tok.end] == tok.value
        gap = text[pos : tok.index]
        assert gap.strip(Scanner.ignore) == ""
        pieces.extend((gap, tok.value))
        pos = tok.end

    tail = text[pos:]
    assert tail.strip(Scanner.ignore) == ""
    pieces.append(tail)

    assert "".join(pieces) == text


def test_line_numbers(scanner: Scanner):
    tokens = list(scanner.tokenize("a;\nb;\n\nc;"))

    assert [tok.lineno for tok in tokens] == [1, 1, 2, 2, 4, 4]
    assert [tok.index for tok in tokens] == [0, 1, 3, 4, 7, 8]
    assert scanner.lineno == 4
    assert scanner.index == 9


def test_token_helpers():
    tok = Token(TokenKind.MULTIPLY, "*", 2, 7)

    assert tok.end == 8
    assert str(tok.kind) == "MULT"
    assert repr(tok) == "Token(kind=MULTIPLY, value='*', lineno=2, index=7)"


def test_tokenize_convenience():
    assert tokenize("y = 2;") == list(Scanner().tokenize("y = 2;"))


# ============================================================================
# region -------- Single-token scanning
# ============================================================================


def test_scan_at_end(scanner: Scanner):
    result = scan_token(scanner.dfa, "x   ", 1)

    assert result.at_end
    assert not result.found
    assert result.index == 4
    assert result.path == []


def test_scan_records_paths(scanner: Scanner):
    result = scan_token(scanner.dfa, "1.x")

    assert result.found
    assert result.token == Token(TokenKind.NUMBER, "1", 1, 0)
    assert result.index == 1
    # The DFA read the dot hoping for a fraction, then gave up on "x".
    assert len(result.path) == 1
    assert len(result.walked) == 2
    assert result.walked[0] == result.path[0]
    assert result.path[0][0] == scanner.dfa.start


def test_scan_skips_ignored_text(scanner: Scanner):
    result = scanner.scan("\n\n  print", 0, 1)

    assert result.token == Token(TokenKind.PRINT, "print", 3, 4)
    assert result.lineno == 3
    assert result.index == 9


def test_scan_unknown(scanner: Scanner):
    result = scanner.scan("#", 0, 1)

    assert not result.found
    assert result.token == Token(TokenKind.UNKNOWN, "#", 1, 0)
    assert result.index == 1


def test_scan_with_accepting_start():
    arena = NFAArena()
    dfa = nfa_to_dfa(NFA(arena, arena.new_state(TokenKind.IDENTIFIER)))

    with pytest.raises(LexError) as exc_info:
        scan_token(dfa, "abc")
    assert exc_info.value.error_index == 0
    assert exc_info.value.text == "abc"


# endregion


# ============================================================================
# region -------- Scanner configuration
# ============================================================================


def test_subclass_vocabulary():
    class MathScanner(Scanner):
        functions = frozenset({"log", "exp"})
        keywords = {"show": TokenKind.PRINT}

    scanner = MathScanner()
    assert do_lex(scanner, "show log sin") == ["PRINT", "FUNCTION", "IDENTIFIER"]


def test_subclass_operators():
    class CommaScanner(Scanner):
        operators = {**Scanner.operators, ",": TokenKind.SEMICOLON}

    assert do_lex(CommaScanner(), "a, b") == ["IDENTIFIER", "SEMICOLON", "IDENTIFIER"]
    assert do_lex(Scanner(), "a, b") == ["IDENTIFIER", "UNKNOWN", "IDENTIFIER"]


@pytest.mark.parametrize(
    ("namespace", "message"),
    [
        ({"operators": {"a": TokenKind.PLUS}}, "overlaps"),
        ({"operators": {"+=": TokenKind.PLUS}}, "single character"),
        ({"operators": {"+": "PLUS"}}, "must map to a TokenKind"),
        ({"operators": {" ": TokenKind.PLUS}}, "ignored character"),
        ({"keywords": {"two words": TokenKind.PRINT}}, "not an identifier"),
        ({"functions": frozenset({"print"})}, "both keyword"),
        ({"ignore": None}, "must be a string"),
    ],
)
def test_bad_configuration(namespace: dict[str, object], message: str):
    with pytest.raises(LexerBuildError, match=message):
        type("BadScanner", (Scanner,), namespace)


def test_error_hook_can_drop_characters():
    class QuietScanner(Scanner):
        def error(self, t: Token) -> Optional[Token]:
            return None

    assert do_lex(QuietScanner(), "a @ b") == ["IDENTIFIER", "IDENTIFIER"]


def test_error_hook_can_skip_ahead():
    class SkipLineScanner(Scanner):
        def error(self, t: Token) -> Optional[Token]:
            end = self.text.find("\n", t.index)
            self.index = len(self.text) if end == -1 else end
            return None

    assert do_lex(SkipLineScanner(), "a # comment\nb") == ["IDENTIFIER", "IDENTIFIER"]


def test_error_hook_can_abort():
    class StrictScanner(Scanner):
        def error(self, t: Token) -> Optional[Token]:
            msg = f"Illegal character {t.value!r}"
            raise LexError(msg, self.text[t.index :], t.index)

    with pytest.raises(LexError, match="Illegal character '@'") as exc_info:
        list(StrictScanner().tokenize("x = @"))
    assert exc_info.value.error_index == 4


def test_repr(scanner: Scanner):
    assert repr(scanner).startswith("<Scanner states=")


# endregion

# region License
# -----------------------------------------------------------------------------
# minifront: grammar.py
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

from collections.abc import Collection, Iterable, Sequence
from typing import Final, Optional

from ._misc import override

__all__ = ("EMPTY", "END", "Grammar", "GrammarError", "LL1Table", "Production", "arithmetic_grammar")


EMPTY: Final = "<empty>"
"""Marker for the empty string inside FIRST sets."""

END: Final = "$"
"""End-of-input terminal and stack bottom marker."""


class GrammarError(Exception):
    """Exception raised when something goes wrong in constructing the grammar or its parsing table."""


# ============================================================================
# region -------- Grammar --------
# ============================================================================


class Production:
    """This class stores the raw information about a single production or grammar rule.

    Extended Summary
    ----------------
    A grammar rule is a line such as this: "Expr -> Term ExprPrime".

    Parameters
    ----------
    number: int
        Production number.
    name: str
        Name of the production, e.g. "Expr".
    prod: Sequence[str]
        The symbols on the right side, e.g. ["Term", "ExprPrime"]. Empty for an epsilon production.

    Attributes
    ----------
    number: int
        Production number.
    name: str
        Name of the production.
    prod: tuple[str, ...]
        The symbols on the right side.
    """

    def __init__(self, number: int, name: str, prod: Sequence[str]) -> None:
        self.number = number
        self.name = name
        self.prod: tuple[str, ...] = tuple(prod)

    @property
    def rhs(self) -> str:
        """The right side as display text, "ε" for the empty production."""

        return " ".join(self.prod) if self.prod else "ε"

    @override
    def __str__(self) -> str:
        return f"{self.name} → {self.rhs}"

    @override
    def __repr__(self) -> str:
        return f"Production({self})"

    def __len__(self) -> int:
        return len(self.prod)

    def __getitem__(self, index: int) -> str:
        return self.prod[index]


class Grammar:
    """This class represents the contents of a grammar along with its FIRST and FOLLOW sets.

    Attributes
    ----------
    Productions: list[Production]
        A list of all of the productions, in the order they were added.
    Prodnames: dict[str, list[Production]]
        A dictionary mapping the names of nonterminals to a list of all productions of that nonterminal.
    Terminals: dict[str, list[int]]
        A dictionary mapping the names of terminal symbols to a list of the rules where they are used.
    Nonterminals: dict[str, list[int]]
        A dictionary mapping names of nonterminals to a list of rule numbers where they are used.
    First: dict[str, list[str]]
        A dictionary of precomputed FIRST(x) symbols.
    Follow: dict[str, list[str]]
        A dictionary of precomputed FOLLOW(x) symbols.
    Start: str | None
        Starting symbol for the grammar.
    """

    def __init__(self, terminals: Collection[str]) -> None:
        # fmt: off
        self.Productions:   list[Production]            = []
        self.Prodnames:     dict[str, list[Production]] = {}
        self.Terminals:     dict[str, list[int]]        = {term: [] for term in terminals}
        self.Nonterminals:  dict[str, list[int]]        = {}
        self.First:         dict[str, list[str]]        = {}
        self.Follow:        dict[str, list[str]]        = {}
        self.Start:         Optional[str]               = None
        # fmt: on

        if END in self.Terminals:
            msg = f"{END!r} is reserved for the end of input."
            raise GrammarError(msg)

    def __len__(self) -> int:
        return len(self.Productions)

    def __getitem__(self, index: int) -> Production:
        return self.Productions[index]

    def add_production(self, prodname: str, syms: Sequence[str]) -> Production:
        """Add the rule ``prodname -> syms``.

        Parameters
        ----------
        prodname: str
            The name of the production, e.g. "Expr" for the rule "Expr -> Term ExprPrime".
        syms: Sequence[str]
            The list of symbols representing the production, e.g. ["Term", "ExprPrime"]. Empty for epsilon.

        Raises
        ------
        GrammarError
            If `prodname` is a terminal, if a symbol is the end marker, or if the rule is a duplicate.
        """

        if prodname in self.Terminals:
            msg = f"Illegal rule name {prodname!r}. Already defined as a token."
            raise GrammarError(msg)
        if END in syms:
            msg = f"Rule {prodname!r} may not use the end marker {END!r}."
            raise GrammarError(msg)
        if any(tuple(p.prod) == tuple(syms) for p in self.Prodnames.get(prodname, [])):
            msg = f"Duplicate rule {prodname} -> {' '.join(syms) or EMPTY}."
            raise GrammarError(msg)

        pnumber = len(self.Productions)
        if prodname not in self.Nonterminals:
            self.Nonterminals[prodname] = []

        # Add the production number to Terminals and Nonterminals
        for t in syms:
            if t in self.Terminals:
                self.Terminals[t].append(pnumber)
            else:
                if t not in self.Nonterminals:
                    self.Nonterminals[t] = []
                self.Nonterminals[t].append(pnumber)

        p = Production(pnumber, prodname, syms)
        self.Productions.append(p)
        self.Prodnames.setdefault(prodname, []).append(p)
        return p

    def set_start(self, start: Optional[str] = None) -> None:
        """Set the starting symbol. Defaults to the name of the first production."""

        if not start:
            if not self.Productions:
                msg = "No grammar rules are defined."
                raise GrammarError(msg)
            start = self.Productions[0].name

        if start not in self.Prodnames:
            msg = f"Start symbol {start!r} undefined."
            raise GrammarError(msg)
        self.Start = start

    def is_terminal(self, sym: str) -> bool:
        return sym in self.Terminals or sym == END

    def find_unreachable(self) -> list[str]:
        """Find all of the nonterminal symbols that can't be reached from the starting symbol."""

        reachable: set[str] = set()
        stack = [self.Start] if self.Start else []
        while stack:
            s = stack.pop()
            if s in reachable:
                continue
            reachable.add(s)
            for p in self.Prodnames.get(s, []):
                stack.extend(p.prod)
        return [s for s in self.Nonterminals if s not in reachable]

    def undefined_symbols(self) -> list[tuple[str, Production]]:
        """Find all symbols that were used the grammar, but not defined as tokens or grammar rules.

        Returns
        -------
        result: list[tuple[str, Production]]
            A list of tuples (sym, prod) where sym in the symbol and prod is the production where the symbol was used.
        """

        result: list[tuple[str, Production]] = []
        for p in self.Productions:
            for s in p.prod:
                if s not in self.Prodnames and s not in self.Terminals:
                    result.append((s, p))
        return result

    def unused_terminals(self) -> list[str]:
        """Find all terminals that were defined, but not used by the grammar."""

        return [s for s, v in self.Terminals.items() if not v]

    def _first(self, beta: Iterable[str]) -> list[str]:
        """Compute the value of FIRST1(beta) where beta is a sequence of symbols.

        Extended Summary
        ----------------
        During execution of `compute_first()`, the result may be incomplete.
        Afterward (e.g., when called from `compute_follow()`), it will be complete.
        """

        result: list[str] = []
        for x in beta:
            x_produces_empty = False

            # Add all the non-<empty> symbols of First[x] to the result.
            for f in self.First[x]:
                if f == EMPTY:
                    x_produces_empty = True
                elif f not in result:
                    result.append(f)

            if not x_produces_empty:
                # We don't have to consider any further symbols in beta.
                break
        else:
            # Every x in beta produces empty, so beta produces empty as well.
            result.append(EMPTY)

        return result

    def first(self, beta: Iterable[str]) -> list[str]:
        """FIRST of a symbol sequence, computing the per-symbol sets if needed."""

        if not self.First:
            self.compute_first()
        return self._first(beta)

    def compute_first(self) -> dict[str, list[str]]:
        """Compute the value of FIRST1(X) for all symbols."""

        if self.First:
            return self.First

        # Terminals:
        self.First.update({t: [t] for t in self.Terminals})
        self.First[END] = [END]

        # Nonterminals:
        self.First.update({n: [] for n in self.Nonterminals})

        # Then propagate symbols until no change:
        while True:
            some_change = False
            for n in self.Nonterminals:
                for p in self.Prodnames.get(n, []):
                    for f in self._first(p.prod):
                        if f not in self.First[n]:
                            self.First[n].append(f)
                            some_change = True
            if not some_change:
                break

        return self.First

    def compute_follow(self, start: Optional[str] = None) -> dict[str, list[str]]:
        """Computes all of the follow sets for every non-terminal symbol.

        Notes
        -----
        The follow set is the set of all symbols that might follow a given non-terminal.
        See the Dragon book, 2nd Ed. p. 189.
        """

        if self.Follow:
            return self.Follow

        if not self.First:
            self.compute_first()

        for k in self.Nonterminals:
            self.Follow[k] = []

        if not start:
            start = self.Start or self.Productions[0].name

        self.Follow[start] = [END]

        while True:
            didadd = False
            for p in self.Productions:
                for i, B in enumerate(p.prod):
                    if B not in self.Nonterminals:
                        continue

                    fst = self._first(p.prod[i + 1 :])
                    hasempty = False
                    for f in fst:
                        if f != EMPTY and f not in self.Follow[B]:
                            self.Follow[B].append(f)
                            didadd = True
                        if f == EMPTY:
                            hasempty = True
                    if hasempty or i == (len(p.prod) - 1):
                        # Add elements of follow(a) to follow(b)
                        for f in self.Follow[p.name]:
                            if f not in self.Follow[B]:
                                self.Follow[B].append(f)
                                didadd = True
            if not didadd:
                break
        return self.Follow

    @override
    def __str__(self) -> str:
        """Return str(self).

        Extended Summary
        ----------------
        Serves as debugging output. Printing the grammar will produce its rules, symbol usage, and the FIRST and FOLLOW
        sets once they are computed.
        """

        out: list[str] = []
        out.append("Grammar:\n")
        out.extend(f"Rule {p.number:5d} {p}" for p in self.Productions)

        unused_terminals = self.unused_terminals()
        if unused_terminals:
            out.append("\nUnused terminals:\n")
            out.extend(f"    {term}" for term in unused_terminals)

        out.append("\nTerminals, with rules where they appear:\n")
        out.extend(f'{term} : {" ".join(str(s) for s in self.Terminals[term])}' for term in sorted(self.Terminals))

        out.append("\nNonterminals, with rules where they appear:\n")
        out.extend(
            f'{nonterm} : {" ".join(str(s) for s in self.Nonterminals[nonterm])}'
            for nonterm in sorted(self.Nonterminals)
        )

        if self.First:
            out.append("\nFIRST sets:\n")
            out.extend(f'{n} : {" ".join(self.First[n])}' for n in self.Nonterminals)
        if self.Follow:
            out.append("\nFOLLOW sets:\n")
            out.extend(f'{n} : {" ".join(self.Follow[n])}' for n in self.Nonterminals)

        out.append("")
        return "\n".join(out)


# endregion


# ============================================================================
# region -------- LL(1) Table --------
# ============================================================================


class LL1Table:
    """Predictive parsing table: (non-terminal, lookahead terminal) -> production.

    Attributes
    ----------
    grammar: Grammar
        The grammar the table was built from.
    cells: dict[str, dict[str, Production]]
        Non-terminal -> lookahead terminal -> production to expand. A missing cell is a syntax error.
    terminals: list[str]
        Every terminal column, ending with the end marker.
    """

    def __init__(self, grammar: Grammar) -> None:
        self.grammar = grammar
        self.cells: dict[str, dict[str, Production]] = {n: {} for n in grammar.Prodnames}
        self.terminals: list[str] = [*grammar.Terminals, END]

    @classmethod
    def from_grammar(cls, grammar: Grammar) -> "LL1Table":
        """Fill the table from FIRST and FOLLOW sets.

        Extended Summary
        ----------------
        ``A -> alpha`` goes in every cell (A, t) for t in FIRST(alpha). If alpha can derive the empty string, it also
        goes in (A, t) for every t in FOLLOW(A).

        Raises
        ------
        GrammarError
            If two productions land in the same cell, i.e. the grammar is not LL(1).
        """

        if grammar.Start is None:
            grammar.set_start()
        grammar.compute_first()
        grammar.compute_follow(grammar.Start)

        table = cls(grammar)
        conflicts: list[str] = []
        for p in grammar.Productions:
            first = grammar.first(p.prod)
            lookaheads = [t for t in first if t != EMPTY]
            if EMPTY in first:
                lookaheads.extend(t for t in grammar.Follow[p.name] if t not in lookaheads)

            row = table.cells[p.name]
            for t in lookaheads:
                prior = row.get(t)
                if prior is not None and prior is not p:
                    conflicts.append(f"LL(1) conflict in ({p.name}, {t}) between {prior} and {p}")
                    continue
                row[t] = p

        if conflicts:
            msg = "\n".join(["Unable to build LL(1) table.", *conflicts])
            raise GrammarError(msg)

        return table

    def get(self, nonterminal: str, terminal: str) -> Optional[Production]:
        return self.cells.get(nonterminal, {}).get(terminal)

    def expected(self, nonterminal: str) -> list[str]:
        """Terminals for which `nonterminal` has an entry, in column order."""

        row = self.cells.get(nonterminal, {})
        return [t for t in self.terminals if t in row]

    def rows(self) -> list[tuple[str, list[str]]]:
        """Each non-terminal with one cell per terminal column, empty cells as ""."""

        result: list[tuple[str, list[str]]] = []
        for n, row in self.cells.items():
            result.append((n, [str(row[t]) if t in row else "" for t in self.terminals]))
        return result

    @override
    def __str__(self) -> str:
        out: list[str] = ["LL(1) table:\n"]
        for n, row in self.cells.items():
            out.append(f"{n}")
            out.extend(f"    {t:<12} rule {row[t].number:<4} {row[t]}" for t in self.terminals if t in row)
        out.append("")
        return "\n".join(out)


# endregion


# ============================================================================
# region -------- The Arithmetic Grammar --------
# ============================================================================


ARITHMETIC_TERMINALS: Final = ("IDENTIFIER", "NUMBER", "print", "FUNCTION", "=", "+", "-", "*", "/", "%", "(", ")", ";")

# fmt: off
ARITHMETIC_RULES: Final[tuple[tuple[str, tuple[str, ...]], ...]] = (
    ("S",           ("StmtList",)),
    ("StmtList",    ("Stmt", "StmtList")),
    ("StmtList",    ()),
    ("Stmt",        ("AssignStmt", ";")),
    ("Stmt",        ("PrintStmt", ";")),
    ("AssignStmt",  ("IDENTIFIER", "=", "Expr")),
    ("PrintStmt",   ("print", "(", "Expr", ")")),
    ("Expr",        ("Term", "ExprPrime")),
    ("ExprPrime",   ("+", "Term", "ExprPrime")),
    ("ExprPrime",   ("-", "Term", "ExprPrime")),
    ("ExprPrime",   ()),
    ("Term",        ("Factor", "TermPrime")),
    ("TermPrime",   ("*", "Factor", "TermPrime")),
    ("TermPrime",   ("/", "Factor", "TermPrime")),
    ("TermPrime",   ("%", "Factor", "TermPrime")),
    ("TermPrime",   ()),
    ("Factor",      ("NUMBER",)),
    ("Factor",      ("IDENTIFIER",)),
    ("Factor",      ("FUNCTION", "(", "Expr", ")")),
    ("Factor",      ("(", "Expr", ")")),
)
# fmt: on


def arithmetic_grammar() -> Grammar:
    """Build the statement/expression grammar the parser recognizes, with start symbol S."""

    grammar = Grammar(ARITHMETIC_TERMINALS)
    for name, syms in ARITHMETIC_RULES:
        grammar.add_production(name, syms)
    grammar.set_start("S")
    return grammar


# endregion

# region License
# -----------------------------------------------------------------------------
# minifront: automata.py
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

import string
from collections import deque
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Final, NamedTuple, Optional

from ._misc import override
from .tokens import TokenKind, precedence_rank

__all__ = (
    "DFA",
    "NFA",
    "AutomatonError",
    "DFAState",
    "NFAArena",
    "NFAState",
    "build_dfa",
    "combine_nfas",
    "default_nfas",
    "epsilon_closure",
    "format_symbols",
    "identifier_nfa",
    "nfa_to_dfa",
    "number_nfa",
    "single_char_nfa",
)


LETTERS: Final = string.ascii_letters + "_"
DIGITS: Final = string.digits
WORD_CHARS: Final = LETTERS + DIGITS


class AutomatonError(Exception):
    """Exception raised if automata are built or combined incorrectly."""


# ============================================================================
# region -------- NFA Structures --------
# ============================================================================


class NFAState:
    """A single NFA state. Transitions refer to other states by id within the owning arena.

    Attributes
    ----------
    id: int
        Identity of the state, unique within its arena.
    transitions: dict[str, list[int]]
        Input symbol -> ids of the target states, in insertion order. Targets may repeat.
    epsilon: list[int]
        Ids of the states reachable without consuming input.
    kind: TokenKind | None
        Token kind recognized when this state is reached. None for non-accepting states.
    """

    __slots__ = ("id", "transitions", "epsilon", "kind")

    def __init__(self, id: int, kind: Optional[TokenKind] = None) -> None:  # noqa: A002
        self.id = id
        self.transitions: dict[str, list[int]] = {}
        self.epsilon: list[int] = []
        self.kind = kind

    @property
    def accepting(self) -> bool:
        return self.kind is not None

    @override
    def __repr__(self) -> str:
        return f"NFAState(id={self.id}, kind={self.kind}, symbols={len(self.transitions)}, epsilon={self.epsilon})"


class NFAArena:
    """Owner of every NFA state that takes part in one combination.

    Extended Summary
    ----------------
    Ids are handed out in creation order, so building the same NFAs in the same order always produces the same
    numbering. Sub-automata that are going to be combined must share an arena.
    """

    def __init__(self) -> None:
        self.states: list[NFAState] = []

    def __len__(self) -> int:
        return len(self.states)

    def __getitem__(self, state_id: int) -> NFAState:
        return self.states[state_id]

    def __iter__(self) -> Iterator[NFAState]:
        return iter(self.states)

    def new_state(self, kind: Optional[TokenKind] = None) -> int:
        state = NFAState(len(self.states), kind)
        self.states.append(state)
        return state.id

    def add_transition(self, src: int, symbols: Iterable[str], dst: int) -> None:
        """Add a transition from `src` to `dst` on every character in `symbols`."""

        transitions = self.states[src].transitions
        for symbol in symbols:
            transitions.setdefault(symbol, []).append(dst)

    def add_epsilon(self, src: int, *dsts: int) -> None:
        self.states[src].epsilon.extend(dsts)


class NFA(NamedTuple):
    """An entry point into an arena.

    The combined NFA has no single accept state; its accept states stay in the sub-automata.
    """

    arena: NFAArena
    start: int
    accept: Optional[int] = None


# endregion


# ============================================================================
# region -------- NFA Builders --------
# ============================================================================


def identifier_nfa(arena: NFAArena) -> NFA:
    """Build an NFA for ``[a-zA-Z_][a-zA-Z0-9_]*``."""

    start = arena.new_state()
    first = arena.new_state()
    loop_entry = arena.new_state()
    loop_match = arena.new_state()
    accept = arena.new_state(TokenKind.IDENTIFIER)

    arena.add_transition(start, LETTERS, first)

    # Zero or more word characters.
    arena.add_epsilon(first, loop_entry, accept)
    arena.add_transition(loop_entry, WORD_CHARS, loop_match)
    arena.add_epsilon(loop_match, loop_entry, accept)

    return NFA(arena, start, accept)


def number_nfa(arena: NFAArena) -> NFA:
    r"""Build an NFA for ``[0-9]+(\.[0-9]+)?``.

    The integer part and the optional fraction each get their own repeat region; both paths meet in one accepting
    state through epsilon edges.
    """

    start = arena.new_state()
    int_first = arena.new_state()
    int_entry = arena.new_state()
    int_match = arena.new_state()
    int_done = arena.new_state()
    no_fraction = arena.new_state()
    dot_entry = arena.new_state()
    dot = arena.new_state()
    frac_first = arena.new_state()
    frac_entry = arena.new_state()
    frac_match = arena.new_state()
    frac_done = arena.new_state()
    accept = arena.new_state(TokenKind.NUMBER)

    # [0-9]+
    arena.add_transition(start, DIGITS, int_first)
    arena.add_epsilon(int_first, int_entry, int_done)
    arena.add_transition(int_entry, DIGITS, int_match)
    arena.add_epsilon(int_match, int_done, int_entry)

    # (\.[0-9]+)?
    arena.add_epsilon(int_done, no_fraction, dot_entry)
    arena.add_epsilon(no_fraction, accept)
    arena.add_transition(dot_entry, ".", dot)
    arena.add_transition(dot, DIGITS, frac_first)
    arena.add_epsilon(frac_first, frac_entry, frac_done)
    arena.add_transition(frac_entry, DIGITS, frac_match)
    arena.add_epsilon(frac_match, frac_done, frac_entry)
    arena.add_epsilon(frac_done, accept)

    return NFA(arena, start, accept)


def single_char_nfa(arena: NFAArena, char: str, kind: TokenKind) -> NFA:
    """Build the two-state NFA that accepts exactly `char`."""

    if len(char) != 1:
        msg = f"Single-character NFA needs exactly one character, got {char!r}."
        raise AutomatonError(msg)

    start = arena.new_state()
    accept = arena.new_state(kind)
    arena.add_transition(start, char, accept)
    return NFA(arena, start, accept)


def default_nfas(arena: NFAArena, operators: Mapping[str, TokenKind]) -> list[NFA]:
    """Build the identifier and number NFAs followed by one NFA per operator character, in that order."""

    nfas = [identifier_nfa(arena), number_nfa(arena)]
    nfas.extend(single_char_nfa(arena, char, kind) for char, kind in operators.items())
    return nfas


def combine_nfas(nfas: Sequence[NFA]) -> NFA:
    """Join `nfas` under a new start state with an epsilon edge to each of their starts.

    Raises
    ------
    AutomatonError
        If `nfas` is empty or the NFAs do not share one arena.
    """

    if not nfas:
        msg = "Cannot combine an empty list of NFAs."
        raise AutomatonError(msg)

    arena = nfas[0].arena
    if any(nfa.arena is not arena for nfa in nfas):
        msg = "All combined NFAs must be built in the same arena."
        raise AutomatonError(msg)

    start = arena.new_state()
    arena.add_epsilon(start, *(nfa.start for nfa in nfas))
    return NFA(arena, start, None)


# endregion


# ============================================================================
# region -------- Subset Construction --------
# ============================================================================


def epsilon_closure(arena: NFAArena, states: Iterable[int]) -> frozenset[int]:
    """Return every state reachable from `states` through zero or more epsilon edges."""

    closure = set(states)
    stack = list(closure)
    while stack:
        for target in arena[stack.pop()].epsilon:
            if target not in closure:
                closure.add(target)
                stack.append(target)
    return frozenset(closure)


def _resolve_kind(arena: NFAArena, states: Iterable[int]) -> Optional[TokenKind]:
    kinds = [arena[s].kind for s in states if arena[s].kind is not None]
    if not kinds:
        return None
    return min(kinds, key=precedence_rank)


class DFAState:
    """A DFA state standing for one epsilon-closed set of NFA states.

    Attributes
    ----------
    id: int
        Index of the state in `DFA.states`.
    nfa_states: frozenset[int]
        The NFA state ids this state was built from. Empty for the dead state.
    kind: TokenKind | None
        Highest-precedence kind among the accepting NFA members, or None.
    transitions: dict[str, int]
        Input symbol -> id of the single target state.
    """

    __slots__ = ("id", "nfa_states", "kind", "transitions")

    def __init__(self, id: int, nfa_states: frozenset[int], kind: Optional[TokenKind] = None) -> None:  # noqa: A002
        self.id = id
        self.nfa_states = nfa_states
        self.kind = kind
        self.transitions: dict[str, int] = {}

    @property
    def accepting(self) -> bool:
        return self.kind is not None

    @override
    def __repr__(self) -> str:
        return f"DFAState(id={self.id}, kind={self.kind}, nfa_states={sorted(self.nfa_states)})"


def format_symbols(symbols: Iterable[str]) -> str:
    """Collapse runs of consecutive characters, e.g. "0123" -> "0-3"."""

    chars = sorted(symbols)
    parts: list[str] = []
    i = 0
    while i < len(chars):
        j = i
        while j + 1 < len(chars) and ord(chars[j + 1]) == ord(chars[j]) + 1:
            j += 1
        if j - i >= 2:
            parts.append(f"{chars[i]}-{chars[j]}")
        else:
            parts.extend(chars[i : j + 1])
        i = j + 1
    return " ".join(parts)


class DFA:
    """A deterministic automaton whose transition function is total over `alphabet`.

    Attributes
    ----------
    start: int
        Id of the start state.
    states: list[DFAState]
        Every reachable state, indexed by id. The dead state is last.
    dead: int
        Id of the dead state, which loops to itself and never accepts.
    alphabet: frozenset[str]
        Every symbol seen on an NFA transition during construction.
    """

    def __init__(self, start: int, states: list[DFAState], dead: int, alphabet: frozenset[str]) -> None:
        self.start = start
        self.states = states
        self.dead = dead
        self.alphabet = alphabet

    def __len__(self) -> int:
        return len(self.states)

    def __getitem__(self, state_id: int) -> DFAState:
        return self.states[state_id]

    def __iter__(self) -> Iterator[DFAState]:
        return iter(self.states)

    def step(self, state_id: int, symbol: str) -> Optional[int]:
        """Return the target of `state_id` on `symbol`, or None if `symbol` is outside the alphabet."""

        return self.states[state_id].transitions.get(symbol)

    def run(self, text: str) -> Optional[TokenKind]:
        """Return the kind accepted after reading all of `text`, or None if the DFA rejects it."""

        state = self.start
        for char in text:
            target = self.step(state, char)
            if target is None:
                return None
            state = target
        return self.states[state].kind

    def is_total(self) -> bool:
        return all(set(state.transitions) == self.alphabet for state in self.states)

    @override
    def __str__(self) -> str:
        """Return str(self).

        Extended Summary
        ----------------
        Serves as debugging output: one block per state, with the symbols leading to the same target grouped
        together. Edges into the dead state are left out.
        """

        out: list[str] = []
        for state in self.states:
            flags = []
            if state.id == self.start:
                flags.append("start")
            if state.id == self.dead:
                flags.append("dead")
            if state.accepting:
                flags.append(f"accept {state.kind}")
            header = f"state {state.id}"
            if flags:
                header += f" ({', '.join(flags)})"
            out.append(header)

            by_target: dict[int, list[str]] = {}
            for symbol, target in state.transitions.items():
                if target != self.dead or state.id == self.dead:
                    by_target.setdefault(target, []).append(symbol)
            out.extend(f"    {format_symbols(symbols)} -> {target}" for target, symbols in sorted(by_target.items()))
            out.append("")

        return "\n".join(out)


def nfa_to_dfa(nfa: NFA) -> DFA:
    """Convert `nfa` into a total DFA by subset construction.

    Notes
    -----
    Closure sets are processed first-in first-out and their symbols in sorted order, so state numbering depends
    only on the NFA. When a closure set holds accepting states of several kinds, the kind that ranks first in
    `minifront.tokens.KIND_PRECEDENCE` wins. Missing transitions are sent to a dead state added last.
    """

    arena = nfa.arena
    states: list[DFAState] = []
    ids: dict[frozenset[int], int] = {}
    worklist: deque[frozenset[int]] = deque()
    alphabet: set[str] = set()

    def add_state(closure: frozenset[int]) -> int:
        state = DFAState(len(states), closure, _resolve_kind(arena, closure))
        states.append(state)
        ids[closure] = state.id
        worklist.append(closure)
        return state.id

    start = add_state(epsilon_closure(arena, [nfa.start]))

    while worklist:
        current = worklist.popleft()
        source = states[ids[current]]

        moves: dict[str, set[int]] = {}
        for s in sorted(current):
            for symbol, targets in arena[s].transitions.items():
                moves.setdefault(symbol, set()).update(targets)
        alphabet.update(moves)

        for symbol in sorted(moves):
            closure = epsilon_closure(arena, moves[symbol])
            target = ids.get(closure)
            if target is None:
                target = add_state(closure)
            source.transitions[symbol] = target

    dead = DFAState(len(states), frozenset())
    states.append(dead)
    for state in states:
        for symbol in sorted(alphabet):
            state.transitions.setdefault(symbol, dead.id)

    return DFA(start, states, dead.id, frozenset(alphabet))


def build_dfa(nfas: Sequence[NFA]) -> DFA:
    """Combine the per-class `nfas` and convert the result into a DFA."""

    return nfa_to_dfa(combine_nfas(nfas))


# endregion

"""
Names used by the two-tape to one-tape reduction.

Generated letters and states are kept as structured values while the one-tape
table is built, and only turned into identifier text when the table is
handed back as a TuringMachine:

    Letter = Plain(name) | LogicalHead(Plain) | Sentinel(tag)
    State  = Reserved(name) | InitPhase(name) | Composite(state, read, phase, tape)

Freshness of generated letters comes from the safety depth D: the maximum
parenthesis nesting among the letters of the source machine's working
alphabet. Every generated letter is wrapped in D+1 parenthesis pairs, so it
is nested deeper than any letter the user wrote and cannot be one of them.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple, Union

from turing_machine import (
    ACCEPTING_STATE,
    BLANK,
    INITIAL_STATE,
    Direction,
    TuringMachine,
    identifier_depth,
)


HEAD_TAG = '-H'
COMPOSITE_TAG = 'U'
INIT_TAG = 'init-'


class ReductionError(RuntimeError):
    """Fatal precondition violation while building the one-tape machine."""


@dataclass(frozen=True)
class Plain:
    """A letter of the source machine's working alphabet."""
    name: str


@dataclass(frozen=True)
class LogicalHead:
    """A working-alphabet letter with a simulated head above it."""
    letter: Plain


@dataclass(frozen=True)
class Sentinel:
    tag: str


TAPE_BORDER = Sentinel('tape-border')
TAPE_END = Sentinel('tape-end')

Letter = Union[Plain, LogicalHead, Sentinel]


# Phase kinds. AWAIT is the entry phase: the physical head sits on tape 1's
# logical head and the source transition has not been applied yet.
AWAIT = ''
HEAD_LEFT = 'headLeft'
HEAD_RIGHT = 'headRight'
BOUNCE_OFF_BORDER = 'bounceOffBorder'
TO_SECOND_TAPE = 'toSecondTape'
EXTEND_AT_BORDER = 'extendTape-tapeBorder'
EXTEND_CARRY = 'extendTape'
EXTEND_AT_END = 'extendTape-tapeEnd'
EXTEND_MOVE_BACK = 'extendTape-moveBack'
BACK_TO_FIRST_TAPE = 'backToFirstTape'


@dataclass(frozen=True)
class Phase:
    kind: str = AWAIT
    letter: Optional[Letter] = None  # pending letter for carrying phases


@dataclass(frozen=True)
class Reserved:
    name: str


@dataclass(frozen=True)
class InitPhase:
    name: str


@dataclass(frozen=True)
class Composite:
    """
    A sub-state simulating one source transition.

    Attributes:
        state: source state the simulated transition starts from
        read: pair of letters the transition reads on tapes 1 and 2
        phase: construction phase
        tape: simulated tape the physical head is working on (1 or 2)
    """
    state: str
    read: Tuple[str, str]
    phase: Phase
    tape: int


State = Union[Reserved, InitPhase, Composite]

START = Reserved(INITIAL_STATE)
ACCEPT = Reserved(ACCEPTING_STATE)

# One-tape table fragment: (state, letter read) -> (next state, letter written, move)
Block = Dict[Tuple[State, Letter], Tuple[State, Letter, Direction]]


def safety_depth(letters: Iterable[str]) -> int:
    """
    Maximum parenthesis nesting among letters.

    Args:
        letters: Identifiers of a working alphabet

    Returns:
        The depth D; generated letters are nested D+1 deep.
    """
    depth = 0
    for letter in letters:
        letter_depth = identifier_depth(letter)
        if letter_depth is None:
            raise ValueError(f"Invalid letter {letter!r} in working alphabet")
        depth = max(depth, letter_depth)
    return depth


def fresh_symbol(base: str, depth: int) -> str:
    """Wrap base in depth+1 parenthesis pairs."""
    return '(' * (depth + 1) + base + ')' * (depth + 1)


def compose_state(user_state: str, read: Iterable[str], phase: Phase = Phase(), tape: int = 1) -> Composite:
    """
    Build the sub-state of the transition leaving user_state on read.

    Equal arguments give equal states and any difference gives a different
    state, so blocks compiled for different source transitions never share
    a state.
    """
    read = tuple(read)
    if len(read) != 2:
        raise ValueError(f"read must hold one letter per tape, got {read}")
    if tape not in (1, 2):
        raise ValueError(f"tape must be 1 or 2, got {tape}")
    return Composite(user_state, read, phase, tape)


def add_transition(block: Block, state: State, letter: Letter,
                   next_state: State, written: Letter, direction: Direction) -> None:
    key = (state, letter)
    if key in block:
        raise ReductionError(f"Transition from {state} on {letter} generated twice")
    block[key] = (next_state, written, direction)


@dataclass(frozen=True)
class ReductionContext:
    """
    Values derived once from the source machine and shared, read-only, by
    every block of the construction.
    """
    input_alphabet: Tuple[str, ...]
    working_alphabet: Tuple[str, ...]
    safety_depth: int

    @classmethod
    def for_machine(cls, machine: TuringMachine) -> 'ReductionContext':
        working_alphabet = tuple(machine.working_alphabet())
        return cls(
            input_alphabet=tuple(machine.input_alphabet),
            working_alphabet=working_alphabet,
            safety_depth=safety_depth(working_alphabet),
        )

    @property
    def blank(self) -> Plain:
        return Plain(BLANK)

    def letters(self) -> Tuple[Plain, ...]:
        return tuple(Plain(name) for name in self.working_alphabet)

    def input_letters(self) -> Tuple[Plain, ...]:
        return tuple(Plain(name) for name in self.input_alphabet)

    def head(self, letter: Union[Plain, str]) -> LogicalHead:
        if isinstance(letter, str):
            letter = Plain(letter)
        return LogicalHead(letter)

    def cells(self) -> Tuple[Letter, ...]:
        """Every letter a simulated tape region can hold: plain or under a logical head."""
        letters = self.letters()
        return letters + tuple(LogicalHead(letter) for letter in letters)

    def encode_letter(self, letter: Letter) -> str:
        if isinstance(letter, Plain):
            return letter.name
        if isinstance(letter, LogicalHead):
            return fresh_symbol(letter.letter.name + HEAD_TAG, self.safety_depth)
        if isinstance(letter, Sentinel):
            return fresh_symbol(letter.tag, self.safety_depth)
        raise TypeError(f"Not a letter: {letter!r}")

    def encode_state(self, state: State) -> str:
        """
        Identifier text of a state.

        Composite states become '(U(state)(read1)(read2)(phase)(tape))'; the
        phase group is left out while awaiting. Every field is a balanced
        group of its own, so distinct composites never share a text.
        """
        if isinstance(state, Reserved):
            return state.name
        if isinstance(state, InitPhase):
            return f"({INIT_TAG}{state.name})"
        if isinstance(state, Composite):
            fields = [state.state, *state.read]
            if state.phase.kind != AWAIT:
                phase = state.phase.kind
                if state.phase.letter is not None:
                    phase += f"({self.encode_letter(state.phase.letter)})"
                fields.append(phase)
            fields.append(str(state.tape))
            return '(' + COMPOSITE_TAG + ''.join(f"({part})" for part in fields) + ')'
        raise TypeError(f"Not a state: {state!r}")

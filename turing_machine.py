"""
Turing Machine Model

Deterministic multi-tape Turing machines are described by a tape count, an
input alphabet and a transition table:

    (state, letters_read) -> (next_state, letters_written, directions)

Where:
    - state: the state the machine must be in for the rule to apply
    - letters_read: one letter per tape, read under each head
    - next_state: the state to transition to
    - letters_written: one letter per tape, written under each head
    - directions: one Direction per tape ('<' left, '>' right, '-' stay)

Letters and states are identifiers: either a run of [A-Za-z0-9_-] characters
or a parenthesized, non-empty sequence of identifiers, e.g. 'a', 'q0',
'(a-H)', '((x)(y))'.

Text format (one machine per file):
    num-tapes: 2
    input-alphabet: a b
    # state  letters...  next-state  letters...  directions...
    (start) a _ (start) a a > >

Extended Features:
    - YAML format parsing for the same machine description
    - Serialization back to the text format
    - Input word parsing against the input alphabet
"""

import re
import string
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import yaml


BLANK = '_'
INITIAL_STATE = '(start)'
ACCEPTING_STATE = '(accept)'
REJECTING_STATE = '(reject)'

NUM_TAPES = 'num-tapes:'
INPUT_ALPHABET = 'input-alphabet:'

IDENTIFIER_CHARS = frozenset(string.ascii_letters + string.digits + '_-')

YAML_SUFFIXES = ('.yaml', '.yml')


class Direction(Enum):
    LEFT = '<'
    RIGHT = '>'
    STAY = '-'


TransitionKey = Tuple[str, Tuple[str, ...]]
TransitionValue = Tuple[str, Tuple[str, ...], Tuple[Direction, ...]]


class TuringMachineSyntaxError(ValueError):
    """A machine description that does not follow the format.

    Text descriptions are located by line number, YAML descriptions by
    a free-form location such as 'transition #3'.
    """

    def __init__(self, reason: str, line: Optional[int] = None, location: Optional[str] = None):
        self.reason = reason
        self.line = line
        where = f"line {line}" if line is not None else (location or 'input')
        super().__init__(f"Syntax error in {where}: {reason}")


def identifier_depth(token: str) -> Optional[int]:
    """
    Return the parenthesis nesting depth of an identifier.

    The scan is iterative, so arbitrarily deep tokens cannot exhaust the
    interpreter stack.

    Args:
        token: Candidate identifier

    Returns:
        Maximum nesting depth (0 for a plain atom like 'q0'), or None if the
        token is not a valid identifier.

    Example:
        identifier_depth('a') -> 0
        identifier_depth('((x)(y))') -> 2
        identifier_depth('a(b)') -> None   (two top-level items)
        identifier_depth('()') -> None     (empty group)
    """
    # One flag per open group: has it received any content yet?
    open_groups: List[bool] = []
    max_depth = 0
    top_level_items = 0
    in_atom = False

    for char in token:
        if char == '(':
            if open_groups:
                open_groups[-1] = True
            else:
                top_level_items += 1
            open_groups.append(False)
            max_depth = max(max_depth, len(open_groups))
            in_atom = False
        elif char == ')':
            if not open_groups or not open_groups.pop():
                return None
            in_atom = False
        elif char in IDENTIFIER_CHARS:
            if open_groups:
                open_groups[-1] = True
            elif not in_atom:
                top_level_items += 1
            in_atom = True
        else:
            return None

    if open_groups or top_level_items != 1:
        return None
    return max_depth


def is_identifier(token: str) -> bool:
    return isinstance(token, str) and identifier_depth(token) is not None


def _split_letters(word: str) -> Optional[List[str]]:
    """Split a word into single-character atoms and parenthesized groups."""
    letters = []
    start = None
    depth = 0
    for index, char in enumerate(word):
        if char == '(':
            if depth == 0:
                start = index
            depth += 1
        elif char == ')':
            depth -= 1
            if depth < 0:
                return None
            if depth == 0:
                letters.append(word[start:index + 1])
        elif depth == 0:
            letters.append(char)
    if depth != 0:
        return None
    return letters


@dataclass(frozen=True)
class TuringMachine:
    """
    Immutable deterministic Turing machine.

    The transition dict is keyed by (state, letters_read), so a key can map to
    at most one action: key uniqueness is the determinism guarantee.
    """
    num_tapes: int
    input_alphabet: Tuple[str, ...]
    transitions: Dict[TransitionKey, TransitionValue] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'input_alphabet', tuple(self.input_alphabet))
        object.__setattr__(self, 'transitions', {
            (state, tuple(read)): (next_state, tuple(written), tuple(directions))
            for (state, read), (next_state, written, directions) in dict(self.transitions).items()
        })

        if not isinstance(self.num_tapes, int) or self.num_tapes <= 0:
            raise ValueError(f"num_tapes must be a positive integer, got {self.num_tapes!r}")
        if not self.input_alphabet:
            raise ValueError("input_alphabet must not be empty")
        if len(set(self.input_alphabet)) != len(self.input_alphabet):
            raise ValueError(f"input_alphabet contains repeated letters: {self.input_alphabet}")
        for letter in self.input_alphabet:
            if not is_identifier(letter) or letter == BLANK:
                raise ValueError(f"Invalid input letter {letter!r}")

        for key, value in self.transitions.items():
            self._check_transition(key, value)

    def _check_transition(self, key: TransitionKey, value: TransitionValue) -> None:
        state, read = key
        next_state, written, directions = value
        if not is_identifier(state) or not is_identifier(next_state):
            raise ValueError(f"Invalid state in transition {key} -> {value}")
        if state in (ACCEPTING_STATE, REJECTING_STATE):
            raise ValueError(f"No transition can start in the {state!r} state")
        if not (len(read) == len(written) == len(directions) == self.num_tapes):
            raise ValueError(
                f"Transition {key} -> {value} must have {self.num_tapes} letters and directions per side"
            )
        for letter in read + written:
            if not is_identifier(letter):
                raise ValueError(f"Invalid letter {letter!r} in transition {key} -> {value}")
        for direction in directions:
            if not isinstance(direction, Direction):
                raise ValueError(f"Invalid direction {direction!r} in transition {key} -> {value}")

    def working_alphabet(self) -> List[str]:
        """
        Every letter the machine can meet on a tape.

        Returns:
            Sorted list of the input alphabet, the blank, and every letter
            read or written by any transition.
        """
        letters = set(self.input_alphabet)
        letters.add(BLANK)
        for (_, read), (_, written, _) in self.transitions.items():
            letters.update(read)
            letters.update(written)
        return sorted(letters)

    def set_of_states(self) -> List[str]:
        states = {INITIAL_STATE, ACCEPTING_STATE, REJECTING_STATE}
        for (state, _), (next_state, _, _) in self.transitions.items():
            states.add(state)
            states.add(next_state)
        return sorted(states)

    def parse_input(self, word: str) -> List[str]:
        """
        Convert an input word to a list of letters of the input alphabet.

        Args:
            word: Either whitespace-separated letters ('q0 q1'), or a compact
                  word where every letter is one character or one
                  parenthesized group ('ab(xy)a').

        Returns:
            List of letters, empty for the empty word.

        Raises:
            ValueError: If the word holds a letter outside the input alphabet.
        """
        if any(char.isspace() for char in word):
            letters = word.split()
        else:
            letters = _split_letters(word)
            if letters is None:
                raise ValueError(f"Unbalanced parentheses in input word {word!r}")

        alphabet = set(self.input_alphabet)
        for letter in letters:
            if letter not in alphabet:
                raise ValueError(f"Letter {letter!r} of input word {word!r} is not in the input alphabet")
        return letters


# ---------------------------------------------------------------------------
# Text format
# ---------------------------------------------------------------------------

def _split_lines(text: str) -> List[str]:
    """Lines end at '\\n' only; a final newline does not open another line."""
    lines = text.split('\n')
    if len(lines) > 1 and not lines[-1]:
        lines.pop()
    return lines


def _split_tokens(line: str) -> List[str]:
    """Tokens are separated by spaces and tabs only."""
    return [token for token in re.split(r'[ \t]+', line) if token]


def _tokenize(text: str) -> Iterator[Tuple[int, List[str]]]:
    """Yield (line_number, tokens) for every line that holds at least one token."""
    for line_number, line in enumerate(_split_lines(text), start=1):
        tokens = _split_tokens(line.split('#', 1)[0])
        if tokens:
            yield line_number, tokens


class _TokenCursor:
    """Walks the tokens of one line, raising line-numbered syntax errors."""

    def __init__(self, tokens: List[str], line: int, location: Optional[str] = None):
        self.tokens = tokens
        self.line = line
        self.location = location
        self.pos = 0

    def error(self, reason: str) -> TuringMachineSyntaxError:
        return TuringMachineSyntaxError(reason, line=self.line, location=self.location)

    def has_next(self) -> bool:
        return self.pos < len(self.tokens)

    def next_token(self) -> str:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def next_identifier(self) -> str:
        if not self.has_next():
            raise self.error("Identifier expected")
        token = self.next_token()
        if not is_identifier(token):
            raise self.error(f'Invalid identifier "{token}"')
        return token

    def next_direction(self) -> Direction:
        if self.has_next():
            token = self.next_token()
            for direction in Direction:
                if token == direction.value:
                    return direction
        raise self.error(
            f"Move direction expected, which should be "
            f"{Direction.LEFT.value}, {Direction.RIGHT.value}, or {Direction.STAY.value}"
        )

    def expect_end(self) -> None:
        if self.has_next():
            raise self.error("Too many tokens in a line")


def _parse_transition(cursor: _TokenCursor, num_tapes: int) -> Tuple[TransitionKey, TransitionValue]:
    state = cursor.next_identifier()
    if state in (ACCEPTING_STATE, REJECTING_STATE):
        raise cursor.error(f'No transition can start in the "{state}" state')
    read = tuple(cursor.next_identifier() for _ in range(num_tapes))
    next_state = cursor.next_identifier()
    written = tuple(cursor.next_identifier() for _ in range(num_tapes))
    directions = tuple(cursor.next_direction() for _ in range(num_tapes))
    cursor.expect_end()
    return (state, read), (next_state, written, directions)


def _parse_num_tapes(cursor: _TokenCursor) -> int:
    if not cursor.has_next() or cursor.next_token() != NUM_TAPES:
        raise cursor.error(f'"{NUM_TAPES}" expected')
    if not cursor.has_next():
        raise cursor.error(f'Positive integer expected after "{NUM_TAPES}"')
    value = cursor.next_token()
    if not re.fullmatch(r'\+?[0-9]+', value) or int(value) <= 0:
        raise cursor.error(f'Positive integer expected after "{NUM_TAPES}"')
    cursor.expect_end()
    return int(value)


def _parse_input_alphabet(cursor: _TokenCursor) -> Tuple[str, ...]:
    if not cursor.has_next() or cursor.next_token() != INPUT_ALPHABET:
        raise cursor.error(f'"{INPUT_ALPHABET}" expected')
    letters = []
    while cursor.has_next():
        letter = cursor.next_identifier()
        if letter == BLANK:
            raise cursor.error(f'The blank letter "{BLANK}" is not allowed in the input alphabet')
        letters.append(letter)
    if not letters:
        raise cursor.error("Identifier expected")
    # Repeated letters are tolerated and kept once, in first-seen order.
    return tuple(dict.fromkeys(letters))


def parse_machine(text: str) -> TuringMachine:
    """
    Parse a text-format machine description.

    Args:
        text: Full contents of a machine file

    Returns:
        A validated TuringMachine

    Raises:
        TuringMachineSyntaxError: On the first malformed line, carrying its
            line number. No partially parsed machine is ever returned.
    """
    lines = _tokenize(text)
    end_line = max(1, len(_split_lines(text)))

    line, tokens = next(lines, (end_line, []))
    num_tapes = _parse_num_tapes(_TokenCursor(tokens, line))

    line, tokens = next(lines, (end_line, []))
    input_alphabet = _parse_input_alphabet(_TokenCursor(tokens, line))

    transitions = {}
    for line, tokens in lines:
        cursor = _TokenCursor(tokens, line)
        key, value = _parse_transition(cursor, num_tapes)
        if key in transitions:
            raise cursor.error("The machine is not deterministic")
        transitions[key] = value

    return TuringMachine(num_tapes, input_alphabet, transitions)


def format_machine(machine: TuringMachine) -> str:
    """
    Serialize a machine to the text format, one transition per line.

    Returns:
        Text that parse_machine() reads back into an equal machine
    """
    lines = [
        f"{NUM_TAPES} {machine.num_tapes}",
        ' '.join([INPUT_ALPHABET, *machine.input_alphabet]),
    ]
    for (state, read), (next_state, written, directions) in machine.transitions.items():
        lines.append(' '.join([state, *read, next_state, *written, *(d.value for d in directions)]))
    return '\n'.join(lines) + '\n'


def save_to_file(machine: TuringMachine, filepath) -> None:
    Path(filepath).write_text(format_machine(machine), encoding='utf-8')


# ---------------------------------------------------------------------------
# YAML format
# ---------------------------------------------------------------------------

def _yaml_letters(value, location: str, what: str) -> List[str]:
    if isinstance(value, str):
        value = [value] if value else []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TuringMachineSyntaxError(f"'{what}' must be a list of identifiers", location=location)
    return value


def _yaml_state(value, location: str, what: str) -> str:
    if not isinstance(value, str):
        raise TuringMachineSyntaxError(f"'{what}' must be an identifier, got {value!r}", location=location)
    return value


def _parse_yaml_transition(raw, num_tapes: int, index: int) -> Tuple[TransitionKey, TransitionValue]:
    """
    Parse one YAML transition entry.

    Handles two formats:
        '(start) a _ (start) a a > >'  -> same syntax as a text-format line
        {state: (start), read: [a, _], next: (start), write: [a, a], move: ['>', '>']}
    """
    location = f"transition #{index}"
    if isinstance(raw, str):
        cursor = _TokenCursor(_split_tokens(raw), line=None, location=location)
        return _parse_transition(cursor, num_tapes)

    if not isinstance(raw, dict):
        raise TuringMachineSyntaxError(f"Cannot parse transition: {raw!r}", location=location)

    missing = [name for name in ('state', 'read', 'next', 'write', 'move') if name not in raw]
    if missing:
        raise TuringMachineSyntaxError(f"Missing keys {missing}", location=location)

    tokens = [_yaml_state(raw['state'], location, 'state')]
    for name in ('read', 'next', 'write', 'move'):
        if name == 'next':
            tokens.append(_yaml_state(raw[name], location, name))
            continue
        values = _yaml_letters(raw[name], location, name)
        if len(values) != num_tapes:
            raise TuringMachineSyntaxError(
                f"'{name}' must list {num_tapes} entries, got {len(values)}", location=location
            )
        tokens.extend(values)
    cursor = _TokenCursor(tokens, line=None, location=location)
    return _parse_transition(cursor, num_tapes)


def parse_yaml_machine(yaml_string: str) -> TuringMachine:
    """
    Parse a YAML-format machine definition.

    Example YAML format:
        num-tapes: 2
        input-alphabet: [a, b]
        transitions:
          - "(start) a _ (start) a a > >"
          - {state: (start), read: [_, _], next: (accept), write: [_, _], move: ['-', '-']}

    Scalars are read as written: '00', 'yes' and '1.0' stay letters, they are
    not resolved to numbers or booleans.

    Args:
        yaml_string: YAML string defining the machine

    Returns:
        A validated TuringMachine

    Raises:
        TuringMachineSyntaxError: If the document does not describe a machine
    """
    try:
        data = yaml.load(yaml_string, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise TuringMachineSyntaxError(f"Invalid YAML: {exc}", location='document') from exc

    if not isinstance(data, dict):
        raise TuringMachineSyntaxError("The YAML document must be a mapping", location='document')

    num_tapes = data.get('num-tapes')
    if not isinstance(num_tapes, str) or not re.fullmatch(r'\+?[0-9]+', num_tapes) or int(num_tapes) <= 0:
        raise TuringMachineSyntaxError(
            f"'num-tapes' must be a positive integer, got {num_tapes!r}", location='num-tapes'
        )
    num_tapes = int(num_tapes)

    letters = _yaml_letters(data.get('input-alphabet', []), 'input-alphabet', 'input-alphabet')
    cursor = _TokenCursor([INPUT_ALPHABET, *letters], line=None, location='input-alphabet')
    input_alphabet = _parse_input_alphabet(cursor)

    raw_transitions = data.get('transitions') or []
    if not isinstance(raw_transitions, list):
        raise TuringMachineSyntaxError("'transitions' must be a list", location='transitions')

    transitions = {}
    for index, raw in enumerate(raw_transitions):
        key, value = _parse_yaml_transition(raw, num_tapes, index)
        if key in transitions:
            raise TuringMachineSyntaxError("The machine is not deterministic", location=f"transition #{index}")
        transitions[key] = value

    return TuringMachine(num_tapes, input_alphabet, transitions)


def read_tm_from_file(filepath, input_format: str = 'auto') -> TuringMachine:
    """
    Load a machine description from disk.

    Args:
        filepath: Path to the description file
        input_format: 'text', 'yaml', or 'auto' (YAML for .yaml/.yml files,
                      text otherwise)

    Returns:
        A validated TuringMachine
    """
    path = Path(filepath)
    if input_format == 'auto':
        input_format = 'yaml' if path.suffix.lower() in YAML_SUFFIXES else 'text'
    text = path.read_text(encoding='utf-8')
    if input_format == 'yaml':
        return parse_yaml_machine(text)
    if input_format == 'text':
        return parse_machine(text)
    raise ValueError(f"input_format must be 'auto', 'text' or 'yaml', got '{input_format}'")

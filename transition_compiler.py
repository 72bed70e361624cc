"""
Compilation of one two-tape transition into a block of one-tape transitions.

For a source transition

    (state, (r1, r2)) -> (next, (w1, w2), (d1, d2))

the block walks the physical head through these phases, each a composite
state carrying (state, r1, r2):

    await(1)          on tape 1's logical head, which must hold r1
    headLeft/Right(1) write w1, move, mark the new cell as tape 1's head
    extendTape-*(1)   moving right onto the border: shift border, tape 2 and
                      end marker one cell right to make room
    toSecondTape(1,2) scan right across the border to tape 2's logical head
    headLeft/Right(2) write w2, move, mark the new cell as tape 2's head
    extendTape-*(2)   moving right onto the end marker: push it one cell
    bounceOffBorder   moving left off tape 2's first cell: stay on it
    backToFirstTape   scan left back to tape 1's logical head, carrying the
                      letter now under tape 2's head
and then either accepts or enters await(1) of the block compiled for
(next, letter under tape 1's head, letter under tape 2's head).
"""

from tm_symbols import (
    ACCEPT,
    AWAIT,
    BACK_TO_FIRST_TAPE,
    BOUNCE_OFF_BORDER,
    EXTEND_AT_BORDER,
    EXTEND_AT_END,
    EXTEND_CARRY,
    EXTEND_MOVE_BACK,
    HEAD_LEFT,
    HEAD_RIGHT,
    TAPE_BORDER,
    TAPE_END,
    TO_SECOND_TAPE,
    Block,
    Phase,
    Plain,
    ReductionContext,
    add_transition,
    compose_state,
)
from tape_layout import INIT_BACK_TO_FRONT
from turing_machine import (
    ACCEPTING_STATE,
    BLANK,
    INITIAL_STATE,
    Direction,
    TransitionKey,
    TransitionValue,
)


def compile_transition(context: ReductionContext, key: TransitionKey, value: TransitionValue) -> Block:
    """
    Build the one-tape block simulating a single two-tape transition.

    Args:
        context: Values derived from the source machine
        key: (state, (letter_tape_1, letter_tape_2))
        value: (next_state, (out_tape_1, out_tape_2), (dir_tape_1, dir_tape_2))

    Returns:
        Dict mapping (state, letter) to (next_state, letter, direction). The
        states of the block are composites of key, so blocks of different
        source transitions never share a key.
    """
    state, (read_1, read_2) = key
    next_state, (out_1, out_2), (dir_1, dir_2) = value

    def sub_state(kind, tape, letter=None):
        return compose_state(state, (read_1, read_2), Phase(kind, letter), tape)

    block: Block = {}
    entry = sub_state(AWAIT, 1)

    # Tape 2 is empty when the machine starts.
    if state == INITIAL_STATE and read_2 == BLANK:
        add_transition(block, INIT_BACK_TO_FRONT, context.head(read_1),
                       entry, context.head(read_1), Direction.STAY)

    _compile_first_tape(context, block, sub_state, entry, read_1, out_1, dir_1)
    _compile_crossing(context, block, sub_state)
    _compile_second_tape(context, block, sub_state, read_2, out_2, dir_2)
    _compile_return(context, block, sub_state, next_state)
    return block


def _compile_first_tape(context, block, sub_state, entry, read_1, out_1, dir_1):
    to_second_tape = sub_state(TO_SECOND_TAPE, 1)

    if dir_1 == Direction.STAY:
        add_transition(block, entry, context.head(read_1),
                       to_second_tape, context.head(out_1), Direction.RIGHT)
        return

    moving = sub_state(HEAD_LEFT if dir_1 == Direction.LEFT else HEAD_RIGHT, 1)
    add_transition(block, entry, context.head(read_1), moving, Plain(out_1), dir_1)
    # A left move from the first cell leaves the head where it is, so the
    # freshly written letter is marked again.
    for letter in context.letters():
        add_transition(block, moving, letter, to_second_tape, context.head(letter), Direction.RIGHT)

    if dir_1 == Direction.RIGHT:
        _compile_border_extension(context, block, sub_state, moving)


def _compile_border_extension(context, block, sub_state, moving):
    """
    Make room on tape 1 when its logical head walks onto the border.

    The border cell becomes a blank of tape 1; border, tape 2 and the end
    marker then move one cell right, carrying one pending letter at a time.
    After that the head returns to the new blank and the right move resumes.
    """
    at_border = sub_state(EXTEND_AT_BORDER, 1)
    at_end = sub_state(EXTEND_AT_END, 1)
    move_back = sub_state(EXTEND_MOVE_BACK, 1)

    add_transition(block, moving, TAPE_BORDER, at_border, context.blank, Direction.RIGHT)
    for pending in context.cells():
        carrying = sub_state(EXTEND_CARRY, 1, pending)
        add_transition(block, at_border, pending, carrying, TAPE_BORDER, Direction.RIGHT)
        for letter in context.cells():
            add_transition(block, carrying, letter,
                           sub_state(EXTEND_CARRY, 1, letter), pending, Direction.RIGHT)
        add_transition(block, carrying, TAPE_END, at_end, pending, Direction.RIGHT)

    add_transition(block, at_end, context.blank, move_back, TAPE_END, Direction.LEFT)
    for letter in context.cells():
        add_transition(block, move_back, letter, move_back, letter, Direction.LEFT)
    add_transition(block, move_back, TAPE_BORDER, moving, TAPE_BORDER, Direction.LEFT)


def _compile_crossing(context, block, sub_state):
    on_first_tape = sub_state(TO_SECOND_TAPE, 1)
    on_second_tape = sub_state(TO_SECOND_TAPE, 2)
    for letter in context.letters():
        add_transition(block, on_first_tape, letter, on_first_tape, letter, Direction.RIGHT)
        add_transition(block, on_second_tape, letter, on_second_tape, letter, Direction.RIGHT)
    add_transition(block, on_first_tape, TAPE_BORDER, on_second_tape, TAPE_BORDER, Direction.RIGHT)


def _compile_second_tape(context, block, sub_state, read_2, out_2, dir_2):
    arrived = sub_state(TO_SECOND_TAPE, 2)

    if dir_2 == Direction.STAY:
        add_transition(block, arrived, context.head(read_2),
                       sub_state(BACK_TO_FIRST_TAPE, 2, Plain(out_2)), context.head(out_2), Direction.LEFT)
        return

    moving = sub_state(HEAD_LEFT if dir_2 == Direction.LEFT else HEAD_RIGHT, 2)
    add_transition(block, arrived, context.head(read_2), moving, Plain(out_2), dir_2)
    for letter in context.letters():
        add_transition(block, moving, letter,
                       sub_state(BACK_TO_FIRST_TAPE, 2, letter), context.head(letter), Direction.LEFT)

    if dir_2 == Direction.LEFT:
        # Tape 2 starts right after the border; moving left from its first
        # cell keeps the head there.
        bounce = sub_state(BOUNCE_OFF_BORDER, 2)
        add_transition(block, moving, TAPE_BORDER, bounce, TAPE_BORDER, Direction.RIGHT)
        for letter in context.letters():
            add_transition(block, bounce, letter,
                           sub_state(BACK_TO_FIRST_TAPE, 2, letter), context.head(letter), Direction.LEFT)
    else:
        at_end = sub_state(EXTEND_AT_END, 2)
        add_transition(block, moving, TAPE_END, at_end, context.blank, Direction.RIGHT)
        add_transition(block, at_end, context.blank, moving, TAPE_END, Direction.LEFT)


def _compile_return(context, block, sub_state, next_state):
    """Scan back to tape 1's logical head and hand over to the next simulated step."""
    for second in context.letters():
        on_second_tape = sub_state(BACK_TO_FIRST_TAPE, 2, second)
        on_first_tape = sub_state(BACK_TO_FIRST_TAPE, 1, second)
        for letter in context.letters():
            add_transition(block, on_second_tape, letter, on_second_tape, letter, Direction.LEFT)
            add_transition(block, on_first_tape, letter, on_first_tape, letter, Direction.LEFT)
        add_transition(block, on_second_tape, TAPE_BORDER, on_first_tape, TAPE_BORDER, Direction.LEFT)

        for first in context.letters():
            if next_state == ACCEPTING_STATE:
                target = ACCEPT
            else:
                # A target without transitions, (reject) included, halts here.
                target = compose_state(next_state, (first.name, second.name))
            add_transition(block, on_first_tape, context.head(first), target, context.head(first), Direction.STAY)

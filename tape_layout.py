"""
Tape layout of the one-tape simulation.

The single tape holds both simulated tapes, left to right:

    [tape 1 region][border][tape 2 region][end]

Exactly one cell of each region carries a logical head. The initialization
block below turns the input word into this layout before any simulated
transition fires:

    a b b  ->  (a-H) b b (tape-border) (_-H) (tape-end)

and leaves the physical head on tape 1's logical head in INIT_BACK_TO_FRONT.
"""

from tm_symbols import (
    START,
    TAPE_BORDER,
    TAPE_END,
    Block,
    InitPhase,
    ReductionContext,
    add_transition,
)
from turing_machine import Direction


INIT_FIND_SECOND_TAPE = InitPhase('findSecondTape')
INIT_PUT_SECOND_HEAD = InitPhase('putSecondHead')
INIT_PUT_END_OF_SECOND_TAPE = InitPhase('putEndOfSecondTape')
INIT_BACK_TO_BORDER = InitPhase('backToBorder')
INIT_BACK_TO_FRONT = InitPhase('backToFront')

INIT_STATES = (
    INIT_FIND_SECOND_TAPE,
    INIT_PUT_SECOND_HEAD,
    INIT_PUT_END_OF_SECOND_TAPE,
    INIT_BACK_TO_BORDER,
    INIT_BACK_TO_FRONT,
)


def make_init_transitions(context: ReductionContext) -> Block:
    """
    Build the initialization block.

    Only the input alphabet matters here: before the first simulated step the
    tape holds nothing but the input word. Tape 2 always starts empty, so its
    region is a single blank under a logical head.

    The block ends in INIT_BACK_TO_FRONT on tape 1's logical head; the entry
    transitions out of that state are emitted by the transition compiler, one
    per source transition leaving the initial state.

    Args:
        context: Values derived from the source machine

    Returns:
        Dict mapping (state, letter) to (next_state, letter, direction)
    """
    block: Block = {}
    blank = context.blank
    input_letters = context.input_letters()

    # Mark the first cell (blank for the empty word) as tape 1's logical head.
    for letter in input_letters + (blank,):
        add_transition(block, START, letter,
                       INIT_FIND_SECOND_TAPE, context.head(letter), Direction.RIGHT)

    for letter in input_letters:
        add_transition(block, INIT_FIND_SECOND_TAPE, letter,
                       INIT_FIND_SECOND_TAPE, letter, Direction.RIGHT)
    add_transition(block, INIT_FIND_SECOND_TAPE, blank,
                   INIT_PUT_SECOND_HEAD, TAPE_BORDER, Direction.RIGHT)

    add_transition(block, INIT_PUT_SECOND_HEAD, blank,
                   INIT_PUT_END_OF_SECOND_TAPE, context.head(blank), Direction.RIGHT)
    add_transition(block, INIT_PUT_END_OF_SECOND_TAPE, blank,
                   INIT_BACK_TO_BORDER, TAPE_END, Direction.LEFT)

    add_transition(block, INIT_BACK_TO_BORDER, context.head(blank),
                   INIT_BACK_TO_BORDER, context.head(blank), Direction.LEFT)
    add_transition(block, INIT_BACK_TO_BORDER, TAPE_BORDER,
                   INIT_BACK_TO_FRONT, TAPE_BORDER, Direction.LEFT)

    for letter in input_letters:
        add_transition(block, INIT_BACK_TO_FRONT, letter,
                       INIT_BACK_TO_FRONT, letter, Direction.LEFT)

    return block

import itertools

import pytest

from harness import NESTED_LETTERS_MACHINE, PALINDROME_MACHINE
from tm_symbols import (
    ACCEPT,
    AWAIT,
    BACK_TO_FIRST_TAPE,
    EXTEND_CARRY,
    HEAD_RIGHT,
    START,
    TAPE_BORDER,
    TAPE_END,
    TO_SECOND_TAPE,
    InitPhase,
    LogicalHead,
    Phase,
    Plain,
    ReductionContext,
    ReductionError,
    add_transition,
    compose_state,
    fresh_symbol,
    safety_depth,
)
from turing_machine import Direction, identifier_depth, is_identifier, parse_machine


@pytest.mark.parametrize(
    "letters, expected",
    [
        (["a", "_"], 0),
        (["a", "(b)", "_"], 1),
        (["((x)(y))", "(z)"], 2),
        ([], 0),
    ],
)
def test_safety_depth(letters, expected: int) -> None:
    assert safety_depth(letters) == expected


def test_safety_depth_rejects_invalid_letters() -> None:
    with pytest.raises(ValueError):
        safety_depth(["a", "(b"])


def test_fresh_symbol_wraps_depth_plus_one() -> None:
    assert fresh_symbol("tape-end", 0) == "(tape-end)"
    assert fresh_symbol("tape-end", 2) == "(((tape-end)))"


@pytest.mark.parametrize("machine_text", [PALINDROME_MACHINE, NESTED_LETTERS_MACHINE])
def test_generated_letters_are_fresh(machine_text: str) -> None:
    context = ReductionContext.for_machine(parse_machine(machine_text))
    working = set(context.working_alphabet)
    depth = context.safety_depth

    for sentinel in (TAPE_BORDER, TAPE_END):
        encoded = context.encode_letter(sentinel)
        assert identifier_depth(encoded) == depth + 1
        assert encoded not in working

    generated = [context.encode_letter(context.head(letter)) for letter in context.working_alphabet]
    generated += [context.encode_letter(TAPE_BORDER), context.encode_letter(TAPE_END)]
    assert len(set(generated)) == len(generated)
    for encoded, letter in zip(generated, context.working_alphabet):
        assert is_identifier(encoded)
        assert encoded not in working
        assert identifier_depth(encoded) == depth + 1 + identifier_depth(letter)


def test_nested_letters_raise_safety_depth() -> None:
    context = ReductionContext.for_machine(parse_machine(NESTED_LETTERS_MACHINE))

    assert context.safety_depth == 1
    # A user letter that looks like a depth-0 logical head stays distinct.
    assert context.encode_letter(context.head("(y-H)")) == "(((y-H)-H))"
    assert context.encode_letter(context.head("y")) == "((y-H))"
    assert context.encode_letter(TAPE_BORDER) == "((tape-border))"


def test_context_cells_cover_plain_and_marked_letters() -> None:
    context = ReductionContext(("a",), ("_", "a"), 0)

    assert context.letters() == (Plain("_"), Plain("a"))
    assert context.cells() == (Plain("_"), Plain("a"), LogicalHead(Plain("_")), LogicalHead(Plain("a")))
    assert context.blank == Plain("_")
    assert context.head("a") == context.head(Plain("a"))


def test_compose_state_equality() -> None:
    first = compose_state("q", ("a", "_"), Phase(HEAD_RIGHT), 1)

    assert first == compose_state("q", ["a", "_"], Phase(HEAD_RIGHT), 1)
    assert first != compose_state("q", ("a", "_"), Phase(HEAD_RIGHT), 2)
    assert first != compose_state("q", ("_", "a"), Phase(HEAD_RIGHT), 1)
    assert first != compose_state("p", ("a", "_"), Phase(HEAD_RIGHT), 1)
    assert first != compose_state("q", ("a", "_"), Phase(AWAIT), 1)


@pytest.mark.parametrize("read, tape", [(("a",), 1), (("a", "b", "c"), 1), (("a", "b"), 3)])
def test_compose_state_checks_arguments(read, tape: int) -> None:
    with pytest.raises(ValueError):
        compose_state("q", read, Phase(), tape)


def test_encode_state_examples() -> None:
    context = ReductionContext(("0",), ("0", "_"), 0)

    assert context.encode_state(START) == "(start)"
    assert context.encode_state(ACCEPT) == "(accept)"
    assert context.encode_state(InitPhase("backToFront")) == "(init-backToFront)"
    assert context.encode_state(compose_state("q0", ("0", "_"))) == "(U(q0)(0)(_)(1))"
    assert (
        context.encode_state(compose_state("q0", ("0", "_"), Phase(EXTEND_CARRY, context.head("0")), 1))
        == "(U(q0)(0)(_)(extendTape((0-H)))(1))"
    )


def test_encode_state_is_injective_on_tricky_names() -> None:
    context = ReductionContext(("a",), ("_", "a", "(a)", "a-a"), 1)
    states = ["q", "q-a", "(q)", "(U(q)(a)(_)(1))"]
    phases = [
        Phase(),
        Phase(TO_SECOND_TAPE),
        Phase(BACK_TO_FIRST_TAPE, Plain("a")),
        Phase(BACK_TO_FIRST_TAPE, Plain("(a)")),
        Phase(EXTEND_CARRY, context.head("a")),
    ]

    composites = [
        compose_state(state, read, phase, tape)
        for state in states
        for read in itertools.product(context.working_alphabet, repeat=2)
        for phase in phases
        for tape in (1, 2)
    ]
    encoded = [context.encode_state(state) for state in composites]

    assert len(set(encoded)) == len(composites)
    assert all(is_identifier(text) for text in encoded)


def test_add_transition_rejects_duplicate_keys() -> None:
    block = {}
    add_transition(block, START, Plain("a"), ACCEPT, Plain("a"), Direction.STAY)

    with pytest.raises(ReductionError):
        add_transition(block, START, Plain("a"), START, Plain("a"), Direction.RIGHT)
    assert block == {(START, Plain("a")): (ACCEPT, Plain("a"), Direction.STAY)}

"""
Behavioural tests of the reduction: the one-tape machine must accept, reject
and run forever on exactly the words the two-tape machine does, and end with
the same two tapes encoded on its single tape.
"""

import pytest

from harness import (
    ANBN_MACHINE,
    LEFT_EDGE_MACHINE,
    NESTED_LETTERS_MACHINE,
    PALINDROME_MACHINE,
    RUNAWAY_MACHINE,
    ZEROS_TO_ONES_MACHINE,
    all_words,
    decode_one_tape,
    random_words,
    run_machine,
    tape_to_list,
)
from tape_layout import make_init_transitions
from tm_reducer import merge_transition_blocks, reduce_two_tapes_to_one
from tm_symbols import ReductionContext, ReductionError
from turing_machine import TuringMachine, format_machine, parse_machine

SOURCE_STEPS = 10000
REDUCED_STEPS = 500000


def assert_same_behaviour(machine: TuringMachine, reduced: TuringMachine, word) -> None:
    expected = run_machine(machine, word, max_steps=SOURCE_STEPS)
    actual = run_machine(reduced, word, max_steps=REDUCED_STEPS)

    assert actual.outcome == expected.outcome, f"word {word}"
    if expected.outcome == 'timeout':
        return

    decoded = decode_one_tape(ReductionContext.for_machine(machine), actual.tapes[0])
    assert decoded is not None, f"word {word}"
    assert decoded['tape1'] == tape_to_list(expected.tapes[0])
    assert decoded['tape2'] == tape_to_list(expected.tapes[1])
    assert (decoded['head1'], decoded['head2']) == tuple(expected.heads)


@pytest.mark.parametrize(
    "machine_text, max_length",
    [
        (PALINDROME_MACHINE, 5),
        (ANBN_MACHINE, 5),
        (ZEROS_TO_ONES_MACHINE, 4),
        (LEFT_EDGE_MACHINE, 3),
        (NESTED_LETTERS_MACHINE, 3),
    ],
)
def test_equivalent_on_all_short_words(machine_text: str, max_length: int) -> None:
    machine = parse_machine(machine_text)
    reduced = reduce_two_tapes_to_one(machine)

    for word in all_words(machine.input_alphabet, max_length):
        assert_same_behaviour(machine, reduced, word)


@pytest.mark.parametrize("machine_text", [PALINDROME_MACHINE, ANBN_MACHINE, ZEROS_TO_ONES_MACHINE])
def test_equivalent_on_random_words(machine_text: str) -> None:
    machine = parse_machine(machine_text)
    reduced = reduce_two_tapes_to_one(machine)

    for word in random_words(machine.input_alphabet, n_words=20, max_length=8, seed=42):
        assert_same_behaviour(machine, reduced, word)


def test_palindromes_of_even_and_odd_length() -> None:
    machine = parse_machine(PALINDROME_MACHINE)
    reduced = reduce_two_tapes_to_one(machine)

    assert run_machine(reduced, "abba", max_steps=REDUCED_STEPS).outcome == 'accept'
    assert run_machine(reduced, "aba", max_steps=REDUCED_STEPS).outcome == 'accept'
    assert run_machine(reduced, "abab", max_steps=REDUCED_STEPS).outcome == 'reject'


def test_non_halting_runs_stay_non_halting() -> None:
    machine = parse_machine(RUNAWAY_MACHINE)
    reduced = reduce_two_tapes_to_one(machine)

    for word in all_words(machine.input_alphabet, 3):
        expected = run_machine(machine, word, max_steps=2000)
        actual = run_machine(reduced, word, max_steps=200000)
        assert actual.outcome == expected.outcome
        assert actual.outcome == ('reject' if not word else 'timeout')


def test_zeros_are_rewritten_and_accepted() -> None:
    machine = parse_machine(ZEROS_TO_ONES_MACHINE)
    reduced = reduce_two_tapes_to_one(machine)

    result = run_machine(reduced, "00")

    assert result.outcome == 'accept'
    decoded = decode_one_tape(ReductionContext.for_machine(machine), result.tapes[0])
    assert decoded == {'tape1': ['1', '1'], 'head1': 2, 'tape2': [], 'head2': 0}
    assert run_machine(reduced, "01").outcome == 'reject'


def test_reduced_machine_shape() -> None:
    machine = parse_machine(ANBN_MACHINE)
    reduced = reduce_two_tapes_to_one(machine)

    assert reduced.num_tapes == 1
    assert reduced.input_alphabet == machine.input_alphabet
    assert all(len(read) == 1 for _, read in reduced.transitions)


@pytest.mark.parametrize("num_tapes", [1, 3])
def test_rejects_machines_without_two_tapes(num_tapes: int) -> None:
    machine = TuringMachine(num_tapes, ("a",), {})

    with pytest.raises(ReductionError, match=f"got {num_tapes}"):
        reduce_two_tapes_to_one(machine)


def test_merge_rejects_colliding_blocks() -> None:
    context = ReductionContext(("a",), ("_", "a"), 0)
    block = make_init_transitions(context)

    with pytest.raises(ReductionError):
        merge_transition_blocks(context, [block, dict(block)])


def test_output_round_trips_through_text_format() -> None:
    reduced = reduce_two_tapes_to_one(parse_machine(NESTED_LETTERS_MACHINE))

    assert parse_machine(format_machine(reduced)) == reduced


def test_reduction_is_reproducible() -> None:
    first = reduce_two_tapes_to_one(parse_machine(PALINDROME_MACHINE))
    second = reduce_two_tapes_to_one(parse_machine(PALINDROME_MACHINE))

    assert format_machine(first) == format_machine(second)


def test_verbose_output(capsys) -> None:
    reduced = reduce_two_tapes_to_one(parse_machine(ZEROS_TO_ONES_MACHINE), verbose=True)

    output = capsys.readouterr().out
    assert "Reducing two-tape machine to one tape" in output
    assert "Tape border: (tape-border), tape end: (tape-end)" in output
    # (start), (accept) and (reject)
    assert "Source machine has 3 states and 2 transition rules" in output
    assert f"One-tape machine has {len(reduced.transitions)} transition rules" in output


def test_quiet_by_default(capsys) -> None:
    reduce_two_tapes_to_one(parse_machine(ZEROS_TO_ONES_MACHINE))

    assert capsys.readouterr().out == ""

"""
Two-tape to one-tape Turing machine reducer.

Builds a deterministic one-tape machine that accepts exactly the words a
deterministic two-tape machine accepts. Both simulated tapes live side by
side on the single tape (see tape_layout), and every two-tape transition is
compiled into a block of one-tape transitions (see transition_compiler).

Usage:
    tm-reducer <two tape machine file> <where to save one tape machine>
"""

import argparse
import sys
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

from reducer_config import INPUT_FORMATS, ReducerSettings
from tape_layout import make_init_transitions
from tm_symbols import Block, Composite, ReductionContext, ReductionError, TAPE_BORDER, TAPE_END
from transition_compiler import compile_transition
from turing_machine import (
    TransitionKey,
    TransitionValue,
    TuringMachine,
    TuringMachineSyntaxError,
    read_tm_from_file,
    save_to_file,
)

__all__ = ['ReductionError', 'merge_transition_blocks', 'reduce_two_tapes_to_one', 'main']


def merge_transition_blocks(context: ReductionContext,
                            blocks: Iterable[Block]) -> Dict[TransitionKey, TransitionValue]:
    """
    Union one-tape blocks into a single transition table of identifier text.

    Args:
        context: Context the blocks were built with; used for encoding
        blocks: Dicts mapping (state, letter) to (state, letter, direction)

    Returns:
        Dict in TuringMachine form: (state, (letter,)) -> (state, (letter,), (direction,))

    Raises:
        ReductionError: If two blocks share a key, or two structured keys
            encode to the same text. Either means a naming defect.
    """
    table = {}
    for block in blocks:
        for (state, letter), (next_state, written, direction) in block.items():
            key = (context.encode_state(state), (context.encode_letter(letter),))
            if key in table:
                raise ReductionError(f"Name collision: transition {key} generated twice")
            table[key] = (context.encode_state(next_state), (context.encode_letter(written),), (direction,))
    return table


def reduce_two_tapes_to_one(machine: TuringMachine, verbose: bool = False) -> TuringMachine:
    """
    Build a one-tape machine equivalent to a two-tape machine.

    Args:
        machine: Deterministic machine with exactly two tapes
        verbose: If True, print construction progress

    Returns:
        One-tape TuringMachine with the same input alphabet that accepts,
        rejects, and runs forever on the same words as machine.

    Raises:
        ReductionError: If machine does not have exactly two tapes.
    """
    if machine.num_tapes != 2:
        raise ReductionError(f"Number of tapes different from 2: got {machine.num_tapes}")

    context = ReductionContext.for_machine(machine)
    if verbose:
        print("Reducing two-tape machine to one tape")
        print(f"Input alphabet: {' '.join(context.input_alphabet)}")
        print(f"Working alphabet: {len(context.working_alphabet)} letters, safety depth {context.safety_depth}")
        print(f"Tape border: {context.encode_letter(TAPE_BORDER)}, tape end: {context.encode_letter(TAPE_END)}")
        n_states = len(machine.set_of_states())
        print(f"Source machine has {n_states} states and {len(machine.transitions)} transition rules")
        print("-" * 60)

    blocks = [make_init_transitions(context)]
    for key, value in machine.transitions.items():
        blocks.append(compile_transition(context, key, value))

    table = merge_transition_blocks(context, blocks)

    if verbose:
        phase_counts = defaultdict(int)
        for block in blocks:
            for state, _ in block:
                kind = state.phase.kind if isinstance(state, Composite) else 'init'
                phase_counts[kind or 'await'] += 1
        for kind, count in sorted(phase_counts.items()):
            print(f"  {kind:<24} {count} rules")
        print("-" * 60)
        print(f"One-tape machine has {len(table)} transition rules")

    return TuringMachine(1, machine.input_alphabet, table)


class _ReducerArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with exit code 1."""

    def error(self, message):
        self.exit(1, f"ERROR: {message}\n{self.format_usage()}")


def _parse_args(argv: Optional[Sequence[str]], settings: ReducerSettings) -> argparse.Namespace:
    parser = _ReducerArgumentParser(
        prog='tm-reducer',
        description='Reduce a two-tape Turing machine to an equivalent one-tape machine',
    )
    parser.add_argument('machine_file', help='Path to the two-tape machine description')
    parser.add_argument('output_file', help='Where to save the one-tape machine')
    parser.add_argument(
        '--format',
        choices=INPUT_FORMATS,
        default=settings.input_format,
        help="Input format; 'auto' reads .yaml/.yml files as YAML and anything else as text",
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        default=settings.verbose,
        help='Print construction progress',
    )
    return parser.parse_args(sys.argv[1:] if argv is None else list(argv))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line entry point; returns the process exit code."""
    try:
        settings = ReducerSettings.from_env()
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    args = _parse_args(argv, settings)

    machine_path = Path(args.machine_file)
    if not machine_path.is_file():
        print(f"ERROR: File {args.machine_file} does not exist", file=sys.stderr)
        return 1

    try:
        machine = read_tm_from_file(machine_path, input_format=args.format)
    except TuringMachineSyntaxError as exc:
        print(exc, file=sys.stderr)
        return 1

    reduced = reduce_two_tapes_to_one(machine, verbose=args.verbose)
    try:
        save_to_file(reduced, args.output_file)
    except OSError as exc:
        print(f"ERROR: Cannot write {args.output_file}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"Saved one-tape machine to {args.output_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

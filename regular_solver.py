#!/usr/bin/env python3
"""
regular_solver.py: Single-machine 2x2 Cube Solver.
Follows the recovery moves stored in the state table from the scrambled
cube back to solved.
"""
import argparse
import collections
import sys

import colorama

from cube_utils import (
    SOLVED_KEY, CubeError, apply_moves, facelets_from_key, format_moves,
    key_from_facelets, log_event, normalize_to_fixed_corner, parse_facelets,
    parse_moves, visualize_cube,
)
from state_table import CorruptStateTable, StateTable, UnreachableState, default_table_path

# Every reachable state is at most 14 quarter turns from solved
MAX_SOLUTION_LENGTH = 14

Solution = collections.namedtuple('Solution', 'rotations moves')


def solve(key, table, max_moves=MAX_SOLUTION_LENGTH):
    """Returns the list of Moves that takes key to SOLVED_KEY."""
    # The solved cube never has an entry of its own
    if key == SOLVED_KEY:
        return []

    moves = []
    curr = key
    while curr != SOLVED_KEY:
        if len(moves) >= max_moves:
            raise UnreachableState(
                f"Cube {key} is not solved after {max_moves} moves; the state table is corrupt")
        move = table.lookup(curr)
        if move is None:
            raise UnreachableState(f"Cube {curr} is not a reachable state")
        moves.append(move)
        curr = move.apply(curr)
    return moves


def solve_facelets(facelets, table):
    """
    Solves a 24-colour description. Returns the whole-cube rotations needed
    to bring the red-yellow-blue corner bottom-back-right, and the moves.
    """
    facelets = parse_facelets(facelets)
    facelets, rotations = normalize_to_fixed_corner(facelets)
    key = key_from_facelets(facelets)
    return Solution(rotations, solve(key, table))


def read_input(text):
    """Facelet string, or path to a file holding one."""
    try:
        with open(text, 'r') as f:
            return f.read().strip()
    except OSError:
        return text


def main(argv=None):
    parser = argparse.ArgumentParser(description="2x2 Cube Solver")
    parser.add_argument("input", nargs="?",
                        help="24 colours (o r w y g b, spaces optional) or file path")
    parser.add_argument("--key", type=int, help="Solve an encoded cube instead")
    parser.add_argument("--moves", help="Solve the cube scrambled by these moves (e.g. \"F U' L\")")
    parser.add_argument("--table", default=default_table_path(), help="State table file")
    parser.add_argument("--allow-partial", action="store_true",
                        help="Accept a depth-limited table (generate_db.py --max-depth)")
    parser.add_argument("--no-color", action="store_true", help="Print colour letters instead of blocks")
    args = parser.parse_args(argv)
    colorama.just_fix_windows_console()

    if args.input is None and args.key is None and args.moves is None:
        parser.error("give a facelet string, --key or --moves")

    # --- 1. Load Database ---
    log_event(f"Loading {args.table}...", tag="Solver")
    try:
        table = StateTable.read(args.table, strict=not args.allow_partial)
    except FileNotFoundError:
        print(f"Error: {args.table} missing. Run generate_db.py first.")
        return 1
    except CorruptStateTable as e:
        print(f"Error: {args.table} is damaged: {e}")
        return 1
    log_event("Database loaded.", tag="Solver")

    # --- 2. Setup Input ---
    setup_moves = []
    try:
        if args.key is not None:
            key = args.key
        elif args.moves is not None:
            key = apply_moves(SOLVED_KEY, parse_moves(args.moves))
        else:
            facelets = parse_facelets(read_input(args.input))

            # --- 3. Normalization Step ---
            facelets, setup_moves = normalize_to_fixed_corner(facelets)
            key = key_from_facelets(facelets)
    except ValueError as e:
        # CubeError and unknown move labels
        print(f"Error: {e}")
        return 1

    if setup_moves:
        print("\n" + "=" * 40)
        print("PRE-SOLVE ORIENTATION REQUIRED")
        print(f"Hold the cube and rotate: {' '.join(setup_moves)}")
        print("(x = Turn whole cube up, y = Turn whole cube left)")
        print("=" * 40 + "\n")
    else:
        log_event("Cube already oriented correctly.", tag="Solver")

    try:
        visualize_cube(facelets_from_key(key), color=not args.no_color)
        moves = solve(key, table)
    except CubeError as e:
        print(f"Error: {e}")
        return 1
    except UnreachableState as e:
        print(f"Error: {e}")
        print("The cube you entered is not in a possible state.")
        return 1

    print("\n" + "=" * 40)
    print("*** SOLUTION FOUND ***")
    print(f"Moves: {len(moves)}")
    print(f"Sequence: {format_moves(moves) or '(already solved)'}")
    print("=" * 40)
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
cube_utils.py: Core logic for the 2x2 pocket cube (QTM).

A cube is stored as a single integer. The corner at bottom-back-right never
moves, so only the other seven pieces carry state. Each of them sits in one
of 7 positions with one of 3 orientations, which gives 21 piece states:

    piece_state = position * 3 + orientation
    key = sum(piece_state[p] * 21**p for p in range(7))

Pieces (first colour top/bottom, second front/back, third left/right):
    0: owg  1: rwg  2: owb  3: rwb  4: oyg  5: ryg  6: oyb  (7: ryb, fixed)
Positions:
    0: top-front-left     1: bottom-front-left
    2: top-front-right    3: bottom-front-right
    4: top-back-left      5: bottom-back-left
    6: top-back-right     7: bottom-back-right (fixed)

Only three of the six colour orders are physically possible in a slot.
Which three depends on the piece: pieces 0, 3, 5, 6 share one colouring
chirality and pieces 1, 2, 4, 7 the other, so two 21-row tables map a piece
state onto the colour order seen on its top/bottom, front/back and left/right
faces. Colours are normalised to the pair they belong to:
{o, r} -> 0, {w, y} -> 1, {g, b} -> 2.
"""

import argparse
import collections
import enum
import functools
import sys
from array import array
from collections import deque

import colorama
from colorama import Back, Style

# 2x2 Cube Layout (24 facelets)
#       00 01
#       02 03
# 04 05 08 09 12 13 16 17
# 06 07 10 11 14 15 18 19
#       20 21
#       22 23
FACELETS = 24
COLORS = "orwygb"
SOLVED_FACELETS = "oooo" "gggg" "wwww" "bbbb" "yyyy" "rrrr"

KEY_BASE = 21
PIECES = 7
KEY_SPACE = KEY_BASE ** PIECES
REACHABLE_STATES = 3674160

# All pieces home: states 0, 5, 6, 9, 13, 15, 18
SOLVED_KEY = 0x5FD3097E

PIECE_COLORS = (
    ('o', 'w', 'g'),
    ('r', 'w', 'g'),
    ('o', 'w', 'b'),
    ('r', 'w', 'b'),
    ('o', 'y', 'g'),
    ('r', 'y', 'g'),
    ('o', 'y', 'b'),
)
FIXED_PIECE = ('r', 'y', 'b')
FIXED_SLOT = 7

# Facelets of each slot as (top/bottom, front/back, left/right)
SLOT_FACELETS = (
    (2, 8, 5),
    (20, 10, 7),
    (3, 9, 12),
    (21, 11, 14),
    (0, 17, 4),
    (22, 19, 6),
    (1, 16, 13),
    (23, 18, 15),
)

COLOR_CLASS = {'o': 0, 'r': 0, 'w': 1, 'y': 1, 'g': 2, 'b': 2}

CLASS_A_PIECES = frozenset((0, 3, 5, 6))

# Pieces 0, 3, 5, 6. Row = piece state, piece 0 home is state 0.
ORIENTATIONS_A = (
    (0, 1, 2), (2, 0, 1), (1, 2, 0),
    (0, 2, 1), (2, 1, 0), (1, 0, 2),
    (1, 0, 2), (0, 2, 1), (2, 1, 0),
    (0, 1, 2), (2, 0, 1), (1, 2, 0),
    (2, 1, 0), (1, 0, 2), (0, 2, 1),
    (0, 1, 2), (2, 0, 1), (1, 2, 0),
    (0, 1, 2), (2, 0, 1), (1, 2, 0),
)

# Pieces 1, 2, 4 (and the fixed 7). Piece 2 home is state 6.
ORIENTATIONS_B = (
    (1, 0, 2), (2, 1, 0), (0, 2, 1),
    (1, 2, 0), (2, 0, 1), (0, 1, 2),
    (0, 1, 2), (1, 2, 0), (2, 0, 1),
    (1, 0, 2), (2, 1, 0), (0, 2, 1),
    (2, 0, 1), (0, 1, 2), (1, 2, 0),
    (1, 0, 2), (2, 1, 0), (0, 2, 1),
    (1, 0, 2), (2, 1, 0), (0, 2, 1),
)


class CubeError(ValueError):
    """Base class for cube descriptions that cannot be encoded."""


class InvalidFacelets(CubeError):
    """Wrong number of facelets or an unknown colour letter."""


class InvalidPiece(CubeError):
    """A corner's colours match none of the movable pieces."""


class InvalidColorCount(InvalidPiece):
    """Some colour does not appear exactly four times."""


class InvalidOrientation(CubeError):
    """A known piece shows its colours in an impossible order."""


class InvalidKey(CubeError):
    """Key outside [0, 21**7)."""


PieceState = collections.namedtuple('PieceState', 'piece position orientation colors')


def log_event(message, tag=None):
    """Prints a status line, flushed so it shows up under mpirun/srun too."""
    if tag:
        message = f"[{tag}] {message}"
    print(message, flush=True)


def apply_perm(state, perm):
    """Permutes the state tuple based on indices."""
    return tuple(state[i] for i in perm)


def orientation_table(piece):
    return ORIENTATIONS_A if piece in CLASS_A_PIECES else ORIENTATIONS_B


# --- Mixed-radix key ---

def compose_key(states):
    """Combines seven piece states (indexed by piece) into a key."""
    states = tuple(states)
    if len(states) != PIECES:
        raise InvalidKey(f"Expected {PIECES} piece states, got {len(states)}")
    key = 0
    for state in reversed(states):
        if not 0 <= state < KEY_BASE:
            raise InvalidKey(f"Piece state {state} outside [0, {KEY_BASE})")
        key = key * KEY_BASE + state
    return key


def decompose_key(key):
    """Splits a key into its seven piece states, piece 0 first."""
    if not 0 <= key < KEY_SPACE:
        raise InvalidKey(f"Key {key} outside [0, {KEY_SPACE})")
    states = []
    for _ in range(PIECES):
        key, state = divmod(key, KEY_BASE)
        states.append(state)
    return tuple(states)


# --- StateCodec ---

_PIECE_BY_COLORS = {frozenset(colors): piece for piece, colors in enumerate(PIECE_COLORS)}


def which_piece(colors):
    """Returns the movable piece with exactly these three colours."""
    piece = _PIECE_BY_COLORS.get(frozenset(colors)) if len(colors) == 3 else None
    if piece is None:
        raise InvalidPiece(f"No movable corner has the colours {''.join(colors)}")
    return piece


def piece_state(piece, position, colors):
    """
    Finds the state of `piece` when it shows `colors` (top/bottom,
    front/back, left/right) in slot `position`.
    """
    if not 0 <= position < PIECES:
        raise InvalidPiece(f"Position {position} is not a movable slot")
    pattern = tuple(COLOR_CLASS.get(c) for c in colors)
    table = orientation_table(piece)
    for state in range(position * 3, position * 3 + 3):
        if table[state] == pattern:
            return state
    raise InvalidOrientation(
        f"Corner {''.join(PIECE_COLORS[piece])} cannot show {''.join(colors)} "
        f"in position {position}")


def encode(pieces):
    """
    Encodes seven (position, colors) pairs, one per movable piece, into a key.
    The piece is identified by its colours, so the pairs may come in any order.
    """
    pieces = list(pieces)
    if len(pieces) != PIECES:
        raise InvalidPiece(f"Expected {PIECES} movable corners, got {len(pieces)}")
    states = [None] * PIECES
    for position, colors in pieces:
        piece = which_piece(colors)
        if states[piece] is not None:
            raise InvalidPiece(f"Corner {''.join(PIECE_COLORS[piece])} appears twice")
        states[piece] = piece_state(piece, position, colors)
    return compose_key(states)


def decode(key):
    """Expands a key into one PieceState per movable piece. Reachability is not checked."""
    pieces = []
    for piece, state in enumerate(decompose_key(key)):
        position, orientation = divmod(state, 3)
        colors = tuple(PIECE_COLORS[piece][c] for c in orientation_table(piece)[state])
        pieces.append(PieceState(piece, position, orientation, colors))
    return pieces


# --- Facelet adapter ---

def parse_facelets(text):
    """
    Validates a 24-colour description (spaces and commas ignored) and returns
    it as a plain string.
    """
    facelets = "".join(text.replace(",", " ").split()).lower()
    if len(facelets) != FACELETS:
        raise InvalidFacelets(f"Expected {FACELETS} colours, got {len(facelets)}")
    for c in facelets:
        if c not in COLORS:
            raise InvalidFacelets(f"'{c}' is not a valid colour")
    counts = collections.Counter(facelets)
    if any(counts[c] != 4 for c in COLORS):
        found = ", ".join(f"{c}={counts[c]}" for c in COLORS)
        raise InvalidColorCount(f"Each colour must appear exactly 4 times ({found})")
    return facelets


def slot_colors(facelets, slot):
    return tuple(facelets[i] for i in SLOT_FACELETS[slot])


def key_from_facelets(facelets):
    """Encodes a facelet string whose red-yellow-blue corner sits bottom-back-right."""
    facelets = parse_facelets(facelets)
    if slot_colors(facelets, FIXED_SLOT) != FIXED_PIECE:
        raise InvalidOrientation(
            "The red-yellow-blue corner must sit bottom-back-right "
            "(facelets 23, 18, 15)")
    return encode((slot, slot_colors(facelets, slot)) for slot in range(PIECES))


def facelets_from_key(key):
    facelets = ['-'] * FACELETS
    for index, color in zip(SLOT_FACELETS[FIXED_SLOT], FIXED_PIECE):
        facelets[index] = color
    for piece in decode(key):
        for index, color in zip(SLOT_FACELETS[piece.position], piece.colors):
            facelets[index] = color
    return "".join(facelets)


# --- Facelet-level turns ---

# Base Moves (90 degree clockwise)
# format: new_state[i] = old_state[MOVES_BASE[move][i]]
MOVES_BASE = {
    'U': [2, 0, 3, 1, 8, 9, 6, 7, 12, 13, 10, 11, 16, 17, 14, 15, 4, 5, 18, 19, 20, 21, 22, 23],
    'D': [0, 1, 2, 3, 4, 5, 18, 19, 8, 9, 6, 7, 12, 13, 10, 11, 16, 17, 14, 15, 22, 20, 23, 21],
    'L': [19, 1, 17, 3, 6, 4, 7, 5, 0, 9, 2, 11, 12, 13, 14, 15, 16, 22, 18, 20, 8, 21, 10, 23],
    'R': [0, 9, 2, 11, 4, 5, 6, 7, 8, 21, 10, 23, 14, 12, 15, 13, 3, 17, 1, 19, 20, 18, 22, 16],
    'F': [0, 1, 7, 5, 4, 20, 6, 21, 10, 8, 11, 9, 2, 13, 3, 15, 16, 17, 18, 19, 14, 12, 22, 23],
    'B': [13, 15, 2, 3, 1, 5, 0, 7, 8, 9, 10, 11, 12, 23, 14, 22, 18, 16, 19, 17, 20, 21, 6, 4]
}

FACELET_MOVES = {}

for m, p in MOVES_BASE.items():
    FACELET_MOVES[m] = tuple(p)
    # Prime (Counter-Clockwise 90) = 3x Clockwise
    p2 = apply_perm(p, p)
    FACELET_MOVES[m + "'"] = apply_perm(p2, p)

# Whole-cube rotations built from opposite face turns
ROTATIONS = {
    'y': ('U', "D'"),
    'x': ('R', "L'"),
}


def turn_facelets(facelets, move_name):
    if move_name not in FACELET_MOVES:
        raise ValueError(f"Unknown move '{move_name}'")
    return "".join(apply_perm(facelets, FACELET_MOVES[move_name]))


def apply_cube_rotation(facelets, rot_axis):
    """
    Turns the whole cube.
    y (Vertical axis)   = U + D'
    x (Horizontal axis) = R + L'
    """
    for move_name in ROTATIONS[rot_axis]:
        facelets = turn_facelets(facelets, move_name)
    return facelets


def normalize_to_fixed_corner(facelets):
    """
    Finds a sequence of whole-cube rotations (x, y) that puts the
    red-yellow-blue corner bottom-back-right with red down, yellow back and
    blue right. Returns the rotated facelets and the rotations used.
    """
    def is_normalized(s):
        return slot_colors(s, FIXED_SLOT) == FIXED_PIECE

    if is_normalized(facelets):
        return facelets, []

    # x and y reach all 24 orientations
    queue = deque([(facelets, [])])
    visited = {facelets}

    while queue:
        curr, path = queue.popleft()

        for rot in ROTATIONS:
            nxt = apply_cube_rotation(curr, rot)
            if nxt not in visited:
                if is_normalized(nxt):
                    return nxt, path + [rot]
                visited.add(nxt)
                queue.append((nxt, path + [rot]))

    corners = [set(slot_colors(facelets, slot)) for slot in range(len(SLOT_FACELETS))]
    if set(FIXED_PIECE) in corners:
        raise InvalidOrientation("The red-yellow-blue corner shows its colours in an impossible order")
    raise InvalidPiece("No red-yellow-blue corner found")


# --- MoveEngine ---

# Per-piece transitions for the clockwise quarter turns:
# new_piece_state = PIECE_TURNS[move][old_piece_state]
PIECE_TURNS = {
    'F': (8, 6, 7, 2, 0, 1, 10, 11, 9, 4, 5, 3, 12, 13, 14, 15, 16, 17, 18, 19, 20),
    'L': (5, 3, 4, 16, 17, 15, 6, 7, 8, 9, 10, 11, 2, 0, 1, 13, 14, 12, 18, 19, 20),
    'U': (14, 12, 13, 3, 4, 5, 2, 0, 1, 9, 10, 11, 19, 20, 18, 15, 16, 17, 7, 8, 6),
}

for m, t in list(PIECE_TURNS.items()):
    t2 = apply_perm(t, t)
    PIECE_TURNS[m + "'"] = apply_perm(t2, t)

# A quarter turn swaps the two faces of a corner that lie across its axis
AXIS_SWAPS = {
    'F': (2, 1, 0),
    'L': (1, 0, 2),
    'U': (0, 2, 1),
}

# Lookup tables split a key into its low four and high three digits
LOW_SPAN = KEY_BASE ** 4
HIGH_SPAN = KEY_BASE ** 3


class Move(enum.IntEnum):
    """
    The six quarter turns of the faces that do not touch the fixed corner,
    plus NONE. The value is the code stored in the state table: code 1 undoes
    a front clockwise turn (so it is F'), code 2 undoes F' (so it is F), etc.
    """
    NONE = 0
    F_PRIME = 1
    F = 2
    L_PRIME = 3
    L = 4
    U_PRIME = 5
    U = 6

    @property
    def label(self):
        return _LABELS[self]

    @property
    def inverse(self):
        return _INVERSES[self]

    @property
    def face(self):
        return self.label[:1]

    @property
    def tables(self):
        return _lookup_tables(self)

    def turn_piece(self, state):
        """New state of a single piece."""
        if self is Move.NONE:
            return state
        return PIECE_TURNS[self.label][state]

    def apply(self, key):
        if not 0 <= key < KEY_SPACE:
            raise InvalidKey(f"Key {key} outside [0, {KEY_SPACE})")
        if self is Move.NONE:
            return key
        low, high = _lookup_tables(self)
        upper, lower = divmod(key, LOW_SPAN)
        return low[lower] + high[upper]

    @classmethod
    def from_label(cls, label):
        try:
            return _BY_LABEL[label]
        except KeyError:
            raise ValueError(f"Unknown move '{label}'") from None

    def __str__(self):
        return self.label


_LABELS = {
    Move.NONE: "",
    Move.F_PRIME: "F'",
    Move.F: "F",
    Move.L_PRIME: "L'",
    Move.L: "L",
    Move.U_PRIME: "U'",
    Move.U: "U",
}
_BY_LABEL = {label: move for move, label in _LABELS.items() if move is not Move.NONE}
_INVERSES = {
    Move.NONE: Move.NONE,
    Move.F_PRIME: Move.F,
    Move.F: Move.F_PRIME,
    Move.L_PRIME: Move.L,
    Move.L: Move.L_PRIME,
    Move.U_PRIME: Move.U,
    Move.U: Move.U_PRIME,
}

# Traversal order of the table builder
GENERATORS = (Move.F, Move.F_PRIME, Move.L, Move.L_PRIME, Move.U, Move.U_PRIME)


@functools.lru_cache(maxsize=None)
def _lookup_tables(move):
    """
    Spreads the per-piece table over every combination of the low four and
    the high three piece states, so a turn costs one divmod and two lookups.
    """
    turn = PIECE_TURNS[move.label]
    pair = [turn[i % KEY_BASE] + KEY_BASE * turn[i // KEY_BASE] for i in range(KEY_BASE ** 2)]
    low = array('L', [pair[i % 441] + 441 * pair[i // 441] for i in range(LOW_SPAN)])
    high = array('L', [
        (turn[i % 21] + 21 * turn[i // 21 % 21] + 441 * turn[i // 441]) * LOW_SPAN
        for i in range(HIGH_SPAN)
    ])
    return low, high


def parse_moves(text):
    """Parses a sequence like "F U' L" (commas allowed)."""
    return [Move.from_label(label) for label in text.replace(",", " ").split()]


def apply_moves(key, moves):
    for move in moves:
        key = move.apply(key)
    return key


def format_moves(moves):
    return " ".join(move.label for move in moves)


# --- Display ---

# NOTE: Standard terminals lack "Orange", so we use MAGENTA for it.
BACKGROUNDS = {
    'o': Back.MAGENTA,
    'r': Back.RED,
    'w': Back.WHITE,
    'y': Back.YELLOW,
    'g': Back.GREEN,
    'b': Back.BLUE,
}


def render_cube(facelets, color=True):
    """Draws the unfolded cube, one line per row of the net."""

    # Define Block Style (2 spaces for a square look)
    def b(index):
        c = facelets[index]
        if not color:
            return f"{c} "
        return f"{BACKGROUNDS.get(c, Back.RESET)}  {Style.RESET_ALL}"

    # Spacer for the indentation
    S = "    "
    lines = [
        f"{S}{b(0)}{b(1)}",
        f"{S}{b(2)}{b(3)}",
        f"{b(4)}{b(5)}{b(8)}{b(9)}{b(12)}{b(13)}{b(16)}{b(17)}",
        f"{b(6)}{b(7)}{b(10)}{b(11)}{b(14)}{b(15)}{b(18)}{b(19)}",
        f"{S}{b(20)}{b(21)}",
        f"{S}{b(22)}{b(23)}",
    ]
    return "\n".join(lines)


def visualize_cube(facelets, color=True):
    print("\nState Visualization:")
    print(render_cube(facelets, color=color))
    print("")


def main(argv=None):
    parser = argparse.ArgumentParser(description="2x2 Cube Move Applicator")
    parser.add_argument("moves", nargs="*", help="Sequence of moves (e.g. F U F' L)")
    parser.add_argument("--no-color", action="store_true", help="Print colour letters instead of blocks")
    args = parser.parse_args(argv)
    colorama.just_fix_windows_console()

    if args.moves:
        # python cube_utils.py F U F' or python cube_utils.py "F U F'"
        raw_input = " ".join(args.moves)
    else:
        raw_input = "F U F' L U L' U' F' L F' U L U'"

    try:
        moves = parse_moves(raw_input)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print("Initial State:")
    visualize_cube(SOLVED_FACELETS, color=not args.no_color)

    print(f"Applying sequence: {format_moves(moves)}")
    key = apply_moves(SOLVED_KEY, moves)

    visualize_cube(facelets_from_key(key), color=not args.no_color)
    print(f"Facelets: {facelets_from_key(key)}")
    print(f"Key: {key} (0x{key:08X})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

import random

import pytest

from cube_utils import (
    AXIS_SWAPS, GENERATORS, KEY_SPACE, ORIENTATIONS_A, ORIENTATIONS_B, SOLVED_FACELETS,
    SOLVED_KEY, InvalidColorCount, InvalidFacelets, InvalidKey, InvalidOrientation,
    InvalidPiece, Move, apply_cube_rotation, apply_moves, apply_perm,
    compose_key, decode, decompose_key, encode, facelets_from_key, format_moves,
    key_from_facelets, main, normalize_to_fixed_corner, parse_facelets, parse_moves,
    render_cube, turn_facelets,
)


def random_keys(n, seed=1):
    rng = random.Random(seed)
    return [0, KEY_SPACE - 1, SOLVED_KEY] + [rng.randrange(KEY_SPACE) for _ in range(n)]


def turn_by_piece(key, move):
    """Turns every piece of the key one at a time; Move.apply must agree."""
    return compose_key(move.turn_piece(s) for s in decompose_key(key))


def swap(facelets, i, j):
    s = list(facelets)
    s[i], s[j] = s[j], s[i]
    return "".join(s)


# --- Encoding ---

def test_solved_key_encoding():
    assert compose_key((0, 5, 6, 9, 13, 15, 18)) == SOLVED_KEY
    assert decompose_key(SOLVED_KEY) == (0, 5, 6, 9, 13, 15, 18)
    assert key_from_facelets(SOLVED_FACELETS) == SOLVED_KEY
    assert facelets_from_key(SOLVED_KEY) == SOLVED_FACELETS


def test_solved_pieces_are_home():
    for piece in decode(SOLVED_KEY):
        assert piece.position == piece.piece


def test_compose_decompose_round_trip():
    for key in random_keys(2000):
        assert compose_key(decompose_key(key)) == key


def test_encode_decode_round_trip():
    for key in random_keys(2000):
        pieces = decode(key)
        assert encode((p.position, p.colors) for p in pieces) == key


def test_encode_accepts_pieces_in_any_order():
    pieces = [(p.position, p.colors) for p in decode(SOLVED_KEY)]
    assert encode(reversed(pieces)) == SOLVED_KEY


def test_key_range_is_checked():
    with pytest.raises(InvalidKey):
        decompose_key(-1)
    with pytest.raises(InvalidKey):
        decode(KEY_SPACE)
    with pytest.raises(InvalidKey):
        compose_key((0, 0, 0, 0, 0, 0, 21))
    with pytest.raises(InvalidKey):
        Move.F.apply(KEY_SPACE)


def test_encode_rejects_unknown_piece():
    pieces = [(p.position, p.colors) for p in decode(SOLVED_KEY)]
    pieces[0] = (0, ('o', 'r', 'g'))
    with pytest.raises(InvalidPiece):
        encode(pieces)


def test_encode_rejects_fixed_corner_in_movable_slot():
    pieces = [(p.position, p.colors) for p in decode(SOLVED_KEY)]
    pieces[3] = (3, ('r', 'y', 'b'))
    with pytest.raises(InvalidPiece):
        encode(pieces)


def test_encode_rejects_duplicate_piece():
    pieces = [(p.position, p.colors) for p in decode(SOLVED_KEY)]
    pieces[1] = (1, pieces[0][1])
    with pytest.raises(InvalidPiece, match="twice"):
        encode(pieces)


def test_encode_rejects_fixed_slot():
    pieces = [(p.position, p.colors) for p in decode(SOLVED_KEY)]
    pieces[0] = (7, pieces[0][1])
    with pytest.raises(InvalidPiece, match="not a movable slot"):
        encode(pieces)


def test_encode_rejects_mirrored_corner():
    pieces = [(p.position, p.colors) for p in decode(SOLVED_KEY)]
    pieces[0] = (0, ('w', 'o', 'g'))
    with pytest.raises(InvalidOrientation):
        encode(pieces)


# --- Moves ---

def test_move_codes():
    assert [int(m) for m in GENERATORS] == [2, 1, 4, 3, 6, 5]
    assert Move(1) is Move.F_PRIME
    assert Move(1).inverse is Move.F
    assert Move.F.inverse is Move.F_PRIME
    assert Move.NONE.inverse is Move.NONE
    assert [m.label for m in Move] == ["", "F'", "F", "L'", "L", "U'", "U"]
    assert str(Move.U_PRIME) == "U'"


def test_inverse_pairs():
    for key in random_keys(500):
        for move in GENERATORS:
            assert move.inverse.apply(move.apply(key)) == key
            assert move.apply(move.inverse.apply(key)) == key


def test_move_order_four():
    for key in random_keys(500):
        for move in GENERATORS:
            k = key
            for _ in range(4):
                k = move.apply(k)
            assert k == key


def test_quarter_turn_changes_key():
    for move in GENERATORS:
        assert move.apply(SOLVED_KEY) != SOLVED_KEY
        assert move.apply(move.apply(SOLVED_KEY)) != SOLVED_KEY


def test_none_move_is_identity():
    for key in random_keys(50):
        assert Move.NONE.apply(key) == key


def test_lookup_tables_match_per_piece_turns():
    for key in random_keys(2000, seed=7):
        for move in GENERATORS:
            assert move.apply(key) == turn_by_piece(key, move)


def test_per_piece_turns_are_permutations():
    for move in GENERATORS:
        assert sorted(move.turn_piece(s) for s in range(21)) == list(range(21))


def test_turns_swap_faces_across_the_axis():
    # Turning a corner about an axis swaps the stickers on the other two axes
    for table in (ORIENTATIONS_A, ORIENTATIONS_B):
        for move in GENERATORS:
            for state in range(21):
                if move.turn_piece(state) == state:
                    # Corner off the turning face
                    continue
                expected = apply_perm(table[state], AXIS_SWAPS[move.face])
                assert table[move.turn_piece(state)] == expected, (move.label, state)


def test_quarter_turn_moves_four_corners():
    for move in GENERATORS:
        moved = {s // 3 for s in range(21) if move.turn_piece(s) != s}
        assert len(moved) == 4, move.label
        for position in moved:
            assert all(move.turn_piece(s) // 3 != position
                       for s in range(position * 3, position * 3 + 3)), (move.label, position)


def test_orientation_rows_distinct_per_position():
    for table in (ORIENTATIONS_A, ORIENTATIONS_B):
        for position in range(7):
            rows = table[position * 3: position * 3 + 3]
            assert len(set(rows)) == 3


def test_facelet_turns_match_key_turns():
    rng = random.Random(3)
    facelets, key = SOLVED_FACELETS, SOLVED_KEY
    for _ in range(200):
        move = rng.choice(GENERATORS)
        facelets = turn_facelets(facelets, move.label)
        key = move.apply(key)
        assert key_from_facelets(facelets) == key
        assert facelets_from_key(key) == facelets


def test_facelet_turn_order_four():
    for name in ("U", "D", "L", "R", "F", "B"):
        facelets = SOLVED_FACELETS
        for _ in range(4):
            facelets = turn_facelets(facelets, name)
        assert facelets == SOLVED_FACELETS
        assert turn_facelets(turn_facelets(SOLVED_FACELETS, name), name + "'") == SOLVED_FACELETS


def test_unknown_facelet_turn():
    with pytest.raises(ValueError):
        turn_facelets(SOLVED_FACELETS, "M")


def test_parse_and_apply_moves():
    moves = parse_moves("F U', L")
    assert moves == [Move.F, Move.U_PRIME, Move.L]
    assert format_moves(moves) == "F U' L"
    key = apply_moves(SOLVED_KEY, moves)
    assert apply_moves(key, [m.inverse for m in reversed(moves)]) == SOLVED_KEY


def test_parse_moves_rejects_unknown_label():
    with pytest.raises(ValueError, match="Unknown move"):
        parse_moves("F R")


# --- Facelet validation ---

def test_parse_facelets_ignores_spaces():
    assert parse_facelets("oooo gggg wwww bbbb yyyy rrrr") == SOLVED_FACELETS
    assert parse_facelets("OOOO,GGGG,WWWW,BBBB,YYYY,RRRR") == SOLVED_FACELETS


def test_parse_facelets_length():
    with pytest.raises(InvalidFacelets, match="Expected 24"):
        parse_facelets("oooo gggg")


def test_parse_facelets_bad_character():
    with pytest.raises(InvalidFacelets, match="not a valid colour"):
        parse_facelets("x" + SOLVED_FACELETS[1:])


def test_five_colours_rejected():
    facelets = SOLVED_FACELETS.replace("b", "g")
    with pytest.raises(InvalidColorCount):
        key_from_facelets(facelets)
    with pytest.raises(InvalidPiece):
        parse_facelets(facelets)


def test_swapped_stickers_rejected():
    # Top and left stickers of the top-front-left corner exchanged
    with pytest.raises(InvalidOrientation):
        key_from_facelets(swap(SOLVED_FACELETS, 8, 5))


def test_twisted_corner_still_encodes():
    # A twist keeps the colour order cyclic, so it encodes; the table rejects it
    twisted = list(SOLVED_FACELETS)
    twisted[2], twisted[8], twisted[5] = 'g', 'o', 'w'
    assert key_from_facelets("".join(twisted)) == SOLVED_KEY + 1


def test_fixed_corner_must_be_in_place():
    rotated = apply_cube_rotation(SOLVED_FACELETS, 'y')
    with pytest.raises(InvalidOrientation):
        key_from_facelets(rotated)


# --- Whole-cube rotations ---

@pytest.mark.parametrize("rotations", [["x"], ["y"], ["x", "y"], ["y", "y", "x"], ["x", "x", "x", "y"]])
def test_normalize_undoes_rotation(rotations):
    facelets = facelets_from_key(apply_moves(SOLVED_KEY, parse_moves("F U L' F")))
    rotated = facelets
    for rot in rotations:
        rotated = apply_cube_rotation(rotated, rot)
    normalized, used = normalize_to_fixed_corner(rotated)
    assert normalized == facelets
    assert used


def test_normalize_keeps_oriented_cube():
    assert normalize_to_fixed_corner(SOLVED_FACELETS) == (SOLVED_FACELETS, [])


def test_rotations_have_order_four():
    for rot in ("x", "y"):
        facelets = SOLVED_FACELETS
        for _ in range(4):
            facelets = apply_cube_rotation(facelets, rot)
        assert facelets == SOLVED_FACELETS


def test_normalize_without_fixed_corner():
    # Swapping a red and an orange sticker leaves no red-yellow-blue corner
    with pytest.raises(InvalidPiece):
        normalize_to_fixed_corner(swap(SOLVED_FACELETS, 0, 23))


def test_normalize_mirrored_fixed_corner():
    with pytest.raises(InvalidOrientation):
        normalize_to_fixed_corner(swap(SOLVED_FACELETS, 18, 15))


# --- Display ---

def test_render_plain():
    lines = render_cube(SOLVED_FACELETS, color=False).splitlines()
    assert lines[0] == "    o o "
    assert lines[2] == "g g w w b b y y "
    assert lines[5] == "    r r "


def test_render_color_has_one_block_per_facelet():
    rendered = render_cube(SOLVED_FACELETS)
    assert rendered.count("  \x1b[0m") == 24


def test_cli_applies_moves(capsys):
    assert main(["F", "U'", "--no-color"]) == 0
    out = capsys.readouterr().out
    key = apply_moves(SOLVED_KEY, [Move.F, Move.U_PRIME])
    assert f"Key: {key}" in out


def test_cli_rejects_unknown_move(capsys):
    assert main(["R"]) == 1
    assert "Unknown move" in capsys.readouterr().out

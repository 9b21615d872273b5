#!/usr/bin/env python3
"""
state_table.py: Recovery move of every reachable pocket cube state.

The pocket cube has 3,674,160 reachable states. Every one except the solved
cube gets an entry holding the move that brings it one step closer to
solved. On disk the table is a flat array of 5-byte records sorted by key:

    bytes 0-3  key, big-endian unsigned
    byte  4    Move code (1-6)

which is 18,370,795 bytes for the complete table.

While the table is being filled, new entries are staged in a dict;
freeze() folds them into the sorted key array used for binary search.
"""

import bisect
import heapq
import os
import struct
from array import array
from itertools import islice

from cube_utils import GENERATORS, KEY_SPACE, REACHABLE_STATES, InvalidKey, Move

RECORD = struct.Struct(">IB")
EXPECTED_ENTRIES = REACHABLE_STATES - 1

DB_FILE = "state_table.bin"
TABLE_ENV_VAR = "POCKET_CUBE_TABLE"

_CODES = frozenset(int(move) for move in GENERATORS)


class CorruptStateTable(ValueError):
    pass


class UnreachableState(LookupError):
    """The key is not in the table: not a legal cube, or the table is damaged."""


def default_table_path():
    return os.environ.get(TABLE_ENV_VAR, DB_FILE)


class StateTable:
    def __init__(self, keys=None, moves=None):
        self._keys = array('L', () if keys is None else keys)
        self._moves = bytes(() if moves is None else moves)
        if len(self._keys) != len(self._moves):
            raise ValueError(f"{len(self._keys)} keys but {len(self._moves)} moves")
        self._staged = {}

    def __len__(self):
        return len(self._keys) + len(self._staged)

    def __contains__(self, key):
        return self.lookup(key) is not None

    def __repr__(self):
        return f"<StateTable {len(self)} entries, {len(self._staged)} staged>"

    def _find(self, key):
        """Index of key in the sorted arrays, or None."""
        keys = self._keys
        if not keys:
            return None
        index = bisect.bisect_left(keys, key)
        if index < len(keys) and keys[index] == key:
            return index
        return None

    def lookup(self, key):
        """Returns the recovery Move for key, or None if the key is absent."""
        index = self._find(key)
        if index is not None:
            return Move(self._moves[index])
        code = self._staged.get(key)
        return None if code is None else Move(code)

    def insert_if_absent(self, key, move):
        """
        Records move for key unless key already has one. The first move
        recorded for a key is never replaced. Returns True if inserted.
        """
        if key in self._staged or self._find(key) is not None:
            return False
        if not 0 <= key < KEY_SPACE:
            raise InvalidKey(f"Key {key} outside [0, {KEY_SPACE})")
        code = int(move)
        if code not in _CODES:
            raise ValueError(f"{move!r} is not a recovery move")
        self._staged[key] = code
        return True

    def freeze(self):
        """Merges staged entries into the sorted arrays."""
        if not self._staged:
            return self
        keys = sorted(self._staged)
        codes = bytes(self._staged[k] for k in keys)
        if self._keys:
            merged = list(heapq.merge(zip(self._keys, self._moves), zip(keys, codes)))
            keys = [k for k, _ in merged]
            codes = bytes(c for _, c in merged)
        self._keys = array('L', keys)
        self._moves = codes
        self._staged = {}
        return self

    def keys(self):
        self.freeze()
        return self._keys

    def items(self):
        """(key, Move) pairs in ascending key order."""
        self.freeze()
        for key, code in zip(self._keys, self._moves):
            yield key, Move(code)

    # --- Persistence ---

    def to_bytes(self):
        self.freeze()
        return b"".join(map(RECORD.pack, self._keys, self._moves))

    @classmethod
    def from_bytes(cls, data, strict=True):
        if len(data) % RECORD.size:
            raise CorruptStateTable(f"Table size {len(data)} is not a multiple of {RECORD.size}")
        keys = array('L', [key for key, _ in RECORD.iter_unpack(data)])
        moves = bytes(data[RECORD.size - 1::RECORD.size])

        if any(a >= b for a, b in zip(keys, islice(keys, 1, None))):
            raise CorruptStateTable("Keys are not in strictly ascending order")
        if keys and keys[-1] >= KEY_SPACE:
            raise CorruptStateTable(f"Key {keys[-1]} outside [0, {KEY_SPACE})")
        if not _CODES.issuperset(moves):
            raise CorruptStateTable(f"Unknown move codes {sorted(set(moves) - _CODES)}")
        if strict and len(keys) != EXPECTED_ENTRIES:
            raise CorruptStateTable(f"Expected {EXPECTED_ENTRIES} entries, found {len(keys)}")
        return cls(keys, moves)

    def write(self, path):
        with open(path, "wb") as f:
            f.write(self.to_bytes())

    @classmethod
    def read(cls, path, strict=True):
        with open(path, "rb") as f:
            data = f.read()
        return cls.from_bytes(data, strict=strict)

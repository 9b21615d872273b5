#!/usr/bin/env python3
"""
generate_db.py: Pre-computes the recovery move of every reachable state (QTM).

Breadth-first from the solved cube: a state is recorded the first time it
is discovered, together with the inverse of the move that discovered it.
Because states are discovered in order of distance, following the recorded
moves always takes the shortest route back to solved.
"""
import argparse
import collections
import queue
import random
import sys
import time

from cube_utils import GENERATORS, KEY_SPACE, LOW_SPAN, REACHABLE_STATES, SOLVED_KEY, log_event
from regular_solver import MAX_SOLUTION_LENGTH, solve
from state_table import EXPECTED_ENTRIES, StateTable, UnreachableState, default_table_path

PROGRESS_EVERY = 250000

BuildResult = collections.namedtuple('BuildResult', 'table depth_counts')


class BuildIntegrityFailure(RuntimeError):
    """The move tables produced a wrong state graph. The table must not be used."""


class WorkQueue:
    """FIFO of cube keys with a fixed capacity."""

    def __init__(self, capacity=REACHABLE_STATES):
        self.capacity = capacity
        self._items = collections.deque()

    def __len__(self):
        return len(self._items)

    def empty(self):
        return not self._items

    def full(self):
        return len(self._items) >= self.capacity

    def enqueue(self, key):
        if self.full():
            raise queue.Full(f"Work queue is full ({self.capacity} keys)")
        self._items.append(key)

    def dequeue(self):
        if not self._items:
            raise queue.Empty("Work queue is empty")
        return self._items.popleft()

    def peek(self):
        if not self._items:
            raise queue.Empty("Work queue is empty")
        return self._items[0]


def _discover(table, key, move, recovery):
    """Records a neighbour; True if it had not been seen before."""
    if not 0 <= key < KEY_SPACE:
        raise BuildIntegrityFailure(f"{move.label} produced key {key} outside [0, {KEY_SPACE})")
    if key == SOLVED_KEY:
        return False
    return table.insert_if_absent(key, recovery)


def build_state_table(max_depth=None, progress_every=PROGRESS_EVERY):
    """
    Fills a StateTable by breadth-first search from the solved cube.
    With max_depth the search stops after that many levels. Returns the
    frozen table and the number of states found at each depth.
    """
    table = StateTable()
    work = WorkQueue()
    work.enqueue(SOLVED_KEY)
    depth_counts = {0: 1}
    depth = 0
    discovered = 0
    started = time.time()
    # Same result as move.apply, without the per-call overhead
    steps = [(move, move.inverse) + move.tables for move in GENERATORS]

    limit = "full" if max_depth is None else f"depth {max_depth}"
    log_event(f"Generating state table ({limit})...", tag="Builder")

    while not work.empty() and (max_depth is None or depth < max_depth):
        depth += 1
        found = 0
        # Everything queued right now is one level
        for _ in range(len(work)):
            upper, lower = divmod(work.dequeue(), LOW_SPAN)
            for move, recovery, low, high in steps:
                nxt = low[lower] + high[upper]
                if _discover(table, nxt, move, recovery):
                    work.enqueue(nxt)
                    found += 1
                    discovered += 1
                    if progress_every and discovered % progress_every == 0:
                        log_event(f"Discovered {discovered} states... Current Depth: {depth}", tag="Builder")
        if found:
            depth_counts[depth] = found

    table.freeze()
    log_event(f"Generation Complete in {time.time() - started:.1f}s.", tag="Builder")
    log_event(f"Total Unique States: {len(table) + 1}", tag="Builder")
    log_event(f"States per depth: {depth_counts}", tag="Builder")

    if max_depth is None:
        check_integrity(table, depth_counts)
    return BuildResult(table, depth_counts)


def check_integrity(table, depth_counts):
    """Raises BuildIntegrityFailure unless a full build looks like the pocket cube."""
    if len(table) != EXPECTED_ENTRIES:
        raise BuildIntegrityFailure(
            f"Found {len(table) + 1} reachable states, expected {REACHABLE_STATES}")
    if sum(depth_counts.values()) != REACHABLE_STATES:
        raise BuildIntegrityFailure(f"Depth counts add up to {sum(depth_counts.values())}")
    deepest = max(depth_counts)
    if deepest > MAX_SOLUTION_LENGTH:
        raise BuildIntegrityFailure(
            f"Deepest state is {deepest} moves from solved, expected at most {MAX_SOLUTION_LENGTH}")


# --- Level-synchronous helpers (shared with mpi_generate_db.py) ---

def split_frontier(frontier, size):
    """Cuts the frontier into `size` equal chunks, padding with None."""
    frontier = list(frontier)
    pad_needed = (size - (len(frontier) % size)) % size
    frontier.extend([None] * pad_needed)

    k = len(frontier) // size
    return [frontier[i * k: (i + 1) * k] for i in range(size)]


def expand_chunk(chunk):
    """Neighbours of every key in the chunk, in GENERATORS order."""
    return [
        (key, tuple(move.apply(key) for move in GENERATORS))
        for key in chunk if key is not None
    ]


def merge_expansions(table, expansions):
    """
    Records the expanded neighbours in chunk order and returns the next
    frontier. Merging chunks in order gives the same table as the queue.
    """
    next_frontier = []
    for batch in expansions:
        for _, neighbours in batch:
            for move, nxt in zip(GENERATORS, neighbours):
                if _discover(table, nxt, move, move.inverse):
                    next_frontier.append(nxt)
    return next_frontier


def verify_table(table, sample=None, seed=0):
    """
    Solves every entry (or a random sample of them) and returns how many
    needed each number of moves.
    """
    keys = table.keys()
    if sample is not None and sample < len(keys):
        rng = random.Random(seed)
        keys = [keys[i] for i in rng.sample(range(len(keys)), sample)]

    lengths = collections.Counter()
    for key in keys:
        try:
            moves = solve(key, table)
        except UnreachableState as e:
            raise BuildIntegrityFailure(f"Entry {key} does not lead back to solved: {e}") from e
        lengths[len(moves)] += 1
    return dict(sorted(lengths.items()))


def generate(path, max_depth=None, verify=False, sample=None, progress_every=PROGRESS_EVERY):
    table, depth_counts = build_state_table(max_depth=max_depth, progress_every=progress_every)

    if verify:
        log_event("Verifying...", tag="Builder")
        lengths = verify_table(table, sample=sample)
        log_event(f"Solution lengths: {lengths}", tag="Builder")

    table.write(path)
    log_event(f"Saved {len(table)} entries to {path}", tag="Builder")
    return BuildResult(table, depth_counts)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build the pocket cube state table")
    parser.add_argument("--table", default=default_table_path(), help="Output file")
    parser.add_argument("--max-depth", type=int, default=None,
                        help="Stop after this many levels (partial table)")
    parser.add_argument("--verify", action="store_true", help="Solve every entry after building")
    parser.add_argument("--sample", type=int, default=None, help="Verify only this many random entries")
    parser.add_argument("--progress-every", type=int, default=PROGRESS_EVERY)
    args = parser.parse_args(argv)

    try:
        generate(args.table, max_depth=args.max_depth, verify=args.verify,
                 sample=args.sample, progress_every=args.progress_every)
    except BuildIntegrityFailure as e:
        print(f"Error: {e}", flush=True)
        return 1
    except OSError as e:
        print(f"Error: could not write {args.table}: {e}", flush=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
mpi_generate_db.py: Distributed state table build using MPI.
Rank 0 owns the table and the frontier; every level it scatters the
frontier, all ranks turn their share of cubes, and rank 0 records the new
states in rank order, so the table matches the single-machine build.

    mpirun -n 4 python mpi_generate_db.py --table state_table.bin
"""
from mpi4py import MPI
import argparse
import time

from cube_utils import SOLVED_KEY, log_event
from generate_db import (
    BuildIntegrityFailure, check_integrity, expand_chunk, merge_expansions, split_frontier,
)
from state_table import StateTable, default_table_path


def main():
    # --- MPI INIT ---
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    size = comm.Get_size()

    parser = argparse.ArgumentParser(description="Distributed pocket cube state table build")
    parser.add_argument("--table", default=default_table_path(), help="Output file")
    parser.add_argument("--max-depth", type=int, default=None,
                        help="Stop after this many levels (partial table)")
    args = parser.parse_args()

    log_event("Active.", tag=f"Node {rank}")

    # BARRIER 1: Ensure all nodes are ready before Manager starts
    comm.Barrier()

    # --- Manager State (Rank 0) ---
    table = None
    frontier = []
    depth_counts = {}
    depth = 0
    local_state_count = 0  # Stat tracking
    started = time.time()

    if rank == 0:
        table = StateTable()
        frontier = [SOLVED_KEY]
        depth_counts[0] = 1
        log_event(f"Building with {size} ranks...", tag="Manager")

    # --- Synchronous BFS Loop ---
    while True:
        # --- A. DECISION PHASE ---
        instruction = "EXPAND"
        if rank == 0:
            if not frontier or (args.max_depth is not None and depth >= args.max_depth):
                instruction = "DONE"

        instruction = comm.bcast(instruction, root=0)
        if instruction == "DONE":
            break

        # --- B. WORK DISTRIBUTION ---
        chunks = None
        if rank == 0:
            log_event(f"[Depth {depth}] Frontier Size: {len(frontier)}", tag="Manager")
            chunks = split_frontier(frontier, size)

        local_tasks = comm.scatter(chunks, root=0)

        # --- C. LOCAL COMPUTATION ---
        expansions = expand_chunk(local_tasks)
        local_state_count += len(expansions)

        # --- D. GATHER RESULTS ---
        all_expansions = comm.gather(expansions, root=0)

        # --- E. MANAGER UPDATE (Rank 0 only) ---
        if rank == 0:
            depth += 1
            try:
                frontier = merge_expansions(table, all_expansions)
            except BuildIntegrityFailure as e:
                print(f"Error: {e}", flush=True)
                comm.Abort(1)
            if frontier:
                depth_counts[depth] = len(frontier)

    # --- GATHER STATISTICS ---
    all_counts = comm.gather(local_state_count, root=0)

    if rank == 0:
        print("\n--- Cluster Statistics ---", flush=True)
        total_explored = sum(all_counts)
        print(f"{'Rank':<10} | {'States Expanded':<15} | {'Contribution':<12}", flush=True)
        print("-" * 45, flush=True)
        for r, count in enumerate(all_counts):
            pct = (count / total_explored * 100) if total_explored > 0 else 0
            print(f"{r:<10} | {count:<15} | {pct:.1f}%", flush=True)
        print("-" * 45, flush=True)
        print(f"Total States Expanded: {total_explored}", flush=True)
        print("-" * 45, flush=True)

        table.freeze()
        log_event(f"Generation Complete in {time.time() - started:.1f}s.", tag="Manager")
        log_event(f"States per depth: {depth_counts}", tag="Manager")
        try:
            if args.max_depth is None:
                check_integrity(table, depth_counts)
            table.write(args.table)
        except (BuildIntegrityFailure, OSError) as e:
            print(f"Error: {e}", flush=True)
            comm.Abort(1)
        log_event(f"Saved {len(table)} entries to {args.table}", tag="Manager")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Step timing and memory profile for the simulation engine.

Runs repeated generation steps on random boards of increasing size and
checks each step against the 200ms tick budget, tracking process memory
to spot leaks across generations.
"""

import gc
import json
import os
import sys
import time
from typing import Dict, List

import numpy as np
import psutil

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from superlife.core.board import Board, NO_OWNER
from superlife.core.engine import CycleHistory, SimulationEngine
from superlife.core.neighbors import neighbor_count_grid
from superlife.game.config import ALL_SUPERPOWERS
from superlife.game.session import TICK_INTERVAL_SECONDS

def measure_memory_mb() -> float:
    """Get current process memory usage in MB."""
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024

def random_board(size: int, density: float, rng: np.random.Generator) -> Board:
    alive = rng.random((size, size)) < density
    owner = np.where(alive, rng.integers(0, 2, (size, size)), NO_OWNER)
    powers = np.where(alive & (rng.random((size, size)) < 0.2), rng.integers(1, 8, (size, size)), 0)
    return Board(size, alive=alive, owner=owner, superpower=powers)

def benchmark_size(size: int, steps: int, seed: int) -> Dict:
    """Time ``steps`` generations on one board size."""
    rng = np.random.default_rng(seed)
    engine = SimulationEngine(enabled_superpowers=ALL_SUPERPOWERS, superpower_percentage=20,
                              max_generations=steps + 1, rng=rng)
    board = random_board(size, 0.35, rng)
    history = CycleHistory.seeded(board)

    step_times: List[float] = []
    start_memory = measure_memory_mb()
    generation = 0
    for _ in range(steps):
        start = time.perf_counter()
        result = engine.step(board, generation, history)
        step_times.append(time.perf_counter() - start)
        board, generation, history = result.board, result.generation, result.history
        if result.terminal:
            break
    end_memory = measure_memory_mb()

    start = time.perf_counter()
    neighbor_count_grid(board)
    grid_time = time.perf_counter() - start

    worst = max(step_times)
    return {
        'size': size,
        'steps': len(step_times),
        'mean_step_ms': 1000 * sum(step_times) / len(step_times),
        'worst_step_ms': 1000 * worst,
        'neighbor_grid_ms': 1000 * grid_time,
        'memory_delta_mb': end_memory - start_memory,
        'within_tick': worst < TICK_INTERVAL_SECONDS,
    }

def run_benchmark(sizes: List[int], steps: int, seed: int) -> Dict:
    print(f"🔍 Benchmarking {steps} steps per board size {sizes}...")
    print("=" * 60)

    gc.collect()
    baseline_memory = measure_memory_mb()
    print(f"Baseline Memory:   {baseline_memory:6.1f} MB")

    measurements = []
    for size in sizes:
        stats = benchmark_size(size, steps, seed)
        measurements.append(stats)
        print(f"{size:3d}x{size:<3d}: mean {stats['mean_step_ms']:7.2f}ms | "
              f"worst {stats['worst_step_ms']:7.2f}ms | "
              f"memory {stats['memory_delta_mb']:+5.1f}MB | "
              f"{'✅' if stats['within_tick'] else '❌'}")

    gc.collect()
    results = {
        'timestamp': time.strftime('%Y-%m-%d %H:%M:%S'),
        'steps': steps,
        'seed': seed,
        'memory_baseline_mb': baseline_memory,
        'memory_final_mb': measure_memory_mb(),
        'all_within_tick': all(m['within_tick'] for m in measurements),
        'measurements': measurements,
    }

    print("\n" + "=" * 60)
    print(f"Tick Budget ({TICK_INTERVAL_SECONDS * 1000:.0f}ms): "
          f"{'✅ PASSED' if results['all_within_tick'] else '❌ FAILED'}")
    print(f"Final Memory:      {results['memory_final_mb']:6.1f} MB")
    return results

if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Benchmark SuperLife generation steps")
    parser.add_argument("--sizes", type=int, nargs='+', default=[10, 20, 40, 64], help="Board sizes")
    parser.add_argument("--steps", type=int, default=50, help="Steps per board size")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--output", type=str, default=None, help="Optional JSON results file")

    args = parser.parse_args()
    results = run_benchmark(args.sizes, args.steps, args.seed)

    if args.output:
        os.makedirs(os.path.dirname(args.output) or '.', exist_ok=True)
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2)
        print(f"Results written to {args.output}")

    sys.exit(0 if results['all_within_tick'] else 1)

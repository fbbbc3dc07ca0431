#!/usr/bin/env python3
"""Benchmark the visibility sweep on the demo scene.

Usage (from the repository root):
    python scripts/bench_visibility.py            # default: 3 iterations, 200 ticks
    python scripts/bench_visibility.py -n 5       # 5 iterations
    python scripts/bench_visibility.py -b 40      # add 40 extra blocks
"""

import argparse
import math
import statistics
import sys
import time
from pathlib import Path

# Add the repository root to path
SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
sys.path.insert(0, str(ROOT_DIR))

from lightcast.scene import DEFAULT_SIZE, default_scene  # noqa: E402
from lightcast.types import Rectangle  # noqa: E402


def _add_blocks(scene, count):
    """Scatter ``count`` small blocks on a regular grid."""
    per_row = max(1, math.ceil(math.sqrt(count)))
    spacing = DEFAULT_SIZE / (per_row + 1)
    for i in range(count):
        row, col = divmod(i, per_row)
        scene.add_occluder(
            Rectangle(
                spacing * (col + 1) - 4.0, spacing * (row + 1) - 4.0, 8.0, 8.0
            )
        )


def _run(ticks, blocks):
    scene = default_scene()
    _add_blocks(scene, blocks)
    light = scene.lights[0]
    for tick in range(ticks):
        angle = 2.0 * math.pi * tick / ticks
        light.set_position(
            (375.0 + 150.0 * math.cos(angle), 375.0 + 150.0 * math.sin(angle))
        )
        scene.update()
    return len(light.visible_polygon())


def main():
    parser = argparse.ArgumentParser(description="Benchmark visibility sweep")
    parser.add_argument(
        "-n",
        "--iterations",
        type=int,
        default=3,
        help="Number of iterations (default: 3)",
    )
    parser.add_argument(
        "-t",
        "--ticks",
        type=int,
        default=200,
        help="Light moves per iteration (default: 200)",
    )
    parser.add_argument(
        "-b",
        "--blocks",
        type=int,
        default=0,
        help="Extra occluders added to the demo scene (default: 0)",
    )
    args = parser.parse_args()

    print(
        f"Benchmark: {args.ticks} ticks, {4 + args.blocks} occluders, "
        f"{args.iterations} iterations"
    )
    print()

    # Warmup
    print("Warmup...", end=" ", flush=True)
    _run(args.ticks, args.blocks)
    print("done")

    times_ms = []
    for i in range(args.iterations):
        start = time.perf_counter()
        vertices = _run(args.ticks, args.blocks)
        elapsed_ms = (time.perf_counter() - start) * 1000
        times_ms.append(elapsed_ms)
        print(f"  Run {i + 1}: {elapsed_ms:.1f} ms ({vertices} vertices)")

    median = statistics.median(times_ms)
    print()
    print(f"Median: {median:.1f} ms")
    print(f"Per tick: {median / args.ticks:.3f} ms")
    if len(times_ms) > 1:
        stdev = statistics.stdev(times_ms)
        print(f"Stdev:  {stdev:.1f} ms")


if __name__ == "__main__":
    main()

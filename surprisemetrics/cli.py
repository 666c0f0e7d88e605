"""Command that runs the metrics calculator over synthetic trades with jumps."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence

import numpy as np

from surprisemetrics.calculator import MetricsCalculator
from surprisemetrics.models import Trade

VERSION = "0.1.0"
TRADE_COUNT = 1000
START_PRICE = 100.0
NORMAL_RETURN_STD = 0.001
JUMP_LIMIT = 0.05
MEAN_TRADE_SIZE = 100
TRADE_SPACING_NS = 1_000_000


def _is_jump_index(index: int) -> bool:
    return index > 50 and (index % 100 == 23 or index % 137 == 7)


def generate_test_trades_with_jumps(
    rng: np.random.Generator | None = None,
) -> list[Trade]:
    """Generate a random-walk trade series with large jumps at fixed positions.

    Normal moves have a 0.1% standard deviation; at the jump positions a
    uniform shock of up to 5% either way is added and announced on stdout.
    """
    if rng is None:
        rng = np.random.default_rng()
    start_time = time.monotonic_ns()
    current_price = START_PRICE
    trades = []
    for index in range(TRADE_COUNT):
        shock = 0.0
        if _is_jump_index(index):
            shock = float(rng.uniform(-JUMP_LIMIT, JUMP_LIMIT))
            print(f"Added jump at trade {index} with size {shock:g}")
        normal_return = float(rng.normal(0.0, NORMAL_RETURN_STD))
        current_price *= 1.0 + normal_return + shock
        trades.append(
            Trade(
                timestamp=start_time + index * TRADE_SPACING_NS,
                price=current_price,
                size=int(rng.poisson(MEAN_TRADE_SIZE)),
                exchange="N",
            )
        )
    return trades


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="surprisemetrics",
        description="Compute surprise metrics for synthetic trades with jumps.",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="seed for the random generator"
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the calculator on generated trades and print a summary."""
    args = _parse_args(argv)
    print(f"SurpriseMetrics Runner v{VERSION}")
    print("=============================\n")
    print("Initializing MetricsCalculator...")

    try:
        calculator = MetricsCalculator()
        calculator.set_garch_params(0.00001, 0.05, 0.94)
        calculator.jump_threshold = 2.5
        calculator.window_size = 20

        print("Generating test data with artificial jumps...")
        trades = generate_test_trades_with_jumps(np.random.default_rng(args.seed))
        print(f"Generated {len(trades)} trades")

        print("Processing trades...")
        started = time.perf_counter()
        calculator.process_trades(trades)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        print(f"Processing completed in {elapsed_ms} ms")

        metrics = calculator.metrics()

        print("\nDetailed Analysis:")
        print("First 10 metrics:")
        for position, metric in enumerate(metrics[:10]):
            print(
                f"  [{position}] Return: {metric.standardized_return:g}"
                f", LM: {metric.lee_mykland_stat:g}"
                f", BNS: {metric.bns_stat:g}"
                f", Jump: {'YES' if metric.jump_detected else 'NO'}"
            )

        jump_count = sum(metric.jump_detected for metric in metrics)
        max_zscore = max(
            (abs(m.standardized_return) for m in metrics), default=0.0
        )
        max_lm = max((m.lee_mykland_stat for m in metrics), default=0.0)
        max_lm = max(max_lm, 0.0)
        max_bns = max((abs(m.bns_stat) for m in metrics), default=0.0)

        print("\nResults Summary:")
        print(f"  Total Metrics: {len(metrics)}")
        print(f"  Jumps Detected: {jump_count}")
        print(f"  Max Z-Score: {max_zscore:g}")
        print(f"  Max LM Statistic: {max_lm:g}")
        print(f"  Max BNS Statistic: {max_bns:g}")
        if elapsed_ms > 0:
            throughput = len(trades) * 1000.0 / elapsed_ms
            print(f"  Throughput: {throughput:g} trades/sec")
    except Exception as exc:  # noqa: BLE001 - report any failure and exit non-zero
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
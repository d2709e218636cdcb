"""
Run the signal engine over a synthetic random-walk price series and
log the resulting markers.  Handy for eyeballing the strategy without
a market-data provider:

    python scripts/demo_signals.py --bars 500 --seed 7
"""
import argparse
import os
import sys

import numpy as np

sys.path.append(os.path.join(os.path.dirname(os.path.dirname(__file__)), "services", "signal_engine_py"))
from signal_engine import BarSeries, crossover_markers, generate_signals  # type: ignore
from signal_engine.config import get_logger  # type: ignore

logger = get_logger("demo_signals")


def random_walk_records(n: int, seed: int, start: int = 1_700_000_000, step: int = 3600):
    rng = np.random.default_rng(seed)
    closes = 100 * np.exp(np.cumsum(rng.normal(0, 0.01, n)))
    opens = np.concatenate([[closes[0]], closes[:-1]])
    spread = np.abs(rng.normal(0, 0.004, n)) * closes
    return [
        {
            "time": start + i * step,
            "open": float(o),
            "high": float(max(o, c) + s),
            "low": float(min(o, c) - s),
            "close": float(c),
        }
        for i, (o, c, s) in enumerate(zip(opens, closes, spread))
    ]


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--bars", type=int, default=300, help="number of bars to generate")
    parser.add_argument("--seed", type=int, default=42, help="random seed")
    args = parser.parse_args()

    bars = BarSeries.from_records(random_walk_records(args.bars, args.seed))
    markers = generate_signals(bars)
    logger.info("%d confirmed marker(s) over %d bars", len(markers), len(bars))
    for m in markers:
        logger.info("  #%d t=%d %s", m.index, m.time, m.direction.value)
    plain = crossover_markers(bars)
    logger.info("%d plain EMA crossover marker(s) for comparison", len(plain))


if __name__ == "__main__":
    main()

"""Check theoretical RTP against the RTP realised by freshly built pools."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Iterable

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from slot_core import (
    RTP_TOLERANCE,
    BoardConfig,
    EngineConfig,
    MultiplierRange,
    Outcome,
    ScatterPayout,
    SlotEngineError,
    analyze_configuration,
    default_config,
    format_rtp_breakdown,
    load_engine_config,
)

logger = logging.getLogger("check_rtp_consistency")

SCENARIO_OUTCOMES: tuple[Outcome, ...] = (
    Outcome("LOSS", "Loss", MultiplierRange(0, 0), 90),
    Outcome("WIN", "Win", MultiplierRange(5, 5), 10),
)
SCENARIO_SCATTER = ScatterPayout(min_count=3, payout_by_count={3: 5, 4: 20, 5: 100})


def scenario_config() -> EngineConfig:
    """5x3 board, a 90/10 loss/5x split and a scatter paying 5/20/100."""

    base = default_config().with_board(BoardConfig(cols=5, rows=3))
    scatter = base.symbols.scatter_symbol
    symbols = base.symbols
    if scatter is not None:
        symbols = symbols.with_symbol(replace(scatter, scatter=SCENARIO_SCATTER))
    return base.with_symbols(symbols).with_outcomes(SCENARIO_OUTCOMES)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare theoretical and pool RTP.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON configuration to check (default: the built-in loss/win scenario).",
    )
    parser.add_argument(
        "--pool-size",
        type=int,
        default=100,
        help="Boards generated per outcome (default: %(default)s).",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=RTP_TOLERANCE,
        help="Allowed gap in percentage points (default: %(default)s).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for board sampling.")
    parser.add_argument("--verbose", action="store_true", help="Log pool build progress.")
    return parser.parse_args(list(argv) if argv is not None else None)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_engine_config(args.config) if args.config else scenario_config()
        result = analyze_configuration(
            config,
            pool_target=args.pool_size,
            sample_size=0,
            seed=args.seed,
            tolerance=args.tolerance,
        )
    except SlotEngineError as exc:
        logger.error("RTP check failed: %s", exc)
        return 2

    for message in result.build.errors:
        logger.warning(message)

    print("[Theoretical]")
    print(format_rtp_breakdown(result.theoretical, scatter_in_total=False))
    print("\n[Pools]")
    for detail in result.actual.outcome_details:
        print(
            f"{detail.outcome_name}: avg {detail.avg_score:.2f} "
            f"(line {detail.avg_line_score:.2f} + scatter {detail.avg_scatter_score:.2f}) "
            f"over {detail.board_count} boards"
        )
    print(format_rtp_breakdown(result.actual.breakdown))

    comparison = result.comparison
    print(f"\nDiscrepancy: {comparison.discrepancy:.4f} points")
    if not comparison.within_tolerance:
        print(">>> DISCREPANCY DETECTED <<<")
        return 1
    print(">>> NO DISCREPANCY <<<")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

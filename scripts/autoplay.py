#!/usr/bin/env python3
"""Play many hands against the CPU with a randomly behaved stand-in human.

The table session runs in-process with zero pacing, so this exercises the same
scheduling path a presentation client uses. Chip totals are checked after
every hand.

Example:
    python scripts/autoplay.py --hands 200 --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
from collections import Counter
from typing import Dict, Optional, Tuple

from holdem.models import TableConfig
from table.session import TableSession

LOGGER = logging.getLogger("autoplay")


def choose_action(state: Dict[str, object], rng: random.Random) -> Tuple[str, Optional[int]]:
    """Pick a random but legal action from a public state snapshot."""

    legal = list(state.get("legal") or [])
    if not legal:
        return "FOLD", None

    # Folding when a check is free only ends hands early; skip it.
    if "CHECK" in legal and "FOLD" in legal and rng.random() < 0.9:
        legal.remove("FOLD")

    choice = rng.choice(legal)
    if choice == "RAISE":
        lower = state.get("min_raise_to")
        upper = state.get("max_raise_to")
        if not isinstance(lower, int) or not isinstance(upper, int) or lower > upper:
            return ("CALL" if "CALL" in legal else "CHECK"), None
        target = upper if rng.random() < 0.1 else rng.randint(lower, min(upper, lower * 3))
        return "RAISE", target
    return choice, None


async def run_autoplay(args: argparse.Namespace) -> Counter:
    config = TableConfig(
        starting_stack=args.starting_stack,
        sb=args.sb,
        bb=args.bb,
        equity_trials=args.equity_trials,
        ai_delay_ms=0,
        phase_delay_ms=0,
        seed=args.seed,
    )
    session = TableSession(config)
    rng = random.Random(args.seed)
    tally: Counter = Counter()
    session.start()

    try:
        for _ in range(args.hands):
            session.start_hand()
            opening_total = session.engine.total_chips()
            while True:
                await session.wait_idle()
                state = session.state()
                if state.get("hand_complete"):
                    break
                action, amount = choose_action(state, rng)
                if not session.submit_action(action, amount):
                    raise RuntimeError(f"stand-in chose an illegal action {action} {amount} in {state['hand_id']}")

            winners = state.get("winners") or []
            tally["split" if len(winners) == 2 else winners[0]] += 1
            tally["showdowns" if state.get("results") else "folds"] += 1

            # A split pot may drop one odd chip.
            total = session.engine.total_chips()
            if not 0 <= opening_total - total <= 1:
                raise RuntimeError(f"chip total drifted from {opening_total} to {total} in {state['hand_id']}")
            if args.verbose:
                LOGGER.info("%s: %s", state["hand_id"], state["message"])
    finally:
        await session.close()
    return tally


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Autoplay hands against the CPU opponent")
    parser.add_argument("--hands", type=int, default=100)
    parser.add_argument("--starting-stack", type=int, default=1000)
    parser.add_argument("--sb", type=int, default=10)
    parser.add_argument("--bb", type=int, default=20)
    parser.add_argument("--equity-trials", type=int, default=200)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--verbose", action="store_true", help="log the closing message of every hand")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))
    LOGGER.setLevel(logging.INFO)
    tally = asyncio.run(run_autoplay(args))
    print(
        f"hands={args.hands} human_wins={tally['HUMAN']} cpu_wins={tally['AI']} "
        f"splits={tally['split']} showdowns={tally['showdowns']} folds={tally['folds']}"
    )


if __name__ == "__main__":
    main()

import argparse
import asyncio
import logging

from holdem.models import TableConfig
from .server import TableServer


def main() -> None:
    parser = argparse.ArgumentParser(description="Heads-up hold'em table against the CPU")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--starting-stack", type=int, default=1000)
    parser.add_argument("--sb", type=int, default=10)
    parser.add_argument("--bb", type=int, default=20)
    parser.add_argument("--equity-trials", type=int, default=600, help="Monte Carlo trials per CPU decision")
    parser.add_argument("--ai-delay-ms", type=int, default=800, help="Pause before the CPU acts (milliseconds)")
    parser.add_argument(
        "--phase-delay-ms",
        type=int,
        default=800,
        help="Pause before dealing the next street once betting closes (milliseconds)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible deals")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = TableConfig(
        starting_stack=args.starting_stack,
        sb=args.sb,
        bb=args.bb,
        equity_trials=args.equity_trials,
        ai_delay_ms=args.ai_delay_ms,
        phase_delay_ms=args.phase_delay_ms,
        seed=args.seed,
    )
    server = TableServer(config)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()

"""
CLI interface for the Quibble reconciliation engine.

Supports three modes:
  run      — Reconcile master-events + merged-transactions in a directory.
  replay   — Re-run from a saved master and verify the output hash.
  generate — Generate synthetic master and merged transaction files.
"""
from __future__ import annotations

import argparse
import logging
import re
import sys


def _setup_logging(verbose: bool = False) -> None:
    """Configure structured logging."""
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s [%(levelname)-7s] %(name)s — %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _date_arg(value: str) -> str:
    if not re.fullmatch(r"\d{6}", value, re.ASCII):
        raise argparse.ArgumentTypeError(f"date must be YYMMDD, got {value!r}")
    return value


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="quibble-engine",
        description="Quibble back end — reconcile ticket sales into the master event record",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug-level logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # --- run ---
    run_p = sub.add_parser("run", help="Reconcile the fixed files in a directory")
    run_p.add_argument("--workdir", default=".", help="Directory holding the files (default: .)")
    run_p.add_argument("--date", type=_date_arg, default=None,
                       help="Run date as YYMMDD (default: today)")

    # --- replay ---
    replay_p = sub.add_parser("replay", help="Re-run from a saved master and verify hash")
    replay_p.add_argument("--master", required=True, help="Path to the prior master-events")
    replay_p.add_argument("--transactions", required=True, help="Path to merged-transactions")
    replay_p.add_argument("--out", required=True, help="Directory for the replayed outputs")
    replay_p.add_argument("--verify", required=True, help="Path to expected_hash.txt")
    replay_p.add_argument("--date", type=_date_arg, required=True, help="Run date as YYMMDD")

    # --- generate ---
    gen_p = sub.add_parser("generate", help="Generate synthetic test data")
    gen_p.add_argument("--workdir", required=True, help="Directory to write into")
    gen_p.add_argument(
        "--sessions", type=int, default=20, help="Number of sessions (default 20)"
    )
    gen_p.add_argument(
        "--seed", type=int, default=42, help="Random seed for reproducibility"
    )
    gen_p.add_argument("--date", type=_date_arg, default="160101",
                       help="Date the data is generated for (default 160101)")

    args = parser.parse_args(argv)
    _setup_logging(verbose=args.verbose)

    logger = logging.getLogger("quibble_engine.cli")

    if args.command == "run":
        from quibble_engine.engine import run_reconciliation

        try:
            summary = run_reconciliation(args.workdir, args.date)
            print(f"RUN OK — {summary.events_written} events, output hash: {summary.output_hash}")
        except Exception as exc:
            logger.exception("Run failed")
            print(f"ERROR: {exc}", file=sys.stderr)
            sys.exit(1)

    elif args.command == "replay":
        from quibble_engine.engine import replay_reconciliation

        try:
            ok = replay_reconciliation(
                args.master, args.transactions, args.out, args.verify, args.date,
            )
            if ok:
                print("REPLAY OK: hash matches ✓")
            else:
                print("REPLAY FAILED: hash does NOT match ✗", file=sys.stderr)
                sys.exit(1)
        except Exception as exc:
            logger.exception("Replay failed")
            print(f"ERROR: {exc}", file=sys.stderr)
            sys.exit(1)

    elif args.command == "generate":
        from quibble_engine.generate_transactions import generate_transactions

        try:
            merged = generate_transactions(args.workdir, args.sessions, args.seed, args.date)
            print(f"Generated {args.sessions} sessions → {merged}")
        except Exception as exc:
            logger.exception("Generation failed")
            print(f"ERROR: {exc}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()

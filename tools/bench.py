#!/usr/bin/env python3
"""
Benchmark: run a fixed set of positions through one engine session.

For every position the engine is asked for its best move and for an
evaluation, and the wall time of each round trip is reported. Useful for
checking that an engine build answers the subset of UCI the driver speaks,
and for comparing engines or settings on the same positions.

Usage: python3 tools/bench.py [--engine CMD] [--movetime MS] [--depth PLY]
"""
import argparse
import shlex
import sys
import time

from ucidriver import EngineError, EngineSession, NotFoundError, SpawnError

# 10 standard positions spanning opening, middlegame, and endgame.
# These are fixed forever; the same positions used for every comparison.
POSITIONS = [
    ("Start",        "startpos"),
    ("After 1.e4",   "startpos moves e2e4"),
    ("Sicilian",     "startpos moves e2e4 c7c5"),
    ("Italian",      "startpos moves e2e4 e7e5 g1f3 b8c6 f1c4"),
    ("London",       "startpos moves d2d4 d7d5 g1f3 g8f6 c1f4"),
    ("Mid-open",     "fen r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"),
    ("Complex mid",  "fen r2q1rk1/ppp2ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPP2PPP/R2Q1RK1 w - - 0 8"),
    ("Queen ending", "fen 6k1/ppp2ppp/8/3p4/3P4/8/PPP2PPP/6K1 w - - 0 1"),
    ("Rook ending",  "fen 8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 1"),
    ("Pawn race",    "fen 8/1p4k1/p7/P1K5/8/8/8/8 w - - 0 1"),
]


def apply_position(engine: EngineSession, pos_spec: str) -> None:
    """
    Send a position spec in "position" command syntax to the engine.

    Args:
        engine: Session to configure.
        pos_spec: "startpos [moves ...]" or "fen <FEN> [moves ...]".
    """
    tokens = pos_spec.split()
    if "moves" in tokens:
        moves_idx = tokens.index("moves")
        moves = tokens[moves_idx + 1:]
    else:
        moves_idx = len(tokens)
        moves = []

    if tokens[0] == "startpos":
        engine.play_moves_from_start(moves)
    elif tokens[0] == "fen":
        engine.set_position_with_moves(" ".join(tokens[1:moves_idx]), moves)
    else:
        raise ValueError(f"unknown position type: {tokens[0]}")


def run_position(engine: EngineSession, label: str, pos_spec: str) -> dict:
    """Run a single position through the engine and return metrics.

    Returns:
        Dict with keys: label, move, score, time_ms. score is None when the
        engine reported no centipawn value (a mate score, for instance).
    """
    start = time.monotonic()
    apply_position(engine, pos_spec)
    move = engine.best_move()

    apply_position(engine, pos_spec)
    try:
        score = engine.evaluation()
    except NotFoundError:
        score = None
    elapsed_ms = int((time.monotonic() - start) * 1000)

    return {
        "label": label,
        "move": move,
        "score": score,
        "time_ms": elapsed_ms,
    }


def main(argv: list[str] | None = None) -> int:
    """Run all benchmark positions and print a summary table."""
    parser = argparse.ArgumentParser(description="UCI engine benchmark")
    parser.add_argument("--engine", default="stockfish", help="engine command line")
    parser.add_argument("--movetime", type=int, default=1000, help="milliseconds per search")
    parser.add_argument("--depth", type=int, default=None, help="optional depth limit")
    args = parser.parse_args(argv)

    command = shlex.split(args.engine)
    try:
        engine = EngineSession.spawn(command, log_commands=False)
    except SpawnError as exc:
        print(exc, file=sys.stderr)
        return 1

    with engine:
        try:
            engine.with_movetime(args.movetime).with_depth(args.depth)
            engine.synchronize()

            print(f"UCI engine benchmark: {args.engine}")
            print(f"movetime={args.movetime}ms depth={args.depth}")
            print()
            print(f"{'Position':<14} {'Move':<7} {'Score':>6} {'Time(ms)':>9}")
            print("-" * 40)

            results = []
            for label, pos in POSITIONS:
                r = run_position(engine, label, pos)
                results.append(r)
                score = "-" if r["score"] is None else r["score"]
                print(f"{r['label']:<14} {r['move']:<7} {score:>6} {r['time_ms']:>9,}")
        except EngineError as exc:
            print(f"engine error: {exc}", file=sys.stderr)
            return 1

    avg_time = sum(r["time_ms"] for r in results) // len(results)
    print("-" * 40)
    print(f"{'AVERAGE':<14} {'':<7} {'':>6} {avg_time:>9,}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

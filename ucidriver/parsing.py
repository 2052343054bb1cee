"""
Pure formatting and parsing helpers for the UCI subset the session speaks.

Nothing here touches a process; the session composes these with the stream
primitives. Keeping them pure makes the wire format testable without an
engine.
"""

from __future__ import annotations

import re
from typing import Iterable

from ucidriver.constants import TOKEN_BESTMOVE, TOKEN_CP, TOKEN_INFO
from ucidriver.errors import NotFoundError

_SIGNED_INT = re.compile(r"[+-]?[0-9]+")

# Scores are 32-bit signed integers on the wire.
CP_MIN = -(2**31)
CP_MAX = 2**31 - 1


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


def format_position_fen(fen: str, moves: Iterable[str]) -> str:
    """
    Build a "position fen" command.

    The "moves" keyword is always present, even when the list is empty:
        position fen <FEN> moves \\n
    """
    return f"position fen {fen} moves {' '.join(moves)}\n"


def format_position_startpos(moves: Iterable[str]) -> str:
    return f"position startpos moves {' '.join(moves)}\n"


def format_go(movetime: int, depth: int | None = None) -> str:
    if depth is not None:
        return f"go movetime {movetime} depth {depth}\n"
    return f"go movetime {movetime}\n"


def format_setoption(name: str, value: str) -> str:
    return f"setoption name {name} value {value}\n"


def format_raw(command: str) -> str:
    return f"{command.strip()}\n"


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


def is_bestmove(line: str) -> bool:
    return line.startswith(TOKEN_BESTMOVE)


def is_info(line: str) -> bool:
    return line.startswith(TOKEN_INFO)


def parse_bestmove(line: str) -> str:
    """
    Extract the move from a "bestmove" line.

    Format: "bestmove <move> [ponder <move>]". The move is returned verbatim;
    "(none)" and "0000" from engines with no legal move pass through as well.

    Raises:
        NotFoundError: The line carries no move field.
    """
    fields = line.split()
    if len(fields) < 2:
        raise NotFoundError(f"no move in {line.strip()!r}")
    return fields[1].strip()


def parse_cp(info_line: str) -> int:
    """
    Extract the centipawn score from an "info" line.

    Example:
        info depth 25 seldepth 34 multipv 1 score cp -1933 nodes 18521596 pv d2d3
        -> -1933

    The line is split on single spaces and the token after the LAST "cp"
    token is parsed as a signed decimal integer. Mate scores ("score mate 3")
    carry no "cp" token and are reported as not found.

    Raises:
        NotFoundError: No "cp" token, nothing after it, not an integer, or
                       outside the 32-bit signed range.
    """
    parts = info_line.rstrip("\r\n").split(" ")
    cp_indices = [i for i, part in enumerate(parts) if part == TOKEN_CP]
    if not cp_indices:
        raise NotFoundError("no 'cp' token in info line")

    value_index = cp_indices[-1] + 1
    if value_index >= len(parts):
        raise NotFoundError("'cp' token has no value")

    token = parts[value_index]
    if not _SIGNED_INT.fullmatch(token):
        raise NotFoundError(f"'cp' value {token!r} is not an integer")
    value = int(token)
    if not CP_MIN <= value <= CP_MAX:
        raise NotFoundError(f"'cp' value {token!r} is out of range")
    return value

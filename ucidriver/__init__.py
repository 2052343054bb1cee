"""
UCI driver package: drive a chess engine subprocess over the UCI protocol.

Modules:
    constants : Protocol keywords, reply tokens, session defaults
    errors    : EngineError and its subclasses
    config    : SessionConfig (movetime / depth) validated with pydantic
    streams   : LineReader and CommandWriter over the process pipes
    parsing   : Command formatting and reply parsing, no I/O
    session   : EngineSession, the blocking request/response API

Example:
    with EngineSession.spawn("stockfish") as engine:
        engine.with_movetime(200).with_depth(12)
        engine.play_moves_from_start(["e2e4", "e7e5"])
        print(engine.best_move())
"""

from ucidriver.config import SessionConfig
from ucidriver.errors import (
    EngineError,
    EngineExitedError,
    EngineIOError,
    NotFoundError,
    SpawnError,
    UnknownOptionError,
)
from ucidriver.session import EngineSession

__all__ = [
    "EngineError",
    "EngineExitedError",
    "EngineIOError",
    "EngineSession",
    "NotFoundError",
    "SessionConfig",
    "SpawnError",
    "UnknownOptionError",
]

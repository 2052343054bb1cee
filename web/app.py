"""
FastAPI web application exposing a UCI engine over HTTP.

Endpoints:
    POST /api/move      best move for a FEN (+ moves) position
    POST /api/evaluate  centipawn evaluation of the same kind of position
    POST /api/option    set an engine option
    GET  /api/health    whether the engine process is alive

Architecture notes:
- One engine process for the whole application, spawned lazily on the first
  request from the UCI_ENGINE_COMMAND environment variable (shell syntax,
  default "stockfish"). It is never respawned: a dead engine answers 502.
- Sync endpoints (not async): FastAPI runs sync handlers in a thread pool,
  which is the correct pattern for blocking calls like an engine search.
  Requests are serialized with a lock because "position" and "go" must not
  interleave between two requests.
- Stateless per request: the client sends the full position and search
  limits each time; the engine's own board is overwritten on every call.
"""

import logging
import os
import shlex
import threading
from contextlib import asynccontextmanager, contextmanager

import chess
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, field_validator

from ucidriver import (
    EngineIOError,
    EngineSession,
    NotFoundError,
    SpawnError,
    UnknownOptionError,
)
from ucidriver.constants import DEFAULT_MOVETIME_MS

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

ENGINE_COMMAND_ENV = "UCI_ENGINE_COMMAND"
DEFAULT_ENGINE_COMMAND = "stockfish"

MAX_MOVETIME_MS = 30_000
MAX_DEPTH = 100

_engine: EngineSession | None = None
_engine_lock = threading.Lock()
_request_lock = threading.Lock()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the shared engine on shutdown."""
    global _engine
    yield
    with _engine_lock:
        if _engine is not None:
            _engine.close()
            _engine = None


app = FastAPI(title="UCI Driver", version="1.0.0", lifespan=lifespan)


def get_engine() -> EngineSession:
    """
    Return the shared engine session, spawning it on first use.

    The "uci" reply is drained right after spawning so that the first
    setoption request does not mistake it for a rejection.

    Raises:
        HTTPException 503: The engine executable could not be started.
    """
    global _engine
    with _engine_lock:
        if _engine is None:
            command = shlex.split(os.environ.get(ENGINE_COMMAND_ENV, DEFAULT_ENGINE_COMMAND))
            try:
                engine = EngineSession.spawn(command)
            except (SpawnError, EngineIOError) as exc:
                _log.error("Cannot start engine %r: %s", command, exc)
                raise HTTPException(status_code=503, detail=str(exc)) from exc
            try:
                engine.synchronize()
            except EngineIOError as exc:
                _log.error("Engine %r died during startup: %s", command, exc)
                engine.close()
                raise HTTPException(status_code=503, detail=str(exc)) from exc
            _engine = engine
        return _engine


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class PositionRequest(BaseModel):
    """
    A position to search and the limits for the search.

    Fields:
        fen:      Full FEN string of the starting position.
        moves:    Moves in coordinate notation played from `fen`.
        movetime: Milliseconds per search, clamped to [1, 30000].
        depth:    Optional depth limit in plies, clamped to [1, 100].
    """

    fen: str
    moves: list[str] = []
    movetime: int = DEFAULT_MOVETIME_MS
    depth: int | None = None

    @field_validator("movetime")
    @classmethod
    def clamp_movetime(cls, v: int) -> int:
        """Clamp movetime to a safe operating range."""
        return max(1, min(v, MAX_MOVETIME_MS))

    @field_validator("depth")
    @classmethod
    def clamp_depth(cls, v: int | None) -> int | None:
        if v is None:
            return None
        return max(1, min(v, MAX_DEPTH))


class MoveResponse(BaseModel):
    """
    Fields:
        move: Best move as printed by the engine (e.g. "e2e4", "e7e8q").
        fen:  Board FEN after the move, or None if the move is not legal on
              the board (e.g. "(none)" in a finished position).
    """

    move: str
    fen: str | None


class EvaluationResponse(BaseModel):
    score: int


class OptionRequest(BaseModel):
    name: str
    value: str


class OptionResponse(BaseModel):
    ok: bool


class HealthResponse(BaseModel):
    alive: bool
    movetime: int
    depth: int | None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _board_for(request: PositionRequest) -> chess.Board:
    """
    Build the board for a request, validating FEN and moves.

    Raises:
        HTTPException 400: Malformed FEN or an illegal move in the list.
    """
    try:
        board = chess.Board(request.fen)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid FEN: {exc}") from exc

    for uci_move in request.moves:
        try:
            board.push_uci(uci_move)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Illegal move: {uci_move}") from exc
    return board


@contextmanager
def _engine_errors(context: str):
    """Translate engine errors raised inside the block into HTTP errors."""
    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except UnknownOptionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except EngineIOError as exc:
        _log.exception("Engine failure (%s)", context)
        raise HTTPException(status_code=502, detail=f"Engine error: {exc}") from exc


def _search_setup(engine: EngineSession, request: PositionRequest) -> None:
    engine.with_movetime(request.movetime).with_depth(request.depth)
    engine.set_position_with_moves(request.fen, request.moves)


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.post("/api/move", response_model=MoveResponse)
def api_move(request: PositionRequest, engine: EngineSession = Depends(get_engine)) -> MoveResponse:
    """
    Compute the engine's best move for the given position.

    Raises:
        HTTPException 400: Malformed FEN, illegal move, or game already over.
        HTTPException 502: The engine process failed.
    """
    board = _board_for(request)
    if board.is_game_over():
        raise HTTPException(status_code=400, detail=f"Game is already over: {board.result()}")

    with _request_lock, _engine_errors(f"move FEN={request.fen[:40]}"):
        _search_setup(engine, request)
        move = engine.best_move()

    try:
        board.push_uci(move)
        fen = board.fen()
    except ValueError:
        fen = None

    _log.info("Move=%s movetime=%d depth=%s fen=%s", move, request.movetime, request.depth, request.fen[:40])
    return MoveResponse(move=move, fen=fen)


@app.post("/api/evaluate", response_model=EvaluationResponse)
def api_evaluate(
    request: PositionRequest, engine: EngineSession = Depends(get_engine)
) -> EvaluationResponse:
    """
    Evaluate the given position in centipawns (side to move's perspective).

    Raises:
        HTTPException 400: Malformed FEN or illegal move.
        HTTPException 422: The engine reported no centipawn score (e.g. mate).
        HTTPException 502: The engine process failed.
    """
    _board_for(request)
    with _request_lock, _engine_errors(f"evaluate FEN={request.fen[:40]}"):
        _search_setup(engine, request)
        score = engine.evaluation()
    return EvaluationResponse(score=score)


@app.post("/api/option", response_model=OptionResponse)
def api_option(request: OptionRequest, engine: EngineSession = Depends(get_engine)) -> OptionResponse:
    with _request_lock, _engine_errors(f"option {request.name}"):
        engine.set_option(request.name, request.value)
    return OptionResponse(ok=True)


@app.get("/api/health", response_model=HealthResponse)
def api_health(engine: EngineSession = Depends(get_engine)) -> HealthResponse:
    return HealthResponse(alive=engine.is_alive, movetime=engine.movetime, depth=engine.depth)

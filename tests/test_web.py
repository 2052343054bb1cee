import shlex

import chess
import pytest
from fastapi.testclient import TestClient

from ucidriver import EngineSession
from web import app as web_app

FEN = "6b1/8/1k5P/8/1P3B2/5pp1/8/4K3 b - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


@pytest.fixture
def client_for(spawn_fake):
    """Factory: a TestClient whose engine dependency is a scripted engine."""

    def _client(*flags: str):
        engine = spawn_fake(*flags)
        engine.synchronize()
        web_app.app.dependency_overrides[web_app.get_engine] = lambda: engine
        return TestClient(web_app.app), engine

    yield _client
    web_app.app.dependency_overrides.clear()


def test_move(client_for):
    client, _ = client_for("--bestmove", "f3f2")
    response = client.post("/api/move", json={"fen": FEN, "depth": 1, "movetime": 50})
    assert response.status_code == 200

    board = chess.Board(FEN)
    board.push_uci("f3f2")
    assert response.json() == {"move": "f3f2", "fen": board.fen()}


def test_move_with_moves(client_for):
    client, _ = client_for("--bestmove", "g8f6")
    response = client.post(
        "/api/move",
        json={"fen": chess.STARTING_FEN, "moves": ["e2e4", "e7e5", "g1f3"]},
    )
    assert response.status_code == 200
    assert response.json()["move"] == "g8f6"


def test_move_illegal_for_board_has_no_fen(client_for):
    client, _ = client_for("--bestmove", "a1a8")
    response = client.post("/api/move", json={"fen": FEN})
    assert response.status_code == 200
    assert response.json() == {"move": "a1a8", "fen": None}


def test_move_applies_search_limits(client_for):
    client, engine = client_for()
    client.post("/api/move", json={"fen": FEN, "movetime": 999_999, "depth": 0})
    assert engine.movetime == 30_000
    assert engine.depth == 1


def test_invalid_fen(client_for):
    client, _ = client_for()
    response = client.post("/api/move", json={"fen": "not a fen"})
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid FEN")


def test_illegal_move_in_request(client_for):
    client, _ = client_for()
    response = client.post("/api/move", json={"fen": chess.STARTING_FEN, "moves": ["e2e5"]})
    assert response.status_code == 400


def test_game_over(client_for):
    client, _ = client_for()
    response = client.post("/api/move", json={"fen": FOOLS_MATE})
    assert response.status_code == 400
    assert "already over" in response.json()["detail"]


def test_evaluate(client_for):
    client, _ = client_for("--info", "info depth 3 score cp 57 pv e2e4")
    response = client.post("/api/evaluate", json={"fen": chess.STARTING_FEN})
    assert response.status_code == 200
    assert response.json() == {"score": 57}


def test_evaluate_mate_score(client_for):
    client, _ = client_for("--info", "info depth 3 score mate 1 pv h5f7")
    response = client.post("/api/evaluate", json={"fen": chess.STARTING_FEN})
    assert response.status_code == 422


def test_option(client_for):
    client, _ = client_for()
    assert client.post("/api/option", json={"name": "Hash", "value": "16"}).json() == {"ok": True}

    response = client.post("/api/option", json={"name": "Nope", "value": "1"})
    assert response.status_code == 400
    assert response.json()["detail"] == "No such option: 'Nope'"


def test_dead_engine(client_for):
    client, engine = client_for()
    engine.close()
    response = client.post("/api/move", json={"fen": FEN})
    assert response.status_code == 502


def test_health(client_for):
    client, _ = client_for()
    assert client.get("/api/health").json() == {"alive": True, "movetime": 100, "depth": None}


def test_engine_spawn_failure(monkeypatch):
    monkeypatch.setenv(web_app.ENGINE_COMMAND_ENV, "/nonexistent/engine --flag")
    monkeypatch.setattr(web_app, "_engine", None)
    response = TestClient(web_app.app).get("/api/health")
    assert response.status_code == 503


def test_engine_dying_during_startup_is_closed(monkeypatch, fake_engine_argv):
    closed = []
    original_close = EngineSession.close

    def recording_close(self):
        closed.append(self)
        original_close(self)

    monkeypatch.setattr(EngineSession, "close", recording_close)
    monkeypatch.setenv(web_app.ENGINE_COMMAND_ENV, shlex.join(fake_engine_argv("--die-on-isready")))
    monkeypatch.setattr(web_app, "_engine", None)

    response = TestClient(web_app.app).get("/api/health")

    assert response.status_code == 503
    assert web_app._engine is None
    assert len(closed) == 1
    assert closed[0].closed


def test_request_without_depth_clears_earlier_depth(client_for):
    client, engine = client_for()
    client.post("/api/move", json={"fen": FEN, "depth": 7, "movetime": 20})
    assert (engine.movetime, engine.depth) == (20, 7)

    client.post("/api/move", json={"fen": FEN})
    assert (engine.movetime, engine.depth) == (100, None)

import shlex

import pytest

from tools import bench


def test_run_position(spawn_fake):
    engine = spawn_fake("--bestmove", "e2e4", "--info", "info depth 4 score cp 31 pv e2e4")
    engine.synchronize()
    result = bench.run_position(engine, "Start", "startpos")
    assert result["label"] == "Start"
    assert result["move"] == "e2e4"
    assert result["score"] == 31
    assert result["time_ms"] >= 0


def test_run_position_mate_score(spawn_fake):
    engine = spawn_fake("--info", "info depth 4 score mate 2")
    result = bench.run_position(engine, "Queen ending", bench.POSITIONS[7][1])
    assert result["score"] is None


def test_apply_position_rejects_unknown_type(spawn_fake):
    engine = spawn_fake()
    with pytest.raises(ValueError):
        bench.apply_position(engine, "somewhere e2e4")


def test_main(fake_engine_argv, capsys):
    argv = fake_engine_argv("--info", "info depth 1 score cp 5")
    assert bench.main(["--engine", shlex.join(argv), "--movetime", "10"]) == 0
    out = capsys.readouterr().out
    assert "Rook ending" in out
    assert "AVERAGE" in out


def test_main_missing_engine(capsys):
    assert bench.main(["--engine", "/nonexistent/engine"]) == 1
    assert "Unable to run engine" in capsys.readouterr().err

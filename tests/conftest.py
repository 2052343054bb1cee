"""
Shared fixtures: an in-memory process stand-in and a scripted engine subprocess.
"""

import io
import sys
from pathlib import Path

import pytest

from ucidriver import EngineSession

FAKE_ENGINE = Path(__file__).parent / "fake_engine.py"


class FakeProcess:
    """
    Minimal Popen look-alike backed by in-memory byte streams.

    stdout is pre-loaded with the engine's replies; everything the session
    writes to stdin is kept and can be inspected through `written`. Reading
    past the scripted replies hits end-of-file, like a dead engine.
    """

    pid = 4242

    def __init__(self, replies: list[str]) -> None:
        self.stdin = io.BytesIO()
        self.stdout = io.BytesIO("".join(replies).encode("utf-8"))
        self.returncode: int | None = None

    @property
    def written(self) -> str:
        return self.stdin.getvalue().decode("utf-8")

    @property
    def commands(self) -> list[str]:
        return self.written.splitlines()

    def poll(self) -> int | None:
        return self.returncode

    def kill(self) -> None:
        if self.returncode is None:
            self.returncode = -9

    def wait(self, timeout: float | None = None) -> int | None:
        return self.returncode


@pytest.fixture
def make_session():
    """Factory: build a session over a FakeProcess replaying `replies`."""

    def _make(*replies: str, **kwargs) -> tuple[EngineSession, FakeProcess]:
        process = FakeProcess([line if line.endswith("\n") else line + "\n" for line in replies])
        return EngineSession(process, **kwargs), process

    return _make


@pytest.fixture
def fake_engine_argv():
    """Factory: argv that launches the scripted engine with extra flags."""

    def _argv(*flags: str) -> list[str]:
        return [sys.executable, str(FAKE_ENGINE), *flags]

    return _argv


@pytest.fixture
def spawn_fake(fake_engine_argv):
    """Factory: spawn the scripted engine; every session is closed at teardown."""
    sessions: list[EngineSession] = []

    def _spawn(*flags: str) -> EngineSession:
        session = EngineSession.spawn(fake_engine_argv(*flags))
        sessions.append(session)
        return session

    yield _spawn

    for session in sessions:
        session.close()

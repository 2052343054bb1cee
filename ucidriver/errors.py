"""
Error taxonomy for engine sessions.

Every failure the session reports derives from EngineError, so callers can
catch the whole family in one clause or single out the kind they care about.
"""

from __future__ import annotations

import os
from typing import Sequence


class EngineError(Exception):
    """Base class for errors encountered while driving an engine."""


class EngineIOError(EngineError):
    """Reading from or writing to the engine's streams failed."""

    def __init__(self, err: BaseException | str) -> None:
        super().__init__(f"IO error: {err}")
        self.err = err


class EngineExitedError(EngineIOError):
    """The engine closed its output stream (process exited or crashed)."""

    def __init__(self, err: BaseException | str = "engine closed its output stream") -> None:
        super().__init__(err)


class UnknownOptionError(EngineError):
    """The engine answered a setoption command with unexpected output."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No such option: '{name}'")
        self.name = name


class NotFoundError(EngineError):
    """An expected field was missing from the engine's reply."""

    def __init__(self, detail: str | None = None) -> None:
        message = "Pattern not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.detail = detail


class SpawnError(EngineError):
    """The engine executable could not be launched."""

    def __init__(self, command: str | os.PathLike | Sequence[str], err: BaseException) -> None:
        super().__init__(f"Unable to run engine {command!r}: {err}")
        self.command = command
        self.err = err

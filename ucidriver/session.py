"""
EngineSession: a synchronous UCI conversation with one engine process.

The session owns exactly one child process. Each public method is a full
blocking round trip: format a command, write it, then read lines until the
reply that terminates that particular exchange has been seen.

Protocol overview (the subset spoken here):
    GUI -> Engine: uci, isready, ucinewgame, position, go, setoption, <raw>
    Engine -> GUI: <banner>, info ..., bestmove ..., readyok

Termination rules:
    best_move, evaluation: stop at the first "bestmove" line.
    set_option, send_command, new_game, synchronize: send "isready" and
        stop at "readyok".

UCI has no acknowledgement for "position" or "setoption"; the only universal
barrier is "isready" -> "readyok", so every non-search exchange ends with it.

Threading model:
    There is none. One caller drives one session. A lock is held for the
    duration of every public call so that a session shared between threads
    is serialized rather than interleaved, but there is no timeout and no
    cancellation: a hung engine blocks the caller forever.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
import weakref
from typing import Iterable, Sequence

from ucidriver import parsing
from ucidriver.config import SessionConfig
from ucidriver.constants import (
    CMD_ISREADY,
    CMD_UCI,
    CMD_UCINEWGAME,
    SYNC_GRACE_SECONDS,
    TOKEN_READYOK,
)
from ucidriver.errors import EngineError, EngineIOError, NotFoundError, SpawnError, UnknownOptionError
from ucidriver.streams import CommandWriter, LineReader

_log = logging.getLogger(__name__)


def _reap(process: subprocess.Popen) -> None:
    """Kill the engine if it is still running, wait for it, close its pipes."""
    if process.poll() is None:
        process.kill()
    process.wait()
    for stream in (process.stdin, process.stdout):
        if stream is not None:
            stream.close()
    _log.info("Engine process %s reaped", getattr(process, "pid", None))


def _argv(command: str | os.PathLike | Sequence[str]) -> list[str]:
    if isinstance(command, (str, os.PathLike)):
        return [os.fspath(command)]
    return [os.fspath(part) for part in command]


class EngineSession:
    """
    Stateful UCI session bound to one engine process.

    Attributes:
        config: Current search defaults (movetime, depth). Replaced, never
                mutated, by with_movetime() and with_depth().
    """

    def __init__(
        self,
        process: subprocess.Popen,
        *,
        config: SessionConfig | None = None,
        log_commands: bool = True,
    ) -> None:
        self._process: subprocess.Popen | None = process
        self._writer = CommandWriter(process.stdin, log_commands=log_commands)
        self._reader = LineReader(process.stdout)
        self._lock = threading.RLock()
        self._finalizer = weakref.finalize(self, _reap, process)
        self.config = config if config is not None else SessionConfig()

    # -----------------------------------------------------------------------
    # Construction & lifecycle
    # -----------------------------------------------------------------------

    @classmethod
    def spawn(
        cls,
        command: str | os.PathLike | Sequence[str],
        *,
        log_commands: bool = True,
    ) -> "EngineSession":
        """
        Start an engine executable and open a session on it.

        After the process starts, its startup banner (the first line it
        prints) is read and discarded and "uci" is sent. The multi-line reply
        to "uci" is NOT read here; call synchronize() to drain it if the next
        exchange must start from a clean stream.

        Args:
            command:      Path to the engine executable, or a full argv list.
            log_commands: Log every written command at INFO level.

        Returns:
            A ready session.

        Raises:
            SpawnError:    The executable could not be launched.
            EngineIOError: The engine died before printing its banner.
        """
        argv = _argv(command)
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                bufsize=0,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise SpawnError(command, exc) from exc

        _log.info("Spawned engine %r (pid %s)", argv, process.pid)
        session = cls(process, log_commands=log_commands)
        try:
            session._reader.read_line()
            session._writer.write(f"{CMD_UCI}\n")
        except EngineError:
            _log.warning("Engine %r failed during startup", argv)
            session.close()
            raise
        return session

    def close(self) -> None:
        """
        Kill and reap the engine process. Safe to call more than once.

        Does not take the session lock, so another thread can tear down a
        session whose search never returns. Killing the process closes the
        pipe; the blocked call then fails with EngineExitedError and releases
        the lock.
        """
        self._finalizer()
        self._process = None

    @property
    def closed(self) -> bool:
        return self._process is None

    @property
    def is_alive(self) -> bool:
        """True while the engine process has not exited."""
        return self._process is not None and self._process.poll() is None

    def __enter__(self) -> "EngineSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        pid = getattr(self._process, "pid", None)
        return f"EngineSession(pid={pid}, movetime={self.movetime}, depth={self.depth})"

    # -----------------------------------------------------------------------
    # Configuration (builder style)
    # -----------------------------------------------------------------------

    @property
    def movetime(self) -> int:
        return self.config.movetime

    @property
    def depth(self) -> int | None:
        return self.config.depth

    def with_movetime(self, movetime: int) -> "EngineSession":
        """
        Change the time the engine spends per search.

        Args:
            movetime: New time limit in milliseconds (positive).

        Returns:
            This session, for chaining.
        """
        self.config = SessionConfig(movetime=movetime, depth=self.config.depth)
        return self

    def with_depth(self, depth: int | None) -> "EngineSession":
        """
        Change the search depth, or clear it with None.

        Args:
            depth: New depth in plies, or None to search by movetime only.

        Returns:
            This session, for chaining.
        """
        self.config = SessionConfig(movetime=self.config.movetime, depth=depth)
        return self

    # -----------------------------------------------------------------------
    # Position setup
    # -----------------------------------------------------------------------

    def play_moves_from_start(self, moves: Iterable[str]) -> None:
        """
        Set the engine's board to the initial position followed by `moves`.

        Moves use coordinate notation (e.g. "e2e4", "e7e8q") and are passed
        through unchecked.
        """
        with self._lock:
            self._write(parsing.format_position_startpos(moves))

    def set_position(self, fen: str) -> None:
        """Set the engine's board to the position described by `fen`."""
        self.set_position_with_moves(fen, [])

    def set_position_with_moves(self, fen: str, moves: Iterable[str]) -> None:
        """Set the board to `fen`, then play `moves` from it."""
        with self._lock:
            self._write(parsing.format_position_fen(fen, moves))

    # -----------------------------------------------------------------------
    # Search
    # -----------------------------------------------------------------------

    def best_move(self) -> str:
        """
        Search the current position and return the engine's best move.

        Blocks until the engine prints a "bestmove" line.

        Raises:
            NotFoundError: The "bestmove" line carried no move.
            EngineIOError: The engine stream failed or closed.
        """
        with self._lock:
            self._trigger_search()
            while True:
                line = self._read_line()
                if parsing.is_bestmove(line):
                    return parsing.parse_bestmove(line)

    def evaluation(self) -> int:
        """
        Search the current position and return its centipawn score.

        The score comes from the last "info" line printed before "bestmove"
        and is from the side to move's point of view.

        Raises:
            NotFoundError: No "info" line, or the last one has no integer
                           "cp" value (mate scores included).
            EngineIOError: The engine stream failed or closed.
        """
        with self._lock:
            self._trigger_search()
            info: str | None = None
            while True:
                line = self._read_line()
                if parsing.is_info(line):
                    info = line
                if parsing.is_bestmove(line):
                    break

        if info is None:
            raise NotFoundError("no info line before bestmove")
        return parsing.parse_cp(info)

    def _trigger_search(self) -> None:
        self._write(parsing.format_go(self.config.movetime, self.config.depth))

    # -----------------------------------------------------------------------
    # Options and raw commands
    # -----------------------------------------------------------------------

    def set_option(self, name: str, value: str) -> None:
        """
        Set an engine-specific option.

        Any output the engine prints between "setoption" and "readyok" is
        taken as a rejection. UCI does not require engines to report unknown
        options, so a silent rejection goes unnoticed, and unrelated output
        still waiting in the stream is mistaken for one.

        Raises:
            UnknownOptionError: The engine printed something in reply.
        """
        with self._lock:
            self._write(parsing.format_setoption(name, value))
            output = self._synchronize()
        if output.strip():
            raise UnknownOptionError(name)

    def send_command(self, command: str) -> str:
        """
        Send an arbitrary command and return everything printed before "readyok".

        Example:
            analysis = engine.send_command("go depth 10")
        """
        with self._lock:
            self._write(parsing.format_raw(command))
            time.sleep(SYNC_GRACE_SECONDS)
            return self._synchronize()

    def new_game(self) -> str:
        """Tell the engine the next position belongs to a new game."""
        with self._lock:
            self._write(f"{CMD_UCINEWGAME}\n")
            return self._synchronize()

    def synchronize(self) -> str:
        """
        Wait until the engine has processed everything sent so far.

        Returns:
            The lines read before "readyok", newline-joined.
        """
        with self._lock:
            return self._synchronize()

    # -----------------------------------------------------------------------
    # Internal helpers (callers hold the lock)
    # -----------------------------------------------------------------------

    def _synchronize(self) -> str:
        lines: list[str] = []
        self._write(f"{CMD_ISREADY}\n")
        while True:
            line = self._read_line().strip()
            if line == TOKEN_READYOK:
                return "\n".join(lines)
            lines.append(line)

    def _write(self, text: str) -> None:
        if self._process is None:
            raise EngineIOError("session is closed")
        self._writer.write(text)

    def _read_line(self) -> str:
        if self._process is None:
            raise EngineIOError("session is closed")
        return self._reader.read_line()

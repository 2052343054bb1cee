"""
Line-level I/O primitives over the engine's standard streams.

UCI is a line protocol: every command the GUI sends and every reply the
engine emits is a single newline-terminated line. The two classes here are
the only code that touches the raw byte streams of the engine process.

    CommandWriter : formats nothing, just logs and writes one command line.
    LineReader    : blocks until exactly one complete line is available.

Both translate low-level failures into the session's error taxonomy so the
callers never see a bare OSError.
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from ucidriver.constants import NEWLINE
from ucidriver.errors import EngineExitedError, EngineIOError

_log = logging.getLogger(__name__)


class CommandWriter:
    """
    Writes command lines to the engine's input stream.

    Attributes:
        stream:       Binary, writable stream connected to the engine's stdin.
        log_commands: When True every command is logged at INFO level before
                      it is written.
    """

    def __init__(self, stream: BinaryIO, *, log_commands: bool = True) -> None:
        self.stream = stream
        self.log_commands = log_commands

    def write(self, text: str) -> None:
        """
        Write one already-formatted command to the engine.

        The text is sent as-is (callers include the trailing newline) and the
        stream is flushed immediately; an engine never sees a command until
        the pipe buffer is flushed.

        Args:
            text: Command text, normally ending in a newline.

        Raises:
            EngineIOError: The stream is closed or the write failed (e.g. the
                           engine exited and the pipe is broken).
        """
        if self.log_commands:
            _log.info("Command: %r", text)
        try:
            self.stream.write(text.encode("utf-8"))
            self.stream.flush()
        except (OSError, ValueError) as exc:
            raise EngineIOError(exc) from exc


class LineReader:
    """
    Reads reply lines from the engine's output stream.

    Reads a single byte at a time. UCI traffic is tiny, so throughput does
    not matter, and reading past the newline would require keeping a
    lookahead buffer between calls.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def read_line(self) -> str:
        """
        Block until one complete line has been read and return it.

        Returns:
            The decoded line including its trailing newline.

        Raises:
            EngineExitedError: The stream reached end-of-file before a newline.
            EngineIOError:     The read itself failed.
        """
        buf = bytearray()
        while True:
            try:
                byte = self.stream.read(1)
            except (OSError, ValueError) as exc:
                raise EngineIOError(exc) from exc
            if not byte:
                raise EngineExitedError()
            buf += byte
            if byte == NEWLINE:
                break

        line = buf.decode("utf-8", errors="replace")
        _log.debug("Reply: %r", line)
        return line

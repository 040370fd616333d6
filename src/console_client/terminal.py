"""Local terminal adapter: stdin/stdout and raw mode handling."""

from __future__ import annotations

import logging
import os
import sys
import termios
import tty
from contextlib import contextmanager
from typing import Any, Iterator

from console_client.errors import SetupError, StreamError

logger = logging.getLogger(__name__)

# termios attribute list as returned by tcgetattr()
SavedMode = list[Any]


class TerminalAdapter:
    """The process's own input and output file descriptors.

    The descriptors are borrowed and never closed here. When the input is a
    tty, ``raw_mode()`` switches it to raw mode and always restores the saved
    attributes on the way out.
    """

    def __init__(self, fd_in: int, fd_out: int) -> None:
        self.fd_in = fd_in
        self.fd_out = fd_out

    @classmethod
    def from_stdio(cls) -> TerminalAdapter:
        return cls(sys.stdin.fileno(), sys.stdout.fileno())

    def fileno(self) -> int:
        return self.fd_in

    def is_interactive(self) -> bool:
        return os.isatty(self.fd_in)

    def enter_raw_mode(self) -> SavedMode:
        """Put the input into raw mode and return the previous attributes.

        Raises:
            SetupError: The terminal attributes could not be read or set.
        """
        try:
            saved = termios.tcgetattr(self.fd_in)
        except termios.error as e:
            raise SetupError(f"Can't get terminal attributes for console: {e}") from e

        try:
            tty.setraw(self.fd_in, termios.TCSANOW)
        except termios.error as e:
            raise SetupError(f"Can't set terminal attributes for console: {e}") from e

        logger.debug("Terminal fd %d switched to raw mode", self.fd_in)
        return saved

    def restore_mode(self, saved: SavedMode) -> None:
        try:
            termios.tcsetattr(self.fd_in, termios.TCSANOW, saved)
        except termios.error as e:
            logger.warning("Can't restore terminal attributes: %s", e)
            return
        logger.debug("Terminal fd %d restored", self.fd_in)

    @contextmanager
    def raw_mode(self) -> Iterator[SavedMode | None]:
        """Hold the terminal in raw mode for the duration of the block.

        Yields the saved attributes, or ``None`` when the input is not a tty
        and nothing was changed.
        """
        if not self.is_interactive():
            yield None
            return

        saved = self.enter_raw_mode()
        try:
            yield saved
        finally:
            self.restore_mode(saved)

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes of input. Empty bytes means end of input."""
        try:
            return os.read(self.fd_in, size)
        except OSError as e:
            raise StreamError(f"Can't read from terminal: {e}") from e

    def write(self, data: bytes) -> None:
        """Write all of ``data`` to the output, retrying short writes."""
        view = memoryview(data)
        while view:
            try:
                written = os.write(self.fd_out, view)
            except OSError as e:
                raise StreamError(f"Can't write to terminal: {e}") from e
            view = view[written:]

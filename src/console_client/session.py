"""Console session: the forwarding loop between terminal and socket."""

from __future__ import annotations

import enum
import logging
import selectors
from contextlib import ExitStack
from dataclasses import dataclass, field

from console_client.errors import StreamError
from console_client.escape import ScannerState, scan
from console_client.terminal import TerminalAdapter
from console_client.transport import UnixSocketTransport

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 4096


class Termination(enum.Enum):
    """Why a session stopped forwarding."""

    USER_DETACH = "user-detach"
    PEER_CLOSED = "peer-closed"
    END_OF_INPUT = "end-of-input"
    IO_ERROR = "io-error"

    @property
    def exit_code(self) -> int:
        return 1 if self is Termination.IO_ERROR else 0


@dataclass
class Session:
    """An attached console session.

    Forwards terminal input to the socket through the escape scanner and
    socket output to the terminal verbatim, until the user detaches, either
    side reaches end of stream, or an I/O error occurs.

    The session owns the transport (closed when ``run()`` returns) and the
    terminal's raw-mode save/restore. It does not own the terminal fds.
    """

    transport: UnixSocketTransport
    terminal: TerminalAdapter
    buffer_size: int = DEFAULT_BUFFER_SIZE

    # Internal state
    scanner_state: ScannerState = field(default_factory=ScannerState)
    _termination: Termination | None = field(default=None, init=False)
    _error: str | None = field(default=None, init=False)

    def run(self) -> Termination:
        """Forward until the session terminates, then clean up.

        Raises:
            SetupError: The terminal could not be switched to raw mode.
                The transport is still closed.
        """
        with ExitStack() as stack:
            stack.enter_context(self.transport)
            stack.enter_context(self.terminal.raw_mode())
            self._termination = self._forward()

        logger.info("Session ended: %s", self._termination.value)
        return self._termination

    def _forward(self) -> Termination:
        # poll accepts regular files and /dev/null as input; epoll does not
        with selectors.PollSelector() as selector:
            selector.register(self.terminal, selectors.EVENT_READ, "terminal")
            selector.register(self.transport, selectors.EVENT_READ, "transport")

            while True:
                ready = {key.data for key, _ in selector.select()}

                # Terminal input first: a detach must win over peer output
                # that arrived in the same wakeup.
                if "terminal" in ready:
                    outcome = self.process_terminal()
                    if outcome is not None:
                        return outcome

                if "transport" in ready:
                    outcome = self.process_transport()
                    if outcome is not None:
                        return outcome

    def process_terminal(self) -> Termination | None:
        """Read one chunk of terminal input and forward what the scanner allows.

        Returns a ``Termination`` if the session should stop, else None.
        """
        try:
            chunk = self.terminal.read(self.buffer_size)
        except StreamError as e:
            return self._fail(e)

        if not chunk:
            logger.debug("End of terminal input")
            return Termination.END_OF_INPUT

        result = scan(chunk, self.scanner_state)
        self.scanner_state = result.state

        if result.forward:
            try:
                self.transport.write(result.forward)
            except StreamError as e:
                return self._fail(e)

        if result.detach:
            logger.debug("Escape sequence received, detaching")
            return Termination.USER_DETACH

        logger.debug(
            "terminal -> socket: %d of %d bytes (%d held)",
            len(result.forward),
            len(chunk),
            len(result.state.held),
        )
        return None

    def process_transport(self) -> Termination | None:
        """Copy one chunk from the socket to the terminal output."""
        try:
            data = self.transport.read(self.buffer_size)
        except StreamError as e:
            return self._fail(e)

        if not data:
            logger.debug("Server closed the connection")
            return Termination.PEER_CLOSED

        try:
            self.terminal.write(data)
        except StreamError as e:
            return self._fail(e)

        logger.debug("socket -> terminal: %d bytes", len(data))
        return None

    @property
    def termination(self) -> Termination | None:
        return self._termination

    @property
    def error(self) -> str | None:
        """Description of the I/O failure that ended the session, if any."""
        return self._error

    def _fail(self, error: StreamError) -> Termination:
        # The terminal may still be raw here; the CLI reports after restore
        logger.debug("Stream error: %s", error)
        self._error = str(error)
        return Termination.IO_ERROR

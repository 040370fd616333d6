"""Unix socket transport to the console server."""

from __future__ import annotations

import logging
import socket

from console_client.errors import SetupError, StreamError

logger = logging.getLogger(__name__)


def socket_address(path: str) -> str | bytes:
    """Map a configured socket path to an ``AF_UNIX`` address.

    A leading ``@`` names a socket in the Linux abstract namespace
    (``@obmc-console`` -> ``b"\\0obmc-console"``); anything else is a
    filesystem path.
    """
    if path.startswith("@"):
        return b"\0" + path[1:].encode()
    return path


class UnixSocketTransport:
    """A connected ``SOCK_STREAM`` Unix socket.

    Owns the socket: ``close()`` releases it once, later calls are no-ops.
    Usable as a context manager so the session closes it on every exit path.
    """

    def __init__(self, sock: socket.socket, path: str = "") -> None:
        self._sock = sock
        self.path = path
        self._closed = False

    @classmethod
    def connect(cls, path: str) -> UnixSocketTransport:
        """Connect to the console server listening at ``path``.

        Raises:
            SetupError: The socket could not be created or connected.
        """
        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as e:
            raise SetupError(f"Can't open socket: {e}") from e

        try:
            sock.connect(socket_address(path))
        except OSError as e:
            sock.close()
            raise SetupError(f"Can't connect to console server at {path}: {e}") from e

        logger.info("Connected to console server at %s", path)
        return cls(sock, path=path)

    def fileno(self) -> int:
        return self._sock.fileno()

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes. Empty bytes means the peer closed."""
        try:
            return self._sock.recv(size)
        except OSError as e:
            raise StreamError(f"Can't read from server: {e}") from e

    def write(self, data: bytes) -> None:
        """Send all of ``data`` or raise ``StreamError``."""
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise StreamError(f"Can't write to server: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._sock.close()
        logger.debug("Closed socket %s", self.path)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> UnixSocketTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

"""Error types for the console client."""

from __future__ import annotations


class ConsoleClientError(Exception):
    """Base class for console client failures."""


class SetupError(ConsoleClientError):
    """Connecting to the console or configuring the terminal failed.

    Raised before the forwarding loop starts; the client exits without
    attaching.
    """


class StreamError(ConsoleClientError):
    """A read or write failed on the socket or the terminal mid-session."""

"""Escape scanner: detects the detach sequence in terminal input.

The detach command is a carriage return followed by ``~`` and ``.``, the same
convention ssh uses. Input arrives in arbitrary chunks, so a partially typed
sequence is withheld from the socket until the next read either completes it
(detach) or breaks it (the withheld bytes were ordinary input after all).

The scanner is a pure function: callers thread the returned state into the
next call.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

ESCAPE_SEQUENCE = b"~."
CR = 0x0D


class Verdict(enum.Enum):
    """What the caller should do after forwarding a scan's output."""

    CONTINUE = "continue"
    DETACH = "detach"


@dataclass(frozen=True)
class ScannerState:
    """Progress through the escape sequence, carried between reads.

    ``held`` is the withheld tail of the input: the matched prefix of the
    escape sequence, plus the carriage return that anchored it when both
    arrived in the same read. It is non-empty exactly when ``matched > 0``.
    """

    at_line_start: bool = False
    matched: int = 0
    held: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= self.matched < len(ESCAPE_SEQUENCE):
            raise ValueError(f"matched out of range: {self.matched}")
        if bool(self.held) != bool(self.matched):
            raise ValueError(
                f"held bytes {self.held!r} inconsistent with matched={self.matched}"
            )


@dataclass(frozen=True)
class ScanResult:
    """Output of one scan: bytes safe to send now, next state, verdict."""

    forward: bytes
    state: ScannerState
    verdict: Verdict = Verdict.CONTINUE

    @property
    def detach(self) -> bool:
        return self.verdict is Verdict.DETACH


def scan(chunk: bytes, state: ScannerState) -> ScanResult:
    """Scan a chunk of terminal input for the detach sequence.

    Args:
        chunk: Bytes just read from the terminal.
        state: State returned by the previous call (``ScannerState()`` for
               the first read).

    Returns:
        A ``ScanResult``. On ``Verdict.DETACH`` only the bytes before the
        sequence are forwarded; the sequence, its anchoring carriage return
        and anything after it in the chunk are dropped.
    """
    if not chunk:
        return ScanResult(forward=b"", state=state)

    data = state.held + chunk
    at_line_start = state.at_line_start
    matched = state.matched
    # Start of the withheld tail within ``data``; None when nothing is held.
    cut: int | None = 0 if state.held else None
    # Carriage return in this read that may anchor a new sequence.
    anchor: int | None = None

    for i in range(len(state.held), len(data)):
        byte = data[i]

        if byte == CR:
            if not matched:
                anchor = i
            at_line_start = True
            continue

        if not at_line_start:
            continue

        if byte == ESCAPE_SEQUENCE[matched]:
            if not matched:
                cut = i if anchor is None else anchor
            matched += 1
            if matched == len(ESCAPE_SEQUENCE):
                return ScanResult(
                    forward=data[:cut],
                    state=ScannerState(),
                    verdict=Verdict.DETACH,
                )
        else:
            # Broken sequence: anything held is ordinary input again
            matched = 0
            at_line_start = False
            cut = None
            anchor = None

    if cut is None:
        return ScanResult(
            forward=data,
            state=ScannerState(at_line_start=at_line_start),
        )
    return ScanResult(
        forward=data[:cut],
        state=ScannerState(
            at_line_start=at_line_start, matched=matched, held=data[cut:]
        ),
    )

"""Tests for console_client.escape (scan, ScannerState, Verdict)."""

from __future__ import annotations

import pytest

from console_client.escape import ESCAPE_SEQUENCE, ScannerState, Verdict, scan


def _feed(chunks: list[bytes], state: ScannerState | None = None):
    """Scan chunks in order, returning (forwarded bytes, final result)."""
    state = state or ScannerState()
    forwarded = b""
    result = None
    for chunk in chunks:
        result = scan(chunk, state)
        forwarded += result.forward
        state = result.state
        if result.detach:
            break
    return forwarded, result


# ---------------------------------------------------------------------------
# Ordinary input
# ---------------------------------------------------------------------------


class TestOrdinaryInput:
    def test_escape_sequence_constant(self) -> None:
        assert ESCAPE_SEQUENCE == b"~."

    def test_no_carriage_return_forwards_everything(self) -> None:
        result = scan(b"ls -la /tmp", ScannerState())
        assert result.forward == b"ls -la /tmp"
        assert result.verdict is Verdict.CONTINUE
        assert result.state.matched == 0
        assert result.state.held == b""

    def test_mid_line_sequence_is_data(self) -> None:
        result = scan(b"echo ~.", ScannerState())
        assert result.forward == b"echo ~."
        assert result.state.matched == 0
        assert result.verdict is Verdict.CONTINUE

    def test_newline_is_not_a_line_start(self) -> None:
        """Only carriage return anchors the sequence, not line feed."""
        result = scan(b"\n~.", ScannerState())
        assert result.forward == b"\n~."
        assert not result.detach

    def test_empty_chunk_is_noop(self) -> None:
        state = ScannerState(at_line_start=True, matched=1, held=b"~")
        result = scan(b"", state)
        assert result.forward == b""
        assert result.state == state
        assert result.verdict is Verdict.CONTINUE

    def test_trailing_carriage_return_is_forwarded(self) -> None:
        result = scan(b"make\r", ScannerState())
        assert result.forward == b"make\r"
        assert result.state.at_line_start is True
        assert result.state.matched == 0

    def test_line_start_cleared_by_other_byte(self) -> None:
        result = scan(b"\rx", ScannerState())
        assert result.forward == b"\rx"
        assert result.state.at_line_start is False

    def test_state_rejects_match_without_held_bytes(self) -> None:
        with pytest.raises(ValueError):
            ScannerState(at_line_start=True, matched=1)

    def test_state_rejects_held_bytes_without_match(self) -> None:
        with pytest.raises(ValueError):
            ScannerState(at_line_start=True, held=b"~")

    def test_state_rejects_matched_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            ScannerState(at_line_start=True, matched=2, held=b"~.")

    def test_initial_state_is_not_line_start(self) -> None:
        result = scan(b"~.", ScannerState())
        assert result.forward == b"~."
        assert not result.detach


# ---------------------------------------------------------------------------
# Detach
# ---------------------------------------------------------------------------


class TestDetach:
    def test_single_chunk(self) -> None:
        result = scan(b"\r~.", ScannerState())
        assert result.verdict is Verdict.DETACH
        assert result.forward == b""

    def test_split_after_tilde(self) -> None:
        first = scan(b"\r~", ScannerState())
        assert first.verdict is Verdict.CONTINUE
        assert first.state.matched == 1
        assert first.state.held == b"\r~"
        assert first.forward == b""

        second = scan(b".", first.state)
        assert second.verdict is Verdict.DETACH
        assert first.forward + second.forward == b""

    def test_split_after_carriage_return(self) -> None:
        forwarded, result = _feed([b"\r", b"~."])
        assert result.detach
        # The carriage return was already sent with the first read
        assert forwarded == b"\r"

    def test_one_byte_per_read(self) -> None:
        forwarded, result = _feed([b"\r", b"~", b"."])
        assert result.detach
        assert forwarded == b"\r"

    def test_data_before_sequence_is_flushed(self) -> None:
        result = scan(b"hello\r~.", ScannerState())
        assert result.detach
        assert result.forward == b"hello"

    def test_bytes_after_sequence_are_dropped(self) -> None:
        result = scan(b"\r~.more", ScannerState())
        assert result.detach
        assert result.forward == b""

    def test_state_reset_after_detach(self) -> None:
        result = scan(b"\r~.", ScannerState())
        assert result.state == ScannerState()

    def test_detach_on_later_line(self) -> None:
        forwarded, result = _feed([b"hello\r\n", b"\r~.more"])
        assert result.detach
        assert forwarded == b"hello\r\n"

    def test_repeated_carriage_returns(self) -> None:
        result = scan(b"\r\r~.", ScannerState())
        assert result.detach
        assert result.forward == b"\r"

    def test_sequence_after_broken_attempt(self) -> None:
        result = scan(b"\r~x\r~.", ScannerState())
        assert result.detach
        assert result.forward == b"\r~x"


# ---------------------------------------------------------------------------
# Broken sequences
# ---------------------------------------------------------------------------


class TestBrokenSequence:
    def test_single_chunk_forwards_input_unchanged(self) -> None:
        result = scan(b"\r~x", ScannerState())
        assert result.verdict is Verdict.CONTINUE
        assert result.forward == b"\r~x"
        assert result.state.matched == 0
        assert result.state.at_line_start is False
        assert result.state.held == b""

    def test_split_flushes_held_bytes_first(self) -> None:
        first = scan(b"\r~", ScannerState())
        second = scan(b"x", first.state)
        assert second.verdict is Verdict.CONTINUE
        assert first.forward + second.forward == b"\r~x"
        assert second.state.matched == 0
        assert second.state.at_line_start is False

    def test_double_tilde(self) -> None:
        forwarded, result = _feed([b"\r~", b"~."])
        assert not result.detach
        assert forwarded == b"\r~~."

    def test_tilde_at_line_start_from_previous_read(self) -> None:
        forwarded, result = _feed([b"ok\r", b"~", b"q"])
        assert not result.detach
        assert forwarded == b"ok\r~q"

    def test_order_preserved_across_reads(self) -> None:
        chunks = [b"a\r", b"~", b"b\r~", b"c"]
        forwarded, result = _feed(chunks)
        assert not result.detach
        assert forwarded == b"".join(chunks)


# ---------------------------------------------------------------------------
# Carriage return during a pending match
# ---------------------------------------------------------------------------


class TestCarriageReturnDuringMatch:
    def test_match_survives_carriage_return(self) -> None:
        result = scan(b"\r~\r", ScannerState())
        assert result.state.matched == 1
        assert result.state.at_line_start is True
        assert result.state.held == b"\r~\r"
        assert result.forward == b""

    def test_completes_after_carriage_return(self) -> None:
        result = scan(b"\r~\r.", ScannerState())
        assert result.detach
        assert result.forward == b""

    def test_completes_across_reads(self) -> None:
        forwarded, result = _feed([b"\r~", b"\r", b"."])
        assert result.detach
        assert forwarded == b""

    def test_broken_after_carriage_return_flushes_in_order(self) -> None:
        forwarded, result = _feed([b"\r~", b"\r", b"z"])
        assert not result.detach
        assert forwarded == b"\r~\rz"

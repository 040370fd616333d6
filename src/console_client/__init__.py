"""console-client: attach a terminal to a console server socket."""

from console_client.escape import ESCAPE_SEQUENCE, ScannerState, ScanResult, Verdict, scan
from console_client.session import Session, Termination

__all__ = [
    "ESCAPE_SEQUENCE",
    "ScannerState",
    "ScanResult",
    "Verdict",
    "scan",
    "Session",
    "Termination",
]

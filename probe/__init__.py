"""
HTTP/2 Desync Probe

Architecture:
=============
- FrameConnection: TLS byte stream, raw writes and hyperframe-based frame reads
- establish_connection: preface + SETTINGS + WINDOW_UPDATE
- ResponseClassifier: per-connection loop that reports what the server did
  with the target stream (SUCCESS / RST_STREAM / GOAWAY)
- HeaderBlockDecoder: hpack-based decoding of response header blocks

Usage:
======
    from h2raw import RequestSpec
    from probe import run_probe

    spec = RequestSpec("example.com", "/", "POST", "transfer-encoding", "chunked")
    termination = await run_probe("example.com", 443, spec, print)
"""

from .config import ProbeConfig, ProbeSettings
from .connection import FrameConnection, FrameKind, InboundFrame
from .decoder import HeaderBlockDecoder
from .handshake import establish_connection, send_frame
from .scan_job import ScanJob
from .classifier import (
    ResponseClassifier,
    StreamState,
    LoopState,
    Termination,
    TerminationReason,
)
from .runner import probe_connection, run_probe

__all__ = [
    # Configuration
    "ProbeConfig",
    "ProbeSettings",

    # Connection
    "FrameConnection",
    "FrameKind",
    "InboundFrame",
    "HeaderBlockDecoder",
    "establish_connection",
    "send_frame",

    # Classification
    "ScanJob",
    "ResponseClassifier",
    "StreamState",
    "LoopState",
    "Termination",
    "TerminationReason",

    # Runner
    "probe_connection",
    "run_probe",
]

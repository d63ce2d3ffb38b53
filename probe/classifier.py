"""
Response Classifier - turns the server's frames into scan results

Reads frames from one connection until GOAWAY, peer close or a read error,
and reports what happened to the target stream through a callback:

    SUCCESS [<status>] Length: <n>
    SUCCESS [<status>] - Keyword: <true|false> - Length: <n>
    RST_STREAM: <error name>
    GOAWAY

How the loop ended is returned from run(). Only a GOAWAY ending is
conclusive; peer close and read errors leave the job inconclusive.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from hpack import HPACKError

from h2raw.constants import H2_ERROR_NO_ERROR, describe_error_code
from h2raw.exceptions import ConnectionMissingError, PeerClosedError

from .connection import FrameKind, InboundFrame
from .decoder import HeaderBlockDecoder
from .scan_job import ScanJob

ResultCallback = Callable[[str], None]

PEER_CLOSED_WARNING = "⚠️ Server unexpectedly closed the connection, is there a WAF? Results may be inaccurate."


class LoopState(Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


class TerminationReason(Enum):
    GOAWAY = "GOAWAY"
    PEER_CLOSED = "PEER_CLOSED"
    READ_ERROR = "READ_ERROR"


@dataclass
class Termination:
    """Why the classifier stopped."""
    reason: TerminationReason
    error: Optional[BaseException] = None

    @property
    def conclusive(self) -> bool:
        return self.reason is TerminationReason.GOAWAY

    def describe(self) -> str:
        if self.conclusive:
            return self.reason.value
        if self.error is not None:
            return f"INCONCLUSIVE ({self.reason.value}: {self.error!r})"
        return f"INCONCLUSIVE ({self.reason.value})"


@dataclass
class StreamState:
    """Response body bookkeeping for one stream."""
    bytes_received: int = 0
    body: bytearray = field(default_factory=bytearray)


class ResponseClassifier:
    """
    Classifies the responses seen on one probe connection.

    One instance per connection. Frames are handled strictly in arrival
    order; the frame read is the only await. Stream state is private to the
    instance.
    """

    def __init__(self, job: ScanJob, on_result: ResultCallback,
                 decoder: Optional[HeaderBlockDecoder] = None, debug: bool = False):
        self.job = job
        self.on_result = on_result
        self.decoder = decoder or HeaderBlockDecoder()
        self.debug = debug

        self.state = LoopState.RUNNING
        self.termination: Optional[Termination] = None

        # Last :status seen on the connection (last value wins)
        self.status = ""

        # stream_id -> StreamState, created on first DATA frame
        self.streams: Dict[int, StreamState] = {}

        self._handlers = {
            FrameKind.HEADERS: self._on_headers,
            FrameKind.DATA: self._on_data,
            FrameKind.GOAWAY: self._on_goaway,
            FrameKind.RST_STREAM: self._on_rst_stream,
            FrameKind.SETTINGS: self._on_ignored,
            FrameKind.OTHER: self._on_ignored,
        }

    async def run(self) -> Termination:
        """
        Read and classify frames until the connection is done.

        Returns:
            Termination: why the loop stopped

        Raises:
            ConnectionMissingError: if the job has no connection
        """
        if self.job.connection is None:
            raise ConnectionMissingError()

        while self.state is LoopState.RUNNING:
            try:
                frame = await self.job.connection.read_frame()
            except PeerClosedError:
                print(f"    {PEER_CLOSED_WARNING}")
                self._terminate(TerminationReason.PEER_CLOSED)
                break
            except Exception as e:
                if self.debug:
                    print(f"    ❌ Read error: {e!r}")
                self._terminate(TerminationReason.READ_ERROR, e)
                break

            self.process_frame(frame)

        return self.termination

    def process_frame(self, frame: InboundFrame) -> None:
        """Dispatch one frame to its handler."""
        self._handlers[frame.kind](frame)

    # =========================================================================
    # Frame handlers
    # =========================================================================

    def _on_headers(self, frame: InboundFrame) -> None:
        try:
            self.decoder.decode(frame.header_block, self._on_header_field)
        except HPACKError as e:
            print(f"    ❌ Error decoding header block on stream {frame.stream_id}: {e}")

        # HEADERS that also ends the stream: response without a body
        if frame.end_headers and frame.end_stream and frame.stream_id == self.job.target_stream_id:
            self._emit(f"SUCCESS [{self.status}] Length: 0")

    def _on_header_field(self, name: str, value: str) -> None:
        if name == ":status":
            self.status = value

    def _on_data(self, frame: InboundFrame) -> None:
        stream = self.streams.setdefault(frame.stream_id, StreamState())
        stream.bytes_received += len(frame.data)
        stream.body += frame.data

        if not frame.end_stream:
            return

        if frame.stream_id == self.job.target_stream_id:
            if self.job.keyword:
                found = self.job.keyword.encode('utf-8') in stream.body
                self._emit(f"SUCCESS [{self.status}] - Keyword: {str(found).lower()} "
                           f"- Length: {stream.bytes_received}")
            else:
                self._emit(f"SUCCESS [{self.status}] Length: {stream.bytes_received}")

        # Count is kept, only the body is dropped
        stream.body.clear()

    def _on_goaway(self, frame: InboundFrame) -> None:
        if self.debug:
            print(f"    GOAWAY: last_stream={frame.last_stream_id}, "
                  f"error={describe_error_code(frame.error_code)}")
        self._emit("GOAWAY")
        self._terminate(TerminationReason.GOAWAY)

    def _on_rst_stream(self, frame: InboundFrame) -> None:
        if frame.stream_id == self.job.target_stream_id and frame.error_code != H2_ERROR_NO_ERROR:
            self._emit(f"RST_STREAM: {describe_error_code(frame.error_code)}")

    def _on_ignored(self, frame: InboundFrame) -> None:
        if self.debug:
            print(f"    Ignoring {frame.kind.value} frame (type=0x{frame.frame_type:02x})")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _emit(self, message: str) -> None:
        self.on_result(message)

    def _terminate(self, reason: TerminationReason, error: Optional[BaseException] = None) -> None:
        self.state = LoopState.TERMINATED
        self.termination = Termination(reason, error)

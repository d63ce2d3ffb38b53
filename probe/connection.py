"""
Probe Connection - byte stream in, HTTP/2 frames out

Wraps an asyncio stream pair. Outbound data is written verbatim; inbound
data is cut into frames with hyperframe and reduced to a small closed set
of frame kinds the classifier dispatches on.
"""

import asyncio
import ssl
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from hyperframe.frame import (
    Frame,
    DataFrame,
    HeadersFrame,
    SettingsFrame,
    GoAwayFrame,
    RstStreamFrame,
)

from h2raw.constants import H2_FRAME_HEADER_SIZE, H2_FLAG_END_STREAM, H2_FLAG_END_HEADERS
from h2raw.exceptions import PeerClosedError


class FrameKind(Enum):
    """Inbound frame kinds the classifier distinguishes."""
    SETTINGS = "SETTINGS"
    HEADERS = "HEADERS"
    DATA = "DATA"
    GOAWAY = "GOAWAY"
    RST_STREAM = "RST_STREAM"
    OTHER = "OTHER"


_KIND_BY_TYPE = {
    SettingsFrame.type: FrameKind.SETTINGS,
    HeadersFrame.type: FrameKind.HEADERS,
    DataFrame.type: FrameKind.DATA,
    GoAwayFrame.type: FrameKind.GOAWAY,
    RstStreamFrame.type: FrameKind.RST_STREAM,
}


@dataclass
class InboundFrame:
    """A frame received from the server."""
    kind: FrameKind
    frame_type: int
    flags: int
    stream_id: int
    header_block: bytes = b""                   # HEADERS
    data: bytes = b""                           # DATA (padding removed)
    error_code: Optional[int] = None            # RST_STREAM, GOAWAY
    last_stream_id: Optional[int] = None        # GOAWAY
    settings: Dict[int, int] = field(default_factory=dict)  # SETTINGS

    @property
    def end_stream(self) -> bool:
        return bool(self.flags & H2_FLAG_END_STREAM)

    @property
    def end_headers(self) -> bool:
        return bool(self.flags & H2_FLAG_END_HEADERS)

    @classmethod
    def from_hyperframe(cls, frame: Frame, flags: int) -> "InboundFrame":
        """
        Convert a parsed hyperframe frame.

        Args:
            frame: Frame with header and body parsed
            flags: Raw flags byte from the frame header

        Returns:
            InboundFrame
        """
        kind = _KIND_BY_TYPE.get(frame.type, FrameKind.OTHER)
        inbound = cls(kind=kind, frame_type=frame.type, flags=flags, stream_id=frame.stream_id)

        if kind is FrameKind.HEADERS:
            inbound.header_block = bytes(frame.data)
        elif kind is FrameKind.DATA:
            inbound.data = bytes(frame.data)
        elif kind is FrameKind.RST_STREAM:
            inbound.error_code = frame.error_code
        elif kind is FrameKind.GOAWAY:
            inbound.error_code = frame.error_code
            inbound.last_stream_id = frame.last_stream_id
        elif kind is FrameKind.SETTINGS:
            inbound.settings = dict(frame.settings)

        return inbound


class FrameConnection:
    """
    HTTP/2 byte stream used by a single probe.

    - write() sends raw bytes and waits until they are flushed
    - read_frame() blocks until one complete frame has arrived

    A clean close between two frames raises PeerClosedError. A close in the
    middle of a frame raises asyncio.IncompleteReadError; malformed frames
    raise hyperframe errors.
    """

    def __init__(self, reader: asyncio.StreamReader, writer=None, debug: bool = False):
        self.reader = reader
        self.writer = writer
        self.debug = debug

    @classmethod
    async def open(cls, host: str, port: int = 443, server_hostname: Optional[str] = None,
                   timeout: Optional[float] = 10.0, debug: bool = False) -> "FrameConnection":
        """
        Open a TLS connection negotiating h2 via ALPN.

        Certificates are not verified; the target is a system under test.

        Args:
            host: Target host
            port: Target port
            server_hostname: SNI name (defaults to host)
            timeout: Connect timeout in seconds, None to wait forever
            debug: Enable debug output

        Returns:
            FrameConnection
        """
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        context.set_alpn_protocols(["h2"])

        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port, ssl=context,
                                    server_hostname=server_hostname or host),
            timeout=timeout,
        )

        ssl_object = writer.get_extra_info('ssl_object')
        alpn = ssl_object.selected_alpn_protocol() if ssl_object else None
        if debug:
            print(f"    🔐 TLS connected to {host}:{port} (ALPN: {alpn})")
        if alpn != "h2":
            print(f"    ⚠️ Server did not negotiate h2 (ALPN: {alpn}), results may be meaningless")

        return cls(reader, writer, debug=debug)

    async def write(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()
        if self.debug:
            print(f"    📤 Sent {len(data)} bytes")

    async def read_frame(self) -> InboundFrame:
        """
        Read exactly one frame.

        Returns:
            InboundFrame

        Raises:
            PeerClosedError: connection closed before a new frame started
        """
        try:
            header = await self.reader.readexactly(H2_FRAME_HEADER_SIZE)
        except asyncio.IncompleteReadError as e:
            if not e.partial:
                raise PeerClosedError() from None
            raise

        frame, length = Frame.parse_frame_header(memoryview(header))
        body = await self.reader.readexactly(length) if length else b""
        frame.parse_body(memoryview(body))

        inbound = InboundFrame.from_hyperframe(frame, header[4])
        if self.debug:
            print(f"    📥 {inbound.kind.value} stream={inbound.stream_id} "
                  f"flags=0x{inbound.flags:02x} length={length}")
        return inbound

    async def close(self) -> None:
        if self.writer is None:
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError:
            # Peer may already have torn the TLS session down
            pass

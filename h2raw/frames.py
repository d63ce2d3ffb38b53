"""
HTTP/2 Frame Building (RFC 9113 Section 4 and 6)

Frames are assembled byte by byte instead of through a generic encoder so that
the caller keeps full control over what ends up on the wire.
"""

import struct
from typing import Dict, Optional, Union

from .constants import (
    H2_FRAME_DATA, H2_FRAME_HEADERS, H2_FRAME_SETTINGS, H2_FRAME_WINDOW_UPDATE,
    H2_FLAG_NONE, H2_FLAG_END_STREAM, H2_FLAG_END_HEADERS,
    H2_STREAM_ID_MASK, H2_DEFAULT_WINDOW_UPDATE_INCREMENT,
    H2_SETTINGS_ENABLE_PUSH, H2_SETTINGS_MAX_CONCURRENT_STREAMS,
    H2_SETTINGS_INITIAL_WINDOW_SIZE, H2_SETTINGS_ENABLE_CONNECT_PROTOCOL,
)

# Sent in this order by build_settings_frame()
DEFAULT_SETTINGS = {
    H2_SETTINGS_ENABLE_PUSH: 0,
    H2_SETTINGS_MAX_CONCURRENT_STREAMS: 1000,
    H2_SETTINGS_INITIAL_WINDOW_SIZE: 6291456,
    H2_SETTINGS_ENABLE_CONNECT_PROTOCOL: 1,
}


def build_frame_header(length: int, frame_type: int, flags: int, stream_id: int) -> bytes:
    """
    Build the 9-byte HTTP/2 frame header.

    Layout:
        Length (24) | Type (8) | Flags (8) | R (1) | Stream Identifier (31)

    Args:
        length: Payload length (must fit in 24 bits)
        frame_type: Frame type
        flags: Frame flags
        stream_id: Stream identifier (reserved bit is cleared)

    Returns:
        bytes: Frame header
    """
    # Length is the low 3 bytes of a 32-bit big-endian integer
    header = struct.pack(">I", length)[1:]
    header += struct.pack(">BB", frame_type, flags)
    header += struct.pack(">I", stream_id & H2_STREAM_ID_MASK)
    return header


def build_settings_frame(settings: Optional[Dict[int, int]] = None) -> bytes:
    """
    Build HTTP/2 SETTINGS frame on stream 0.

    Frame Type: 0x04, no flags.
    Each setting is a 16-bit identifier followed by a 32-bit value.

    Args:
        settings: Dict of {setting_id: value}, sent in insertion order.
                  Defaults to DEFAULT_SETTINGS.

    Returns:
        bytes: Complete SETTINGS frame
    """
    if settings is None:
        settings = DEFAULT_SETTINGS

    payload = b""
    for setting_id, value in settings.items():
        payload += struct.pack(">HI", setting_id, value)

    return build_frame_header(len(payload), H2_FRAME_SETTINGS, H2_FLAG_NONE, 0) + payload


def build_window_update_frame(stream_id: int,
                              increment: int = H2_DEFAULT_WINDOW_UPDATE_INCREMENT) -> bytes:
    """
    Build HTTP/2 WINDOW_UPDATE frame.

    Frame Type: 0x08, no flags, 4-byte Window Size Increment.

    Args:
        stream_id: Stream to update (0 for the connection window)
        increment: Window Size Increment

    Returns:
        bytes: Complete WINDOW_UPDATE frame
    """
    payload = struct.pack(">I", increment)
    return build_frame_header(len(payload), H2_FRAME_WINDOW_UPDATE, H2_FLAG_NONE, stream_id) + payload


def build_data_frame(stream_id: int, body: Union[bytes, str] = b"") -> bytes:
    """
    Build HTTP/2 DATA frame with END_STREAM set.

    An empty body gives a zero-length frame that only closes the stream.

    Args:
        stream_id: Stream identifier
        body: Frame payload (str is UTF-8 encoded)

    Returns:
        bytes: Complete DATA frame
    """
    if isinstance(body, str):
        body = body.encode('utf-8')
    return build_frame_header(len(body), H2_FRAME_DATA, H2_FLAG_END_STREAM, stream_id) + body


def build_headers_frame(stream_id: int, header_block: bytes) -> bytes:
    """
    Build HTTP/2 HEADERS frame with END_HEADERS set.

    No CONTINUATION support: the whole header block goes into this frame.

    Args:
        stream_id: Stream identifier
        header_block: Encoded header block

    Returns:
        bytes: Complete HEADERS frame
    """
    return build_frame_header(len(header_block), H2_FRAME_HEADERS, H2_FLAG_END_HEADERS, stream_id) + header_block

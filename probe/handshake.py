"""
HTTP/2 connection setup and raw frame sending.
"""

from typing import Optional

from h2raw.constants import H2_CONNECTION_PREFACE
from h2raw.exceptions import ConnectionMissingError
from h2raw.frames import build_settings_frame, build_window_update_frame

from .config import ProbeConfig


async def send_frame(conn, data: bytes) -> None:
    """
    Write raw bytes to the connection.

    Args:
        conn: Connection with an async write(bytes)
        data: Bytes to send, sent as-is

    Raises:
        ConnectionMissingError: if conn is None (nothing is written)
    """
    if conn is None:
        raise ConnectionMissingError()
    await conn.write(data)


async def establish_connection(conn, config: Optional[ProbeConfig] = None) -> None:
    """
    Start the HTTP/2 session on an established TLS connection.

    Sends, in order and each awaited separately:
    1. Connection preface
    2. SETTINGS frame
    3. WINDOW_UPDATE frame on stream 0

    The first failed write aborts the sequence and propagates. The server's
    SETTINGS and its ACK are not waited for.

    Args:
        conn: Connection with an async write(bytes)
        config: Probe configuration (settings and window increment)
    """
    if config is None:
        config = ProbeConfig()

    await send_frame(conn, H2_CONNECTION_PREFACE)
    await send_frame(conn, build_settings_frame(config.settings.to_dict()))
    await send_frame(conn, build_window_update_frame(0, config.window_update_increment))

    if config.debug:
        print(f"    🤝 Preface, SETTINGS and WINDOW_UPDATE sent")

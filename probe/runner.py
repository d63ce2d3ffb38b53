"""
Single probe runner: dial, handshake, send the crafted request, classify.
"""

import asyncio
from typing import Optional

from h2raw.headers import RequestSpec, build_request

from .classifier import ResponseClassifier, ResultCallback, Termination, TerminationReason
from .config import ProbeConfig
from .connection import FrameConnection
from .handshake import establish_connection, send_frame
from .scan_job import ScanJob


async def probe_connection(conn, spec: RequestSpec, on_result: ResultCallback,
                           keyword: str = "", config: Optional[ProbeConfig] = None) -> Termination:
    """
    Run one probe over an already established connection.

    The request is built before anything is written, so a malformed
    additional header fails without touching the connection.

    Args:
        conn: FrameConnection (or compatible)
        spec: Request to send
        on_result: Receives each classification message
        keyword: Optional keyword to look for in the target stream's body
        config: Probe configuration

    Returns:
        Termination: how the classifier loop ended
    """
    if config is None:
        config = ProbeConfig()

    request = build_request(spec, config.user_agent)

    await establish_connection(conn, config)
    await send_frame(conn, request)

    job = ScanJob(connection=conn, target_stream_id=spec.stream_id, keyword=keyword)
    classifier = ResponseClassifier(job, on_result, debug=config.debug)
    return await classifier.run()


async def run_probe(host: str, port: int, spec: RequestSpec, on_result: ResultCallback,
                    keyword: str = "", config: Optional[ProbeConfig] = None,
                    timeout: Optional[float] = 10.0) -> Termination:
    """
    Connect to host:port over TLS and run one probe.

    When the server neither answers conclusively nor closes within
    `timeout` seconds the connection is abandoned and the result is
    inconclusive.

    Args:
        host: Target host
        port: Target port
        spec: Request to send
        on_result: Receives each classification message
        keyword: Optional keyword to look for in the response body
        config: Probe configuration
        timeout: Connect timeout and overall response timeout in seconds

    Returns:
        Termination: how the probe ended
    """
    if config is None:
        config = ProbeConfig()

    # Reject a malformed request before dialing
    build_request(spec, config.user_agent)

    conn = await FrameConnection.open(host, port, timeout=timeout, debug=config.debug)
    try:
        return await asyncio.wait_for(
            probe_connection(conn, spec, on_result, keyword=keyword, config=config),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        return Termination(TerminationReason.READ_ERROR, e)
    finally:
        await conn.close()

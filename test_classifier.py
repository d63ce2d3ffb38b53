"""
Tests for the response classifier loop.

Server frames are serialized with hyperframe/hpack and fed through a real
asyncio.StreamReader, so frame parsing is exercised as well.
"""

import asyncio

import pytest
from hpack import Encoder
from hyperframe.frame import (
    DataFrame, GoAwayFrame, HeadersFrame, RstStreamFrame, SettingsFrame, PingFrame,
)

from h2raw.exceptions import ConnectionMissingError
from h2raw.frames import build_frame_header
from h2raw.headers import RequestSpec, build_request
from probe.classifier import (
    ResponseClassifier, TerminationReason, LoopState, PEER_CLOSED_WARNING,
)
from probe.connection import FrameConnection, FrameKind, InboundFrame
from probe.config import ProbeConfig
from probe.runner import probe_connection
from probe.scan_job import ScanJob


def headers(stream_id: int, status: str, flags=("END_HEADERS",)) -> bytes:
    block = Encoder().encode([(":status", status), ("server", "test")])
    return HeadersFrame(stream_id, data=block, flags=list(flags)).serialize()


def data(stream_id: int, payload: bytes, end_stream: bool = False) -> bytes:
    flags = ["END_STREAM"] if end_stream else []
    return DataFrame(stream_id, data=payload, flags=flags).serialize()


def goaway(error_code: int = 0) -> bytes:
    return GoAwayFrame(0, last_stream_id=1, error_code=error_code).serialize()


def rst_stream(stream_id: int, error_code: int) -> bytes:
    return RstStreamFrame(stream_id, error_code=error_code).serialize()


def classify(*frames: bytes, target: int = 1, keyword: str = "", eof: bool = True):
    """Run the classifier over the given wire bytes; return (messages, termination)."""
    messages = []

    async def go():
        reader = asyncio.StreamReader()
        reader.feed_data(b"".join(frames))
        if eof:
            reader.feed_eof()
        job = ScanJob(FrameConnection(reader), target, keyword)
        return await ResponseClassifier(job, messages.append).run()

    termination = asyncio.run(go())
    return messages, termination


def test_headers_with_end_stream_on_target():
    messages, _ = classify(headers(1, "204", flags=("END_HEADERS", "END_STREAM")))
    assert messages == ["SUCCESS [204] Length: 0"]


def test_headers_with_end_stream_on_other_stream():
    messages, _ = classify(headers(3, "204", flags=("END_HEADERS", "END_STREAM")))
    assert messages == []


def test_headers_without_end_stream_emits_nothing():
    messages, _ = classify(headers(1, "200"))
    assert messages == []


def test_data_frames_accumulate_until_end_stream():
    messages, _ = classify(
        headers(1, "200"),
        data(1, b"abc"),
        data(1, b"defgh", end_stream=True),
    )
    assert messages == ["SUCCESS [200] Length: 8"]


def test_keyword_found():
    messages, _ = classify(
        headers(1, "200"),
        data(1, b"...to"),
        data(1, b"ken...", end_stream=True),
        keyword="token",
    )
    assert messages == ["SUCCESS [200] - Keyword: true - Length: 11"]


def test_keyword_missing():
    messages, _ = classify(
        headers(1, "200"),
        data(1, b"...tok"),
        data(1, b"xn...", end_stream=True),
        keyword="token",
    )
    assert messages == ["SUCCESS [200] - Keyword: false - Length: 11"]


def test_body_cleared_but_count_kept_after_end_stream():
    messages, _ = classify(
        headers(1, "200"),
        data(1, b"token", end_stream=True),
        data(1, b"abc", end_stream=True),
        keyword="token",
    )
    assert messages == [
        "SUCCESS [200] - Keyword: true - Length: 5",
        "SUCCESS [200] - Keyword: false - Length: 8",
    ]


def test_data_on_other_stream_is_not_reported():
    messages, _ = classify(
        headers(3, "200"),
        data(3, b"abc", end_stream=True),
    )
    assert messages == []


def test_streams_are_counted_separately():
    messages, _ = classify(
        data(3, b"xxxxxxxx"),
        headers(1, "200"),
        data(1, b"abc", end_stream=True),
    )
    assert messages == ["SUCCESS [200] Length: 3"]


def test_status_is_last_seen_on_connection():
    messages, _ = classify(
        headers(1, "200"),
        headers(3, "500"),
        data(1, b"abc", end_stream=True),
    )
    assert messages == ["SUCCESS [500] Length: 3"]


def test_goaway_terminates_loop():
    messages, termination = classify(
        headers(1, "200"),
        goaway(),
        headers(1, "204", flags=("END_HEADERS", "END_STREAM")),
    )
    assert messages == ["GOAWAY"]
    assert termination.reason is TerminationReason.GOAWAY
    assert termination.conclusive


def test_goaway_needs_no_eof():
    messages, termination = classify(goaway(error_code=0xb), target=7, eof=False)
    assert messages == ["GOAWAY"]
    assert termination.reason is TerminationReason.GOAWAY


def test_goaway_is_last_message():
    messages, _ = classify(
        headers(1, "204", flags=("END_HEADERS", "END_STREAM")),
        rst_stream(1, 0x2),
        goaway(),
    )
    assert messages == ["SUCCESS [204] Length: 0", "RST_STREAM: INTERNAL_ERROR", "GOAWAY"]


def test_rst_stream_no_error_is_silent():
    messages, termination = classify(rst_stream(1, 0x0))
    assert messages == []
    assert termination.reason is TerminationReason.PEER_CLOSED


@pytest.mark.parametrize("code, name", [
    (0x1, "PROTOCOL_ERROR"),
    (0x8, "CANCEL"),
    (0xd, "HTTP_1_1_REQUIRED"),
    (0xff, "unknown error code 0xff"),
])
def test_rst_stream_error_on_target(code, name):
    messages, _ = classify(rst_stream(1, code))
    assert messages == [f"RST_STREAM: {name}"]


def test_rst_stream_on_other_stream_is_silent():
    messages, _ = classify(rst_stream(3, 0x1))
    assert messages == []


def test_rst_stream_does_not_stop_loop():
    messages, _ = classify(
        rst_stream(1, 0x7),
        headers(1, "204", flags=("END_HEADERS", "END_STREAM")),
    )
    assert messages == ["RST_STREAM: REFUSED_STREAM", "SUCCESS [204] Length: 0"]


def test_settings_and_unknown_frames_are_ignored():
    unknown = build_frame_header(4, 0xfa, 0x00, 0) + b"abcd"
    messages, termination = classify(
        SettingsFrame(0, settings={0x3: 100}).serialize(),
        SettingsFrame(0, flags=["ACK"]).serialize(),
        PingFrame(0, opaque_data=b"12345678").serialize(),
        unknown,
        headers(1, "204", flags=("END_HEADERS", "END_STREAM")),
    )
    assert messages == ["SUCCESS [204] Length: 0"]
    assert termination.reason is TerminationReason.PEER_CLOSED


def test_peer_close_is_inconclusive(capsys):
    messages, termination = classify(headers(1, "200"))

    assert messages == []
    assert termination.reason is TerminationReason.PEER_CLOSED
    assert not termination.conclusive
    assert termination.describe().startswith("INCONCLUSIVE")
    assert PEER_CLOSED_WARNING in capsys.readouterr().out


def test_truncated_frame_is_read_error():
    frame = data(1, b"abcdef", end_stream=True)
    messages, termination = classify(frame[:12])

    assert messages == []
    assert termination.reason is TerminationReason.READ_ERROR
    assert isinstance(termination.error, asyncio.IncompleteReadError)
    assert not termination.conclusive


def test_partial_frame_header_is_read_error():
    messages, termination = classify(b"\x00\x00\x04")
    assert termination.reason is TerminationReason.READ_ERROR


def test_undecodable_header_block_keeps_loop_running():
    # 0xbf references index 63, which exists in neither table
    bad = HeadersFrame(1, data=b"\xbf", flags=["END_HEADERS", "END_STREAM"]).serialize()
    messages, termination = classify(
        bad,
        headers(3, "200"),
        data(3, b"x", end_stream=True),
        goaway(),
    )
    assert messages == ["SUCCESS [] Length: 0", "GOAWAY"]
    assert termination.reason is TerminationReason.GOAWAY


def test_job_without_connection():
    classifier = ResponseClassifier(ScanJob(None, 1), lambda message: None)
    with pytest.raises(ConnectionMissingError):
        asyncio.run(classifier.run())


def test_process_frame_dispatch_without_connection():
    messages = []
    classifier = ResponseClassifier(ScanJob(None, 5), messages.append)

    classifier.process_frame(InboundFrame(FrameKind.DATA, 0x0, 0x0, 5, data=b"abc"))
    classifier.process_frame(InboundFrame(FrameKind.OTHER, 0xfa, 0x0, 0))
    classifier.process_frame(InboundFrame(FrameKind.DATA, 0x0, 0x1, 5, data=b"de"))

    assert messages == ["SUCCESS [] Length: 5"]
    assert classifier.streams[5].bytes_received == 5
    assert classifier.streams[5].body == b""
    assert classifier.state is LoopState.RUNNING

    classifier.process_frame(InboundFrame(FrameKind.GOAWAY, 0x7, 0x0, 0, error_code=0, last_stream_id=5))
    assert classifier.state is LoopState.TERMINATED
    assert messages[-1] == "GOAWAY"


class RecordingWriter:
    def __init__(self):
        self.chunks = []

    def write(self, data: bytes):
        self.chunks.append(bytes(data))

    async def drain(self):
        pass


def test_probe_connection_end_to_end():
    spec = RequestSpec("a.com", "/", "POST", "transfer-encoding", "chunked",
                       stream_id=1, data_frame_body="0\r\n\r\n")
    config = ProbeConfig(user_agent="probe")
    writer = RecordingWriter()
    messages = []

    async def go():
        reader = asyncio.StreamReader()
        reader.feed_data(SettingsFrame(0, settings={0x3: 100}).serialize())
        reader.feed_data(headers(1, "400"))
        reader.feed_data(data(1, b"Bad Request", end_stream=True))
        reader.feed_data(goaway())
        conn = FrameConnection(reader, writer)
        return await probe_connection(conn, spec, messages.append, keyword="Bad", config=config)

    termination = asyncio.run(go())

    assert messages == ["SUCCESS [400] - Keyword: true - Length: 11", "GOAWAY"]
    assert termination.reason is TerminationReason.GOAWAY
    assert writer.chunks[0] == b"PRI * HTTP/2.0\r\n\r\nSM\r\n\r\n"
    assert writer.chunks[-1] == build_request(spec, "probe")

"""
HTTP/2 Request Header Block Encoding

A deliberately small HPACK encoder (RFC 7541): only the static-table
representations listed below plus "literal with incremental indexing" for
everything else. No Huffman coding and no dynamic table on the encode side,
so header order, duplicates and pseudo-header presence go out exactly as
built here.

    0x87            :scheme: https (indexed, static index 7)
    0x41 <value>    :authority (literal, indexed name 1)
    0x42 <value>    :method    (literal, indexed name 2)
    0x44 <value>    :path      (literal, indexed name 4)
    0x40 <name> <value>        any other header
"""

from dataclasses import dataclass
from typing import Tuple, Union

from .constants import (
    HPACK_INDEXED_SCHEME_HTTPS, HPACK_LITERAL_AUTHORITY, HPACK_LITERAL_METHOD,
    HPACK_LITERAL_PATH, HPACK_LITERAL_NEW_NAME,
    DEFAULT_USER_AGENT, DEFAULT_ACCEPT,
)
from .exceptions import MalformedHeaderError
from .frames import build_headers_frame, build_data_frame

# Separator between name and value in a free-form additional header
ADDITIONAL_HEADER_SEPARATOR = ": "

BytesLike = Union[bytes, str]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode('utf-8')
    return bytes(value)


@dataclass
class RequestSpec:
    """Everything the caller controls about the probe request."""
    hostname: str
    path: str
    method: str
    custom_header_name: BytesLike
    custom_header_value: BytesLike
    stream_id: int = 1
    additional_header: str = ""       # "Name: Value", empty for none
    data_frame_body: BytesLike = b""


@dataclass(frozen=True)
class WithholdSet:
    """
    Default headers left out because the custom header replaces them.

    The custom header name is matched case-sensitively as a prefix, in the
    order :scheme, :authority, :path, :method, user-agent. Only the first
    match counts, so at most one flag is ever set.
    """
    scheme: bool = False
    authority: bool = False
    method: bool = False
    path: bool = False
    user_agent: bool = False

    @classmethod
    def from_custom_header(cls, name: BytesLike) -> "WithholdSet":
        name = _to_bytes(name)
        if name.startswith(b":scheme"):
            return cls(scheme=True)
        elif name.startswith(b":authority"):
            return cls(authority=True)
        elif name.startswith(b":path"):
            return cls(path=True)
        elif name.startswith(b":method"):
            return cls(method=True)
        elif name.startswith(b"user-agent"):
            return cls(user_agent=True)
        return cls()


def encode_hpack_int(value: int, prefix_bits: int) -> bytes:
    """
    Encode integer using HPACK integer encoding (RFC 7541 Section 5.1).

    Args:
        value: Integer to encode
        prefix_bits: Number of prefix bits (affects max first byte value)

    Returns:
        bytes: Encoded integer (prefix bits above the value are left clear)
    """
    max_first = (1 << prefix_bits) - 1

    if value < max_first:
        return bytes([value])

    result = bytes([max_first])
    value -= max_first

    while value >= 128:
        result += bytes([(value & 0x7f) | 0x80])
        value >>= 7

    result += bytes([value])
    return result


def encode_hpack_string(data: BytesLike) -> bytes:
    """
    Encode a string literal: H bit 0 (no Huffman) + 7-bit prefix length + raw bytes.

    For anything shorter than 127 bytes the length is a single byte.
    """
    data = _to_bytes(data)
    return encode_hpack_int(len(data), 7) + data


def encode_literal_header(name: BytesLike, value: BytesLike) -> bytes:
    """Literal header field with incremental indexing and a literal name (0x40)."""
    return bytes([HPACK_LITERAL_NEW_NAME]) + encode_hpack_string(name) + encode_hpack_string(value)


def split_additional_header(header: str) -> Tuple[bytes, bytes]:
    """
    Split a free-form "Name: Value" header at the first ': '.

    Raises:
        MalformedHeaderError: if the separator is missing
    """
    if ADDITIONAL_HEADER_SEPARATOR not in header:
        raise MalformedHeaderError(header)
    name, value = header.split(ADDITIONAL_HEADER_SEPARATOR, 1)
    return _to_bytes(name), _to_bytes(value)


def build_header_block(spec: RequestSpec, user_agent: str = DEFAULT_USER_AGENT) -> bytes:
    """
    Build the HPACK header block for a probe request.

    Field order is fixed:
        :scheme, :authority, :method, :path   (each unless withheld)
        custom header                         (always)
        additional header                     (if given)
        user-agent                            (unless withheld)
        accept: */*                           (always)

    Args:
        spec: Request description
        user_agent: Value of the user-agent header

    Returns:
        bytes: Encoded header block

    Raises:
        MalformedHeaderError: if spec.additional_header is not "Name: Value"
    """
    additional = None
    if spec.additional_header:
        additional = split_additional_header(spec.additional_header)

    withhold = WithholdSet.from_custom_header(spec.custom_header_name)

    block = b""

    if not withhold.scheme:
        block += bytes([HPACK_INDEXED_SCHEME_HTTPS])

    if not withhold.authority:
        block += bytes([HPACK_LITERAL_AUTHORITY]) + encode_hpack_string(spec.hostname)

    if not withhold.method:
        block += bytes([HPACK_LITERAL_METHOD]) + encode_hpack_string(spec.method)

    if not withhold.path:
        block += bytes([HPACK_LITERAL_PATH]) + encode_hpack_string(spec.path)

    block += encode_literal_header(spec.custom_header_name, spec.custom_header_value)

    if additional is not None:
        block += encode_literal_header(*additional)

    if not withhold.user_agent:
        block += encode_literal_header(b"user-agent", user_agent)

    block += encode_literal_header(b"accept", DEFAULT_ACCEPT)

    return block


def build_request(spec: RequestSpec, user_agent: str = DEFAULT_USER_AGENT) -> bytes:
    """
    Build the complete probe request: a HEADERS frame followed by a DATA frame
    carrying END_STREAM, both on spec.stream_id.

    Args:
        spec: Request description
        user_agent: Value of the user-agent header

    Returns:
        bytes: HEADERS frame + DATA frame

    Raises:
        MalformedHeaderError: propagated from build_header_block()
    """
    header_block = build_header_block(spec, user_agent)
    request = build_headers_frame(spec.stream_id, header_block)
    request += build_data_frame(spec.stream_id, spec.data_frame_body)
    return request

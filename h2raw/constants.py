"""
HTTP/2 Protocol Constants (RFC 9113)
"""

# Connection preface sent by the client before any frame
H2_CONNECTION_PREFACE = b"PRI * HTTP/2.0\r\n\r\nSM\r\n\r\n"

# Frame header is always 9 bytes: length(3) + type(1) + flags(1) + stream id(4)
H2_FRAME_HEADER_SIZE = 9
H2_STREAM_ID_MASK = 0x7fffffff

# HTTP/2 Frame Types
H2_FRAME_DATA = 0x00
H2_FRAME_HEADERS = 0x01
H2_FRAME_PRIORITY = 0x02
H2_FRAME_RST_STREAM = 0x03
H2_FRAME_SETTINGS = 0x04
H2_FRAME_PUSH_PROMISE = 0x05
H2_FRAME_PING = 0x06
H2_FRAME_GOAWAY = 0x07
H2_FRAME_WINDOW_UPDATE = 0x08
H2_FRAME_CONTINUATION = 0x09

H2_FRAME_TYPE_NAMES = {
    0x00: "DATA",
    0x01: "HEADERS",
    0x02: "PRIORITY",
    0x03: "RST_STREAM",
    0x04: "SETTINGS",
    0x05: "PUSH_PROMISE",
    0x06: "PING",
    0x07: "GOAWAY",
    0x08: "WINDOW_UPDATE",
    0x09: "CONTINUATION",
}

# Frame flags
H2_FLAG_NONE = 0x00
H2_FLAG_END_STREAM = 0x01
H2_FLAG_END_HEADERS = 0x04

# HTTP/2 Settings Parameters
H2_SETTINGS_HEADER_TABLE_SIZE = 0x01
H2_SETTINGS_ENABLE_PUSH = 0x02
H2_SETTINGS_MAX_CONCURRENT_STREAMS = 0x03
H2_SETTINGS_INITIAL_WINDOW_SIZE = 0x04
H2_SETTINGS_MAX_FRAME_SIZE = 0x05
H2_SETTINGS_MAX_HEADER_LIST_SIZE = 0x06
H2_SETTINGS_ENABLE_CONNECT_PROTOCOL = 0x08  # RFC 8441

H2_SETTINGS_NAMES = {
    0x01: "HEADER_TABLE_SIZE",
    0x02: "ENABLE_PUSH",
    0x03: "MAX_CONCURRENT_STREAMS",
    0x04: "INITIAL_WINDOW_SIZE",
    0x05: "MAX_FRAME_SIZE",
    0x06: "MAX_HEADER_LIST_SIZE",
    0x08: "ENABLE_CONNECT_PROTOCOL",
}

# Window Size Increment sent on stream 0 right after SETTINGS.
# The wire bytes are 7F 0F FF FF.
H2_DEFAULT_WINDOW_UPDATE_INCREMENT = 0x7f0fffff

# HTTP/2 Error Codes
H2_ERROR_NO_ERROR = 0x0

H2_ERROR_NAMES = {
    0x0: "NO_ERROR",
    0x1: "PROTOCOL_ERROR",
    0x2: "INTERNAL_ERROR",
    0x3: "FLOW_CONTROL_ERROR",
    0x4: "SETTINGS_TIMEOUT",
    0x5: "STREAM_CLOSED",
    0x6: "FRAME_SIZE_ERROR",
    0x7: "REFUSED_STREAM",
    0x8: "CANCEL",
    0x9: "COMPRESSION_ERROR",
    0xa: "CONNECT_ERROR",
    0xb: "ENHANCE_YOUR_CALM",
    0xc: "INADEQUATE_SECURITY",
    0xd: "HTTP_1_1_REQUIRED",
}


def describe_error_code(code: int) -> str:
    """Name of an HTTP/2 error code, or a hex placeholder for unknown codes."""
    name = H2_ERROR_NAMES.get(code)
    if name is None:
        return f"unknown error code 0x{code:x}"
    return name


# HPACK representations used by the request encoder (RFC 7541 Section 6)
HPACK_INDEXED_SCHEME_HTTPS = 0x87       # Indexed field, static index 7
HPACK_LITERAL_AUTHORITY = 0x41          # Literal w/ incremental indexing, name index 1
HPACK_LITERAL_METHOD = 0x42             # Literal w/ incremental indexing, name index 2
HPACK_LITERAL_PATH = 0x44               # Literal w/ incremental indexing, name index 4
HPACK_LITERAL_NEW_NAME = 0x40           # Literal w/ incremental indexing, literal name

# Default header values
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
DEFAULT_ACCEPT = "*/*"

"""
Raw HTTP/2 Request Crafting

Provides:
- HTTP/2 frame building (SETTINGS, WINDOW_UPDATE, DATA, HEADERS)
- Static/literal-only HPACK header block encoding with pseudo-header withholding
- Probe request assembly (HEADERS + DATA)
"""

from .constants import *
from .exceptions import (
    H2RawError,
    MalformedHeaderError,
    ConnectionMissingError,
    PeerClosedError,
)
from .frames import (
    DEFAULT_SETTINGS,
    build_frame_header,
    build_settings_frame,
    build_window_update_frame,
    build_data_frame,
    build_headers_frame,
)
from .headers import (
    RequestSpec,
    WithholdSet,
    encode_hpack_int,
    encode_hpack_string,
    build_header_block,
    build_request,
)

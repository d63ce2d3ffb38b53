"""
Header block decoding for response HEADERS frames.

hpack does the actual decoding. One decoder lives for the whole connection so
its dynamic table tracks the server's encoder.
"""

from typing import Callable

from hpack import Decoder

HeaderCallback = Callable[[str, str], None]


class HeaderBlockDecoder:
    """Decodes complete header blocks and reports each field to a callback."""

    def __init__(self, max_header_list_size: int = 65536):
        self._decoder = Decoder(max_header_list_size=max_header_list_size)

    def decode(self, header_block: bytes, on_field: HeaderCallback) -> int:
        """
        Decode one header block (a single HEADERS frame, no CONTINUATION).

        Args:
            header_block: HPACK encoded block
            on_field: Called once per field with (name, value)

        Returns:
            int: Number of fields decoded

        Raises:
            hpack.HPACKError: on a malformed block
        """
        fields = self._decoder.decode(header_block, raw=True)
        for name, value in fields:
            on_field(name.decode('utf-8', 'replace'), value.decode('utf-8', 'replace'))
        return len(fields)

"""
Errors raised while crafting requests and driving a probe connection.

Protocol outcomes such as GOAWAY or RST_STREAM are results, not errors.
"""


class H2RawError(Exception):
    """Base class for errors raised by this codebase."""


class MalformedHeaderError(H2RawError, ValueError):
    """An additional header was not given in 'Name: Value' form."""

    def __init__(self, header: str):
        self.header = header
        super().__init__(f"additional header {header!r} does not contain ': '")


class ConnectionMissingError(H2RawError):
    """A send was attempted without a connection."""

    def __init__(self):
        super().__init__("connection is None")


class PeerClosedError(H2RawError, EOFError):
    """The peer closed the connection cleanly between two frames."""

    def __init__(self):
        super().__init__("connection closed by peer")

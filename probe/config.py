"""
Probe configuration objects.
"""

from dataclasses import dataclass, field
from typing import Dict

from h2raw.constants import (
    DEFAULT_USER_AGENT, H2_DEFAULT_WINDOW_UPDATE_INCREMENT,
    H2_SETTINGS_ENABLE_PUSH, H2_SETTINGS_MAX_CONCURRENT_STREAMS,
    H2_SETTINGS_INITIAL_WINDOW_SIZE, H2_SETTINGS_ENABLE_CONNECT_PROTOCOL,
)


@dataclass
class ProbeSettings:
    """HTTP/2 SETTINGS parameters sent during the handshake."""
    enable_push: int = 0                    # 0x02
    max_concurrent_streams: int = 1000      # 0x03
    initial_window_size: int = 6291456      # 0x04
    enable_connect_protocol: int = 1        # 0x08

    def to_dict(self) -> Dict[int, int]:
        return {
            H2_SETTINGS_ENABLE_PUSH: self.enable_push,
            H2_SETTINGS_MAX_CONCURRENT_STREAMS: self.max_concurrent_streams,
            H2_SETTINGS_INITIAL_WINDOW_SIZE: self.initial_window_size,
            H2_SETTINGS_ENABLE_CONNECT_PROTOCOL: self.enable_connect_protocol,
        }


@dataclass
class ProbeConfig:
    """Settings shared by the request builder, the handshake and the classifier."""
    user_agent: str = DEFAULT_USER_AGENT
    settings: ProbeSettings = field(default_factory=ProbeSettings)
    window_update_increment: int = H2_DEFAULT_WINDOW_UPDATE_INCREMENT
    debug: bool = False

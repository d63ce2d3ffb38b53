"""
Scan job descriptor handed to the response classifier.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ScanJob:
    """One probe on one connection."""
    connection: Any             # FrameConnection or anything with async read_frame()
    target_stream_id: int
    keyword: str = ""           # empty = no keyword check

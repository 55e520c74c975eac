"""
Request Module - Per-Transfer Configuration

Applies caller options (method, URL, headers, timeouts) to a handle
before it is registered with a Multiplexor.
"""

from .options import Options
from .request import Request

__all__ = [
    'Options',
    'Request',
]

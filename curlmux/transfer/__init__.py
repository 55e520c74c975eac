"""
Transfer Module - Concurrent Transfers on One Thread

The Multiplexor and the engine boundary it drives.
"""

from .handle import CurlHandle
from .engine import Engine, Progress, PycurlEngine
from .multi import Callback, Multi

__all__ = [
    'CurlHandle',
    'Engine',
    'Progress',
    'PycurlEngine',
    'Callback',
    'Multi',
]

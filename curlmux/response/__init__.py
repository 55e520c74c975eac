"""
Response Module - Decoding Completed Transfers

Helpers used by completion callbacks to read what a transfer received.
"""

from .response import CurlResponse
from .json_response import JsonResponse

__all__ = [
    'CurlResponse',
    'JsonResponse',
]

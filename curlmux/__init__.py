"""
curlmux - concurrent HTTP transfers on a single control thread

Many transfers are registered with a Multiplexor (``Multi``), which
drives them with libcurl's multi interface and calls back once per
finished transfer.
"""

from .exceptions import ContentTypeError, CurlClientException, DuplicateHandleError, MultiError
from .transfer import CurlHandle, Multi
from .request import Options, Request
from .response import CurlResponse, JsonResponse

__version__ = '1.0.0'

__all__ = [
    'ContentTypeError',
    'CurlClientException',
    'DuplicateHandleError',
    'MultiError',
    'CurlHandle',
    'Multi',
    'Options',
    'Request',
    'CurlResponse',
    'JsonResponse',
]

"""
Shared constants: libcurl multi codes, header names and content types.
"""

from enum import IntEnum


class MultiCode(IntEnum):
    """libcurl ``CURLM_*`` return codes of the multi interface."""
    CALL_MULTI_PERFORM = -1
    OK = 0
    BAD_HANDLE = 1
    BAD_EASY_HANDLE = 2
    OUT_OF_MEMORY = 3
    INTERNAL_ERROR = 4
    BAD_SOCKET = 5
    UNKNOWN_OPTION = 6
    ADDED_ALREADY = 7


# Result code of a transfer that finished without error (CURLE_OK)
TRANSFER_OK = 0

# Readiness-wait return value meaning "cannot tell how many are ready"
SELECT_INDETERMINATE = -1

# Loop pacing defaults (seconds)
DEFAULT_LOOP_WAIT_TIME = 0.001
DEFAULT_LOOP_TIMEOUT = 1.0


class HttpRequestHeader:
    ACCEPT = 'Accept'
    CONTENT_TYPE = 'Content-Type'
    USER_AGENT = 'User-Agent'


class ContentType:
    APPLICATION_JSON = 'application/json'
    TEXT_PLAIN = 'text/plain'
    TEXT_HTML = 'text/html'

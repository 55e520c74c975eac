"""
Exception Types

Two error channels are kept apart on purpose:

- Loop-level problems (the engine context cannot be created, the
  Multiplexor is misused) raise ``MultiError``.
- Per-transfer failures never raise; they reach the caller as a result
  code passed to the completion callback.

Response decoding helpers raise ``ContentTypeError`` from inside the
caller's callback, never from the loop itself.
"""


class CurlClientException(Exception):
    """Base class for every error raised by curlmux."""


class MultiError(CurlClientException):
    """The multi engine cannot be created or the Multiplexor was misused."""


class DuplicateHandleError(MultiError):
    """A handle was added while it is still registered."""


class ContentTypeError(CurlClientException):
    """The response declares a content type other than the one expected."""
    
    def __init__(self, content_type: str, expected: str):
        self.content_type = content_type
        self.expected = expected
        super().__init__(
            f'Invalid response Content-Type "{content_type}" (expected {expected})'
        )

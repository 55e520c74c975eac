"""
Curl Handle

One transfer as seen by the Multiplexor: a ``pycurl.Curl`` easy handle
plus the buffers that capture its response. Handles compare and hash by
identity, so they can key the Multiplexor's registry directly.
"""

import logging
from io import BytesIO
from typing import Any, List, Mapping, Optional, Tuple

import pycurl

from ..exceptions import CurlClientException
from ..response import CurlResponse

logger = logging.getLogger(__name__)


class CurlHandle:
    """
    Wraps a ``pycurl.Curl`` easy handle and captures its response.

    The body is written into an in-memory buffer and response headers are
    collected line by line. When a transfer follows redirects, only the
    headers of the final response are kept.
    """

    def __init__(self, curl: Optional[pycurl.Curl] = None):
        self.curl = curl if curl is not None else pycurl.Curl()
        self.error_message = ''
        self.request = None

        self._body = BytesIO()
        self._status_line = ''
        self._headers: List[Tuple[str, str]] = []

        self.curl.setopt(pycurl.WRITEDATA, self._body)
        self.curl.setopt(pycurl.HEADERFUNCTION, self._on_header)

    def _on_header(self, raw: bytes) -> None:
        line = raw.decode('iso-8859-1').rstrip('\r\n')

        if line.startswith('HTTP/'):
            # New response block (redirect or 100-continue)
            self._status_line = line
            self._headers = []
            return

        if ':' not in line:
            return

        name, value = line.split(':', 1)
        self._headers.append((name.strip(), value.strip()))

    def set_options(self, options: Mapping[int, Any]) -> None:
        """Apply a map of ``pycurl`` options to the easy handle."""
        for option, value in options.items():
            try:
                self.curl.setopt(option, value)
            except (pycurl.error, TypeError) as e:
                raise CurlClientException(
                    f"Cannot set curl option {option}={value!r}: {e}"
                ) from e

    def info(self, option: int) -> Any:
        return self.curl.getinfo(option)

    @property
    def body(self) -> bytes:
        return self._body.getvalue()

    def response(self) -> CurlResponse:
        """Build a response object from what this transfer captured."""
        return CurlResponse(
            status_code=self.curl.getinfo(pycurl.RESPONSE_CODE),
            headers=list(self._headers),
            body=self.body,
            status_line=self._status_line,
            url=self.curl.getinfo(pycurl.EFFECTIVE_URL),
            elapsed=self.curl.getinfo(pycurl.TOTAL_TIME),
        )

    def close(self) -> None:
        self.curl.close()

    def __repr__(self) -> str:
        url = self.request.url if self.request is not None else None
        return f"<CurlHandle url={url!r}>"

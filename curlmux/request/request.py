"""
Request Description

Translates a plain request description (method, URL, headers, body,
timeouts) into the ``pycurl`` option map for one easy handle. This is
applied once per transfer, before the handle is added to a Multiplexor.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import pycurl

from ..transfer.handle import CurlHandle
from .options import Options

logger = logging.getLogger(__name__)


@dataclass
class Request:
    """One HTTP request to be run as a transfer."""
    url: str
    method: str = 'GET'
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[bytes, str]] = None
    
    # Timeouts (seconds), None leaves libcurl's default
    timeout: Optional[float] = None
    connect_timeout: Optional[float] = None
    
    follow_redirects: bool = True
    user_agent: Optional[str] = None
    
    def to_options(self) -> Dict[int, Any]:
        """Build the ``pycurl`` option map for this request."""
        method = self.method.upper()
        options: Dict[int, Any] = {pycurl.URL: self.url}
        
        if method == 'GET':
            options[pycurl.HTTPGET] = 1
        elif method == 'HEAD':
            options[pycurl.NOBODY] = 1
        elif method == 'POST':
            options[pycurl.POST] = 1
        else:
            options[pycurl.CUSTOMREQUEST] = method
        
        if self.body is not None:
            body = self.body.encode('utf-8') if isinstance(self.body, str) else self.body
            options[pycurl.POSTFIELDS] = body
        
        if self.headers:
            options[pycurl.HTTPHEADER] = [
                f"{name}: {value}" for name, value in self.headers.items()
            ]
        
        if self.timeout is not None:
            options[pycurl.TIMEOUT_MS] = int(self.timeout * 1000)
        if self.connect_timeout is not None:
            options[pycurl.CONNECTTIMEOUT_MS] = int(self.connect_timeout * 1000)
        
        options[pycurl.FOLLOWLOCATION] = 1 if self.follow_redirects else 0
        
        if self.user_agent:
            options[pycurl.USERAGENT] = self.user_agent
        
        return options
    
    def handle(self, extra: Optional[Options] = None) -> CurlHandle:
        """
        Create a configured handle for this request.
        
        Args:
            extra: Additional options applied after the request's own
        """
        options = Options(self.to_options())
        if extra is not None:
            options = options.merged(extra.options)
        
        handle = CurlHandle()
        options(handle)
        handle.request = self
        
        logger.debug(f"Prepared {self.method.upper()} {self.url}")
        return handle

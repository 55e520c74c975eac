"""
JSON view over a captured response.
"""

import json
from typing import Any

from ..constants import ContentType, HttpRequestHeader
from ..exceptions import ContentTypeError
from .response import CurlResponse


class JsonResponse:
    """
    Decodes a response body as JSON.
    
    Content-type validation is separate from decoding so callers can
    decide whether a mismatching server is an error for them.
    """
    
    def __init__(self, response: CurlResponse):
        self.response = response
    
    def get_json(self) -> Any:
        """
        Decode the body.
        
        Raises:
            json.JSONDecodeError: the body is not valid JSON
        """
        return json.loads(self.response.text)
    
    def check_content_type(self) -> None:
        """
        Ensure the response declares a JSON content type.
        
        Raises:
            ContentTypeError: Content-Type does not start with application/json
        """
        content_type = self.response.get_header_line(HttpRequestHeader.CONTENT_TYPE)
        if not content_type.startswith(ContentType.APPLICATION_JSON):
            raise ContentTypeError(content_type, ContentType.APPLICATION_JSON)

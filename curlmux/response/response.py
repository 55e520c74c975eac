"""
Captured HTTP response of a completed transfer.
"""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class CurlResponse:
    """Status, headers and body captured from one finished transfer."""
    status_code: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b''
    status_line: str = ''
    url: str = ''
    elapsed: float = 0.0
    
    @property
    def text(self) -> str:
        """Body decoded as UTF-8, undecodable bytes replaced."""
        return self.body.decode('utf-8', errors='replace')
    
    def has_header(self, name: str) -> bool:
        return bool(self.get_header(name))
    
    def get_header(self, name: str) -> List[str]:
        """All values of a header, matched case-insensitively."""
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]
    
    def get_header_line(self, name: str) -> str:
        """Values of a header joined by commas, empty if absent."""
        return ', '.join(self.get_header(name))
    
    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'url': self.url,
            'status_code': self.status_code,
            'status_line': self.status_line,
            'headers': [[k, v] for k, v in self.headers],
            'size': len(self.body),
            'elapsed': self.elapsed,
        }
